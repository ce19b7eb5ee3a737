from __future__ import annotations

import io
import logging
import urllib.request
from pathlib import Path
from typing import Any, Tuple

from reportlab.lib.utils import ImageReader

from receipts.core.errors import ImageLoadError

logger = logging.getLogger(__name__)


def _open_source(logo: Any) -> Any:
    if isinstance(logo, (str, Path)):
        s = str(logo)
        if s.startswith(("http://", "https://")):
            logger.debug("Fetching logo %s", s)
            with urllib.request.urlopen(s) as resp:
                return io.BytesIO(resp.read())
        p = Path(s)
        if not p.is_file():
            raise ImageLoadError(logo, "file not found")
        return str(p)
    if isinstance(logo, (bytes, bytearray)):
        return io.BytesIO(bytes(logo))
    # File objects and PIL images go to ImageReader as-is
    return logo


def load_image(logo: Any) -> ImageReader:
    """Open a logo given as a path, http(s) URL, bytes, file object or PIL image.

    Blocking; any failure to fetch or decode raises ImageLoadError.
    """
    if isinstance(logo, ImageReader):
        return logo
    try:
        reader = ImageReader(_open_source(logo))
        reader.getSize()
    except ImageLoadError:
        raise
    except (OSError, ValueError, TypeError) as e:
        raise ImageLoadError(logo, str(e)) from e
    return reader


def scaled_size(reader: ImageReader, height: float) -> Tuple[float, float]:
    """Width and height for drawing at the given height, keeping the aspect ratio."""
    iw, ih = reader.getSize()
    if not iw or not ih:
        raise ImageLoadError(reader, "image has no size")
    return float(iw) * height / float(ih), float(height)
