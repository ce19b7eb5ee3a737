from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Flowable

logger = logging.getLogger(__name__)

# Same margin on every side, in points
PAGE_MARGIN = 36


class Page:
    """A canvas plus the shared vertical cursor.

    `y` is the cursor in PDF coordinates (origin bottom-left). Drawing
    helpers place content below the cursor and move it down; content that
    does not fit continues on a new page.
    """

    def __init__(self, canvas: Canvas, page_size: Tuple[float, float], margin: float = PAGE_MARGIN):
        self.canvas = canvas
        self.page_width, self.page_height = page_size
        self.left = margin
        self.width = self.page_width - 2 * margin
        self.top = self.page_height - margin
        self.bottom = margin
        self.y = self.top
        self.page_count = 1

    @property
    def available(self) -> float:
        return max(0.0, self.y - self.bottom)

    @property
    def at_top(self) -> bool:
        return self.y >= self.top

    def move_down(self, amount: float) -> None:
        self.y -= amount

    def move_up(self, amount: float) -> None:
        # Not clamped: header and totals rely on overlapping what was just drawn
        self.y += amount

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page_count += 1
        self.y = self.top
        logger.debug("Started page %d", self.page_count)

    def ensure_room(self, height: float) -> None:
        if height > self.available and not self.at_top:
            self.new_page()

    def flow(self, flowable: Flowable, x: float = 0.0, width: Optional[float] = None) -> float:
        """Draw a flowable at the cursor, `x` points right of the left margin.

        Splits it across pages when it is taller than the space left.
        Returns the total height consumed.
        """
        width = self.width if width is None else width
        pending: List[Flowable] = [flowable]
        used = 0.0
        while pending:
            item = pending.pop(0)
            _w, h = item.wrapOn(self.canvas, width, self.available)
            if h <= self.available:
                item.drawOn(self.canvas, self.left + x, self.y - h)
                self.y -= h
                used += h
                continue

            parts = item.split(width, self.available)
            if len(parts) > 1:
                head = parts[0]
                _w, h = head.wrapOn(self.canvas, width, self.available)
                head.drawOn(self.canvas, self.left + x, self.y - h)
                used += h
                self.new_page()
                pending = list(parts[1:]) + pending
            elif not self.at_top:
                self.new_page()
                pending.insert(0, item)
            else:
                # Taller than a whole page and not splittable: draw it and let it overflow
                item.drawOn(self.canvas, self.left + x, self.y - h)
                self.y -= h
                used += h
        return used
