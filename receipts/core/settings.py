from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
import json

from receipts.core.currency import to_decimal
from receipts.core.models import PaymentLink


FontSpec = Union[str, Mapping[str, str]]


@dataclass(frozen=True)
class TemplateDefaults:
	"""Template-level values used when a document is built without them.

	One instance is attached to each document class; it is never mutated
	after configuration.
	"""
	title: Optional[str] = None
	subtitle: Optional[str] = None
	amount_gross: Optional[Decimal] = None
	amount_net: Optional[Decimal] = None
	currency: Optional[str] = None
	total_text: Optional[str] = None
	total_text_in_words: Optional[str] = None
	payment_link: Optional[PaymentLink] = None
	# Registered font name, or a mapping of style -> TTF path
	font: Optional[FontSpec] = None

	def __post_init__(self) -> None:
		object.__setattr__(self, "amount_gross", to_decimal(self.amount_gross))
		object.__setattr__(self, "amount_net", to_decimal(self.amount_net))
		object.__setattr__(self, "payment_link", PaymentLink.coerce(self.payment_link))
		if isinstance(self.font, Mapping):
			object.__setattr__(self, "font", dict(self.font))

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "TemplateDefaults":
		# Ignore unknown keys
		known = {f.name for f in fields(cls)}
		return cls(**{k: v for k, v in data.items() if k in known})

	def to_dict(self) -> Dict[str, Any]:
		d = asdict(self)
		for key in ("amount_gross", "amount_net"):
			if d[key] is not None:
				d[key] = str(d[key])
		return d

	def merged(self, **overrides: Any) -> "TemplateDefaults":
		"""Return a copy with the given fields replaced."""
		return TemplateDefaults.from_dict({**self.to_dict(), **overrides})


def load_defaults(path: Union[str, Path]) -> TemplateDefaults:
	"""
	Load template defaults from JSON (UTF-8). A missing file yields empty defaults.
	"""
	p = Path(path)
	if not p.exists():
		return TemplateDefaults()

	with p.open("r", encoding="utf-8") as f:
		raw = json.load(f)
	if not isinstance(raw, dict):
		raise ValueError(f"Template defaults in {p} must be a JSON object")
	return TemplateDefaults.from_dict(raw)


def save_defaults(defaults: TemplateDefaults, path: Union[str, Path]) -> None:
	"""Save template defaults to JSON (UTF-8), creating parent dirs if needed."""
	p = Path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(defaults.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)
