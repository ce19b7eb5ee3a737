from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from receipts.core.errors import InvalidTableShapeError, MissingRequiredFieldError


class DisplayField(str, Enum):
	"""Company fields that may appear in the seller block, in caller-chosen order."""
	ADDRESS = "address"
	PHONE = "phone"
	EMAIL = "email"


DEFAULT_DISPLAY: Tuple[DisplayField, ...] = (DisplayField.ADDRESS, DisplayField.PHONE, DisplayField.EMAIL)


@dataclass(frozen=True)
class PaymentLink:
	url: str
	text: str

	@classmethod
	def coerce(cls, value: Any) -> Optional["PaymentLink"]:
		if value is None or isinstance(value, PaymentLink):
			return value
		if isinstance(value, Mapping):
			url = value.get("url")
			if not url:
				raise MissingRequiredFieldError("payment_link.url")
			return cls(url=str(url), text=str(value.get("text") or url))
		raise TypeError(f"payment_link must be a mapping or PaymentLink, got {type(value).__name__}")


@dataclass(frozen=True)
class Company:
	name: str
	# Path, URL, bytes, file-like object or PIL image
	logo: Any = None
	address: Optional[str] = None
	phone: Optional[str] = None
	email: Optional[str] = None
	display: Tuple[DisplayField, ...] = DEFAULT_DISPLAY
	seller_key: str = ""
	iban_text: str = ""
	collection_signature_text: Optional[str] = None
	issuer_signature_text: Optional[str] = None
	issuer_full_name: Optional[str] = None
	contact_text: str = "Contact us:"

	def __post_init__(self) -> None:
		display = (self.display,) if isinstance(self.display, str) else self.display
		object.__setattr__(self, "display", tuple(DisplayField(f) for f in display))

	@classmethod
	def coerce(cls, value: Any) -> "Company":
		"""Build a Company from a mapping; unknown keys are ignored."""
		if isinstance(value, Company):
			return value
		if not isinstance(value, Mapping):
			raise TypeError(f"company must be a mapping or Company, got {type(value).__name__}")
		if not value.get("name"):
			raise MissingRequiredFieldError("company.name", "header")
		data = dict(value)
		# Older key name for the issuer's full name
		if "fullname_person_invoice_issuer" in data and "issuer_full_name" not in data:
			data["issuer_full_name"] = data["fullname_person_invoice_issuer"]
		if data.get("display") is None:
			data.pop("display", None)
		known = {f.name for f in fields(cls)}
		return cls(**{k: v for k, v in data.items() if k in known})

	def details_lines(self) -> List[str]:
		"""Selected display values in order, skipping the ones that are not set."""
		values = (getattr(self, f.value) for f in self.display)
		return [str(v) for v in values if v not in (None, "")]

	@property
	def has_email(self) -> bool:
		return bool(self.email and str(self.email).strip())


@dataclass(frozen=True)
class Cell:
	"""A table cell with optional styling; content may contain inline markup."""
	content: str = ""
	bold: bool = False
	align: Optional[str] = None
	background: Optional[str] = None
	text_color: Optional[str] = None
	# Single value or (top, right, bottom, left)
	padding: Union[None, float, Tuple[float, float, float, float]] = None

	@classmethod
	def coerce(cls, value: Any) -> "Cell":
		if isinstance(value, Cell):
			return value
		if value is None:
			return cls("")
		if isinstance(value, Mapping):
			known = {f.name for f in fields(cls)}
			data = {k: v for k, v in value.items() if k in known}
			data["content"] = "" if data.get("content") is None else str(data["content"])
			if isinstance(data.get("padding"), list):
				data["padding"] = tuple(data["padding"])
			return cls(**data)
		if isinstance(value, (str, int, float, Decimal)):
			return cls(str(value))
		raise TypeError(f"Unsupported table cell: {value!r}")


Row = List[Cell]


def table_rows(name: str, rows: Any, minimum: int = 2) -> List[Row]:
	"""Validate a table-backed input and return rectangular rows of cells.

	Ragged rows are padded with empty cells on the right.
	"""
	if rows is None:
		raise MissingRequiredFieldError(name)
	if isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
		raise InvalidTableShapeError(name, 0, minimum, reason=f"Table '{name}' must be a sequence of rows")
	if len(rows) < minimum:
		raise InvalidTableShapeError(name, len(rows), minimum)

	out: List[Row] = []
	for i, row in enumerate(rows):
		if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
			raise InvalidTableShapeError(name, len(rows), minimum, reason=f"Row {i} of table '{name}' is not a sequence of cells")
		out.append([Cell.coerce(c) for c in row])

	width = max(len(r) for r in out)
	if width == 0:
		raise InvalidTableShapeError(name, len(rows), minimum, reason=f"Table '{name}' has no columns")
	for r in out:
		r.extend(Cell("") for _ in range(width - len(r)))
	return out


def bordered_rows(row_count: int) -> range:
	"""Rows that get a bottom border: every row except the last."""
	if row_count < 2:
		raise InvalidTableShapeError("table", row_count)
	return range(0, row_count - 1)


def recipient_lines(recipient: Any) -> List[str]:
	if recipient is None:
		raise MissingRequiredFieldError("recipient", "billing")
	if isinstance(recipient, str):
		return [recipient]
	return ["" if line is None else str(line) for line in recipient]


# ----- Header identity -----
@dataclass(frozen=True)
class Logo:
	source: Any


@dataclass(frozen=True)
class Name:
	text: str


HeaderIdentity = Union[Logo, Name]


def header_identity(company: Company) -> HeaderIdentity:
	if company.logo is None:
		return Name(company.name)
	return Logo(company.logo)
