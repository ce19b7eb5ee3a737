from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Optional, Iterable


def to_decimal(x: object) -> Optional[Decimal]:
	"""Convert to Decimal via str to avoid binary float artifacts. None passes through."""
	if x is None:
		return None
	if isinstance(x, Decimal):
		return x
	try:
		return Decimal(str(x).strip())
	except (InvalidOperation, ValueError, TypeError) as e:
		raise ValueError(f"Not a monetary amount: {x!r}") from e


def round_money_dec(x: float | Decimal | str) -> Decimal:
	"""Round to 2 decimals (round-half-to-even) and return Decimal."""
	d = to_decimal(x)
	if d is None:
		raise ValueError("Cannot round a missing amount")
	return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)


def fmt_money(x: float | Decimal | str, currency: Optional[str] = None) -> str:
	"""
	Format a monetary value with two decimals and an optional currency prefix.

	The renderer never formats amounts itself; this is for callers building
	total_text and the totals rows.
	"""
	s = f"{round_money_dec(x):,.2f}"
	if not currency:
		return s
	symbol = CURRENCY_SYMBOLS.get(currency.upper())
	return f"{symbol}{s}" if symbol else f"{s} {currency.upper()}"


def sum_money(values: Iterable[float | Decimal | str]) -> Decimal:
	"""Accumulate monetary values using Decimal and banker's rounding at the end."""
	total = Decimal("0")
	for v in values:
		total += to_decimal(v) or Decimal("0")
	return round_money_dec(total)


CURRENCY_SYMBOLS = {
	"USD": "$",
	"EUR": "€",
	"GBP": "£",
	"JPY": "¥",
}
