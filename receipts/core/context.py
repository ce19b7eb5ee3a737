"""
Document context: the nine template-overridable fields, resolved once per document.

Resolution order for every field is: explicit call value, then the template
default, then absent (None). A key passed explicitly as None counts as absent.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Mapping, Optional

from receipts.core.currency import to_decimal
from receipts.core.errors import MissingRequiredFieldError
from receipts.core.models import PaymentLink
from receipts.core.settings import FontSpec, TemplateDefaults


@dataclass(frozen=True)
class ResolvedContext:
    title: Optional[str] = None
    subtitle: Optional[str] = None
    amount_gross: Optional[Decimal] = None
    amount_net: Optional[Decimal] = None
    currency: Optional[str] = None
    total_text: Optional[str] = None
    total_text_in_words: Optional[str] = None
    payment_link: Optional[PaymentLink] = None
    font: Optional[FontSpec] = None

    def require(self, name: str, section: str | None = None) -> Any:
        """Return a resolved field, raising MissingRequiredFieldError when absent."""
        value = getattr(self, name)
        if value is None or value == "":
            raise MissingRequiredFieldError(name, section)
        return value


CONTEXT_FIELDS = tuple(f.name for f in fields(ResolvedContext))


def resolve_context(overrides: Mapping[str, Any], defaults: TemplateDefaults) -> ResolvedContext:
    values = {}
    for name in CONTEXT_FIELDS:
        value = overrides.get(name)
        if value is None:
            value = getattr(defaults, name)
        values[name] = value

    values["amount_gross"] = to_decimal(values["amount_gross"])
    values["amount_net"] = to_decimal(values["amount_net"])
    values["payment_link"] = PaymentLink.coerce(values["payment_link"])
    if isinstance(values["font"], Mapping):
        values["font"] = dict(values["font"])
    return ResolvedContext(**values)
