from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from receipts.core.context import resolve_context
from receipts.core.currency import fmt_money, sum_money, to_decimal
from receipts.core.errors import MissingRequiredFieldError
from receipts.core.models import PaymentLink
from receipts.core.settings import TemplateDefaults, load_defaults, save_defaults


def test_call_values_win_over_template_defaults() -> None:
    defaults = TemplateDefaults(title="Invoice", subtitle="Default", currency="EUR")
    ctx = resolve_context({"title": "Credit note", "subtitle": None}, defaults)

    assert ctx.title == "Credit note"
    # None counts as absent
    assert ctx.subtitle == "Default"
    assert ctx.currency == "EUR"
    assert ctx.total_text is None


def test_amounts_and_payment_link_are_normalised() -> None:
    ctx = resolve_context(
        {"amount_gross": "21.40", "amount_net": 20, "payment_link": {"url": "https://pay/1", "text": "Pay"}},
        TemplateDefaults(),
    )
    assert ctx.amount_gross == Decimal("21.40")
    assert ctx.amount_net == Decimal("20")
    assert ctx.payment_link == PaymentLink("https://pay/1", "Pay")


def test_context_is_immutable() -> None:
    ctx = resolve_context({"title": "Receipt"}, TemplateDefaults())
    with pytest.raises(AttributeError):
        ctx.title = "Other"  # type: ignore[misc]


def test_require_raises_for_absent_field() -> None:
    ctx = resolve_context({}, TemplateDefaults())
    with pytest.raises(MissingRequiredFieldError) as exc:
        ctx.require("total_text", "totals")
    assert exc.value.field == "total_text"
    assert "totals" in str(exc.value)
    # Also a KeyError for generic handlers
    assert isinstance(exc.value, KeyError)


def test_defaults_json_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "conf" / "defaults.json"
    defaults = TemplateDefaults(
        title="Invoice",
        amount_gross=Decimal("10.50"),
        payment_link=PaymentLink("https://pay/2", "Pay online"),
    )
    save_defaults(defaults, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["amount_gross"] == "10.50"
    assert raw["payment_link"] == {"url": "https://pay/2", "text": "Pay online"}
    assert load_defaults(path) == defaults


def test_load_defaults_ignores_unknown_keys_and_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "defaults.json"
    assert load_defaults(path) == TemplateDefaults()

    path.write_text(json.dumps({"title": "Statement", "theme": "dark"}), encoding="utf-8")
    assert load_defaults(path).title == "Statement"


def test_load_defaults_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "defaults.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_defaults(path)


def test_merged_replaces_fields() -> None:
    base = TemplateDefaults(title="Invoice", currency="USD")
    merged = base.merged(subtitle="Proforma")
    assert (merged.title, merged.subtitle, merged.currency) == ("Invoice", "Proforma", "USD")
    assert base.subtitle is None


def test_money_helpers() -> None:
    assert to_decimal(None) is None
    assert to_decimal(0.1) == Decimal("0.1")
    with pytest.raises(ValueError):
        to_decimal("twelve")
    assert fmt_money("20", "USD") == "$20.00"
    assert fmt_money(1234.5) == "1,234.50"
    assert fmt_money("3", "CHF") == "3.00 CHF"
    assert sum_money(["0.10", 0.20, Decimal("0.005")]) == Decimal("0.30")
