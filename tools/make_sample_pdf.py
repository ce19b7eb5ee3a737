from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

# Ensure project root is on sys.path when running this script directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from receipts.core.currency import fmt_money, sum_money
from receipts.core.settings import load_defaults
from receipts.pdf.document import Invoice, Receipt

# Generates sample receipt and invoice PDFs for README/demo purposes.

COMPANY = {
    "name": "Acme Supplies",
    "address": "100 Industrial Way\nSpringfield, IL 62701",
    "phone": "(555) 010-0199",
    "email": "billing@acme.example",
    "seller_key": "Seller",
    "iban_text": "IBAN: DE89 3704 0044 0532 0130 00",
    "collection_signature_text": "Received by",
    "issuer_full_name": "<b>Jane Doe</b>, Accounts",
    "issuer_signature_text": "Issued by",
}

ITEMS = [
    ("Widget", 2, "10.00"),
    ("Gadget (blue)", 1, "24.50"),
    ("Shipping", 1, "5.00"),
]


def _line_items(currency: str):
    rows = [["Item", "Qty", "Unit price", "Amount"]]
    for name, qty, price in ITEMS:
        rows.append([name, str(qty), fmt_money(price, currency), fmt_money(sum_money([price] * qty), currency)])
    return rows


def main() -> None:
    out_dir = ROOT / "samples"
    out_dir.mkdir(parents=True, exist_ok=True)
    currency = "USD"

    # Optional template defaults next to the script
    defaults = load_defaults(ROOT / "samples" / "defaults.json")
    Template = Invoice.with_defaults(defaults.merged(title=defaults.title or "Invoice"))

    net = sum_money(sum_money([price] * qty) for _name, qty, price in ITEMS)
    tax = sum_money([net * Decimal("0.08")])
    gross = sum_money([net, tax])
    attrs = dict(
        company=COMPANY,
        details=[["<b>Invoice No.</b>", "INV-0001"], ["<b>Date</b>", "2026-10-18"]],
        recipient=["<b>Bill to</b>", "Bob Smith", "55 Main St", "Springfield"],
        line_items=_line_items(currency),
        total_items=[
            ["Subtotal", fmt_money(net, currency)],
            ["Tax (8%)", fmt_money(tax, currency)],
            ["<b>Total</b>", f"<b>{fmt_money(gross, currency)}</b>"],
        ],
        amount_net=net,
        amount_gross=gross,
        currency=currency,
        total_text=f"Total due: {fmt_money(gross, currency)}",
        total_text_in_words="Fifty-three dollars and forty-six cents",
        payment_link={"url": "https://pay.example.com/INV-0001", "text": "Pay now"},
    )

    invoice = Template(**attrs)
    print(f"Wrote sample to: {invoice.render_file(out_dir / 'sample-invoice.pdf')}")

    receipt = Receipt(subtitle="Paid in full", footer="Thank you for your business!", **attrs)
    print(f"Wrote sample to: {receipt.render_file(out_dir / 'sample-receipt.pdf')}")


if __name__ == "__main__":
    main()
