"""
Telebirr receipt adapter.

The receipt is an HTML page made of two kinds of tables: label/value rows
(label cell followed by its value cell) and a header row whose values sit
in the row below (invoice number, payment date, settled amount).
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from verifier.pipeline.adapters.base import (
    Provider,
    ReceiptAdapter,
    normalize_text,
    parse_amount,
    parse_timestamp,
    search,
    title_case,
)
from verifier.pipeline.fetcher import RetryPolicy, SourceSpec
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)

# Label cell → value in the next cell of the same row
ROW_FIELDS: dict[str, str] = {
    "payer_name": r"Payer Name",
    "payer_account": r"Payer telebirr no",
    "receiver_name": r"Credited Party name",
    "receiver_account": r"Credited party account no",
    "status": r"transaction status",
    "bank_account": r"Bank account number",
    "service_fee": r"Service fee(?!\s*VAT)",
    "service_fee_vat": r"Service fee VAT",
    "total_paid": r"Total Paid Amount",
}

# Header cell → value in the same column of the next row
COLUMN_FIELDS: dict[str, str] = {
    "reference": r"Invoice No",
    "payment_date": r"Payment date",
    "settled_amount": r"Settled Amount",
}

# Fallbacks over the whitespace-normalised page text
TEXT_FIELDS: dict[str, str] = {
    "payment_date": r"(\d{2}-\d{2}-\d{4} \d{2}:\d{2}:\d{2})",
    "settled_amount": r"Settled Amount.*?(\d[\d,]*(?:\.\d{2})?\s*Birr)",
}

DATE_FORMATS = ["%d-%m-%Y %H:%M:%S", "%d/%m/%Y %H:%M:%S"]

_BANK_ACCOUNT = re.compile(r"^(\d+)\s+(.*)$")
_RECEIPT_NO = re.compile(r"^[A-Z0-9]+$")


def _cell_text(cell: Tag) -> str:
    return normalize_text(cell.get_text(" "))


def _leaf_cells(soup: BeautifulSoup) -> list[Tag]:
    # Layout cells that wrap whole inner tables would match every label.
    return [td for td in soup.find_all("td") if td.find("td") is None]


def _find_label(cells: list[Tag], label: str) -> Optional[Tag]:
    for cell in cells:
        if re.search(label, _cell_text(cell), re.IGNORECASE):
            return cell
    return None


def _value_beside(cells: list[Tag], label: str) -> Optional[str]:
    cell = _find_label(cells, label)
    if cell is None:
        return None
    sibling = cell.find_next_sibling("td")
    if sibling is None:
        return None
    return _cell_text(sibling) or None


def _value_below(cells: list[Tag], label: str) -> Optional[str]:
    cell = _find_label(cells, label)
    if cell is None:
        return None
    row = cell.find_parent("tr")
    if row is None:
        return None
    row_cells = row.find_all("td", recursive=False)
    index = next((i for i, c in enumerate(row_cells) if c is cell), None)
    next_row = row.find_next_sibling("tr")
    if index is None or next_row is None:
        return None
    below = next_row.find_all("td", recursive=False)
    if index >= len(below):
        return None
    return _cell_text(below[index]) or None


def split_bank_account(raw: str) -> tuple[Optional[str], Optional[str]]:
    """``"1000123456789 Abebe Kebede"`` -> ``("1000123456789", "Abebe Kebede")``."""
    m = _BANK_ACCOUNT.match(raw.strip())
    if not m:
        return None, None
    return m.group(1).strip(), m.group(2).strip() or None


def scrape_receipt(html: str) -> dict[str, Optional[str]]:
    """Raw string values of every known field on a Telebirr receipt page."""
    soup = BeautifulSoup(html, "html.parser")
    cells = _leaf_cells(soup)
    text = normalize_text(soup.get_text(" "))

    values: dict[str, Optional[str]] = {
        name: _value_beside(cells, label) for name, label in ROW_FIELDS.items()
    }
    for name, label in COLUMN_FIELDS.items():
        values[name] = _value_below(cells, label)
    for name, pattern in TEXT_FIELDS.items():
        if not values.get(name):
            values[name] = search(text, pattern)

    if not values.get("reference"):
        for cell in soup.select("td.receipttableTd2"):
            candidate = _cell_text(cell)
            if _RECEIPT_NO.match(candidate):
                values["reference"] = candidate
                break
    return values


class TelebirrAdapter(ReceiptAdapter):
    provider = Provider.TELEBIRR
    parse_error = "Error parsing Telebirr receipt"

    def __init__(
        self,
        primary_url: str,
        fallback_url: str,
        retry_policy: RetryPolicy,
        skip_primary: bool = False,
    ):
        super().__init__(retry_policy)
        self.primary_url = primary_url
        self.fallback_url = fallback_url
        self.skip_primary = skip_primary

    def sources(self, reference: str, suffix: Optional[str]) -> list[SourceSpec]:
        sources = []
        if not self.skip_primary:
            sources.append(SourceSpec(url=self.primary_url + reference, accept="text/html"))
        if self.fallback_url:
            sources.append(
                SourceSpec(url=self.fallback_url + reference, accept="application/json", name="fallback")
            )
        return sources

    def parse(self, content: bytes, content_type: str) -> ReceiptFacts:
        html = content.decode("utf-8", errors="replace")
        if len(html) < 100:
            logger.warning("Suspiciously short Telebirr response: %r", html)
        values = scrape_receipt(html)

        receiver_name = values.get("receiver_name")
        receiver_account = values.get("receiver_account")
        bank_name = None
        if values.get("bank_account"):
            # Bank transfer: the credited party is the bank itself.
            account, name = split_bank_account(values["bank_account"])
            if account:
                bank_name = receiver_name
                receiver_account, receiver_name = account, name

        reference = values.get("reference")
        amount = parse_amount(values.get("settled_amount"))
        if not reference or amount is None:
            return ReceiptFacts.failure("Telebirr receipt not found")

        details = {
            key: values[key]
            for key in ("status", "service_fee", "service_fee_vat", "total_paid")
            if values.get(key)
        }
        return ReceiptFacts(
            success=True,
            payer_name=title_case(values.get("payer_name")),
            payer_account=values.get("payer_account"),
            receiver_name=title_case(receiver_name),
            receiver_account=receiver_account,
            amount=amount,
            transaction_date=parse_timestamp(values.get("payment_date"), DATE_FORMATS),
            reference=reference,
            bank_name=bank_name,
            details=details,
        )
