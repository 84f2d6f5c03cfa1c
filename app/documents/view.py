# app/documents/view.py
"""
Display model shared by the on-screen preview and the PDF layout.

Every string that ends up on either rendering (badge, money, totals labels)
is produced here, once, so the two outputs cannot disagree for the same
record.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.config.company import CompanyProfile

from .money import format_currency, format_rate
from .records import (
    ChangeOrderDetails,
    ContractDetails,
    DocumentRecord,
    DocumentType,
    InvoiceDetails,
)
from .totals import compute_totals

BADGES = {
    DocumentType.INVOICE: "INVOICE",
    DocumentType.CHANGE_ORDER: "CHANGE ORDER",
    DocumentType.CONTRACT: "CONTRACT",
}

PROVIDER_LABEL = "Provided and Guaranteed by:"
CLIENT_LABEL = "Accepted and Agreed:"


@dataclass(frozen=True)
class TableRow:
    index: str
    description: str
    quantity: str
    unit_price: str
    amount: str


@dataclass(frozen=True)
class TotalLine:
    label: str
    value: str
    emphasis: bool = False


@dataclass(frozen=True)
class DocumentView:
    doc_type: DocumentType
    badge: str
    number: str
    company: CompanyProfile

    meta_left: tuple[str, ...]
    meta_right: tuple[str, ...]

    client_name: str
    client_lines: tuple[str, ...]
    property_lines: tuple[str, ...]
    project: str

    # Priced documents (invoice / change order) fill rows + totals;
    # contracts fill scope_items instead.
    priced: bool
    rows: tuple[TableRow, ...]
    totals: tuple[TotalLine, ...]
    summary: tuple[TotalLine, ...]
    scope_items: tuple[str, ...]

    scope_note: str
    payment_lines: tuple[str, ...]
    terms: str
    notes: str

    signature_data: Optional[str]
    provider_label: str = PROVIDER_LABEL
    client_label: str = CLIENT_LABEL

    @property
    def title(self) -> str:
        return f"{self.badge} #{self.number}" if self.number else self.badge


def _lines(text: str) -> tuple[str, ...]:
    return tuple(line.strip() for line in (text or "").splitlines() if line.strip())


def build_view(record: DocumentRecord, company: CompanyProfile) -> DocumentView:
    totals = compute_totals(record)
    details = record.details
    badge = BADGES[record.type]
    if record.is_correction:
        badge = f"CORRECTED {badge}"

    meta_left = [f"Date: {record.date}"] if record.date else []
    meta_right = []

    client_lines = list(_lines(record.client_address))
    if record.client_phone.strip():
        client_lines.append(f"Phone: {record.client_phone.strip()}")
    if record.client_email.strip():
        client_lines.append(f"Email: {record.client_email.strip()}")

    project = record.project_name.strip()
    rows: list[TableRow] = []
    totals_lines: list[TotalLine] = []
    summary: list[TotalLine] = []
    scope_items: tuple[str, ...] = ()
    scope_note = ""
    payment_lines: tuple[str, ...] = ()
    terms = ""

    if isinstance(details, (InvoiceDetails, ChangeOrderDetails)):
        rows = [
            TableRow(
                index=str(i),
                description=it.description.strip(),
                quantity=str(it.quantity),
                unit_price=format_currency(it.unit_price),
                amount=format_currency(it.extension),
            )
            for i, it in enumerate(record.items, start=1)
        ]

    if isinstance(details, InvoiceDetails):
        if details.due_date:
            meta_right.append(f"Due: {details.due_date}")
        totals_lines.append(TotalLine("Subtotal", format_currency(totals.subtotal)))
        if record.tax_rate > 0:
            totals_lines.append(TotalLine(f"Tax ({format_rate(record.tax_rate)}%)", format_currency(totals.tax)))
        totals_lines.append(TotalLine("TOTAL", format_currency(totals.total), emphasis=True))

    elif isinstance(details, ChangeOrderDetails):
        totals_lines.append(TotalLine("CHANGE ORDER TOTAL", format_currency(totals.change_total), emphasis=True))
        if details.existing_contract_date:
            summary.append(TotalLine("Date of Existing Contract", details.existing_contract_date))
        summary.append(TotalLine("Previous Contract Amount", format_currency(totals.previous_contract_amount)))
        deposit = format_currency(totals.deposit_amount)
        if details.deposit_note.strip():
            deposit = f"{deposit} {details.deposit_note.strip()}"
        summary.append(TotalLine("Deposit", deposit))
        summary.append(TotalLine("Change Order Total", format_currency(totals.change_total)))
        summary.append(TotalLine("Total After Change Order", format_currency(totals.total_after_change), emphasis=True))

    elif isinstance(details, ContractDetails):
        project = details.project_title.strip() or project
        scope_items = tuple(it.description.strip() for it in record.items if it.description.strip())
        if details.freeform_description.strip():
            scope_note = f"Note: {details.freeform_description.strip()}"
        payment_lines = _lines(details.payment_structure) + (
            f"Sum estimated to complete job: {format_currency(totals.total)} USD",
        )
        terms = details.contract_terms.strip()

    return DocumentView(
        doc_type=record.type,
        badge=badge,
        number=record.number,
        company=company,
        meta_left=tuple(meta_left),
        meta_right=tuple(meta_right),
        client_name=record.client_name.strip(),
        client_lines=tuple(client_lines),
        property_lines=_lines(record.property_address),
        project=project,
        priced=record.type is not DocumentType.CONTRACT,
        rows=tuple(rows),
        totals=tuple(totals_lines),
        summary=tuple(summary),
        scope_items=scope_items,
        scope_note=scope_note,
        payment_lines=payment_lines,
        terms=terms,
        notes=record.notes.strip(),
        signature_data=record.signature_data,
    )
