# app/documents/scaffold.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from app.config.company import CompanyProfile

from .money import format_currency
from .records import (
    ChangeOrderDetails,
    ContractDetails,
    DocumentRecord,
    DocumentType,
    InvoiceDetails,
    LineItem,
)
from .totals import Totals

DOC_TYPE_LABELS = {
    DocumentType.INVOICE: "Invoice",
    DocumentType.CHANGE_ORDER: "Change Order",
    DocumentType.CONTRACT: "Contract",
}

DOC_TYPE_OPTIONS = [(t.value, label) for t, label in DOC_TYPE_LABELS.items()]

NUMBER_PREFIXES = {
    DocumentType.INVOICE: "INV",
    DocumentType.CHANGE_ORDER: "CO",
    DocumentType.CONTRACT: "CTR",
}

INVOICE_DUE_DAYS = 30

DEFAULT_NOTES = {
    DocumentType.INVOICE: (
        "Payment due within 30 days of invoice date.\n"
        "All dumping fees, materials and labor are included.\n"
        "Thank you for choosing CR Home Pros!"
    ),
    DocumentType.CHANGE_ORDER: (
        "All work to be performed under the same terms and conditions as specified "
        "in original contract unless otherwise stipulated."
    ),
    DocumentType.CONTRACT: "All dumping fees, materials and labor are included in this price.",
}

DEFAULT_SCOPE_NOTE = (
    "All the above will be plastered, sanded, primed and painted two coats. "
    "Existing color will be matched."
)

DEFAULT_CONTRACT_TERMS = """Any alteration or deviation from written agreement involving extra work will be executed only upon written agreement and will be charged over the above estimate accordingly.

All work guaranteed for one (1) year from completion date. Warranty covers workmanship defects only, not normal wear and tear.

Client agrees to provide reasonable access to the property during scheduled work hours. Any delays caused by client will extend the project timeline accordingly.

CRGS, Inc. carries full liability insurance and workers' compensation coverage. MHIC License #05-132359."""


def new_document_number(doc_type, now: Optional[datetime] = None) -> str:
    """
    Example: INV-2026-4821

    The suffix is the tail of the epoch milliseconds; the operator may
    overwrite it, numbers are human-assigned.
    """
    kind = DocumentType.parse(doc_type)
    now = now or datetime.now(timezone.utc)
    millis = str(int(now.timestamp() * 1000))
    return f"{NUMBER_PREFIXES[kind]}-{now.year}-{millis[-4:]}"


def make_scaffold(doc_type, today: date, now: Optional[datetime] = None) -> DocumentRecord:
    kind = DocumentType.parse(doc_type)

    if kind is DocumentType.INVOICE:
        details = InvoiceDetails(due_date=(today + timedelta(days=INVOICE_DUE_DAYS)).isoformat())
    elif kind is DocumentType.CHANGE_ORDER:
        details = ChangeOrderDetails()
    else:
        details = ContractDetails(
            freeform_description=DEFAULT_SCOPE_NOTE,
            contract_terms=DEFAULT_CONTRACT_TERMS,
        )

    return DocumentRecord(
        details=details,
        number=new_document_number(kind, now),
        date=today.isoformat(),
        items=[LineItem(id="1")],
        notes=DEFAULT_NOTES[kind],
    )


def _first_name(full_name: str) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else "there"


def _long_date(value: str) -> str:
    try:
        d = date.fromisoformat((value or "").strip())
    except ValueError:
        return value or "the due date"
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def default_email(record: DocumentRecord, totals: Totals, company: CompanyProfile) -> tuple[str, str]:
    """Pre-filled subject/body offered when sending a document to the client."""
    project = record.project_name or "your project"
    greeting = f"Hi {_first_name(record.client_name)},"
    signoff = f"Best regards,\n{company.signer_name}\n{company.name}\n{company.phone}"
    label = DOC_TYPE_LABELS[record.type]
    subject = f"{label} {record.number} - {record.project_name or company.name}"

    if record.type is DocumentType.INVOICE:
        body = (
            f"{greeting}\n\n"
            f"Please find attached Invoice {record.number} for {project} "
            f"in the amount of {format_currency(totals.total)}.\n\n"
            f"Payment is due by {_long_date(record.details.due_date)}.\n\n"
            "If you have any questions, please don't hesitate to reach out.\n\n"
            f"{signoff}"
        )
    elif record.type is DocumentType.CHANGE_ORDER:
        body = (
            f"{greeting}\n\n"
            f"Please find attached Change Order {record.number} for additional work on your project.\n\n"
            f"The change order total is {format_currency(totals.change_total)}.\n\n"
            "Please review, sign, and return at your earliest convenience.\n\n"
            f"{signoff}"
        )
    else:
        body = (
            f"{greeting}\n\n"
            f"Please find attached the contract for {project} "
            f"at {record.property_address.strip() or 'your property'}.\n\n"
            f"Total estimated cost: {format_currency(totals.total)}\n\n"
            "Please review, sign, and return at your earliest convenience. "
            "If you have any questions, don't hesitate to reach out.\n\n"
            f"{signoff}"
        )
    return subject, body
