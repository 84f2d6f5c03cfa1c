# app/documents/records.py
"""
Document record model shared by invoices, change orders and contracts.

A record is a common envelope (client, project, items, status, derived
totals) plus exactly one variant payload:

  InvoiceDetails      -> due date
  ChangeOrderDetails  -> previous contract amount, deposit, existing contract date
  ContractDetails     -> entered total, scope note, payment structure, terms

The persisted/wire form is the flat camelCase dict produced by to_payload();
variant fields are flattened into the envelope.
"""
from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Mapping, Optional, Union

from .errors import DocumentValidationError, InvalidTransition
from .money import ZERO, decimal_str, extend, to_decimal

CORRECTION_SUFFIX = "-CORRECTED"


# =========================================================
# Enums
# =========================================================
class DocumentType(str, enum.Enum):
    INVOICE = "invoice"
    CHANGE_ORDER = "change-order"
    CONTRACT = "contract"

    @classmethod
    def parse(cls, value: Any) -> "DocumentType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise DocumentValidationError(f"Unknown document type: {value!r}") from None


class DocumentStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    # Declared but unreachable: nothing in the back office marks a document paid.
    PAID = "paid"

    @classmethod
    def parse(cls, value: Any) -> "DocumentStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "draft").strip().lower())
        except ValueError:
            raise DocumentValidationError(f"Unknown document status: {value!r}") from None


_STATUS_RANK = {
    DocumentStatus.DRAFT: 0,
    DocumentStatus.SENT: 1,
    DocumentStatus.SIGNED: 2,
    DocumentStatus.PAID: 3,
}

ALLOWED_TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.SENT, DocumentStatus.SIGNED},
    DocumentStatus.SENT: {DocumentStatus.SIGNED},
    DocumentStatus.SIGNED: set(),
    DocumentStatus.PAID: set(),
}


def can_transition(current, target) -> bool:
    current = DocumentStatus.parse(current)
    target = DocumentStatus.parse(target)
    return target in ALLOWED_TRANSITIONS.get(current, set())


def advance_status(current, target) -> DocumentStatus:
    """
    Resolve the status a save should persist.

    Saving at an equal or earlier status keeps the current one (status never
    regresses). Moving forward is only allowed along ALLOWED_TRANSITIONS.
    """
    current = DocumentStatus.parse(current)
    target = DocumentStatus.parse(target)

    if target == current or _STATUS_RANK[target] < _STATUS_RANK[current]:
        return current
    if can_transition(current, target):
        return target
    raise InvalidTransition(current.value, target.value)


# =========================================================
# Parsing helpers
# =========================================================
def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    s = _text(value).strip()
    return s or None


def _quantity(value: Any) -> int:
    if value is None:
        return 1
    if isinstance(value, str) and not value.strip():
        return 0
    d = to_decimal(value)
    if d != d.to_integral_value():
        raise DocumentValidationError(f"Quantity must be a whole number: {value!r}")
    if d < 0:
        raise DocumentValidationError(f"Quantity cannot be negative: {value!r}")
    return int(d)


def _non_negative(value: Any, label: str) -> Decimal:
    d = to_decimal(value)
    if d < 0:
        raise DocumentValidationError(f"{label} cannot be negative: {value!r}")
    return d


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def correction_number(number: str) -> str:
    n = (number or "").strip()
    if n.endswith(CORRECTION_SUFFIX):
        return n
    return f"{n}{CORRECTION_SUFFIX}"


# =========================================================
# Line items
# =========================================================
@dataclass
class LineItem:
    id: str
    description: str = ""
    quantity: int = 1
    unit_price: Decimal = ZERO

    @property
    def extension(self) -> Decimal:
        return extend(self.quantity, self.unit_price)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], position: int = 0) -> "LineItem":
        if not isinstance(data, Mapping):
            raise DocumentValidationError(f"Line item {position + 1} is not an object.")
        return cls(
            id=_text(data.get("id")).strip() or str(position + 1),
            description=_text(data.get("description")),
            quantity=_quantity(data.get("quantity")),
            unit_price=_non_negative(data.get("unitPrice"), "Unit price"),
        )

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": decimal_str(self.unit_price),
        }


# =========================================================
# Variant payloads
# =========================================================
@dataclass
class InvoiceDetails:
    type: ClassVar[DocumentType] = DocumentType.INVOICE

    due_date: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "InvoiceDetails":
        return cls(due_date=_text(data.get("dueDate")))

    def to_payload(self) -> dict:
        return {"dueDate": self.due_date}


@dataclass
class ChangeOrderDetails:
    type: ClassVar[DocumentType] = DocumentType.CHANGE_ORDER

    previous_contract_amount: Decimal = ZERO
    deposit_amount: Decimal = ZERO
    deposit_note: str = ""
    existing_contract_date: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ChangeOrderDetails":
        return cls(
            previous_contract_amount=to_decimal(data.get("previousContractAmount")),
            deposit_amount=to_decimal(data.get("depositAmount")),
            deposit_note=_text(data.get("depositNote")),
            existing_contract_date=_text(data.get("existingContractDate")),
        )

    def to_payload(self) -> dict:
        return {
            "previousContractAmount": decimal_str(self.previous_contract_amount),
            "depositAmount": decimal_str(self.deposit_amount),
            "depositNote": self.deposit_note,
            "existingContractDate": self.existing_contract_date,
        }


@dataclass
class ContractDetails:
    type: ClassVar[DocumentType] = DocumentType.CONTRACT

    total_amount: Decimal = ZERO
    freeform_description: str = ""
    payment_structure: str = ""
    contract_terms: str = ""
    project_title: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ContractDetails":
        # Older records only carry the entered amount as "total".
        raw_total = data.get("totalAmount")
        if raw_total is None:
            raw_total = data.get("total")
        return cls(
            total_amount=_non_negative(raw_total, "Contract total"),
            freeform_description=_text(data.get("freeformDescription")),
            payment_structure=_text(data.get("paymentStructure")),
            contract_terms=_text(data.get("contractTerms")),
            project_title=_text(data.get("projectTitle")),
        )

    def to_payload(self) -> dict:
        return {
            "totalAmount": decimal_str(self.total_amount),
            "freeformDescription": self.freeform_description,
            "paymentStructure": self.payment_structure,
            "contractTerms": self.contract_terms,
            "projectTitle": self.project_title,
        }


DocumentDetails = Union[InvoiceDetails, ChangeOrderDetails, ContractDetails]

DETAILS_BY_TYPE = {
    DocumentType.INVOICE: InvoiceDetails,
    DocumentType.CHANGE_ORDER: ChangeOrderDetails,
    DocumentType.CONTRACT: ContractDetails,
}


# =========================================================
# Envelope
# =========================================================
@dataclass
class DocumentRecord:
    details: DocumentDetails

    number: str = ""
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    client_address: str = ""
    property_address: str = ""
    project_name: str = ""
    date: str = ""
    items: list[LineItem] = field(default_factory=list)
    notes: str = ""
    tax_rate: Decimal = ZERO

    # Inline data URL of a freshly drawn signature, or the default signature URL.
    signature_data: Optional[str] = None
    status: DocumentStatus = DocumentStatus.DRAFT
    is_correction: bool = False

    # Derived by totals.apply_totals(); never edited directly.
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO

    signed_file_url: Optional[str] = None
    signed_file_name: Optional[str] = None
    email_subject: str = ""
    email_body: str = ""

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def type(self) -> DocumentType:
        return self.details.type

    def copy(self) -> "DocumentRecord":
        return copy.deepcopy(self)

    # -----------------------------
    # Wire / persisted format
    # -----------------------------
    @classmethod
    def from_payload(cls, data: Mapping[str, Any], doc_type: Any = None) -> "DocumentRecord":
        if not isinstance(data, Mapping):
            raise DocumentValidationError("Document payload must be an object.")

        kind = DocumentType.parse(doc_type if doc_type is not None else data.get("type"))
        details = DETAILS_BY_TYPE[kind].from_payload(data)

        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise DocumentValidationError("items must be a list.")
        items = [LineItem.from_payload(it, i) for i, it in enumerate(raw_items)]
        if kind is DocumentType.CONTRACT:
            # Scope-of-work lines carry no pricing.
            for it in items:
                it.quantity = 1
                it.unit_price = ZERO

        is_correction = bool(data.get("isCorrection"))
        number = _text(data.get("number")).strip()
        if is_correction and number:
            number = correction_number(number)

        return cls(
            details=details,
            id=_optional_text(data.get("id")),
            number=number,
            client_name=_text(data.get("clientName")),
            client_email=_text(data.get("clientEmail")).strip(),
            client_phone=_text(data.get("clientPhone")),
            client_address=_text(data.get("clientAddress")),
            property_address=_text(data.get("propertyAddress")),
            project_name=_text(data.get("projectName")),
            date=_text(data.get("date")),
            items=items,
            notes=_text(data.get("notes")),
            tax_rate=_non_negative(data.get("taxRate"), "Tax rate"),
            signature_data=_optional_text(data.get("signatureData")),
            status=DocumentStatus.parse(data.get("status")),
            is_correction=is_correction,
            subtotal=to_decimal(data.get("subtotal")),
            tax=to_decimal(data.get("tax")),
            total=to_decimal(data.get("total")),
            signed_file_url=_optional_text(data.get("signedFileUrl")),
            signed_file_name=_optional_text(data.get("signedFileName")),
            email_subject=_text(data.get("emailSubject")),
            email_body=_text(data.get("emailBody")),
            created_at=_timestamp(data.get("createdAt")),
            updated_at=_timestamp(data.get("updatedAt")),
        )

    def to_payload(self) -> dict:
        payload = {
            "id": self.id,
            "type": self.type.value,
            "number": self.number,
            "clientName": self.client_name,
            "clientEmail": self.client_email,
            "clientPhone": self.client_phone,
            "clientAddress": self.client_address,
            "propertyAddress": self.property_address,
            "projectName": self.project_name,
            "date": self.date,
            "items": [it.to_payload() for it in self.items],
            "notes": self.notes,
            "subtotal": decimal_str(self.subtotal),
            "tax": decimal_str(self.tax),
            "taxRate": decimal_str(self.tax_rate),
            "total": decimal_str(self.total),
            "signatureData": self.signature_data,
            "status": self.status.value,
            "isCorrection": self.is_correction,
            "signedFileUrl": self.signed_file_url,
            "signedFileName": self.signed_file_name,
            "emailSubject": self.email_subject,
            "emailBody": self.email_body,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        payload.update(self.details.to_payload())
        return payload


def make_correction(record: DocumentRecord) -> DocumentRecord:
    """
    Build the corrected re-issue of a document as a NEW unsaved draft.

    The original keeps its id and status history; the correction gets the
    suffixed number and starts over at draft.
    """
    fixed = record.copy()
    fixed.id = None
    fixed.status = DocumentStatus.DRAFT
    fixed.number = correction_number(record.number)
    fixed.is_correction = True
    fixed.signed_file_url = None
    fixed.signed_file_name = None
    fixed.email_subject = ""
    fixed.email_body = ""
    fixed.created_at = None
    fixed.updated_at = None
    return fixed
