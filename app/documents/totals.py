# app/documents/totals.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from .money import ZERO, format_currency, percent_of, round_cents, to_decimal
from .records import (
    ChangeOrderDetails,
    ContractDetails,
    DocumentRecord,
    InvoiceDetails,
    LineItem,
)

# Milestone wording printed on contracts.
PAYMENT_MILESTONES = (
    "when client authorizes work agreement.",
    "due at project midpoint.",
    "upon completion and customer satisfaction.",
)


@dataclass(frozen=True)
class Totals:
    """
    Derived amounts for one record, unrounded.

    subtotal/tax/total are the envelope values every variant persists;
    the change-order fields are None for the other variants.
    """

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    change_total: Optional[Decimal] = None
    previous_contract_amount: Optional[Decimal] = None
    deposit_amount: Optional[Decimal] = None
    total_after_change: Optional[Decimal] = None


def items_total(items: Iterable[LineItem]) -> Decimal:
    return sum((it.extension for it in items or ()), ZERO)


def compute_totals(record: DocumentRecord) -> Totals:
    details = record.details

    if isinstance(details, InvoiceDetails):
        subtotal = items_total(record.items)
        tax = percent_of(subtotal, record.tax_rate)
        return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)

    if isinstance(details, ChangeOrderDetails):
        change_total = items_total(record.items)
        previous = details.previous_contract_amount
        deposit = details.deposit_amount
        # Not clamped: a deposit larger than the change leaves a negative balance.
        after = previous + change_total - deposit
        return Totals(
            subtotal=change_total,
            tax=ZERO,
            total=after,
            change_total=change_total,
            previous_contract_amount=previous,
            deposit_amount=deposit,
            total_after_change=after,
        )

    if isinstance(details, ContractDetails):
        amount = details.total_amount
        return Totals(subtotal=amount, tax=ZERO, total=amount)

    raise TypeError(f"Unsupported document details: {type(details).__name__}")


def apply_totals(record: DocumentRecord) -> DocumentRecord:
    totals = compute_totals(record)
    if not isinstance(record.details, InvoiceDetails):
        # Only invoices are taxed; a stray rate is not persisted.
        record.tax_rate = ZERO
    record.subtotal = totals.subtotal
    record.tax = totals.tax
    record.total = totals.total
    return record


def suggest_payment_structure(total_amount, current: str = "") -> str:
    """
    Three equal installments for a contract total.

    Only suggests when nothing has been written yet; a manually edited
    structure is returned untouched.
    """
    if (current or "").strip():
        return current
    amount = to_decimal(total_amount)
    if amount <= 0:
        return current or ""

    third = format_currency(round_cents(amount / 3))
    return "\n".join(f"{third} USD {label}" for label in PAYMENT_MILESTONES)


def fill_payment_structure(record: DocumentRecord) -> bool:
    details = record.details
    if not isinstance(details, ContractDetails):
        return False
    suggested = suggest_payment_structure(details.total_amount, details.payment_structure)
    if suggested == details.payment_structure:
        return False
    details.payment_structure = suggested
    return True
