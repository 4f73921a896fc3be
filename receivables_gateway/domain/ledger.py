"""Chronological ledger reconstruction with running balance"""

from datetime import date
from typing import List, Sequence, Tuple

from receivables_gateway.domain.models import (
    Invoice,
    InvoiceKind,
    LedgerEntry,
    Payment,
    ReconciliationSummary,
)

PAYMENT_KIND = "Payment"


def build_ledger(invoices: Sequence[Invoice], payments: Sequence[Payment]) -> List[LedgerEntry]:
    """
    Merge every dated event into one date-ordered ledger.

    Opening balances and invoices are debits, payments are credits and
    prepayment lines post their signed amount. Same-day events keep their
    order: receivable lines first, then payments.
    """
    events: List[Tuple[date, str, float, str, str]] = []
    for inv in invoices:
        events.append((inv.invoice_date, inv.kind.value, inv.amount, inv.kind.value, inv.invoice_num))
    for payment in payments:
        description = payment.description or payment.instrument_type.value
        events.append((payment.payment_date, PAYMENT_KIND, payment.amount, description, ""))
    events.sort(key=lambda event: event[0])

    ledger: List[LedgerEntry] = []
    balance = 0.0
    for event_date, kind, amount, description, ref in events:
        if kind == PAYMENT_KIND:
            debit, credit = 0.0, amount
            balance -= amount
        elif kind == InvoiceKind.PREPAYMENT.value:
            debit, credit = max(amount, 0.0), max(-amount, 0.0)
            balance += amount
        else:
            debit, credit = amount, 0.0
            balance += amount
        ledger.append(
            LedgerEntry(
                date=event_date,
                kind=kind,
                description=description,
                ref=ref,
                debit=debit,
                credit=credit,
                balance=balance,
            )
        )
    return ledger


def summarize_reconciliation(
    beginning_balance: float,
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    ledger: Sequence[LedgerEntry],
) -> ReconciliationSummary:
    """
    Cross-check the ledger against the raw totals.

    expected = beginning balance + invoiced - paid; computed = final ledger
    balance. A non-zero delta points at an allocation bug, not bad input.
    """
    sum_invoices = sum(inv.amount for inv in invoices if inv.kind is InvoiceKind.INVOICE)
    sum_payments = sum(p.amount for p in payments)
    expected = beginning_balance + sum_invoices - sum_payments
    computed = ledger[-1].balance if ledger else 0.0
    return ReconciliationSummary(
        beginning_balance=beginning_balance,
        sum_invoices=sum_invoices,
        sum_payments=sum_payments,
        expected_outstanding=expected,
        computed_outstanding=computed,
        # Sub-cent float drift from summation order is not an allocation error
        delta=round(computed - expected, 2),
    )


def assign_running_balances(invoices: Sequence[Invoice]) -> None:
    """Cumulative remaining balance across real invoices, in date order"""
    running = 0.0
    for inv in invoices:
        if inv.kind.is_synthetic:
            continue
        running += inv.remaining
        inv.running_balance = running
