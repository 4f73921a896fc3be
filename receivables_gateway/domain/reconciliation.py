"""FIFO reconciliation of payments against invoices"""

import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional, Sequence

from receivables_gateway.domain.models import (
    Advance,
    AppliedAllocation,
    Diagnostics,
    InstrumentType,
    Invoice,
    InvoiceKind,
    Payment,
    UnappliedReceipt,
)
from receivables_gateway.domain.policy import DEFAULT_POLICY, RiskPolicy
from receivables_gateway.domain.terms import infer_global_term, mode
from receivables_gateway.utils.date_utils import day_before


@dataclass
class ReconciliationResult:
    """Reconciled working copies plus the handover-lag accumulators"""

    invoices: List[Invoice]
    payments: List[Payment]
    unapplied_prepayments: List[Advance]
    lag_weighted_sum: float = 0.0
    lag_weight: float = 0.0
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def real_invoices(self) -> List[Invoice]:
        return [inv for inv in self.invoices if not inv.kind.is_synthetic]


# Sub-cent residue from float subtraction is not money
CENT_TOLERANCE = 0.005


def _is_usable_amount(amount: Optional[float]) -> bool:
    return amount is not None and math.isfinite(amount) and amount > 0


def _without_dust(amount: float) -> float:
    return 0.0 if abs(amount) < CENT_TOLERANCE else amount


def _apply(invoice: Invoice, amount: float) -> None:
    invoice.remaining = _without_dust(invoice.remaining - amount)
    assert invoice.remaining >= 0, f"negative remaining on {invoice.invoice_num or invoice.invoice_date}"
    if invoice.remaining < 0:
        invoice.remaining = 0.0


def _settle(invoice: Invoice, closing_date: date) -> None:
    if invoice.remaining == 0 and not invoice.paid:
        invoice.paid = True
        invoice.closing_date = closing_date


def _opening_lines(start_date: date, beginning_balance: float, term: int) -> tuple[List[Invoice], List[Advance]]:
    """Synthetic lines carrying the balance brought into the period"""
    if not math.isfinite(beginning_balance) or beginning_balance == 0:
        return [], []

    dated = day_before(start_date)
    if beginning_balance > 0:
        opening = Invoice(
            invoice_date=dated,
            amount=beginning_balance,
            invoice_num="BEGIN BAL",
            kind=InvoiceKind.OPENING,
            term=term,
        )
        return [opening], []

    # Customer credit brought forward: recorded as a settled prepayment line
    # and carried against later invoices like any other advance
    credit = -beginning_balance
    prepayment = Invoice(
        invoice_date=dated,
        amount=beginning_balance,
        invoice_num="BEGIN BAL",
        kind=InvoiceKind.PREPAYMENT,
        remaining=0.0,
        term=term,
        paid=True,
        closing_date=dated,
    )
    advance = Advance(date=dated, amount=credit, remaining=credit)
    return [prepayment], [advance]


def reconcile(
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    start_date: date,
    beginning_balance: float = 0.0,
    policy: RiskPolicy = DEFAULT_POLICY,
) -> ReconciliationResult:
    """
    Allocate payments to invoices oldest-first.

    Steps:
    1. Prepend a synthetic opening line for the beginning balance
    2. Sort invoices and payments chronologically (stable)
    3. Apply each payment to unpaid invoices dated on/before it
    4. Collect unallocated remainders as advances
    5. Carry advances forward onto invoices dated strictly after them
    6. Re-derive each invoice's term from the terms of payments applied to it

    Caller-owned invoices are never mutated: the pass works on copies.
    Rows with non-finite or non-positive amounts are skipped, not raised.
    """
    diagnostics = Diagnostics()
    global_term = infer_global_term(payments, policy)
    diagnostics.global_term = global_term

    working: List[Invoice] = []
    for inv in invoices:
        if not _is_usable_amount(inv.amount):
            diagnostics.skipped_invoices += 1
            continue
        working.append(
            replace(
                inv,
                remaining=inv.amount,
                term=global_term,
                paid=False,
                closing_date=None,
                running_balance=None,
                allocations=[],
            )
        )

    usable_payments: List[Payment] = []
    for payment in payments:
        if not _is_usable_amount(payment.amount):
            diagnostics.skipped_payments += 1
            continue
        usable_payments.append(payment)

    synthetic, advances = _opening_lines(start_date, beginning_balance, global_term)
    working = sorted(synthetic + working, key=lambda inv: inv.invoice_date)
    ordered_payments = sorted(usable_payments, key=lambda p: p.payment_date)

    result = ReconciliationResult(
        invoices=working,
        payments=ordered_payments,
        unapplied_prepayments=[],
        diagnostics=diagnostics,
    )

    # Pass 1: payments against invoices dated on or before them
    for payment in ordered_payments:
        to_allocate = payment.amount
        for inv in working:
            if to_allocate <= 0:
                break
            if inv.paid or inv.invoice_date > payment.payment_date:
                continue
            applied = min(inv.remaining, to_allocate)
            if applied <= 0:
                continue
            _apply(inv, applied)
            to_allocate = _without_dust(to_allocate - applied)

            allocation = AppliedAllocation(
                amount=applied,
                invoice_date=inv.invoice_date,
                payment_date=payment.payment_date,
                maturity_date=payment.maturity_date,
                instrument_type=payment.instrument_type,
                expected_term=payment.expected_term,
            )
            inv.allocations.append(allocation)
            result.lag_weighted_sum += allocation.handover_lag_days * applied
            result.lag_weight += applied
            _settle(inv, payment.payment_date)

        if to_allocate > 0:
            all_later = all(inv.invoice_date > payment.payment_date for inv in working)
            diagnostics.unapplied.append(
                UnappliedReceipt(
                    date=payment.payment_date,
                    amount=payment.amount,
                    remaining=to_allocate,
                    reason="before_first_invoice" if all_later else "overpayment_or_future_invoice",
                )
            )
            advances.append(
                Advance(
                    date=payment.payment_date,
                    amount=payment.amount,
                    remaining=to_allocate,
                    instrument_type=payment.instrument_type,
                    maturity_date=payment.maturity_date,
                    expected_term=payment.expected_term,
                )
            )

    # Pass 2: carry advances onto later invoices; pre-funded debt has no lag
    advances.sort(key=lambda adv: adv.date)
    for advance in advances:
        for inv in working:
            if advance.remaining <= 0:
                break
            if inv.invoice_date <= advance.date or inv.remaining <= 0:
                continue
            applied = min(inv.remaining, advance.remaining)
            if applied <= 0:
                continue
            _apply(inv, applied)
            advance.remaining = _without_dust(advance.remaining - applied)

            inv.allocations.append(
                AppliedAllocation(
                    amount=applied,
                    invoice_date=inv.invoice_date,
                    payment_date=advance.date,
                    maturity_date=advance.maturity_date,
                    instrument_type=advance.instrument_type,
                    expected_term=advance.expected_term,
                    from_advance=True,
                )
            )
            result.lag_weight += applied
            _settle(inv, inv.invoice_date)

    result.unapplied_prepayments = [adv for adv in advances if adv.remaining > 0]
    diagnostics.unapplied_after_carry = list(result.unapplied_prepayments)

    for inv in working:
        if inv.kind.is_synthetic:
            continue
        inv.term = mode((a.expected_term for a in inv.allocations), inv.term)

    _record_counts(result)
    return result


def _record_counts(result: ReconciliationResult) -> None:
    diagnostics = result.diagnostics
    for inv in result.invoices:
        diagnostics.invoice_term_counts[inv.term] = diagnostics.invoice_term_counts.get(inv.term, 0) + 1

    for payment in result.payments:
        key = payment.instrument_type.value
        diagnostics.instrument_counts[key] = diagnostics.instrument_counts.get(key, 0) + 1

    checks = [p for p in result.payments if p.instrument_type is InstrumentType.CHECK]
    with_maturity = sum(1 for p in checks if p.maturity_date is not None)
    diagnostics.check_counts = {
        "total": len(checks),
        "with_maturity": with_maturity,
        "without_maturity": len(checks) - with_maturity,
    }
