"""Core calculation engine for the EMI calculator.

This module implements the financial logic of fixed-rate annuity loans:

* :func:`solve_installment` finds the constant installment (EMI) that retires
  a principal over a number of monthly periods;
* :func:`generate_schedule` expands a loan into its amortization schedule;
* :func:`simulate_single_prepayment` compares a loan with and without one
  extra payment, re-amortizing the remaining balance over the remaining
  periods.

Every function is pure: inputs are validated up front, all arithmetic runs
inside ``decimal.localcontext`` blocks derived from the
:class:`~emi_calc.data_models.PrecisionPolicy` passed in, and results are
frozen dataclasses.
"""

from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import Any, Iterable, Sequence, Tuple

from .data_models import (
    DEFAULT_POLICY,
    Loan,
    PrecisionPolicy,
    PrepaymentResult,
    ScheduleEntry,
    ScheduleSummary,
)
from .errors import InvalidArgument
from .utils import periodic_rate, require_int, round_currency, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _validate_loan(principal: Any, annual_rate_percent: Any, term_periods: Any, term_field: str = "term_periods") -> Loan:
    principal = to_decimal(principal, "principal")
    annual_rate_percent = to_decimal(annual_rate_percent, "annual_rate_percent")
    term_periods = require_int(term_periods, term_field)
    if principal < 0:
        raise InvalidArgument("principal", "must not be negative")
    if term_periods <= 0:
        raise InvalidArgument(term_field, "must be greater than zero")
    return Loan(principal, annual_rate_percent, term_periods)


def solve_installment(
    principal: Any,
    annual_rate_percent: Any,
    term_periods: int,
    *,
    policy: PrecisionPolicy = DEFAULT_POLICY,
) -> Decimal:
    """Return the constant periodic installment that amortizes a loan.

    The formula is:

        installment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` the periodic rate and ``n`` the
    number of periods. The power term and the ratio are evaluated at
    ``policy.power_precision`` significant digits and only the final value is
    rounded to currency scale. When the periodic rate is zero the installment
    simplifies to ``P / n``.

    Raises
    ------
    InvalidArgument
        If ``principal`` or ``annual_rate_percent`` is missing, the principal
        is negative or ``term_periods`` is not a positive integer.
    """
    loan = _validate_loan(principal, annual_rate_percent, term_periods)
    if loan.principal == 0:
        return round_currency(Decimal(0), policy)

    rate = periodic_rate(loan.annual_rate_percent, policy)
    denominator = Decimal(0)
    if rate != 0:
        with localcontext(policy.working_context()):
            one_plus_rate = Decimal(1) + rate
        with localcontext(policy.power_context()):
            factor = one_plus_rate ** loan.term_periods
            numerator = loan.principal * rate * factor
            denominator = factor - 1

    # A rate too small to move (1 + r)^n at power precision behaves as zero
    if denominator == 0:
        with localcontext(policy.working_context()):
            installment = round_currency(loan.principal / Decimal(loan.term_periods), policy)
        logger.debug("Zero-rate installment for %s over %d periods: %s", loan.principal, loan.term_periods, installment)
        return installment

    with localcontext(policy.working_context()):
        installment = round_currency(numerator / denominator, policy)

    logger.debug(
        "Installment for %s at %s%% over %d periods: %s",
        loan.principal,
        loan.annual_rate_percent,
        loan.term_periods,
        installment,
    )
    return installment


def generate_schedule(
    principal: Any,
    annual_rate_percent: Any,
    term_periods: int,
    *,
    policy: PrecisionPolicy = DEFAULT_POLICY,
) -> Tuple[ScheduleEntry, ...]:
    """Compute the amortization schedule of a loan.

    Each period charges interest on the opening balance and applies the rest
    of the constant installment to the principal, rounding every component to
    currency scale. The last period takes whatever balance remains as its
    principal component, so the schedule always closes at exactly ``0.00``.

    Returns
    -------
    tuple of ScheduleEntry
        One entry per period, ordered by ``period_index``. Empty when the
        principal is zero.
    """
    loan = _validate_loan(principal, annual_rate_percent, term_periods)
    if loan.principal == 0:
        return ()

    installment = solve_installment(
        loan.principal, loan.annual_rate_percent, loan.term_periods, policy=policy
    )
    rate = periodic_rate(loan.annual_rate_percent, policy)

    entries = []
    balance = round_currency(loan.principal, policy)
    with localcontext(policy.working_context()):
        for period in range(1, loan.term_periods + 1):
            opening_balance = balance
            if period == loan.term_periods:
                # Last period absorbs the accumulated rounding residue
                principal_component = opening_balance
                interest = round_currency(installment - principal_component, policy)
                closing_balance = round_currency(Decimal(0), policy)
            else:
                interest = round_currency(opening_balance * rate, policy)
                principal_component = round_currency(installment - interest, policy)
                closing_balance = round_currency(opening_balance - principal_component, policy)

            entries.append(
                ScheduleEntry(
                    period_index=period,
                    opening_balance=opening_balance,
                    installment=installment,
                    interest_component=interest,
                    principal_component=principal_component,
                    closing_balance=closing_balance,
                )
            )
            balance = closing_balance

    logger.debug("Generated %d schedule entries for %s", len(entries), loan)
    return tuple(entries)


def _total_interest(entries: Iterable[ScheduleEntry], policy: PrecisionPolicy) -> Decimal:
    with localcontext(policy.working_context()):
        total = sum((e.interest_component for e in entries), Decimal(0))
        return round_currency(total, policy)


def simulate_single_prepayment(
    principal: Any,
    annual_rate_percent: Any,
    original_term_periods: int,
    prepayment_period: int,
    prepayment_amount: Any,
    *,
    policy: PrecisionPolicy = DEFAULT_POLICY,
) -> PrepaymentResult:
    """Simulate one extra payment that lowers the installment.

    The prepayment is made at the end of ``prepayment_period`` on top of the
    regular installment. The outstanding balance at that point is reduced by
    ``prepayment_amount`` and re-amortized over the remaining periods, so the
    loan keeps its original end date while the installment goes down.

    Total interest with the prepayment is the interest paid in periods
    ``1..prepayment_period`` of the baseline schedule plus the interest of the
    re-amortized schedule. If the prepayment retires the balance (or is made
    in the last period) the revised installment is zero.

    Raises
    ------
    InvalidArgument
        If any argument is missing, the principal is negative, the term is
        not positive, ``prepayment_period`` is outside
        ``1..original_term_periods`` or ``prepayment_amount`` is not positive.
    """
    if principal is None:
        raise InvalidArgument("principal", "must not be None")
    if annual_rate_percent is None:
        raise InvalidArgument("annual_rate_percent", "must not be None")
    if prepayment_amount is None:
        raise InvalidArgument("prepayment_amount", "must not be None")
    loan = _validate_loan(principal, annual_rate_percent, original_term_periods, "original_term_periods")
    prepayment_period = require_int(prepayment_period, "prepayment_period")
    prepayment_amount = to_decimal(prepayment_amount, "prepayment_amount")
    if prepayment_period <= 0 or prepayment_period > loan.term_periods:
        raise InvalidArgument("prepayment_period", "must be between 1 and original_term_periods")
    if prepayment_amount <= 0:
        raise InvalidArgument("prepayment_amount", "must be greater than zero")

    zero = round_currency(Decimal(0), policy)
    if loan.principal == 0:
        return PrepaymentResult(
            baseline_loan=Loan(zero, zero, 0),
            prepayment_period=0,
            prepayment_amount=zero,
            baseline_installment=zero,
            revised_installment=zero,
            revised_term_periods=0,
            total_interest_baseline=zero,
            total_interest_revised=zero,
            interest_saved=zero,
        )

    baseline = generate_schedule(
        loan.principal, loan.annual_rate_percent, loan.term_periods, policy=policy
    )
    baseline_installment = baseline[0].installment
    total_interest_baseline = _total_interest(baseline, policy)
    interest_until_prepayment = _total_interest(baseline[:prepayment_period], policy)

    balance_at_prepayment = baseline[prepayment_period - 1].closing_balance
    with localcontext(policy.working_context()):
        reduced_principal = round_currency(max(Decimal(0), balance_at_prepayment - prepayment_amount), policy)
    remaining_periods = loan.term_periods - prepayment_period

    if reduced_principal == 0 or remaining_periods <= 0:
        logger.debug(
            "Prepayment of %s at period %d closes the loan (balance %s)",
            prepayment_amount,
            prepayment_period,
            balance_at_prepayment,
        )
        revised_installment = zero
        total_interest_revised = interest_until_prepayment
    else:
        revised = generate_schedule(
            reduced_principal, loan.annual_rate_percent, remaining_periods, policy=policy
        )
        revised_installment = revised[0].installment
        with localcontext(policy.working_context()):
            total_interest_revised = round_currency(
                interest_until_prepayment + _total_interest(revised, policy), policy
            )
        logger.debug(
            "Prepayment of %s at period %d re-amortizes %s over %d periods: installment %s -> %s",
            prepayment_amount,
            prepayment_period,
            reduced_principal,
            remaining_periods,
            baseline_installment,
            revised_installment,
        )

    with localcontext(policy.working_context()):
        interest_saved = round_currency(total_interest_baseline - total_interest_revised, policy)

    return PrepaymentResult(
        baseline_loan=loan,
        prepayment_period=prepayment_period,
        prepayment_amount=prepayment_amount,
        baseline_installment=baseline_installment,
        revised_installment=revised_installment,
        # The loan is still deemed to run its original term, even when closed early
        revised_term_periods=loan.term_periods,
        total_interest_baseline=total_interest_baseline,
        total_interest_revised=total_interest_revised,
        interest_saved=interest_saved,
    )


def summarize_schedule(
    schedule: Sequence[ScheduleEntry], policy: PrecisionPolicy = DEFAULT_POLICY
) -> ScheduleSummary:
    """Aggregate a schedule into totals of interest, principal and payments."""
    zero = round_currency(Decimal(0), policy)
    if not schedule:
        return ScheduleSummary(zero, zero, 0, zero, zero, zero)
    with localcontext(policy.working_context()):
        total_interest = _total_interest(schedule, policy)
        total_principal = round_currency(sum((e.principal_component for e in schedule), Decimal(0)), policy)
        return ScheduleSummary(
            principal=schedule[0].opening_balance,
            installment=schedule[0].installment,
            periods=len(schedule),
            total_interest=total_interest,
            total_principal=total_principal,
            total_payment=round_currency(total_interest + total_principal, policy),
        )


def compute_loan(
    principal: Any,
    annual_rate_percent: Any,
    term_periods: int,
    *,
    policy: PrecisionPolicy = DEFAULT_POLICY,
) -> Tuple[Tuple[ScheduleEntry, ...], ScheduleSummary]:
    """Return the schedule of a loan together with its summary."""
    schedule = generate_schedule(principal, annual_rate_percent, term_periods, policy=policy)
    return schedule, summarize_schedule(schedule, policy)
