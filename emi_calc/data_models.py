"""Data models for the EMI calculator.

This module defines the immutable value types exchanged by the calculator:
the loan parameters, the precision policy that controls every rounding step,
individual schedule entries and the result of a prepayment simulation. All
of them are frozen dataclasses so a result can be handed around freely
without anybody being able to modify it after the call that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Context, Decimal


@dataclass(frozen=True)
class PrecisionPolicy:
    """Precision and rounding rules applied by the calculation engine.

    Attributes
    ----------
    periods_per_year: int
        Number of repayment periods in a year. Only monthly (12) cadence is
        supported by the engine.
    rate_scale: int
        Fractional digits kept on the periodic interest rate. The rate is
        never rounded to currency scale.
    power_precision: int
        Significant digits used when evaluating the annuity power term and
        the ratio built from it (16 digits, like a decimal64 context).
    currency_places: int
        Fractional digits of every emitted monetary value.
    rounding: str
        Rounding mode for monetary values and the periodic rate.
    working_precision: int
        Precision used for products and sums that must stay exact before
        they are rounded to currency scale.
    """

    periods_per_year: int = 12
    rate_scale: int = 20
    power_precision: int = 16
    currency_places: int = 2
    rounding: str = ROUND_HALF_UP
    working_precision: int = 50

    @property
    def currency_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.currency_places)

    @property
    def rate_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.rate_scale)

    def working_context(self) -> Context:
        return Context(prec=self.working_precision, rounding=self.rounding)

    def power_context(self) -> Context:
        # decimal64 rounds half-even
        return Context(prec=self.power_precision, rounding=ROUND_HALF_EVEN)


DEFAULT_POLICY = PrecisionPolicy()


@dataclass(frozen=True)
class Loan:
    """Parameters of a fixed-rate loan.

    The principal is the financed amount, ``annual_rate_percent`` is the
    nominal annual rate in percent (``8.5`` means 8.5 %) and ``term_periods``
    is the number of monthly installments.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    term_periods: int


@dataclass(frozen=True)
class ScheduleEntry:
    """An entry in the amortization schedule.

    Each entry corresponds to one period. Every amount is rounded to currency
    scale. ``interest_component + principal_component == installment`` for
    all entries except the last one, which absorbs the rounding residue so
    that its ``closing_balance`` is exactly zero.
    """

    period_index: int
    opening_balance: Decimal
    installment: Decimal
    interest_component: Decimal
    principal_component: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class ScheduleSummary:
    """Aggregate figures of a full schedule."""

    principal: Decimal
    installment: Decimal
    periods: int
    total_interest: Decimal
    total_principal: Decimal
    total_payment: Decimal


@dataclass(frozen=True)
class PrepaymentResult:
    """Before/after comparison of a single prepayment.

    The simulated policy keeps the term constant and lowers the installment
    for the remaining periods. ``revised_term_periods`` always reports the
    original term, including the case where the prepayment retires the loan
    and ``revised_installment`` is zero.
    """

    baseline_loan: Loan
    prepayment_period: int
    prepayment_amount: Decimal
    baseline_installment: Decimal
    revised_installment: Decimal
    revised_term_periods: int
    total_interest_baseline: Decimal
    total_interest_revised: Decimal
    interest_saved: Decimal

    @property
    def principal(self) -> Decimal:
        return self.baseline_loan.principal

    @property
    def annual_rate_percent(self) -> Decimal:
        return self.baseline_loan.annual_rate_percent

    @property
    def original_term_periods(self) -> int:
        return self.baseline_loan.term_periods

    @property
    def installment_reduction(self) -> Decimal:
        return self.baseline_installment - self.revised_installment
