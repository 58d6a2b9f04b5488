"""Output helpers for the EMI calculator.

This module renders schedules, summaries and prepayment comparisons as plain
text tables. Amounts are printed with two decimals and no currency symbol.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import PrepaymentResult, ScheduleEntry, ScheduleSummary


def print_summary(summary: ScheduleSummary) -> None:
    """Print the aggregate figures of a schedule."""
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {summary.principal:.2f}")
    print(f"Installment        : {summary.installment:.2f}")
    print(f"Periods            : {summary.periods}")
    print(f"Total interest     : {summary.total_interest:.2f}")
    print(f"Total payment      : {summary.total_payment:.2f}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a tab separated table."""
    headers = [
        "Period",
        "Opening",
        "Installment",
        "Interest",
        "Principal",
        "Closing",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period_index),
            f"{entry.opening_balance:.2f}",
            f"{entry.installment:.2f}",
            f"{entry.interest_component:.2f}",
            f"{entry.principal_component:.2f}",
            f"{entry.closing_balance:.2f}",
        ]
        print("\t".join(row))


def print_prepayment(result: PrepaymentResult) -> None:
    """Print the before/after view of a prepayment simulation.

    When the prepayment retires the loan, the revised installment is zero and
    the term still shows the original number of periods; a note says so.
    """
    print("Prepayment")
    print("=" * 72)
    print(f"Principal          : {result.principal:.2f}")
    print(f"Annual rate        : {result.annual_rate_percent}%")
    print(f"Term (periods)     : {result.original_term_periods}")
    print(f"Prepayment         : {result.prepayment_amount:.2f} at period {result.prepayment_period}")
    print(f"{'Metric':20s} {'Baseline':>15s} {'Revised':>15s} {'Difference':>15s}")
    print(
        f"{'installment':20s} {result.baseline_installment:15.2f} "
        f"{result.revised_installment:15.2f} {-result.installment_reduction:15.2f}"
    )
    print(
        f"{'total_interest':20s} {result.total_interest_baseline:15.2f} "
        f"{result.total_interest_revised:15.2f} {-result.interest_saved:15.2f}"
    )
    print(f"Interest saved     : {result.interest_saved:.2f}")
    if result.principal > 0 and result.revised_installment == 0:
        print("Loan is fully repaid at the prepayment period.")
    print("=" * 72)


def print_comparison(s1: ScheduleSummary, s2: ScheduleSummary) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column shows scenario2 - scenario1. A negative difference
    means the second scenario is cheaper.
    """
    print("Comparison")
    print("=" * 72)
    keys = [
        "installment",
        "total_interest",
        "total_payment",
        "periods",
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = getattr(s1, key)
        v2 = getattr(s2, key)
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)
