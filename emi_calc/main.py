"""Command-line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the installment of a loan, print or export its
full amortization schedule, simulate a one-time prepayment or compare two
loans. Schedules can be exported to JSON or CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import shlex
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import click

from .config import configure_logging, get_settings
from .data_models import PrepaymentResult, ScheduleEntry, ScheduleSummary
from .engine import compute_loan, simulate_single_prepayment, solve_installment
from .errors import InvalidArgument
from .formatter import print_comparison, print_prepayment, print_schedule, print_summary
from .utils import parse_amount, parse_percent

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def entry_to_dict(entry: ScheduleEntry) -> Dict[str, Any]:
    """Convert a schedule entry into a JSON-serialisable dictionary."""
    return {
        "period": entry.period_index,
        "opening_balance": _money(entry.opening_balance),
        "installment": _money(entry.installment),
        "interest": _money(entry.interest_component),
        "principal": _money(entry.principal_component),
        "closing_balance": _money(entry.closing_balance),
    }


def summary_to_dict(summary: ScheduleSummary) -> Dict[str, Any]:
    return {
        "principal": _money(summary.principal),
        "installment": _money(summary.installment),
        "periods": summary.periods,
        "total_interest": _money(summary.total_interest),
        "total_principal": _money(summary.total_principal),
        "total_payment": _money(summary.total_payment),
    }


def prepayment_to_dict(result: PrepaymentResult) -> Dict[str, Any]:
    return {
        "principal": _money(result.principal),
        "annual_rate_percent": str(result.annual_rate_percent),
        "original_term_periods": result.original_term_periods,
        "prepayment_period": result.prepayment_period,
        "prepayment_amount": _money(result.prepayment_amount),
        "baseline_installment": _money(result.baseline_installment),
        "revised_installment": _money(result.revised_installment),
        "revised_term_periods": result.revised_term_periods,
        "total_interest_baseline": _money(result.total_interest_baseline),
        "total_interest_revised": _money(result.total_interest_revised),
        "interest_saved": _money(result.interest_saved),
    }


def call_engine(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run an engine function, reporting rejected input as a click error."""
    try:
        return func(*args, **kwargs)
    except InvalidArgument as exc:
        logger.warning("Rejected input: %s", exc)
        raise click.BadParameter(str(exc), param_hint=exc.field) from exc


def _amount_callback(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _rate_callback(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return parse_percent(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def loan_options(func: Callable) -> Callable:
    """Attach the principal/rate/term options shared by every loan command."""
    func = click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months")(func)
    func = click.option(
        "--rate", "-r", "rate", required=True, callback=_rate_callback, help="Annual interest rate (percent)"
    )(func)
    func = click.option(
        "--principal", "-p", "principal", required=True, callback=_amount_callback, help="Loan amount (e.g. 500k)"
    )(func)
    return func


def export_to_json(path: Path, schedule: Sequence[ScheduleEntry], summary: ScheduleSummary) -> None:
    """Export schedule and summary to a JSON file."""
    data = {
        "summary": summary_to_dict(summary),
        "schedule": [entry_to_dict(e) for e in schedule],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Sequence[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Opening_Balance",
        "Installment",
        "Interest",
        "Principal",
        "Closing_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.period_index,
                    _money(e.opening_balance),
                    _money(e.installment),
                    _money(e.interest_component),
                    _money(e.principal_component),
                    _money(e.closing_balance),
                ]
            )


@click.group()
@click.option("--log-level", "log_level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
def cli(log_level: Optional[str]) -> None:
    """A command-line EMI calculator for fixed-rate loans."""
    configure_logging(log_level)


@cli.command()
@loan_options
def emi(principal: Decimal, rate: Decimal, term: int) -> None:
    """Print the monthly installment of a loan."""
    installment = call_engine(solve_installment, principal, rate, term)
    click.echo(_money(installment))


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--max-rows", "max_rows", type=int, default=None, help="Rows printed before truncating")
def schedule(principal: Decimal, rate: Decimal, term: int, output: Optional[str], max_rows: Optional[int]) -> None:
    """Compute and print the full amortization schedule."""
    schedule_entries, summary_data = call_engine(compute_loan, principal, rate, term)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_entries, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    limit = max_rows if max_rows is not None else get_settings().max_print_rows
    if len(schedule_entries) > limit:
        click.echo(f"Schedule has {len(schedule_entries)} rows; showing first {limit} rows.")
        print_schedule(schedule_entries[:limit])
    else:
        print_schedule(schedule_entries)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(principal: Decimal, rate: Decimal, term: int, output: Optional[str]) -> None:
    """Compute and print only the summary metrics for a loan."""
    _, summary_data = call_engine(compute_loan, principal, rate, term)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(summary_data)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@loan_options
@click.option("--period", "period", required=True, type=int, help="Period (1-based) at which the extra payment is made")
@click.option("--amount", "amount", required=True, callback=_amount_callback, help="Extra payment amount")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def prepayment(
    principal: Decimal,
    rate: Decimal,
    term: int,
    period: int,
    amount: Decimal,
    output: Optional[str],
) -> None:
    """Simulate one extra payment that lowers the installment.

    The remaining balance is re-amortized over the remaining periods, so the
    loan keeps its original end date.
    """
    result = call_engine(simulate_single_prepayment, principal, rate, term, period, amount)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Prepayment export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"prepayment": prepayment_to_dict(result)}, f, indent=2)
        click.echo(f"Prepayment exported to {path}")
    else:
        print_prepayment(result)


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Parse a quoted scenario string such as ``"-p 500k -r 8.5 -t 240"``."""
    tokens: List[str] = shlex.split(opts)
    params: Dict[str, Any] = {"principal": None, "rate": None, "term": None}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if i + 1 >= len(tokens):
            raise click.BadParameter(f"Missing value for {token} in scenario")
        value = tokens[i + 1]
        try:
            if token in ("-p", "--principal"):
                params["principal"] = parse_amount(value)
            elif token in ("-r", "--rate"):
                params["rate"] = parse_percent(value)
            elif token in ("-t", "--term"):
                params["term"] = int(value)
            else:
                raise click.BadParameter(f"Unknown option in scenario: {token}")
        except ValueError as exc:
            raise click.BadParameter(str(exc)) from exc
        i += 2
    for name, value in params.items():
        if value is None:
            raise click.BadParameter(f"Scenario missing required option {name}")
    return params


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        emi-calc compare --scenario1 "-p 500k -r 8.5 -t 240" --scenario2 "-p 500k -r 8.5 -t 180"
    """
    params1 = parse_scenario_opts(scenario1)
    params2 = parse_scenario_opts(scenario2)
    _, summary1 = call_engine(compute_loan, params1["principal"], params1["rate"], params1["term"])
    _, summary2 = call_engine(compute_loan, params2["principal"], params2["rate"], params2["term"])
    print_comparison(summary1, summary2)


if __name__ == "__main__":
    cli()
