import csv
import json

import pytest
from click.testing import CliRunner

from emi_calc.main import cli

LOAN = ["-p", "500000", "-r", "8.5", "-t", "240"]


@pytest.fixture
def runner():
    return CliRunner()


def test_emi(runner):
    result = runner.invoke(cli, ["emi", *LOAN])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "4339.12"


def test_emi_accepts_suffixes(runner):
    result = runner.invoke(cli, ["emi", "-p", "500k", "-r", "8.5%", "-t", "240"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "4339.12"


def test_emi_rejects_negative_principal(runner):
    result = runner.invoke(cli, ["emi", "--principal=-5", "-r", "8.5", "-t", "12"])
    assert result.exit_code == 2
    assert "principal must not be negative" in result.output


def test_emi_rejects_zero_term(runner):
    result = runner.invoke(cli, ["emi", "-p", "1000", "-r", "8.5", "-t", "0"])
    assert result.exit_code == 2
    assert "term_periods must be greater than zero" in result.output


def test_emi_rejects_bad_amount(runner):
    result = runner.invoke(cli, ["emi", "-p", "lots", "-r", "8.5", "-t", "12"])
    assert result.exit_code == 2
    assert "Invalid numeric value" in result.output


def test_schedule_prints_zero_rate_table(runner):
    result = runner.invoke(cli, ["schedule", "-p", "100000", "-r", "0", "-t", "12"])
    assert result.exit_code == 0, result.output
    assert "Installment        : 8333.33" in result.output
    assert "Period\tOpening\tInstallment\tInterest\tPrincipal\tClosing" in result.output
    assert "12\t8333.37\t8333.33\t-0.04\t8333.37\t0.00" in result.output


def test_schedule_truncates_output(runner):
    result = runner.invoke(cli, ["schedule", *LOAN, "--max-rows", "10"])
    assert result.exit_code == 0, result.output
    assert "Schedule has 240 rows; showing first 10 rows." in result.output


def test_schedule_json_export(runner, tmp_path):
    path = tmp_path / "schedule.json"
    result = runner.invoke(cli, ["schedule", *LOAN, "--output", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["installment"] == "4339.12"
    assert data["summary"]["total_principal"] == "500000.00"
    assert len(data["schedule"]) == 240
    assert data["schedule"][-1]["closing_balance"] == "0.00"


def test_schedule_csv_export(runner, tmp_path):
    path = tmp_path / "schedule.csv"
    result = runner.invoke(cli, ["schedule", "-p", "120000", "-r", "0", "-t", "12", "--output", str(path)])
    assert result.exit_code == 0, result.output
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Period", "Opening_Balance", "Installment", "Interest", "Principal", "Closing_Balance"]
    assert len(rows) == 13
    assert rows[-1] == ["12", "10000.00", "10000.00", "0.00", "10000.00", "0.00"]


def test_schedule_rejects_unknown_format(runner, tmp_path):
    result = runner.invoke(cli, ["schedule", *LOAN, "--output", str(tmp_path / "schedule.txt")])
    assert result.exit_code == 2


def test_summary(runner):
    result = runner.invoke(cli, ["summary", *LOAN])
    assert result.exit_code == 0, result.output
    assert "Periods            : 240" in result.output


def test_prepayment(runner):
    result = runner.invoke(cli, ["prepayment", *LOAN, "--period", "36", "--amount", "200k"])
    assert result.exit_code == 0, result.output
    assert "Interest saved" in result.output
    assert "Prepayment         : 200000.00 at period 36" in result.output


def test_prepayment_closing_loan(runner):
    result = runner.invoke(cli, ["prepayment", *LOAN, "--period", "36", "--amount", "1m"])
    assert result.exit_code == 0, result.output
    assert "Loan is fully repaid at the prepayment period." in result.output


def test_prepayment_json_export(runner, tmp_path):
    path = tmp_path / "prepayment.json"
    result = runner.invoke(
        cli, ["prepayment", *LOAN, "--period", "36", "--amount", "200000", "--output", str(path)]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))["prepayment"]
    assert data["baseline_installment"] == "4339.12"
    assert data["revised_term_periods"] == 240
    assert float(data["interest_saved"]) > 0


def test_prepayment_rejects_out_of_range_period(runner):
    result = runner.invoke(cli, ["prepayment", *LOAN, "--period", "241", "--amount", "1000"])
    assert result.exit_code == 2
    assert "prepayment_period must be between 1 and original_term_periods" in result.output


def test_compare(runner):
    result = runner.invoke(
        cli,
        [
            "compare",
            "--scenario1",
            "-p 500k -r 8.5 -t 240",
            "--scenario2",
            "-p 500k -r 8.5 -t 180",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Comparison" in result.output
    assert "4339.12" in result.output


def test_compare_requires_all_options(runner):
    result = runner.invoke(cli, ["compare", "--scenario1", "-p 500k -r 8.5", "--scenario2", "-p 1 -r 1 -t 1"])
    assert result.exit_code == 2
    assert "Scenario missing required option term" in result.output
