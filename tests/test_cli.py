import csv
import json

from click.testing import CliRunner

from mortgage_calc.main import CSV_HEADER, cli, parse_amount


def _run(*args):
    return CliRunner().invoke(cli, list(args))


def test_parse_amount_suffixes():
    assert parse_amount("300k") == 300000
    assert parse_amount("1.2m") == 1200000
    assert parse_amount("12,500") == 12500


def test_payment_command():
    result = _run("payment", "-p", "300k", "-r", "6.5", "-t", "30")
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "1896.20"


def test_payment_rejects_invalid_loan():
    result = _run("payment", "-p", "0", "-r", "6.5", "-t", "30")
    assert result.exit_code != 0
    assert "principal must be positive" in result.output


def test_schedule_prints_table():
    result = _run("schedule", "-p", "12000", "-r", "6", "-t", "1", "-s", "2024-01-01")
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0].split("\t")[0] == "Number"
    assert len(lines) == 13
    assert lines[1].split("\t")[1] == "2024-02-01"


def test_long_schedule_is_truncated():
    result = _run("schedule", "-p", "300000", "-r", "6.5", "-t", "30", "-s", "2024-01")
    assert result.exit_code == 0
    assert "showing first 120 rows" in result.output


def test_schedule_csv_export(tmp_path):
    out = tmp_path / "schedule.csv"
    result = _run("schedule", "-p", "12000", "-r", "6", "-t", "1", "-s", "2024-01-01", "--output", str(out))
    assert result.exit_code == 0, result.output

    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == CSV_HEADER
    assert len(rows) == 13
    assert rows[1][0] == "1"
    assert rows[1][1] == "2024-02-01"
    # plain numbers, re-parseable
    assert float(rows[1][4]) == 1032.80
    assert float(rows[-1][5]) == 0.0


def test_schedule_json_export(tmp_path):
    out = tmp_path / "schedule.json"
    result = _run("schedule", "-p", "12000", "-r", "6", "-t", "1", "-s", "2024-01-01", "--output", str(out))
    assert result.exit_code == 0, result.output

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["summary"]["monthly_payment"] == 1032.8
    assert data["summary"]["payments"] == 12
    assert data["schedule"][0]["Payment_Number"] == 1
    assert data["schedule"][-1]["Remaining_Balance"] == 0.0


def test_unsupported_export_format(tmp_path):
    result = _run("schedule", "-p", "12000", "-r", "6", "-t", "1", "--output", str(tmp_path / "s.xlsx"))
    assert result.exit_code != 0


def test_extra_command():
    result = _run("extra", "-p", "200000", "-r", "6", "-t", "30", "--monthly-extra", "200", "-s", "2024-01")
    assert result.exit_code == 0, result.output
    assert "Interest saved" in result.output
    assert "Term reduction" in result.output


def test_extra_rejects_negative_amount():
    result = _run("extra", "-p", "200000", "-r", "6", "-t", "30", "--monthly-extra", "-5")
    assert result.exit_code != 0


def test_breakdown_command():
    result = _run("breakdown", "-p", "300000", "-r", "6.5", "-t", "30", "--property-tax", "250", "--hoa", "50")
    assert result.exit_code == 0, result.output
    assert "Total monthly        : 2196.20" in result.output


def test_refinance_command(monkeypatch):
    monkeypatch.delenv("MORTGAGE_MAX_BREAK_EVEN_YEARS", raising=False)
    result = _run(
        "refinance",
        "--balance", "350000",
        "--current-rate", "7.25",
        "--remaining-years", "30",
        "--new-rate", "6.5",
        "--new-term", "30",
        "--closing-costs", "5000",
    )
    assert result.exit_code == 0, result.output
    assert "months" in result.output
    assert "Recommendation     : refinance" in result.output


def test_refinance_with_short_break_even_horizon():
    result = _run(
        "refinance",
        "--balance", "350000",
        "--current-rate", "7.25",
        "--remaining-years", "30",
        "--new-rate", "6.5",
        "--new-term", "30",
        "--closing-costs", "5000",
        "--max-break-even-years", "1",
    )
    assert result.exit_code == 0, result.output
    assert "keep the current loan" in result.output


def test_refinance_without_savings():
    result = _run(
        "refinance",
        "--balance", "350000",
        "--current-rate", "6",
        "--remaining-years", "30",
        "--new-rate", "7",
        "--new-term", "30",
    )
    assert result.exit_code == 0, result.output
    assert "never" in result.output


def test_rent_vs_buy_command():
    result = _run(
        "rent-vs-buy",
        "--home-price", "400k",
        "--down-payment", "80k",
        "--rate", "6.8",
        "--rent", "2500",
        "--rent-growth", "3",
        "--appreciation", "3.5",
        "--years", "5",
        "--method", "annual_approximation",
    )
    assert result.exit_code == 0, result.output
    assert "Break-even year" in result.output


def test_preapproval_command(monkeypatch):
    monkeypatch.delenv("MORTGAGE_MAX_DTI_PERCENT", raising=False)
    monkeypatch.delenv("MORTGAGE_MAX_FRONT_END_PERCENT", raising=False)
    result = _run("preapproval", "--income", "80k", "--debts", "500", "-p", "300k", "-r", "6.5", "-t", "30")
    assert result.exit_code == 0, result.output
    assert "not approved" in result.output
    assert "28.44%" in result.output
