import json
from datetime import date
from decimal import Decimal

import pytest

from ledger.errors import ValidationError
from ledger.reports import ReportService, to_json

from helpers import make_budget, make_tx


@pytest.fixture
def service():
    return ReportService(clock=lambda: date(2024, 1, 20))


@pytest.fixture
def transactions():
    return (
        make_tx("1", 5000, "Salary", "income", "2024-01-15"),
        make_tx("2", 150, "Food & Dining", "expense", "2024-01-14"),
        make_tx("3", 45, "Transportation", "expense", "2024-01-13"),
        make_tx("4", 20, "Food & Dining", "expense", "2024-01-14"),
        make_tx("5", 300, "Travel", "expense", "2023-12-30"),
    )


def test_monthly_defaults_to_current_month(service, transactions):
    report = service.monthly(transactions)

    assert report["period"] == "2024-01"
    assert report["summary"] == {"income": 5000, "expenses": 215, "netSavings": 4785}
    assert [d["date"] for d in report["dailyData"]] == ["2024-01-13", "2024-01-14", "2024-01-15"]
    assert report["dailyData"][1]["expenses"] == 170
    assert report["transactionCount"] == 4


def test_monthly_other_month(service, transactions):
    report = service.monthly(transactions, year=2023, month=12)
    assert report["summary"]["expenses"] == 300
    with pytest.raises(ValidationError):
        service.monthly(transactions, year=2024, month=13)


def test_categories_breakdown(service, transactions):
    report = service.categories_breakdown(transactions, "expense", start_date=date(2024, 1, 1))

    assert [c["name"] for c in report["categories"]] == ["Food & Dining", "Transportation"]
    assert report["categories"][0]["value"] == 170
    assert report["categories"][0]["count"] == 2
    assert report["categories"][0]["icon"] == "utensils"
    assert report["totalAmount"] == 215
    assert report["period"] == {"startDate": "2024-01-01", "endDate": "all-time"}


def test_net_savings_periods(service, transactions):
    monthly = service.net_savings(transactions, "monthly")
    assert monthly["summary"]["savingsRate"] == Decimal("95.7")
    assert len(monthly["trendData"]) == 3

    yearly = service.net_savings(transactions, "yearly", year=2023)
    assert [row["month"] for row in yearly["trendData"]] == ["2023-12"]
    assert yearly["summary"]["savingsRate"] == 0

    all_time = service.net_savings(transactions, "all-time")
    assert all_time["summary"]["expenses"] == 515
    assert all_time["trendData"] == []

    with pytest.raises(ValidationError):
        service.net_savings(transactions, "weekly")


def test_dashboard(service, transactions):
    report = service.dashboard(transactions, (make_budget("1", "Food & Dining", 500),))

    assert report["currentMonth"]["netSavings"] == 4785
    assert report["allTime"]["expenses"] == 515
    assert report["recentTransactions"][0]["id"] == "1"
    assert report["budgetCount"] == 1
    assert report["transactionCount"] == 5


def test_budget_summary_recomputes_spent(service, transactions):
    budgets = (
        make_budget("1", "Food & Dining", 500, spent=999),
        make_budget("2", "Travel", 250, year=2023, month=12),
    )

    rows = service.budget_summary(budgets, transactions)["budgets"]

    assert rows[0]["spent"] == 170
    assert rows[0]["remaining"] == 330
    assert rows[0]["percentage"] == 34
    assert rows[0]["status"] == "good"
    assert rows[1]["spent"] == 300
    assert rows[1]["status"] == "over"


def test_budget_alerts(service, transactions):
    budgets = (
        make_budget("1", "Food & Dining", 200),
        make_budget("2", "Transportation", 500),
    )

    report = service.budget_alerts(budgets, transactions)

    assert report["message"] == "Processed 1 budget alerts"
    assert report["alerts"][0]["category"] == "Food & Dining"
    assert report["alerts"][0]["percentage"] == 85
    assert report["alerts"][0]["isOverBudget"] is False


def test_to_json_uses_numbers_and_iso_dates(service, transactions):
    body = json.loads(to_json(service.monthly(transactions)))

    assert body["summary"]["income"] == 5000.0
    assert isinstance(body["dailyData"][0]["expenses"], float)
    assert json.loads(to_json({"day": date(2024, 1, 2)})) == {"day": "2024-01-02"}
    with pytest.raises(TypeError):
        to_json({"bad": object()})


def test_reports_on_empty_data(service):
    assert service.monthly(())["dailyData"] == []
    assert service.categories_breakdown((), "income")["categories"] == []
    assert service.budget_summary((), ()) == {"budgets": []}
    assert service.budget_alerts((), ())["alerts"] == []


def test_monthly_report_covers_previous_month(transactions):
    report = ReportService(clock=lambda: date(2024, 2, 10)).monthly_report(transactions)
    data = report["reportData"]

    assert report["message"] == "Monthly report generated"
    assert data["period"] == "January 2024"
    assert (data["income"], data["expenses"], data["netSavings"]) == (5000, 215, 4785)
    assert data["topCategories"] == [
        {"category": "Food & Dining", "amount": 170},
        {"category": "Transportation", "amount": 45},
    ]


def test_monthly_report_rolls_back_over_new_year(service, transactions):
    data = service.monthly_report(transactions)["reportData"]

    assert data["period"] == "December 2023"
    assert data["income"] == 0
    assert data["netSavings"] == -300
    assert data["topCategories"] == [{"category": "Travel", "amount": 300}]


def test_monthly_report_keeps_top_five():
    names = ["Food & Dining", "Transportation", "Shopping", "Entertainment", "Healthcare", "Travel"]
    rows = [make_tx(str(i), 10 * (i + 1), name, "expense", "2024-03-05") for i, name in enumerate(names)]

    data = ReportService(clock=lambda: date(2024, 4, 1)).monthly_report(rows)["reportData"]

    assert [c["category"] for c in data["topCategories"]] == names[::-1][:5]
