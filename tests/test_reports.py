from datetime import date

import pytest

from wardrobe.reports import REPORTS, current_month, humanize, report_params, summarize
from wardrobe.utils.exceptions import ValidationError

TODAY = date(2024, 2, 10)


def test_current_month():
    assert current_month(TODAY) == ("2024-02-01", "2024-02-29")


def test_range_report_defaults():
    assert report_params(REPORTS["sales"], {}, TODAY) == {
        "period": "month", "startDate": "2024-02-01", "endDate": "2024-02-29", "limit": 10,
    }


def test_period_only_and_parameterless_reports():
    args = {"period": "year", "startDate": "2024-01-01", "limit": "5"}
    assert report_params(REPORTS["customer-growth"], args, TODAY) == {"period": "year"}
    assert report_params(REPORTS["supplier-performance"], args, TODAY) == {"period": "year"}
    assert report_params(REPORTS["inventory-status"], args, TODAY) == {}
    assert report_params(REPORTS["customer-demographics"], args, TODAY) == {}


def test_explicit_range():
    args = {"period": "3months", "startDate": "2024-01-01", "endDate": "2024-03-31", "limit": "25"}
    assert report_params(REPORTS["most-sold-products"], args, TODAY) == {
        "period": "3months", "startDate": "2024-01-01", "endDate": "2024-03-31", "limit": 25,
    }


@pytest.mark.parametrize("args, message", [
    ({"period": "decade"}, "Please select a valid period"),
    ({"startDate": "2024-13-01"}, "Start date must be a valid date"),
    ({"startDate": "2024-03-01", "endDate": "2024-02-01"}, "End date cannot be before the start date"),
    ({"limit": "0"}, "Limit must be a whole number between 1 and 100"),
    ({"limit": "2.5"}, "Limit must be a whole number between 1 and 100"),
    ({"limit": "nan"}, "Limit must be a whole number between 1 and 100"),
])
def test_bad_params(args, message):
    with pytest.raises(ValidationError) as info:
        report_params(REPORTS["sales"], args, TODAY)
    assert info.value.message == message


def test_humanize():
    assert humanize("totalRevenue") == "Total revenue"
    assert humanize("average_order_value") == "Average order value"


def test_summarize_splits_figures_and_tables():
    result = summarize({
        "success": True,
        "totalRevenue": 1200.5,
        "totalOrders": 4,
        "statusCounts": {"PENDING": 1, "DELIVERED": 3},
        "topProducts": [{"name": "Shirt", "quantitySold": 3, "category": {"id": 1}}],
        "period": {"label": "month", "growth": {"rate": 5}},
    })
    assert result["figures"] == [
        ("Total revenue", 1200.5),
        ("Total orders", 4),
        ("Period: Label", "month"),
    ]
    titles = [t["title"] for t in result["tables"]]
    assert titles == ["Status counts", "Top products", "Growth"]
    top = result["tables"][1]
    assert top["columns"] == [("Name", "name"), ("Quantity sold", "quantitySold")]


def test_summarize_bare_list_and_scalar():
    assert summarize([1, 2])["tables"][0]["rows"] == [{"value": 1}, {"value": 2}]
    assert summarize(None) == {"figures": [], "tables": []}
