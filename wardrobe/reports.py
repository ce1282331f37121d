"""
CEO reports.

Each report is a ``GET /reports/<id>``; some take the full date range, some
only the period and some nothing at all. The backend's answer is a loose JSON
document, so ``summarize`` splits it into headline figures and tables for a
generic page.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .calculations import to_number
from .utils.exceptions import ValidationError

RANGE = "range"
PERIOD = "period"
NONE = "none"

PERIODS = [
    ("week", "Week"),
    ("month", "Month"),
    ("3months", "3 Months"),
    ("6months", "6 Months"),
    ("year", "Year"),
    ("2years", "2 Years"),
    ("3years", "3 Years"),
]
DEFAULT_PERIOD = "month"
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class Report:
    id: str
    title: str
    description: str
    params: str = RANGE


REPORTS: Dict[str, Report] = {r.id: r for r in (
    Report("sales", "Sales Report",
           "Comprehensive sales analysis including revenue, orders, and growth metrics"),
    Report("customer-growth", "Customer Growth Report",
           "Customer registration trends and growth analysis", PERIOD),
    Report("most-sold-products", "Most Sold Products",
           "Top performing products by quantity and revenue"),
    Report("revenue-analysis", "Revenue Analysis",
           "Detailed revenue breakdown and trends analysis"),
    Report("inventory-status", "Inventory Status Report",
           "Current inventory levels, low stock alerts, and valuation", NONE),
    Report("order-status-distribution", "Order Status Distribution",
           "Analysis of order statuses and completion rates", PERIOD),
    Report("supplier-performance", "Supplier Performance",
           "Supplier reliability and performance metrics", PERIOD),
    Report("customer-demographics", "Customer Demographics",
           "Customer distribution by age, location, and registration patterns", NONE),
)}


def current_month(today: Optional[date] = None) -> Tuple[str, str]:
    today = today or date.today()
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1).isoformat(), today.replace(day=last).isoformat()


def default_params(today: Optional[date] = None) -> Dict[str, Any]:
    start, end = current_month(today)
    return {"period": DEFAULT_PERIOD, "startDate": start, "endDate": end, "limit": DEFAULT_LIMIT}


def _iso_date(value: str, label: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise ValidationError(f"{label} must be a valid date") from None


def report_params(report: Report, args: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Query parameters for one report, taken from the form with the current month
    and a limit of 10 as defaults. Raises ``ValidationError`` on a bad range.
    """
    if report.params == NONE:
        return {}
    params = default_params(today)
    period = (args.get("period") or DEFAULT_PERIOD).strip()
    if period not in dict(PERIODS):
        raise ValidationError("Please select a valid period")
    if report.params == PERIOD:
        return {"period": period}

    start = _iso_date((args.get("startDate") or params["startDate"]).strip(), "Start date")
    end = _iso_date((args.get("endDate") or params["endDate"]).strip(), "End date")
    if end < start:
        raise ValidationError("End date cannot be before the start date")
    limit = to_number(args.get("limit") or DEFAULT_LIMIT, None)
    if limit is None or limit != int(limit) or not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"Limit must be a whole number between 1 and {MAX_LIMIT}")
    return {"period": period, "startDate": start, "endDate": end, "limit": int(limit)}


def humanize(key: str) -> str:
    """``totalRevenue`` -> ``Total revenue``."""
    words = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", str(key)).replace("_", " ").split()
    return " ".join(words).capitalize()


def _table(title: str, rows: List[Any]) -> Dict[str, Any]:
    if rows and all(isinstance(row, dict) for row in rows):
        columns: List[str] = []
        for row in rows:
            columns.extend(k for k in row if k not in columns and not isinstance(row[k], (dict, list)))
        return {"title": humanize(title), "columns": [(humanize(c), c) for c in columns], "rows": rows}
    return {"title": humanize(title), "columns": [("Value", "value")], "rows": [{"value": r} for r in rows]}


def summarize(data: Any, title: str = "results") -> Dict[str, Any]:
    """Split a report into ``figures`` (label, value) and ``tables``."""
    figures: List[Tuple[str, Any]] = []
    tables: List[Dict[str, Any]] = []
    if isinstance(data, list):
        tables.append(_table(title, data))
        return {"figures": figures, "tables": tables}
    if not isinstance(data, dict):
        if data is not None:
            figures.append((humanize(title), data))
        return {"figures": figures, "tables": tables}

    for key, value in data.items():
        if key in ("success", "message"):
            continue
        if isinstance(value, list):
            tables.append(_table(key, value))
        elif isinstance(value, dict):
            if value and all(not isinstance(v, (dict, list)) for v in value.values()):
                tables.append({
                    "title": humanize(key),
                    "columns": [("Name", "name"), ("Value", "value")],
                    "rows": [{"name": humanize(k), "value": v} for k, v in value.items()],
                })
            else:
                nested = summarize(value, key)
                figures.extend((f"{humanize(key)}: {label}", v) for label, v in nested["figures"])
                tables.extend(nested["tables"])
        else:
            figures.append((humanize(key), value))
    return {"figures": figures, "tables": tables}
