"""Named cell formatters that screen definitions refer to by name."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from adminconsole.core.records import to_text

CURRENCY_SYMBOL = "₹"

Formatter = Callable[[Any, Mapping[str, Any]], str]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_currency(value: Any, _row: Mapping[str, Any]) -> str:
    amount = _to_decimal(value) or Decimal("0")
    if amount == amount.to_integral_value():
        return f"{CURRENCY_SYMBOL}{int(amount):,}"
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def format_number(value: Any, _row: Mapping[str, Any]) -> str:
    number = _to_decimal(value)
    if number is None:
        return "-"
    if number == number.to_integral_value():
        return f"{int(number):,}"
    return f"{number:,.2f}"


def format_percent(value: Any, _row: Mapping[str, Any]) -> str:
    number = _to_decimal(value)
    return "-" if number is None else f"{number.normalize():f}%"


def format_date(value: Any, _row: Mapping[str, Any]) -> str:
    parsed = _to_datetime(value)
    return parsed.strftime("%d %b %Y") if parsed else "-"


def format_datetime(value: Any, _row: Mapping[str, Any]) -> str:
    parsed = _to_datetime(value)
    return parsed.strftime("%d %b %Y %H:%M") if parsed else "-"


def format_boolean(value: Any, _row: Mapping[str, Any]) -> str:
    if value is None:
        return "-"
    return "Yes" if value in (True, "true", "True", 1, "1", "yes") else "No"


def format_status(value: Any, _row: Mapping[str, Any]) -> str:
    text = to_text(value)
    return text.replace("_", " ").title() if text else "-"


FORMATTERS: dict[str, Formatter] = {
    "currency": format_currency,
    "number": format_number,
    "percent": format_percent,
    "date": format_date,
    "datetime": format_datetime,
    "boolean": format_boolean,
    "status": format_status,
}


def get_formatter(name: str | None) -> Formatter | None:
    if not name:
        return None
    try:
        return FORMATTERS[name]
    except KeyError as exc:
        raise ValueError(f"unknown column format: {name!r}") from exc
