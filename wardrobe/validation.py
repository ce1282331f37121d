"""
Synchronous field rules.

A rule is a callable ``rule(values) -> Optional[str]`` returning a message when the
rule is violated. ``validate`` runs every rule independently and keeps all messages
in declaration order, so a form shows every problem at once.
"""
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .calculations import to_number

Rule = Callable[[Mapping[str, Any]], Optional[str]]

MOBILE_RE = re.compile(r"^\d{10}$")
ZIP_RE = re.compile(r"^\d{5}$")
NIC_RE = re.compile(r"^(\d{9}[xXvV]|\d{12})$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _text(values: Mapping[str, Any], field: str) -> str:
    value = values.get(field)
    if value is None:
        return ""
    return str(value).strip()


def is_mobile(value: Any) -> bool:
    return bool(MOBILE_RE.match(str(value or "").strip()))


def is_zip_code(value: Any) -> bool:
    return bool(ZIP_RE.match(str(value or "").strip()))


def is_nic(value: Any) -> bool:
    return bool(NIC_RE.match(str(value or "").strip()))


def is_email(value: Any) -> bool:
    return bool(EMAIL_RE.match(str(value or "").strip()))


def required(field: str, message: str) -> Rule:
    def rule(values):
        return None if _text(values, field) else message
    return rule


def min_length(field: str, length: int, message: str) -> Rule:
    def rule(values):
        return None if len(_text(values, field)) >= length else message
    return rule


def matches(field: str, check: Callable[[Any], bool], message: str, optional: bool = False) -> Rule:
    """Pattern rule. ``optional`` fields are only checked when filled in."""
    def rule(values):
        text = _text(values, field)
        if not text and optional:
            return None
        return None if check(text) else message
    return rule


def positive(field: str, message: str) -> Rule:
    def rule(values):
        number = to_number(values.get(field), None)
        return None if number is not None and number > 0 else message
    return rule


def non_negative_int(field: str, message: str) -> Rule:
    def rule(values):
        number = to_number(values.get(field), None)
        if number is None or number < 0 or number != int(number):
            return message
        return None
    return rule


def reference_id(field: str, message: str) -> Rule:
    """A selected reference must be a numeric id; blank is left to ``required``."""
    def rule(values):
        text = _text(values, field)
        return None if not text or text.isdigit() else message
    return rule


def greater_than(field: str, other: str, message: str) -> Rule:
    """Cross-field numeric rule; silent while either side is blank or unparsable."""
    def rule(values):
        left = to_number(values.get(field), None)
        right = to_number(values.get(other), None)
        if left is None or right is None:
            return None
        return None if left > right else message
    return rule


def differs_from(field: str, other: str, message: str) -> Rule:
    def rule(values):
        value = values.get(field) or ""
        if not value:
            return None
        return message if value == (values.get(other) or "") else None
    return rule


def equals(field: str, other: str, message: str) -> Rule:
    def rule(values):
        return None if (values.get(field) or "") == (values.get(other) or "") else message
    return rule


def when(condition: Callable[[Mapping[str, Any]], bool], rule: Rule) -> Rule:
    def wrapped(values):
        return rule(values) if condition(values) else None
    return wrapped


def validate(values: Mapping[str, Any], rules: Iterable[Rule]) -> List[str]:
    errors: List[str] = []
    for rule in rules:
        message = rule(values)
        if message:
            errors.append(message)
    return errors


def join_errors(errors: Iterable[str]) -> str:
    return ", ".join(errors)


CHANGE_PASSWORD_RULES: List[Rule] = [
    required("currentPassword", "Current password is required"),
    required("newPassword", "New password is required"),
    when(lambda v: bool(v.get("newPassword")),
         min_length("newPassword", 6, "New password must be at least 6 characters long")),
    differs_from("newPassword", "currentPassword", "New password must be different from current password"),
    equals("confirmPassword", "newPassword", "New passwords do not match"),
]
