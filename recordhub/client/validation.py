"""
Form validation run before a mutation is submitted
"""

import re
from typing import Any, Callable, Dict, List

from recordhub.errors import ValidationError
from recordhub.resources import ACCOUNTS, CONTACTS, FINANCING, TASKS, TICKETS, ResourceKind
from recordhub.utils import parse_number

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\D*(\d\D*){10,}$")

Form = Dict[str, Any]


def _blank(form: Form, name: str) -> bool:
    return not str(form.get(name) or "").strip()


def _required(*names: str) -> Callable[[Form], Dict[str, str]]:
    def check(form: Form) -> Dict[str, str]:
        return {name: f"{name} is required." for name in names if _blank(form, name)}
    return check


def _non_negative(*names: str) -> Callable[[Form], Dict[str, str]]:
    def check(form: Form) -> Dict[str, str]:
        return {
            name: f"{name} cannot be negative."
            for name in names
            if not _blank(form, name) and parse_number(form[name]) < 0
        }
    return check


def _email(name: str) -> Callable[[Form], Dict[str, str]]:
    def check(form: Form) -> Dict[str, str]:
        if not _blank(form, name) and not EMAIL_RE.match(str(form[name]).strip()):
            return {name: "Please enter a valid email address."}
        return {}
    return check


def _phone(name: str) -> Callable[[Form], Dict[str, str]]:
    def check(form: Form) -> Dict[str, str]:
        if not _blank(form, name) and not PHONE_RE.match(str(form[name])):
            return {name: "Please enter a valid phone number (at least 10 digits)."}
        return {}
    return check


RULES: Dict[str, List[Callable[[Form], Dict[str, str]]]] = {
    TICKETS.name: [_required("First Name", "Email Address"), _email("Email Address")],
    ACCOUNTS.name: [
        _required("Company", "Account Type"),
        _non_negative("Amount Due", "Billing Amount"),
    ],
    TASKS.name: [_required("Task Name")],
    CONTACTS.name: [_required("First Name", "Last Name"), _email("Email Address")],
    FINANCING.name: [_email("customer_email"), _phone("customer_phone")],
}


def field_errors(kind: ResourceKind, form: Form) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for rule in RULES.get(kind.name, []):
        for name, message in rule(form).items():
            errors.setdefault(name, message)
    return errors


def validate_form(kind: ResourceKind, form: Form) -> None:
    """Raise ValidationError carrying per-field messages if the form is invalid."""
    errors = field_errors(kind, form)
    if errors:
        raise ValidationError(
            f"{kind.label} form has {len(errors)} invalid field(s).", errors
        )
