"""
auth/validation.py -- Input rules for registration and login.

Every check runs and every failure is collected, so a client fixing a form
sees all of its problems in one response. The functions return a
{field: [messages]} map; an empty map means the input is acceptable.

Email syntax checking and normalization use email-validator (the library
behind pydantic's EmailStr). Deliverability (DNS) checks are off: registration
must not depend on the network.
"""

from __future__ import annotations

import re

from email_validator import EmailNotValidError, validate_email

from auth.passwords import MAX_PASSWORD_BYTES

USERNAME_MIN = 3
USERNAME_MAX = 30
PASSWORD_MIN = 8

_USERNAME_RE = re.compile(r"[A-Za-z0-9_]+")


def normalize_email(email: str) -> str:
    """Return the canonical lowercase form of email. Raises EmailNotValidError."""
    info = validate_email(email.strip(), check_deliverability=False)
    return info.normalized.lower()


def password_problems(password: str) -> list[str]:
    problems: list[str] = []
    if len(password) < PASSWORD_MIN:
        problems.append(f"Password must be at least {PASSWORD_MIN} characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        problems.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    if not any(c.islower() for c in password):
        problems.append("Password must contain a lowercase letter.")
    if not any(c.isupper() for c in password):
        problems.append("Password must contain an uppercase letter.")
    if not any(c.isdigit() for c in password):
        problems.append("Password must contain a number.")
    # Any character that is not a letter or digit is a symbol, space included.
    if not any(not c.isalnum() for c in password):
        problems.append("Password must contain a symbol.")
    return problems


def registration_errors(username: str, password: str, email: str) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    name = username.strip()
    name_problems: list[str] = []
    if not USERNAME_MIN <= len(name) <= USERNAME_MAX:
        name_problems.append(f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters.")
    if name and not _USERNAME_RE.fullmatch(name):
        name_problems.append("Username can only contain letters, numbers and underscores.")
    if name_problems:
        errors["username"] = name_problems

    pw_problems = password_problems(password)
    if pw_problems:
        errors["password"] = pw_problems

    try:
        normalize_email(email)
    except EmailNotValidError:
        errors["email"] = ["Invalid email address."]

    return errors


def login_errors(username: str, password: str) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    if not username.strip():
        errors["username"] = ["Username is required."]
    if not password:
        errors["password"] = ["Password is required."]
    return errors
