"""
auth/result.py -- Ok / Err values for expected service outcomes.

AuthService returns Ok(value) or Err(error) instead of raising for the
failures a client can cause (bad input, duplicate user, wrong password).
Exceptions stay reserved for infrastructure faults (store unreachable,
codec misconfigured), which propagate to the 500 handler.

Callers branch with isinstance:

    result = service.login(username, password)
    if isinstance(result, Err):
        raise result.error
    token = result.value.token
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from auth.errors import AuthError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: AuthError


Result = Union[Ok[T], Err]
