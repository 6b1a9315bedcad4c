"""Error kinds raised by the core. Each carries the HTTP status the adapter maps it to."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.services.permissions import Perm

PERM_DENIED_MESSAGE = "Missing permissions to execute action"


class DisceptoError(Exception):
    """Base exception for Discepto core operations."""

    status_code = 500

    def __init__(self, message: str = "An error occurred") -> None:
        self.message = message
        super().__init__(message)


class PermissionDenied(DisceptoError):
    """Raised when the caller lacks the permissions an operation requires."""

    status_code = 403

    def __init__(
        self,
        missing: Iterable[Perm] = (),
        message: str = PERM_DENIED_MESSAGE,
    ) -> None:
        self.missing: list[Perm] = sorted(set(missing))
        super().__init__(message)


class MissingPermissions(PermissionDenied):
    """Raised by PermSet.require; `missing` lists every absent permission."""

    def __str__(self) -> str:
        return f"missing permissions: {', '.join(p.value for p in self.missing)}"


class PresetRoleError(PermissionDenied):
    """Raised when a preset role would be renamed, edited or deleted."""

    def __init__(self, role_name: str) -> None:
        self.role_name = role_name
        super().__init__(message=f"Role '{role_name}' is a preset role and can't be edited")


class NotFoundError(DisceptoError):
    status_code = 404


class AlreadyExistsError(DisceptoError):
    status_code = 409


class InvalidFormatError(DisceptoError):
    status_code = 400


class WeakPasswordError(InvalidFormatError):
    """Password is too short, too long, or lacks a letter, digit or special character."""


class BadContentLengthError(DisceptoError):
    status_code = 400


class TooManyTagsError(DisceptoError):
    status_code = 400


class OperationCancelled(DisceptoError):
    """The request deadline fired or the request was cancelled."""

    status_code = 499

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class InternalError(DisceptoError):
    status_code = 500
