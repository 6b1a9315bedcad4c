"""
Permission algebra over the closed permission vocabulary.

A PermSet is an immutable set of Perm values. The string values of Perm are
the names persisted in role_perms.permission and must not change.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

from app.core.errors import InvalidFormatError, MissingPermissions


class Perm(str, Enum):
    LOGIN = "login"
    CREATE_SUBDISCEPTO = "create_subdiscepto"
    READ_SUBDISCEPTO = "read_subdiscepto"
    UPDATE_SUBDISCEPTO = "update_subdiscepto"
    DELETE_SUBDISCEPTO = "delete_subdiscepto"
    DELETE_USER = "delete_user"
    READ_ESSAY = "read_essay"
    CREATE_ESSAY = "create_essay"
    DELETE_ESSAY = "delete_essay"
    CHANGE_RANKING = "change_ranking"
    COMMON_AFTER_REJOIN = "common_after_rejoin"
    CREATE_REPORT = "create_report"
    VIEW_REPORT = "view_report"
    DELETE_REPORT = "delete_report"
    USE_LOCAL_PERMISSIONS = "use_local_permissions"
    MANAGE_GLOBAL_ROLE = "manage_global_role"
    MANAGE_ROLE = "manage_role"
    BAN_USER_GLOBALLY = "ban_user_globally"
    BAN_USER = "ban_user"
    CREATE_VOTE = "create_vote"
    DELETE_VOTE = "delete_vote"

    @classmethod
    def parse(cls, value: "str | Perm") -> "Perm":
        """Return the Perm named by value; InvalidFormatError if it is not in the vocabulary."""
        if isinstance(value, Perm):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidFormatError(f"Unknown permission: {value!r}") from None

    def __str__(self) -> str:
        return self.value


class PermSet:
    """Immutable set of permissions with union, intersection and subset checks."""

    __slots__ = ("_perms",)

    def __init__(self, perms: Iterable["str | Perm"] = ()) -> None:
        self._perms: frozenset[Perm] = frozenset(Perm.parse(p) for p in perms)

    @classmethod
    def of(cls, *perms: "str | Perm") -> "PermSet":
        return cls(perms)

    def has(self, perm: Perm) -> bool:
        return perm in self._perms

    def require(self, *perms: Perm) -> None:
        """Raise MissingPermissions naming every perm in perms that this set lacks."""
        missing = [p for p in perms if p not in self._perms]
        if missing:
            raise MissingPermissions(missing)

    def require_all(self, other: "PermSet") -> None:
        """Raise MissingPermissions unless other is a subset of this set."""
        self.require(*other.list())

    def subset_of(self, other: "PermSet") -> bool:
        return self._perms <= other._perms

    def union(self, other: "PermSet") -> "PermSet":
        return PermSet(self._perms | other._perms)

    def intersect(self, other: "PermSet") -> "PermSet":
        return PermSet(self._perms & other._perms)

    def difference(self, other: "PermSet") -> "PermSet":
        return PermSet(self._perms - other._perms)

    def with_perms(self, *perms: Perm) -> "PermSet":
        return PermSet(self._perms.union(perms))

    def list(self) -> list[Perm]:
        """Permissions in lexical order of their names."""
        return sorted(self._perms, key=lambda p: p.value)

    def names(self) -> list[str]:
        return [p.value for p in self.list()]

    __or__ = union
    __and__ = intersect
    __sub__ = difference

    def __le__(self, other: "PermSet") -> bool:
        return self.subset_of(other)

    def __contains__(self, perm: object) -> bool:
        return perm in self._perms

    def __iter__(self) -> Iterator[Perm]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._perms)

    def __bool__(self) -> bool:
        return bool(self._perms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermSet):
            return NotImplemented
        return self._perms == other._perms

    def __hash__(self) -> int:
        return hash(self._perms)

    def __repr__(self) -> str:
        return f"PermSet({self.names()!r})"


EMPTY_PERMS = PermSet()

ALL_PERMS = PermSet(Perm)

# Permissions that exist inside a community. Global permissions with these
# names are OR-ed into a user's community permissions.
COMMUNITY_INHERITED_PERMS = PermSet.of(
    Perm.READ_SUBDISCEPTO,
    Perm.UPDATE_SUBDISCEPTO,
    Perm.CREATE_ESSAY,
    Perm.DELETE_ESSAY,
    Perm.BAN_USER,
    Perm.DELETE_SUBDISCEPTO,
    Perm.CHANGE_RANKING,
    Perm.MANAGE_ROLE,
    Perm.COMMON_AFTER_REJOIN,
    Perm.VIEW_REPORT,
    Perm.DELETE_REPORT,
)

# Preset community roles. SUB_ADMIN_PERMS is also the owner archetype checked
# (by exact match) before a community can be deleted.
SUB_ADMIN_PERMS = COMMUNITY_INHERITED_PERMS.with_perms(Perm.CREATE_REPORT)
SUB_COMMON_PERMS = PermSet.of(
    Perm.READ_SUBDISCEPTO,
    Perm.CREATE_ESSAY,
    Perm.COMMON_AFTER_REJOIN,
    Perm.CREATE_REPORT,
)
SUB_COMMON_AFTER_REJOIN_PERMS = PermSet.of(Perm.COMMON_AFTER_REJOIN)

# Preset global roles.
GLOBAL_ADMIN_PERMS = ALL_PERMS
GLOBAL_COMMON_PERMS = PermSet.of(
    Perm.USE_LOCAL_PERMISSIONS,
    Perm.CREATE_VOTE,
    Perm.DELETE_VOTE,
)
