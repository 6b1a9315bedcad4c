"""Unit tests for the permission vocabulary and PermSet algebra."""

import unittest
from typing import get_type_hints

from app.core.errors import InvalidFormatError, MissingPermissions, PermissionDenied
from app.services.permissions import (
    ALL_PERMS,
    COMMUNITY_INHERITED_PERMS,
    EMPTY_PERMS,
    SUB_ADMIN_PERMS,
    SUB_COMMON_PERMS,
    Perm,
    PermSet,
)


class TestPermVocabulary(unittest.TestCase):
    def test_persisted_names_are_stable(self) -> None:
        self.assertEqual(len(Perm), 21)
        self.assertEqual(Perm("manage_global_role"), Perm.MANAGE_GLOBAL_ROLE)
        self.assertEqual(str(Perm.COMMON_AFTER_REJOIN), "common_after_rejoin")

    def test_parse_rejects_unknown_names(self) -> None:
        with self.assertRaises(InvalidFormatError):
            Perm.parse("root")

    def test_permset_accepts_names_and_members(self) -> None:
        self.assertEqual(PermSet(["login", Perm.BAN_USER]), PermSet.of(Perm.LOGIN, Perm.BAN_USER))


class TestPermSetAlgebra(unittest.TestCase):
    """A ⊆ A ∪ B; A ∩ B ⊆ A; require on present and absent permissions."""

    def setUp(self) -> None:
        self.a = PermSet.of(Perm.LOGIN, Perm.READ_ESSAY, Perm.BAN_USER)
        self.b = PermSet.of(Perm.BAN_USER, Perm.CREATE_VOTE)

    def test_union_contains_both(self) -> None:
        union = self.a.union(self.b)
        self.assertTrue(self.a.subset_of(union))
        self.assertTrue(self.b.subset_of(union))
        self.assertEqual(union, self.a | self.b)

    def test_intersection_is_subset(self) -> None:
        inter = self.a.intersect(self.b)
        self.assertTrue(inter.subset_of(self.a))
        self.assertTrue(inter.subset_of(self.b))
        self.assertEqual(inter, PermSet.of(Perm.BAN_USER))

    def test_require_present(self) -> None:
        PermSet.of(Perm.LOGIN).require(Perm.LOGIN)

    def test_require_missing_lists_the_permission(self) -> None:
        with self.assertRaises(MissingPermissions) as ctx:
            PermSet.of().require(Perm.LOGIN)
        self.assertEqual(ctx.exception.missing, [Perm.LOGIN])
        self.assertIsInstance(ctx.exception, PermissionDenied)
        self.assertEqual(ctx.exception.message, "Missing permissions to execute action")

    def test_require_lists_every_missing_permission(self) -> None:
        with self.assertRaises(MissingPermissions) as ctx:
            self.a.require(Perm.LOGIN, Perm.MANAGE_ROLE, Perm.CREATE_VOTE)
        self.assertEqual(ctx.exception.missing, [Perm.CREATE_VOTE, Perm.MANAGE_ROLE])

    def test_require_all(self) -> None:
        self.a.require_all(PermSet.of(Perm.LOGIN))
        with self.assertRaises(MissingPermissions):
            self.a.require_all(self.b)

    def test_list_is_lexical(self) -> None:
        self.assertEqual(self.a.names(), ["ban_user", "login", "read_essay"])
        self.assertEqual(list(self.a), self.a.list())

    def test_list_method_does_not_shadow_builtin_in_annotations(self) -> None:
        self.assertEqual(get_type_hints(PermSet.names)["return"], list[str])
        self.assertEqual(get_type_hints(PermSet.list)["return"], list[Perm])

    def test_empty_set(self) -> None:
        self.assertFalse(EMPTY_PERMS)
        self.assertEqual(len(EMPTY_PERMS), 0)
        self.assertTrue(EMPTY_PERMS.subset_of(self.a))

    def test_immutable_operations_return_new_sets(self) -> None:
        extended = self.a.with_perms(Perm.MANAGE_ROLE)
        self.assertNotIn(Perm.MANAGE_ROLE, self.a)
        self.assertIn(Perm.MANAGE_ROLE, extended)
        self.assertEqual(self.a - self.b, PermSet.of(Perm.LOGIN, Perm.READ_ESSAY))

    def test_hashable(self) -> None:
        self.assertEqual(len({self.a, PermSet(self.a)}), 1)


class TestPresetSets(unittest.TestCase):
    def test_community_sets_stay_inside_community_vocabulary(self) -> None:
        self.assertTrue(SUB_COMMON_PERMS.subset_of(SUB_ADMIN_PERMS))
        self.assertTrue(COMMUNITY_INHERITED_PERMS.subset_of(SUB_ADMIN_PERMS))
        self.assertNotIn(Perm.BAN_USER_GLOBALLY, SUB_ADMIN_PERMS)
        self.assertNotIn(Perm.MANAGE_GLOBAL_ROLE, SUB_ADMIN_PERMS)

    def test_all_perms(self) -> None:
        self.assertEqual(len(ALL_PERMS), len(Perm))
        self.assertTrue(SUB_ADMIN_PERMS.subset_of(ALL_PERMS))
