"""Role-management service: manage gate, anti-escalation and preset immutability."""

from app.core.errors import (
    InvalidFormatError,
    MissingPermissions,
    NotFoundError,
    PermissionDenied,
    PresetRoleError,
)
from app.models import DOMAIN_TYPE_SUBDISCEPTO
from app.services import role_store
from app.services.permissions import EMPTY_PERMS, SUB_ADMIN_PERMS, Perm, PermSet
from app.services.roles import RolesHandle
from support import DatabaseTestCase


class RolesTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.domain = role_store.create_role_domain(self.db, DOMAIN_TYPE_SUBDISCEPTO)
        self.alice = self.register("Alice")
        self.bob = self.register("Bob")
        self.admin_id = role_store.create_role(self.db, self.domain, "admin", SUB_ADMIN_PERMS, preset=True)
        self.mod_id = role_store.create_role(
            self.db, self.domain, "mod", PermSet.of(Perm.BAN_USER, Perm.READ_SUBDISCEPTO)
        )

    def handle(self, perms: PermSet) -> RolesHandle:
        return RolesHandle(self.db, self.domain, perms, can_manage=perms.has(Perm.MANAGE_ROLE))

    def role(self, name: str):
        return role_store.find_role(self.db, self.domain, name)


class TestManageGate(RolesTestCase):
    def test_every_operation_requires_manage(self) -> None:
        roles = self.handle(PermSet.of(Perm.BAN_USER, Perm.READ_SUBDISCEPTO))
        mod = self.role("mod")
        calls = [
            roles.list_roles,
            lambda: roles.list_user_roles(self.bob.id),
            lambda: roles.get_role("mod"),
            lambda: roles.create_role("helper"),
            lambda: roles.set_permissions(mod, EMPTY_PERMS),
            lambda: roles.delete_role(mod),
            lambda: roles.assign(self.bob.id, mod),
            lambda: roles.unassign(self.bob.id, mod),
            lambda: roles.unassign_all(self.bob.id),
        ]
        for call in calls:
            with self.assertRaises(MissingPermissions) as ctx:
                call()
            self.assertEqual(ctx.exception.missing, [Perm.MANAGE_ROLE])
        self.assertEqual(self.role_names(role_store.list_roles(self.db, self.domain)), ["admin", "mod"])

    def test_global_handle_names_manage_global_role(self) -> None:
        roles = RolesHandle(self.db, self.domain, EMPTY_PERMS, False, manage_perm=Perm.MANAGE_GLOBAL_ROLE)
        with self.assertRaises(MissingPermissions) as ctx:
            roles.list_roles()
        self.assertEqual(ctx.exception.missing, [Perm.MANAGE_GLOBAL_ROLE])


class TestAntiEscalation(RolesTestCase):
    def setUp(self) -> None:
        super().setUp()
        # A manager that holds manage_role and ban_user, nothing else.
        self.roles = self.handle(PermSet.of(Perm.MANAGE_ROLE, Perm.BAN_USER, Perm.READ_SUBDISCEPTO))

    def test_set_permissions_above_context_is_denied(self) -> None:
        mod = self.role("mod")
        with self.assertRaises(MissingPermissions) as ctx:
            self.roles.set_permissions(mod, PermSet.of(Perm.BAN_USER, Perm.DELETE_SUBDISCEPTO))
        self.assertEqual(ctx.exception.missing, [Perm.DELETE_SUBDISCEPTO])
        self.assertEqual(
            role_store.list_role_perms(self.db, self.mod_id),
            PermSet.of(Perm.BAN_USER, Perm.READ_SUBDISCEPTO),
        )

    def test_set_permissions_within_context(self) -> None:
        self.roles.set_permissions(self.role("mod"), PermSet.of(Perm.BAN_USER))
        self.assertEqual(role_store.list_role_perms(self.db, self.mod_id), PermSet.of(Perm.BAN_USER))

    def test_cannot_edit_role_above_own_level(self) -> None:
        senior = role_store.create_role(self.db, self.domain, "senior", PermSet.of(Perm.DELETE_REPORT))
        with self.assertRaises(MissingPermissions):
            self.roles.set_permissions(role_store.get_role(self.db, senior), EMPTY_PERMS)
        with self.assertRaises(MissingPermissions):
            self.roles.delete_role(role_store.get_role(self.db, senior))
        self.assertEqual(role_store.list_role_perms(self.db, senior), PermSet.of(Perm.DELETE_REPORT))

    def test_assign_role_above_context_is_denied(self) -> None:
        with self.assertRaises(PermissionDenied) as ctx:
            self.roles.assign(self.bob.id, self.role("admin"))
        self.assertIn(Perm.DELETE_SUBDISCEPTO, ctx.exception.missing)
        self.assertEqual(role_store.list_user_roles(self.db, self.bob.id, self.domain), [])

    def test_unassign_role_above_context_is_denied(self) -> None:
        role_store.assign(self.db, self.bob.id, self.admin_id)
        with self.assertRaises(PermissionDenied):
            self.roles.unassign(self.bob.id, self.role("admin"))
        self.assertEqual(
            self.role_names(role_store.list_user_roles(self.db, self.bob.id, self.domain)), ["admin"]
        )

    def test_assign_and_unassign_within_context(self) -> None:
        mod = self.role("mod")
        self.roles.assign(self.bob.id, mod)
        self.assertEqual(self.role_names(self.roles.list_user_roles(self.bob.id)), ["mod"])
        self.roles.unassign(self.bob.id, mod)
        self.assertEqual(self.roles.list_user_roles(self.bob.id), [])

    def test_assign_to_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            self.roles.assign(4242, self.role("mod"))

    def test_role_from_other_domain_is_denied(self) -> None:
        other = role_store.create_role_domain(self.db, DOMAIN_TYPE_SUBDISCEPTO)
        foreign = role_store.get_role(self.db, role_store.create_role(self.db, other, "mod", EMPTY_PERMS))
        with self.assertRaises(PermissionDenied) as ctx:
            self.roles.assign(self.bob.id, foreign)
        self.assertEqual(ctx.exception.missing, [])
        self.assertEqual(ctx.exception.message, "Role 'mod' belongs to another role domain")
        self.assertEqual(role_store.list_user_roles(self.db, self.bob.id, other), [])

    def test_unassign_all(self) -> None:
        role_store.assign(self.db, self.bob.id, self.admin_id)
        role_store.assign(self.db, self.bob.id, self.mod_id)
        self.roles.unassign_all(self.bob.id)
        self.assertEqual(role_store.list_user_roles(self.db, self.bob.id, self.domain), [])


class TestCreateRole(RolesTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.roles = self.handle(SUB_ADMIN_PERMS)

    def test_creates_empty_non_preset_role(self) -> None:
        role = self.roles.create_role("helper")
        self.assertFalse(role.preset)
        self.assertEqual(role.domain, self.domain)
        self.assertEqual(self.roles.list_role_perms(role), EMPTY_PERMS)

    def test_rejects_bad_and_reserved_names(self) -> None:
        for name in ("", "has space", "x" * 65, "admin", "common", "common-after-rejoin"):
            with self.assertRaises(InvalidFormatError):
                self.roles.create_role(name)

    def test_duplicate_name(self) -> None:
        from app.core.errors import AlreadyExistsError

        with self.assertRaises(AlreadyExistsError):
            self.roles.create_role("mod")


class TestPresetImmutability(RolesTestCase):
    def test_preset_role_cannot_be_edited_or_deleted(self) -> None:
        roles = self.handle(SUB_ADMIN_PERMS)
        admin = self.role("admin")
        with self.assertRaises(PresetRoleError):
            roles.set_permissions(admin, EMPTY_PERMS)
        with self.assertRaises(PresetRoleError):
            roles.delete_role(admin)
        self.assertEqual(role_store.list_role_perms(self.db, self.admin_id), SUB_ADMIN_PERMS)

    def test_preset_error_is_a_denial(self) -> None:
        self.assertTrue(issubclass(PresetRoleError, PermissionDenied))
