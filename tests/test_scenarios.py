"""End-to-end scenarios: registration, community creation, membership and role management."""

from app.core.errors import MissingPermissions, PermissionDenied
from app.models import GLOBAL_ROLE_DOMAIN_ID, RoleDomain, Subdiscepto
from app.schemas.subdiscepto import SubdisceptoRequest
from app.services import membership, role_store
from app.services.permissions import Perm, PermSet
from support import PASSWORD, DatabaseTestCase


class ScenarioTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        # S1 and S2
        self.alice = self.register("Alice", "a@x.com")
        self.bob = self.register("Bob", "b@x.com")

    def create_cats(self):
        return self.discepto(self.alice).create_subdiscepto(SubdisceptoRequest(name="cats", public=True))


class TestRegistrationScenarios(ScenarioTestCase):
    def test_first_user_becomes_global_admin(self) -> None:
        roles = role_store.list_user_roles(self.db, self.alice.id, GLOBAL_ROLE_DOMAIN_ID)
        self.assertEqual(self.role_names(roles), ["admin", "common"])

    def test_second_user_is_not_admin(self) -> None:
        roles = role_store.list_user_roles(self.db, self.bob.id, GLOBAL_ROLE_DOMAIN_ID)
        self.assertEqual(self.role_names(roles), ["common"])

    def test_password_is_not_stored_in_clear(self) -> None:
        from app.models import User

        stored = self.db.get(User, self.alice.id).passwd_hash
        self.assertNotEqual(stored, PASSWORD)


class TestCommunityCreation(ScenarioTestCase):
    def test_creates_community_domain_and_owner_roles(self) -> None:
        cats = self.create_cats()
        row = self.db.get(Subdiscepto, "cats")
        self.assertIsNotNone(row)
        self.assertTrue(row.public)
        self.assertNotEqual(row.roledomain_id, GLOBAL_ROLE_DOMAIN_ID)
        self.assertIsNotNone(self.db.get(RoleDomain, row.roledomain_id))

        roles = role_store.list_user_roles(self.db, self.alice.id, cats.roledomain_id)
        self.assertEqual(self.role_names(roles), ["common", "admin"])
        after_rejoin = role_store.find_role(self.db, cats.roledomain_id, "common-after-rejoin")
        self.assertTrue(after_rejoin.preset)
        self.assertNotIn(after_rejoin.id, [r.id for r in roles])
        self.assertTrue(membership.is_member(self.db, "cats", self.alice.id))


class TestNonAdminCannotGrantAdmin(ScenarioTestCase):
    def test_assign_admin_denied_without_manage_role(self) -> None:
        self.create_cats()
        charlie = self.register("Charlie", "c@x.com")
        self.subdiscepto("cats", self.bob).add_member(self.bob)

        cats_as_bob = self.subdiscepto("cats", self.bob)
        admin = role_store.find_role(self.db, cats_as_bob.roledomain_id, "admin")
        with self.assertRaises(MissingPermissions) as ctx:
            cats_as_bob.roles.assign(charlie.id, admin)
        self.assertIn(Perm.MANAGE_ROLE, ctx.exception.missing)
        self.assertEqual(role_store.list_user_roles(self.db, charlie.id, cats_as_bob.roledomain_id), [])


class TestLeaveThenRejoin(ScenarioTestCase):
    def test_rejoin_restores_common(self) -> None:
        self.create_cats()
        self.subdiscepto("cats", self.bob).add_member(self.bob)
        self.subdiscepto("cats", self.bob).remove_member(self.bob)
        cats = self.subdiscepto("cats", self.bob)
        self.assertEqual(
            self.role_names(role_store.list_user_roles(self.db, self.bob.id, cats.roledomain_id)),
            ["common-after-rejoin"],
        )

        cats.add_member(self.bob)
        row = membership.get_membership(self.db, "cats", self.bob.id)
        self.assertIsNone(row.left_at)
        self.assertEqual(
            self.role_names(role_store.list_user_roles(self.db, self.bob.id, cats.roledomain_id)),
            ["common"],
        )


class TestCustomRoleEscalation(ScenarioTestCase):
    def test_community_context_cannot_grant_global_only_permission(self) -> None:
        cats = self.create_cats()
        mod = cats.roles.create_role("mod")
        with self.assertRaises(PermissionDenied) as ctx:
            cats.roles.set_permissions(mod, PermSet.of(Perm.BAN_USER_GLOBALLY))
        self.assertEqual(ctx.exception.missing, [Perm.BAN_USER_GLOBALLY])
        self.assertEqual(len(role_store.list_role_perms(self.db, mod.id)), 0)
