"""Membership lifecycle: join, leave, rejoin and the role changes they carry."""

from app.core.errors import NotFoundError
from app.models import Subdiscepto, SubdisceptoUser
from app.schemas.subdiscepto import SubdisceptoRequest
from app.services import membership, role_store
from app.services.permissions import Perm, PermSet, SUB_COMMON_PERMS
from support import DatabaseTestCase


class MembershipTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = self.register("Alice")
        self.bob = self.register("Bob")
        cats = self.discepto(self.alice).create_subdiscepto(SubdisceptoRequest(name="cats"))
        self.domain = cats.roledomain_id

    @property
    def community(self) -> Subdiscepto:
        return self.db.get(Subdiscepto, "cats")

    def bob_roles(self) -> list[str]:
        return self.role_names(role_store.list_user_roles(self.db, self.bob.id, self.domain))

    def snapshot(self) -> tuple:
        row = membership.get_membership(self.db, "cats", self.bob.id)
        return (row.left_at is None, self.bob_roles())


class TestJoin(MembershipTestCase):
    def test_join_opens_membership_with_common(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        self.assertTrue(membership.is_member(self.db, "cats", self.bob.id))
        self.assertEqual(self.bob_roles(), ["common"])

    def test_join_existing_membership_rejoins(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        membership.join(self.db, self.community, self.bob.id)
        self.assertEqual(self.db.query(SubdisceptoUser).filter_by(user_id=self.bob.id).count(), 1)
        self.assertEqual(self.bob_roles(), ["common"])


class TestLeave(MembershipTestCase):
    def test_leave_keeps_only_common_after_rejoin(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        mod = role_store.create_role(self.db, self.domain, "mod", PermSet.of(Perm.BAN_USER))
        role_store.assign(self.db, self.bob.id, mod)

        membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        self.assertTrue(membership.is_departed(self.db, "cats", self.bob.id))
        self.assertEqual(self.bob_roles(), ["common-after-rejoin"])

    def test_leave_without_common_after_rejoin_leaves_nothing(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        membership.leave(self.db, self.community, self.bob.id, PermSet.of(Perm.READ_SUBDISCEPTO))
        self.assertEqual(self.bob_roles(), [])

    def test_leave_when_not_member(self) -> None:
        with self.assertRaises(NotFoundError):
            membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        membership.join(self.db, self.community, self.bob.id)
        membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        with self.assertRaises(NotFoundError):
            membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)

    def test_departed_member_loses_local_permissions(self) -> None:
        self.subdiscepto("cats", self.bob).add_member(self.bob)
        self.subdiscepto("cats", self.bob).remove_member(self.bob)
        self.assertEqual(self.subdiscepto("cats", self.bob).perms, PermSet.of(Perm.READ_SUBDISCEPTO))


class TestRejoin(MembershipTestCase):
    def test_rejoin_without_membership(self) -> None:
        with self.assertRaises(NotFoundError):
            membership.rejoin(self.db, self.community, self.bob.id)

    def test_rejoin_swaps_common_after_rejoin_for_common(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        membership.rejoin(self.db, self.community, self.bob.id)
        self.assertEqual(self.snapshot(), (True, ["common"]))

    def test_rejoin_is_idempotent(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        membership.rejoin(self.db, self.community, self.bob.id)
        once = self.snapshot()
        membership.rejoin(self.db, self.community, self.bob.id)
        self.assertEqual(self.snapshot(), once)

    def test_rejoin_does_not_duplicate_common(self) -> None:
        membership.join(self.db, self.community, self.bob.id)
        membership.leave(self.db, self.community, self.bob.id, SUB_COMMON_PERMS)
        common = role_store.find_role(self.db, self.domain, "common")
        role_store.assign(self.db, self.bob.id, common.id)
        membership.rejoin(self.db, self.community, self.bob.id)
        self.assertEqual(self.bob_roles(), ["common"])
