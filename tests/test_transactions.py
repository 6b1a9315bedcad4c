"""Transaction primitive: nesting, rollback and request cancellation."""

import time
import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.core.context import RequestContext, bind_request_context
from app.core.database import exec_tx, transaction
from app.core.errors import (
    InternalError,
    NotFoundError,
    OperationCancelled,
    PermissionDenied,
)
from app.models import DOMAIN_TYPE_SUBDISCEPTO, Role, RoleDomain
from app.services import role_store
from app.services.permissions import EMPTY_PERMS
from support import DatabaseTestCase


class TestTransactionNesting(DatabaseTestCase):
    def domains(self) -> int:
        return self.db.query(RoleDomain).count()

    def test_outermost_commits(self) -> None:
        before = self.domains()
        exec_tx(self.db, lambda tx: role_store.create_role_domain(tx, DOMAIN_TYPE_SUBDISCEPTO))
        self.db.rollback()
        self.assertEqual(self.domains(), before + 1)

    def test_inner_block_does_not_commit(self) -> None:
        before = self.domains()
        with self.assertRaises(NotFoundError):
            with transaction(self.db):
                # create_role_domain opens a nested block of its own.
                role_store.create_role_domain(self.db, DOMAIN_TYPE_SUBDISCEPTO)
                raise NotFoundError("boom")
        self.assertEqual(self.domains(), before)

    def test_error_rolls_back_all_writes(self) -> None:
        def body(tx):
            domain = role_store.create_role_domain(tx, DOMAIN_TYPE_SUBDISCEPTO)
            role_store.create_role(tx, domain, "mod", EMPTY_PERMS)
            raise PermissionDenied()

        before = self.domains()
        with self.assertRaises(PermissionDenied):
            exec_tx(self.db, body)
        self.assertEqual(self.domains(), before)
        self.assertEqual(self.db.query(Role).filter_by(name="mod").count(), 0)

    def test_non_discepto_errors_propagate_after_rollback(self) -> None:
        before = self.domains()
        with self.assertRaises(ValueError):
            with transaction(self.db):
                role_store.create_role_domain(self.db, DOMAIN_TYPE_SUBDISCEPTO)
                raise ValueError("bad")
        self.assertEqual(self.domains(), before)

    def test_returns_body_result(self) -> None:
        self.assertEqual(exec_tx(self.db, lambda tx: 42), 42)


class TestCancellation(DatabaseTestCase):
    def test_cancelled_context_blocks_statements(self) -> None:
        ctx = RequestContext(timeout=60)
        bind_request_context(self.db, ctx)
        ctx.cancel()
        with self.assertRaises(OperationCancelled):
            role_store.list_roles(self.db, -123)

    def test_cancel_during_body_rolls_back(self) -> None:
        ctx = RequestContext(timeout=60)
        bind_request_context(self.db, ctx)

        def body(tx):
            role_store.create_role_domain(tx, DOMAIN_TYPE_SUBDISCEPTO)
            ctx.cancel()

        with self.assertRaises(OperationCancelled):
            exec_tx(self.db, body)
        bind_request_context(self.db, RequestContext(timeout=60))
        self.assertEqual(self.db.query(RoleDomain).count(), 1)

    def test_deadline_expires(self) -> None:
        ctx = RequestContext(timeout=0.01)
        time.sleep(0.02)
        self.assertTrue(ctx.cancelled)
        self.assertEqual(ctx.remaining(), 0.0)
        with self.assertRaises(OperationCancelled):
            ctx.check()

    def test_cancelled_is_its_own_kind(self) -> None:
        self.assertEqual(OperationCancelled.status_code, 499)
        self.assertFalse(issubclass(OperationCancelled, PermissionDenied))
        self.assertFalse(issubclass(OperationCancelled, NotFoundError))


class TestStorageErrors(unittest.TestCase):
    """Storage failures surface as InternalError, a PostgreSQL query_canceled as OperationCancelled."""

    def session(self) -> MagicMock:
        session = MagicMock()
        session.info = {}
        session.get_bind.return_value.dialect.name = "sqlite"
        return session

    def test_operational_error_becomes_internal(self) -> None:
        session = self.session()
        with self.assertLogs("app.core.database", level="ERROR"):
            with self.assertRaises(InternalError):
                with transaction(session):
                    raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_query_canceled_becomes_cancelled(self) -> None:
        session = self.session()
        orig = Exception("canceling statement due to statement timeout")
        orig.pgcode = "57014"
        with self.assertRaises(OperationCancelled):
            with transaction(session):
                raise OperationalError("SELECT 1", {}, orig)
        session.rollback.assert_called_once()

    def test_commit_on_success(self) -> None:
        session = self.session()
        with transaction(session):
            with transaction(session):
                pass
            session.commit.assert_not_called()
        session.commit.assert_called_once()
        self.assertEqual(session.info["tx_depth"], 0)
