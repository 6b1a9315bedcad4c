"""Shared fixtures: an in-memory SQLite database with the global roles seeded."""

import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.context import RequestContext, bind_request_context
from app.models import Base
from app.services.bootstrap import bootstrap_global_roles
from app.services.discepto import DisceptoHandle
from app.services.subdiscepto import SubdisceptoHandle
from app.services.users import UserHandle, register_user

PASSWORD = "Strong1!pass"


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


class DatabaseTestCase(unittest.TestCase):
    """Fresh seeded database per test; self.db is a session bound to a generous request deadline."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db: Session = self.SessionLocal()
        bind_request_context(self.db, RequestContext(timeout=60))
        bootstrap_global_roles(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def register(self, name: str, email: str | None = None) -> UserHandle:
        return register_user(self.db, name, email or f"{name.lower()}@x.com", PASSWORD)

    def discepto(self, user: UserHandle | None) -> DisceptoHandle:
        return DisceptoHandle(self.db, user)

    def subdiscepto(self, name: str, user: UserHandle | None) -> SubdisceptoHandle:
        return self.discepto(user).get_subdiscepto_handle(name)

    def role_names(self, roles) -> list[str]:
        return [r.name for r in roles]
