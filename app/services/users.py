"""User registration, credential check and the per-user handle."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import (
    AlreadyExistsError,
    InvalidFormatError,
    NotFoundError,
    PermissionDenied,
    WeakPasswordError,
)
from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    hash_password,
    is_strong_password,
    validate_email,
    verify_password,
)
from app.models import GLOBAL_ROLE_DOMAIN_ID, User
from app.schemas.user import UserDetail, UserView
from app.services import role_store
from app.services.roles import ROLE_ADMIN, ROLE_COMMON

logger = logging.getLogger(__name__)


class UserHandle:
    """
    Capability to act as one user. Obtained after the caller has been
    identified (registration, credential check or a verified token).
    """

    def __init__(self, db: Session, user_id: int, can_read: bool = True, can_delete: bool = True) -> None:
        self.db = db
        self.id = user_id
        self.can_read = can_read
        self.can_delete = can_delete

    def read(self) -> UserDetail:
        if not self.can_read:
            raise PermissionDenied()
        user = self.db.get(User, self.id)
        if user is None:
            raise NotFoundError(f"User {self.id} not found")
        return UserDetail.model_validate(user)

    def delete(self) -> None:
        """Delete this user; roles, memberships, essays and notifications go with it."""
        if not self.can_delete:
            raise PermissionDenied()
        delete_user(self.db, self.id)

    def __repr__(self) -> str:
        return f"UserHandle(id={self.id!r})"


def delete_user(db: Session, user_id: int) -> None:
    with transaction(db):
        result = db.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            raise NotFoundError(f"User {user_id} not found")
    logger.info("Deleted user %s", user_id)


def register_user(db: Session, name: str, email: str, password: str) -> UserHandle:
    """
    Create a user and assign the global common role; the first user ever
    registered also receives the global admin role. One transaction.
    """
    name = name.strip()
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        raise InvalidFormatError("Invalid name length")
    if not validate_email(email):
        raise InvalidFormatError("Invalid email format")
    if not is_strong_password(password):
        raise WeakPasswordError(
            "Password must be 8-64 characters with a letter, a digit and a special character"
        )
    passwd_hash = hash_password(password)

    with transaction(db):
        user = User(name=name, email=email, passwd_hash=passwd_hash)
        db.add(user)
        try:
            db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError("Email already used") from e

        users_count = db.execute(select(func.count()).select_from(User)).scalar_one()
        if users_count == 1:
            admin = role_store.find_role(db, GLOBAL_ROLE_DOMAIN_ID, ROLE_ADMIN)
            role_store.assign(db, user.id, admin.id)
        common = role_store.find_role(db, GLOBAL_ROLE_DOMAIN_ID, ROLE_COMMON)
        role_store.assign(db, user.id, common.id)
        user_id = user.id

    logger.info("Registered user %s (first user: %s)", user_id, users_count == 1)
    return UserHandle(db, user_id)


def authenticate(db: Session, email: str, password: str) -> UserHandle:
    """Check credentials; PermissionDenied on unknown email or wrong password."""
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None or not verify_password(password, user.passwd_hash):
        raise PermissionDenied(message="Invalid email or password")
    return UserHandle(db, user.id)


def get_user_handle(db: Session, user_id: int) -> UserHandle:
    if db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    return UserHandle(db, user_id)


def read_public_user(db: Session, user_id: int) -> UserView:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return UserView.model_validate(user)
