"""
Community membership lifecycle: join, leave and rejoin.

A membership row is never deleted by these operations. Leaving closes it
(left_at = now) and strips the user's community roles; rejoining reopens it.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError, NotFoundError
from app.models import Subdiscepto, SubdisceptoUser
from app.services import role_store
from app.services.permissions import Perm, PermSet
from app.services.roles import ROLE_COMMON, ROLE_COMMON_AFTER_REJOIN

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_membership(db: Session, sub_name: str, user_id: int) -> SubdisceptoUser | None:
    return db.get(SubdisceptoUser, (sub_name, user_id))


def is_member(db: Session, sub_name: str, user_id: int) -> bool:
    """True when the user has an open membership row in the community."""
    membership = get_membership(db, sub_name, user_id)
    return membership is not None and membership.left_at is None


def is_departed(db: Session, sub_name: str, user_id: int) -> bool:
    """True when the user had a membership and closed it."""
    membership = get_membership(db, sub_name, user_id)
    return membership is not None and membership.left_at is not None


def join(db: Session, community: Subdiscepto, user_id: int) -> None:
    """
    Insert an open membership and assign the community's common role.
    An existing row (closed or open) turns the join into a rejoin.
    """
    with transaction(db):
        if get_membership(db, community.name, user_id) is not None:
            rejoin(db, community, user_id)
            return
        db.add(SubdisceptoUser(subdiscepto=community.name, user_id=user_id, joined_at=_now()))
        try:
            db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError(f"User {user_id} already joined {community.name}") from e
        common = role_store.find_role(db, community.roledomain_id, ROLE_COMMON)
        role_store.assign(db, user_id, common.id)
        logger.info("User %s joined %s", user_id, community.name)


def leave(db: Session, community: Subdiscepto, user_id: int, caller_perms: PermSet) -> None:
    """
    Close the membership and remove every role the user holds in the community.
    If caller_perms carry common_after_rejoin the user keeps the
    common-after-rejoin role, so a later rejoin can restore common.
    """
    with transaction(db):
        membership = get_membership(db, community.name, user_id)
        if membership is None or membership.left_at is not None:
            raise NotFoundError(f"User {user_id} is not a member of {community.name}")
        membership.left_at = _now()
        db.flush()
        role_store.unassign_all(db, user_id, community.roledomain_id)
        if caller_perms.has(Perm.COMMON_AFTER_REJOIN):
            after_rejoin = role_store.find_role(db, community.roledomain_id, ROLE_COMMON_AFTER_REJOIN)
            role_store.assign(db, user_id, after_rejoin.id)
        logger.info("User %s left %s", user_id, community.name)


def rejoin(db: Session, community: Subdiscepto, user_id: int) -> None:
    """Reopen an existing membership; swap common-after-rejoin for common."""
    with transaction(db):
        membership = get_membership(db, community.name, user_id)
        if membership is None:
            raise NotFoundError(f"No membership of user {user_id} in {community.name} to reopen")
        membership.left_at = None
        db.flush()

        held = {r.name: r for r in role_store.list_user_roles(db, user_id, community.roledomain_id)}
        after_rejoin = held.get(ROLE_COMMON_AFTER_REJOIN)
        if after_rejoin is not None:
            role_store.unassign(db, user_id, after_rejoin.id)
            if ROLE_COMMON not in held:
                common = role_store.find_role(db, community.roledomain_id, ROLE_COMMON)
                role_store.assign(db, user_id, common.id)
        logger.info("User %s rejoined %s", user_id, community.name)
