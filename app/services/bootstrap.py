"""Seeding of the global role domain and its preset roles."""

import logging

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models import DOMAIN_TYPE_DISCEPTO, GLOBAL_ROLE_DOMAIN_ID, RoleDomain
from app.services import role_store
from app.services.permissions import GLOBAL_ADMIN_PERMS, GLOBAL_COMMON_PERMS
from app.services.roles import ROLE_ADMIN, ROLE_COMMON

logger = logging.getLogger(__name__)

# Order matters: role ids follow creation order and role listings are ordered by id.
GLOBAL_PRESET_ROLES = (
    (ROLE_ADMIN, GLOBAL_ADMIN_PERMS),
    (ROLE_COMMON, GLOBAL_COMMON_PERMS),
)


def bootstrap_global_roles(db: Session) -> bool:
    """
    Create the global role domain (-123) with its preset admin and common roles.

    Idempotent: returns False and changes nothing when the domain already exists.
    """
    with transaction(db):
        if db.get(RoleDomain, GLOBAL_ROLE_DOMAIN_ID) is not None:
            return False
        role_store.create_role_domain(db, DOMAIN_TYPE_DISCEPTO, domain_id=GLOBAL_ROLE_DOMAIN_ID)
        for name, perms in GLOBAL_PRESET_ROLES:
            role_store.create_role(db, GLOBAL_ROLE_DOMAIN_ID, name, perms, preset=True)
    logger.info("Bootstrapped global role domain %s", GLOBAL_ROLE_DOMAIN_ID)
    return True
