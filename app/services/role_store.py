"""
Persistence for role domains, roles, their permission sets and user-role assignments.

No authorization happens here: callers (the role-management service and the
scope handles) check permissions before calling in. Every write runs inside
transaction(), so it joins the caller's transaction when there is one.
"""

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError, NotFoundError
from app.models import Role, RoleDomain, RolePermission, UserRole
from app.services.permissions import PermSet
from app.services.resolver import perms_from_names


def create_role_domain(db: Session, domain_type: str, domain_id: int | None = None) -> int:
    """Insert a role domain and return its id (auto-allocated unless domain_id is given)."""
    with transaction(db):
        domain = RoleDomain(id=domain_id, domain_type=domain_type)
        db.add(domain)
        db.flush()
        return domain.id


def delete_role_domain(db: Session, domain_id: int) -> None:
    with transaction(db):
        db.execute(delete(RoleDomain).where(RoleDomain.id == domain_id))


def list_roles(db: Session, domain_id: int) -> list[Role]:
    stmt = select(Role).where(Role.domain == domain_id).order_by(Role.id)
    return list(db.execute(stmt).scalars())


def list_user_roles(db: Session, user_id: int, domain_id: int) -> list[Role]:
    stmt = (
        select(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(Role.domain == domain_id, UserRole.user_id == user_id)
        .order_by(Role.id)
    )
    return list(db.execute(stmt).scalars())


def find_role(db: Session, domain_id: int, name: str) -> Role:
    stmt = select(Role).where(Role.domain == domain_id, Role.name == name)
    role = db.execute(stmt).scalar_one_or_none()
    if role is None:
        raise NotFoundError(f"Role '{name}' not found")
    return role


def get_role(db: Session, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError(f"Role {role_id} not found")
    return role


def list_role_perms(db: Session, role_id: int) -> PermSet:
    stmt = select(RolePermission.permission).where(RolePermission.role_id == role_id)
    return perms_from_names(db.execute(stmt).scalars())


def create_role(
    db: Session,
    domain_id: int,
    name: str,
    perms: PermSet,
    preset: bool = False,
) -> int:
    """Insert a role and its permission rows atomically. AlreadyExistsError on (domain, name) conflict."""
    with transaction(db):
        role = Role(domain=domain_id, name=name, preset=preset)
        db.add(role)
        try:
            db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError(f"Role '{name}' already exists") from e
        set_permissions(db, role.id, perms)
        return role.id


def set_permissions(db: Session, role_id: int, perms: PermSet) -> None:
    """Replace the role's permission set (delete then insert)."""
    with transaction(db):
        db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        db.add_all(RolePermission(role_id=role_id, permission=p.value) for p in perms)
        db.flush()


def delete_role(db: Session, role_id: int) -> None:
    """Delete the role together with its permission rows and assignments."""
    with transaction(db):
        db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        db.execute(delete(UserRole).where(UserRole.role_id == role_id))
        db.execute(delete(Role).where(Role.id == role_id))


def assign(db: Session, user_id: int, role_id: int) -> None:
    """Assign role to user. Assigning an already assigned role is a no-op."""
    with transaction(db):
        if db.get(UserRole, (user_id, role_id)) is not None:
            return
        db.add(UserRole(user_id=user_id, role_id=role_id))
        try:
            db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError("Role assignment conflict") from e


def unassign(db: Session, user_id: int, role_id: int) -> None:
    with transaction(db):
        db.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
            )
        )


def unassign_all(db: Session, user_id: int, domain_id: int) -> None:
    """Remove every role the user holds in the given domain."""
    with transaction(db):
        domain_roles = select(Role.id).where(Role.domain == domain_id)
        db.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id.in_(domain_roles),
            )
        )
