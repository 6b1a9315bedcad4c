"""ORM models for role domains, roles, role permissions and user-role assignments."""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from app.models.base import Base

# Sentinel id of the single global role domain (compatibility with existing data).
GLOBAL_ROLE_DOMAIN_ID = -123

DOMAIN_TYPE_DISCEPTO = "discepto"
DOMAIN_TYPE_SUBDISCEPTO = "subdiscepto"


class RoleDomain(Base):
    """Namespace for roles: the global domain or one per community."""

    __tablename__ = "roledomains"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain_type = Column(String(32), nullable=False)


class Role(Base):
    """Named permission set inside a role domain; (domain, name) is unique."""

    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("domain", "name", name="roles_domain_name_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(
        Integer,
        ForeignKey("roledomains.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(64), nullable=False)
    preset = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"Role(id={self.id!r}, domain={self.domain!r}, name={self.name!r}, preset={self.preset!r})"


class RolePermission(Base):
    __tablename__ = "role_perms"

    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission = Column(String(64), primary_key=True)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
