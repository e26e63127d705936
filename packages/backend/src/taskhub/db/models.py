"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic migrations mirror these models.

Key concepts:
- Integer primary keys (clients address resources as /projects/42)
- Portable column types only, so the same models run on PostgreSQL
  and on SQLite in tests
- Python-side timestamp defaults, so values are available right after
  flush without a refresh round-trip (matters under AsyncSession)
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    """The closed set of user roles.

    Learn: roles arrive as strings (JWT claims, request bodies). Anything
    outside this enum is treated as "no role" by the permission engine,
    which then denies — see taskhub.auth.permissions.
    """

    USER = "user"
    MANAGER = "manager"
    DEVELOPER = "developer"

    @classmethod
    def parse(cls, value: object) -> Optional["Role"]:
        """Map a raw claim to a Role, or None when it isn't one."""
        try:
            return cls(value)
        except ValueError:
            return None


# ══════════════════════════════════════════════════════════════
# Identity: users + refresh tokens
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A registered account.

    Learn: role is stored as a plain string column and converted to the
    Role enum at the edges. The password hash never leaves the service
    layer — API schemas don't have a field for it.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.USER.value
    )  # user, manager, developer
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    projects: Mapped[list["Project"]] = relationship(
        back_populates="owner", passive_deletes=True
    )
    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(
        back_populates="user", passive_deletes=True
    )


class RefreshToken(Base):
    """Server-side record of an issued refresh token.

    Learn: the refresh JWT is signed (so it can't be forged) AND stored
    (so it can be revoked). A token is valid only while its row exists and
    expires_at hasn't passed. Rows are deleted on use — single-use tokens.
    """

    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("idx_refresh_tokens_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="refresh_tokens")


# ══════════════════════════════════════════════════════════════
# Work: projects + tasks
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """A project owned by exactly one manager, for its whole lifetime."""

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_owner", "owner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    owner: Mapped["User"] = relationship(back_populates="projects")
    tasks: Mapped[list["Task"]] = relationship(
        back_populates="project", passive_deletes=True
    )


class Task(Base):
    """A unit of work inside a project.

    Learn: tasks have no ACL of their own. Who may see or touch a task is
    derived from project.owner_id (managers) and assigned_to_id
    (developers), so authorization always loads the task WITH its project.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_project", "project_id"),
        Index("idx_tasks_assignee", "assigned_to_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    assigned_to_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    created_by_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    project: Mapped["Project"] = relationship(back_populates="tasks")
    assigned_to: Mapped[Optional["User"]] = relationship(
        foreign_keys=[assigned_to_id]
    )
    created_by: Mapped["User"] = relationship(foreign_keys=[created_by_id])
