# academy/infrastructure/models.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON, TIMESTAMP, Boolean, Index, String, Text, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def new_id() -> str:
    return str(uuid.uuid4())


class AccountORM(Base):
    """Email/password credentials; the account id is the identity (JWT sub)."""
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    role: Mapped[str] = mapped_column(String(32), default="student")


class UserProfileORM(Base):
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    auth_provider: Mapped[str] = mapped_column(String(16), default="EMAIL")
    last_active_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    owner: Mapped[str] = mapped_column(String(36), index=True, nullable=False)

    def __repr__(self) -> str:
        return f"UserProfileORM(user_id={self.user_id!r}, email={self.email!r})"


class ModuleProgressORM(Base):
    __tablename__ = "module_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    module_id: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="NOT_STARTED")
    started_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    current_lesson_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    comprehension_checks: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    bookmarks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    owner: Mapped[str] = mapped_column(String(36), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),
        Index("progressByUser", "user_id", "module_id"),
    )

    def __repr__(self) -> str:
        return f"ModuleProgressORM(user_id={self.user_id!r}, module_id={self.module_id!r}, status={self.status!r})"


class UserNoteORM(Base):
    __tablename__ = "user_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    module_id: Mapped[str] = mapped_column(String(128), nullable=False)
    lesson_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    owner: Mapped[str] = mapped_column(String(36), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", "lesson_id", name="uq_note_user_lesson"),
        Index("notesByUserAndLesson", "user_id", "module_id", "lesson_id"),
    )


class LearningStateORM(Base):
    __tablename__ = "learning_states"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    module_id: Mapped[str] = mapped_column(String(128), nullable=False)
    last_context: Mapped[str | None] = mapped_column(Text, nullable=True)
    topics_explained: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    identified_gaps: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    owner: Mapped[str] = mapped_column(String(36), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_learning_state_user_module"),
        Index("learningStateByUser", "user_id", "module_id"),
    )


class ExerciseSubmissionORM(Base):
    __tablename__ = "exercise_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    module_id: Mapped[str] = mapped_column(String(128), nullable=False)
    exercise_id: Mapped[str] = mapped_column(String(128), nullable=False)
    form_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    submitted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    owner: Mapped[str] = mapped_column(String(36), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", "exercise_id", name="uq_submission_user_exercise"),
        Index("submissionsByUser", "user_id", "module_id", "exercise_id"),
    )


__all__ = [
    "Base",
    "AccountORM",
    "UserProfileORM",
    "ModuleProgressORM",
    "UserNoteORM",
    "LearningStateORM",
    "ExerciseSubmissionORM",
]
