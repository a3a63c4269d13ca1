from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import (
    AccountORM, UserProfileORM, ModuleProgressORM, UserNoteORM,
    LearningStateORM, ExerciseSubmissionORM,
)
from ..domain.entities import (
    User, UserProfile, ModuleProgress, ModuleStatus, UserNote, LearningState,
    ExerciseSubmission, SubmissionStatus, AuthProvider,
)
from ..domain.errors import (
    AuthenticationRequired, DuplicateRecord, RemoteReadError, RemoteWriteError, RecordNotFound,
)
from ..application.use_cases.register_user import IUserRepository
from ..application.use_cases.track_progress import IProgressRepository

logger = structlog.get_logger(__name__)


def to_domain(u: AccountORM) -> User:
    return User(id=u.id, email=u.email, role=u.role)


def progress_to_domain(row: ModuleProgressORM) -> ModuleProgress:
    return ModuleProgress(
        id=row.id,
        user_id=row.user_id,
        module_id=row.module_id,
        status=ModuleStatus(row.status or ModuleStatus.NOT_STARTED.value),
        started_at=row.started_at,
        completed_at=row.completed_at,
        current_lesson_id=row.current_lesson_id,
        comprehension_checks=row.comprehension_checks,
        bookmarks=[b for b in (row.bookmarks or []) if b is not None],
    )


def profile_to_domain(row: UserProfileORM) -> UserProfile:
    return UserProfile(
        user_id=row.user_id,
        email=row.email,
        name=row.name,
        avatar_url=row.avatar_url,
        auth_provider=AuthProvider(row.auth_provider),
        last_active_at=row.last_active_at,
    )


def note_to_domain(row: UserNoteORM) -> UserNote:
    return UserNote(id=row.id, user_id=row.user_id, module_id=row.module_id,
                    lesson_id=row.lesson_id, content=row.content)


def learning_state_to_domain(row: LearningStateORM) -> LearningState:
    return LearningState(
        id=row.id,
        user_id=row.user_id,
        module_id=row.module_id,
        last_context=row.last_context,
        topics_explained=list(row.topics_explained or []),
        identified_gaps=list(row.identified_gaps or []),
    )


def submission_to_domain(row: ExerciseSubmissionORM) -> ExerciseSubmission:
    return ExerciseSubmission(
        id=row.id,
        user_id=row.user_id,
        module_id=row.module_id,
        exercise_id=row.exercise_id,
        form_data=dict(row.form_data or {}),
        status=SubmissionStatus(row.status),
        updated_at=row.updated_at,
        submitted_at=row.submitted_at,
    )


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(AccountORM).filter(AccountORM.email == email).first()
        return to_domain(row) if row else None

    def create(self, email: str, password_hash: str, role: str = "student") -> User:
        row = AccountORM(email=email, password_hash=password_hash, role=role)
        self.db.add(row); self.db.flush()
        profile = UserProfileORM(user_id=row.id, email=email, owner=row.id,
                                 auth_provider=AuthProvider.EMAIL.value)
        self.db.add(profile); self.db.commit(); self.db.refresh(row)
        return to_domain(row)


class OwnedRepository:
    """Base for repositories whose every query is scoped to a single owner.

    The owner is the authenticated identity; rows belonging to anyone else
    are invisible, which is how row-level authorization is enforced.
    """

    def __init__(self, db: Session, owner: str | None):
        self.db = db
        self.owner = owner

    def _require_owner(self) -> str:
        if not self.owner:
            raise AuthenticationRequired("no signed-in identity")
        return self.owner

    def _fetch(self, stmt, one: bool):
        self._require_owner()
        try:
            result = self.db.execute(stmt).scalars()
            return result.first() if one else result.all()
        except SQLAlchemyError as e:
            logger.error("remote_read_failed", owner=self.owner, error=str(e))
            raise RemoteReadError("records could not be loaded") from e

    def _first(self, stmt):
        return self._fetch(stmt, one=True)

    def _all(self, stmt):
        return self._fetch(stmt, one=False)

    def _write(self, row):
        self._require_owner()
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("remote_write_conflict", owner=self.owner, table=row.__tablename__, error=str(e))
            raise DuplicateRecord(f"{row.__tablename__} record already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("remote_write_failed", owner=self.owner, table=row.__tablename__, error=str(e))
            raise RemoteWriteError(f"{row.__tablename__} could not be saved") from e
        return row


class ProgressRepository(OwnedRepository, IProgressRepository):
    def progress_by_user(self) -> list[ModuleProgress]:
        owner = self._require_owner()
        stmt = (select(ModuleProgressORM)
                .where(ModuleProgressORM.owner == owner, ModuleProgressORM.user_id == owner)
                .order_by(ModuleProgressORM.module_id))
        return [progress_to_domain(r) for r in self._all(stmt)]

    def _get_row(self, module_id: str) -> ModuleProgressORM | None:
        owner = self._require_owner()
        stmt = select(ModuleProgressORM).where(
            ModuleProgressORM.owner == owner,
            ModuleProgressORM.user_id == owner,
            ModuleProgressORM.module_id == module_id,
        )
        return self._first(stmt)

    def get(self, module_id: str) -> ModuleProgress | None:
        row = self._get_row(module_id)
        return progress_to_domain(row) if row else None

    def create(self, module_id: str, **fields) -> ModuleProgress:
        owner = self._require_owner()
        status = fields.pop("status", ModuleStatus.NOT_STARTED)
        row = ModuleProgressORM(user_id=owner, owner=owner, module_id=module_id,
                                status=ModuleStatus(status).value,
                                bookmarks=list(fields.pop("bookmarks", [])), **fields)
        return progress_to_domain(self._write(row))

    def update(self, module_id: str, **changes) -> ModuleProgress:
        row = self._get_row(module_id)
        if row is None:
            raise RecordNotFound(f"no progress for module {module_id}")
        for name, value in changes.items():
            if name == "status":
                value = ModuleStatus(value).value
            elif name == "bookmarks":
                value = list(value)
            setattr(row, name, value)
        return progress_to_domain(self._write(row))


class ProfileRepository(OwnedRepository):
    def get(self) -> UserProfile:
        owner = self._require_owner()
        row = self._first(select(UserProfileORM).where(UserProfileORM.owner == owner))
        if row is None:
            raise RecordNotFound("profile not found")
        return profile_to_domain(row)

    def update(self, **changes) -> UserProfile:
        owner = self._require_owner()
        row = self._first(select(UserProfileORM).where(UserProfileORM.owner == owner))
        if row is None:
            raise RecordNotFound("profile not found")
        for name, value in changes.items():
            # user_id and owner are immutable once created
            if name in ("user_id", "owner"):
                continue
            setattr(row, name, value)
        return profile_to_domain(self._write(row))

    def touch(self) -> UserProfile:
        return self.update(last_active_at=datetime.now(timezone.utc))


class NoteRepository(OwnedRepository):
    def _get_row(self, module_id: str, lesson_id: str) -> UserNoteORM | None:
        owner = self._require_owner()
        stmt = select(UserNoteORM).where(
            UserNoteORM.owner == owner,
            UserNoteORM.user_id == owner,
            UserNoteORM.module_id == module_id,
            UserNoteORM.lesson_id == lesson_id,
        )
        return self._first(stmt)

    def get(self, module_id: str, lesson_id: str) -> UserNote | None:
        row = self._get_row(module_id, lesson_id)
        return note_to_domain(row) if row else None

    def list_for_module(self, module_id: str) -> list[UserNote]:
        owner = self._require_owner()
        stmt = (select(UserNoteORM)
                .where(UserNoteORM.owner == owner, UserNoteORM.user_id == owner,
                       UserNoteORM.module_id == module_id)
                .order_by(UserNoteORM.lesson_id))
        return [note_to_domain(r) for r in self._all(stmt)]

    def put(self, module_id: str, lesson_id: str, content: str) -> UserNote:
        owner = self._require_owner()
        row = self._get_row(module_id, lesson_id)
        if row is None:
            row = UserNoteORM(user_id=owner, owner=owner, module_id=module_id, lesson_id=lesson_id,
                              content=content)
        else:
            row.content = content
        return note_to_domain(self._write(row))


class LearningStateRepository(OwnedRepository):
    def _get_row(self, module_id: str) -> LearningStateORM | None:
        owner = self._require_owner()
        stmt = select(LearningStateORM).where(
            LearningStateORM.owner == owner,
            LearningStateORM.user_id == owner,
            LearningStateORM.module_id == module_id,
        )
        return self._first(stmt)

    def get(self, module_id: str) -> LearningState | None:
        row = self._get_row(module_id)
        return learning_state_to_domain(row) if row else None

    def put(self, module_id: str, last_context: str | None,
            topics_explained: list[str], identified_gaps: list[str]) -> LearningState:
        owner = self._require_owner()
        row = self._get_row(module_id)
        if row is None:
            row = LearningStateORM(user_id=owner, owner=owner, module_id=module_id)
        row.last_context = last_context
        row.topics_explained = list(topics_explained)
        row.identified_gaps = list(identified_gaps)
        return learning_state_to_domain(self._write(row))


class SubmissionRepository(OwnedRepository):
    def _get_row(self, module_id: str, exercise_id: str) -> ExerciseSubmissionORM | None:
        owner = self._require_owner()
        stmt = select(ExerciseSubmissionORM).where(
            ExerciseSubmissionORM.owner == owner,
            ExerciseSubmissionORM.user_id == owner,
            ExerciseSubmissionORM.module_id == module_id,
            ExerciseSubmissionORM.exercise_id == exercise_id,
        )
        return self._first(stmt)

    def get(self, module_id: str, exercise_id: str) -> ExerciseSubmission | None:
        row = self._get_row(module_id, exercise_id)
        return submission_to_domain(row) if row else None

    def put(self, module_id: str, exercise_id: str, form_data: dict,
            status: SubmissionStatus, updated_at: datetime,
            submitted_at: datetime | None = None) -> ExerciseSubmission:
        owner = self._require_owner()
        row = self._get_row(module_id, exercise_id)
        if row is None:
            row = ExerciseSubmissionORM(user_id=owner, owner=owner, module_id=module_id,
                                        exercise_id=exercise_id)
        row.form_data = dict(form_data)
        row.status = status.value
        row.updated_at = updated_at
        if submitted_at is not None:
            row.submitted_at = submitted_at
        return submission_to_domain(self._write(row))
