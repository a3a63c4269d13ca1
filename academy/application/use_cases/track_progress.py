"""Client-side orchestration of ModuleProgress records.

The tracker reads and writes progress through an owner-scoped repository and
keeps a local cache (``progress``) that is fully replaced on every refresh.
Writes and refreshes are independent calls: a caller that needs the cache to
reflect a write must refresh after the write returns.
"""
from datetime import datetime, timezone
from typing import Callable

import structlog

from ...domain.entities import Curriculum, ModuleProgress, ModuleStatus
from ...domain.errors import AuthenticationRequired, DuplicateRecord, InvalidInput, ModuleLocked
from ..dto import CurrentModule, ProgressSummary

logger = structlog.get_logger(__name__)


class IProgressRepository:
    def progress_by_user(self) -> list[ModuleProgress]: ...
    def get(self, module_id: str) -> ModuleProgress | None: ...
    def create(self, module_id: str, **fields) -> ModuleProgress: ...
    def update(self, module_id: str, **changes) -> ModuleProgress: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressTracker:
    def __init__(self, repo: IProgressRepository, user_id: str | None,
                 curriculum: Curriculum | None = None,
                 clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.user_id = user_id
        self.curriculum = curriculum or Curriculum()
        self.clock = clock
        self.progress: dict[str, ModuleProgress] = {}

    def _require_user(self, action: str) -> str:
        if not self.user_id:
            logger.warning("progress_skipped_unauthenticated", action=action)
            raise AuthenticationRequired(f"{action} requires a signed-in user")
        return self.user_id

    @staticmethod
    def _require_module(module_id: str) -> None:
        if not module_id or not module_id.strip():
            raise InvalidInput("module_id must be a non-empty string")

    # --- remote operations

    def refresh_progress(self) -> dict[str, ModuleProgress]:
        if not self.user_id:
            self.progress = {}
            return self.progress
        records = self.repo.progress_by_user()
        self.progress = {p.module_id: p for p in records}
        logger.debug("progress_loaded", user_id=self.user_id, modules=len(self.progress))
        return self.progress

    def start_module(self, module_id: str, first_lesson_id: str) -> ModuleProgress:
        self._require_module(module_id)
        user_id = self._require_user("start_module")
        existing = self.repo.get(module_id)
        now = self.clock()
        if existing is None:
            logger.info("progress_created", user_id=user_id, module_id=module_id)
            result = self.repo.create(
                module_id,
                status=ModuleStatus.IN_PROGRESS,
                current_lesson_id=first_lesson_id,
                started_at=now,
                bookmarks=[],
            )
        else:
            result = self.repo.update(
                module_id,
                status=existing.status.advance_to(ModuleStatus.IN_PROGRESS),
                current_lesson_id=first_lesson_id,
                started_at=existing.started_at or now,
            )
        self.progress[module_id] = result
        return result

    def update_lesson(self, module_id: str, lesson_id: str) -> ModuleProgress | None:
        """Record the learner's current lesson; the last lesson completes the module."""
        self._require_module(module_id)
        self._require_user("update_lesson")
        self.start_module(module_id, lesson_id)

        module = self.curriculum.get(module_id)
        if module is not None and module.is_last_lesson(lesson_id):
            logger.info("last_lesson_reached", user_id=self.user_id, module_id=module_id)
            self.mark_module_complete(module_id)

        self.refresh_progress()
        return self.progress.get(module_id)

    def mark_module_complete(self, module_id: str, score: int | None = None) -> ModuleProgress:
        self._require_module(module_id)
        user_id = self._require_user("mark_module_complete")
        try:
            return self._complete(user_id, module_id, score, self.repo.get(module_id))
        except DuplicateRecord:
            # another request created the record after our read; take its state
            logger.info("progress_create_conflict", user_id=user_id, module_id=module_id)
            return self._complete(user_id, module_id, score, self.repo.get(module_id))

    def _complete(self, user_id: str, module_id: str, score: int | None,
                  existing: ModuleProgress | None) -> ModuleProgress:
        if existing is not None and existing.status is ModuleStatus.COMPLETED:
            logger.info("module_already_completed", user_id=user_id, module_id=module_id)
            return existing

        now = self.clock()
        checks = dict(existing.comprehension_checks or {}) if existing else {}
        if score is not None:
            checks["final"] = {"score": score, "passed": True, "passedAt": now.isoformat()}

        if existing is None:
            result = self.repo.create(
                module_id,
                status=ModuleStatus.COMPLETED,
                started_at=now,
                completed_at=now,
                comprehension_checks=checks or None,
                bookmarks=[],
            )
        else:
            result = self.repo.update(
                module_id,
                status=ModuleStatus.COMPLETED,
                completed_at=now,
                started_at=existing.started_at or now,
                comprehension_checks=checks or existing.comprehension_checks,
            )
        logger.info("module_completed", user_id=user_id, module_id=module_id, score=score)
        return result

    def toggle_bookmark(self, module_id: str, lesson_id: str) -> ModuleProgress | None:
        self._require_module(module_id)
        self._require_user("toggle_bookmark")
        existing = self.repo.get(module_id) or self.start_module(module_id, lesson_id)

        bookmarks = list(existing.bookmarks)
        if lesson_id in bookmarks:
            bookmarks = [b for b in bookmarks if b != lesson_id]
        else:
            bookmarks.append(lesson_id)
        self.repo.update(module_id, bookmarks=bookmarks)

        self.refresh_progress()
        return self.progress.get(module_id)

    # --- reads against the local cache

    def is_lesson_bookmarked(self, module_id: str, lesson_id: str) -> bool:
        p = self.progress.get(module_id)
        return p is not None and lesson_id in p.bookmarks

    def module_status(self, module_id: str) -> ModuleStatus:
        p = self.progress.get(module_id)
        return p.status if p else ModuleStatus.NOT_STARTED

    def is_module_unlocked(self, module_id: str) -> bool:
        """The first module is always open; any other needs its predecessor COMPLETED."""
        ids = [m.id for m in self.curriculum.modules]
        if module_id not in ids:
            return False
        index = ids.index(module_id)
        if index == 0:
            return True
        return self.module_status(ids[index - 1]) is ModuleStatus.COMPLETED

    def require_unlocked(self, module_id: str) -> None:
        self.refresh_progress()
        if not self.is_module_unlocked(module_id):
            logger.info("module_locked", user_id=self.user_id, module_id=module_id)
            raise ModuleLocked(f"complete the previous module to unlock {module_id}")

    def module_progress_percent(self, module_id: str) -> int:
        p = self.progress.get(module_id)
        if p is None or p.status is ModuleStatus.NOT_STARTED:
            return 0
        if p.status is ModuleStatus.COMPLETED:
            return 100

        module = self.curriculum.get(module_id)
        if module is None or not p.current_lesson_id or not module.lessons:
            return 0
        index = module.lesson_index(p.current_lesson_id)
        if index == -1:
            return 0
        # being on a lesson counts towards it
        return round_half_up((index + 1) / len(module.lessons) * 100)

    def summary(self) -> ProgressSummary:
        modules = self.curriculum.modules
        completed = sum(1 for p in self.progress.values() if p.status is ModuleStatus.COMPLETED)
        overall = 0
        if modules:
            overall = round_half_up(sum(self.module_progress_percent(m.id) for m in modules) / len(modules))

        current = None
        in_progress = next((p for p in self.progress.values() if p.status is ModuleStatus.IN_PROGRESS), None)
        if in_progress is not None:
            module = self.curriculum.get(in_progress.module_id)
            current = CurrentModule(
                id=in_progress.module_id,
                title=module.title if module else "",
                current_lesson_id=in_progress.current_lesson_id or "",
                progress=self.module_progress_percent(in_progress.module_id),
            )

        return ProgressSummary(
            completed_modules=completed,
            total_modules=len(modules),
            overall_progress=overall,
            current_module=current,
            modules=dict(self.progress),
            unlocked_modules=[m.id for m in modules if self.is_module_unlocked(m.id)],
        )


def round_half_up(value: float) -> int:
    return int(value + 0.5)
