from datetime import datetime
from typing import Any, Callable

import structlog

from ...domain.entities import ExerciseSubmission, SubmissionStatus
from ...domain.errors import InvalidTransition
from .track_progress import utcnow

logger = structlog.get_logger(__name__)


class ISubmissionRepository:
    def get(self, module_id: str, exercise_id: str) -> ExerciseSubmission | None: ...
    def put(self, module_id: str, exercise_id: str, form_data: dict,
            status: SubmissionStatus, updated_at: datetime,
            submitted_at: datetime | None = None) -> ExerciseSubmission: ...


class ExerciseSubmissions:
    def __init__(self, repo: ISubmissionRepository, clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.clock = clock

    def get(self, module_id: str, exercise_id: str) -> ExerciseSubmission | None:
        return self.repo.get(module_id, exercise_id)

    def save_draft(self, module_id: str, exercise_id: str, form_data: dict[str, Any]) -> ExerciseSubmission:
        existing = self.repo.get(module_id, exercise_id)
        if existing is not None and existing.status is SubmissionStatus.SUBMITTED:
            raise InvalidTransition(f"exercise {exercise_id} was already submitted")
        return self.repo.put(module_id, exercise_id, form_data, SubmissionStatus.DRAFT, self.clock())

    def submit(self, module_id: str, exercise_id: str, form_data: dict[str, Any]) -> ExerciseSubmission:
        now = self.clock()
        existing = self.repo.get(module_id, exercise_id)
        submitted_at = existing.submitted_at if existing and existing.submitted_at else now
        logger.info("exercise_submitted", module_id=module_id, exercise_id=exercise_id,
                    resubmission=existing is not None and existing.status is SubmissionStatus.SUBMITTED)
        return self.repo.put(module_id, exercise_id, form_data, SubmissionStatus.SUBMITTED, now,
                             submitted_at=submitted_at)
