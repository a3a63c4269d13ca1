from dataclasses import dataclass
from enum import Enum

import structlog

from ...domain.entities import ComprehensionCheck, ModuleProgress
from ...domain.errors import AcademyError
from .track_progress import ProgressTracker, round_half_up

logger = structlog.get_logger(__name__)


class OutcomeStatus(str, Enum):
    NOT_PASSED = "NOT_PASSED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    RECORDED = "RECORDED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CheckOutcome:
    status: OutcomeStatus
    passed: bool
    score: int
    reason: str | None = None
    progress: ModuleProgress | None = None

    @property
    def persisted(self) -> bool:
        return self.status is OutcomeStatus.RECORDED


def score_check(check: ComprehensionCheck, answers: dict[str, str]) -> tuple[int, bool]:
    """Return (score percent, passed) for a set of answers keyed by question id."""
    total = len(check.questions)
    if total == 0:
        return 0, False
    correct = sum(1 for q in check.questions if answers.get(q.id) == q.correct_answer)
    score = round_half_up(correct / total * 100)
    return score, score >= check.passing_score


class ComprehensionCheckFlow:
    """Records a passed comprehension check as module completion.

    Failures never escape ``handle_complete``; they come back as a
    ``CheckOutcome`` so the caller decides whether to show them or retry.
    """

    def __init__(self, tracker: ProgressTracker, module_id: str):
        self.tracker = tracker
        self.module_id = module_id

    def handle_complete(self, passed: bool, score: int) -> CheckOutcome:
        log = logger.bind(module_id=self.module_id, user_id=self.tracker.user_id,
                          passed=passed, score=score)
        if not passed:
            log.info("check_not_passed")
            return CheckOutcome(OutcomeStatus.NOT_PASSED, passed=False, score=score)

        if not self.tracker.user_id:
            # the pass is discarded; see DESIGN.md for the open question
            log.warning("check_passed_unauthenticated")
            return CheckOutcome(OutcomeStatus.UNAUTHENTICATED, passed=True, score=score,
                                reason="sign in to save your progress")

        try:
            self.tracker.mark_module_complete(self.module_id, score=score)
            self.tracker.refresh_progress()
        except AcademyError as e:
            log.error("check_completion_failed", error=str(e), error_type=type(e).__name__)
            return CheckOutcome(OutcomeStatus.FAILED, passed=True, score=score, reason=str(e))

        log.info("check_recorded")
        return CheckOutcome(OutcomeStatus.RECORDED, passed=True, score=score,
                            progress=self.tracker.progress.get(self.module_id))
