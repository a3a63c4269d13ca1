from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ModuleStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def advance_to(self, target: "ModuleStatus") -> "ModuleStatus":
        """Return the later of the two statuses; progress never moves backwards."""
        return target if target.rank > self.rank else self


_STATUS_ORDER = [ModuleStatus.NOT_STARTED, ModuleStatus.IN_PROGRESS, ModuleStatus.COMPLETED]


class SubmissionStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"


class AuthProvider(str, Enum):
    EMAIL = "EMAIL"
    GITHUB = "GITHUB"
    GOOGLE = "GOOGLE"


@dataclass(frozen=True)
class User:
    id: str | None
    email: str
    role: str = "student"


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None
    auth_provider: AuthProvider = AuthProvider.EMAIL
    last_active_at: datetime | None = None


@dataclass(frozen=True)
class ModuleProgress:
    id: str
    user_id: str
    module_id: str
    status: ModuleStatus = ModuleStatus.NOT_STARTED
    started_at: datetime | None = None
    completed_at: datetime | None = None
    current_lesson_id: str | None = None
    comprehension_checks: dict[str, Any] | None = None
    bookmarks: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserNote:
    id: str
    user_id: str
    module_id: str
    lesson_id: str
    content: str


@dataclass(frozen=True)
class LearningState:
    module_id: str
    user_id: str | None = None
    id: str | None = None
    last_context: str | None = None
    topics_explained: list[str] = field(default_factory=list)
    identified_gaps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExerciseSubmission:
    id: str
    user_id: str
    module_id: str
    exercise_id: str
    form_data: dict[str, Any]
    status: SubmissionStatus
    updated_at: datetime
    submitted_at: datetime | None = None


# --- Curriculum content (read-only, loaded from files)

@dataclass(frozen=True)
class Lesson:
    id: str
    title: str
    description: str = ""
    estimated_duration: str = ""


@dataclass(frozen=True)
class Module:
    id: str
    title: str
    description: str = ""
    estimated_duration: str = ""
    prerequisites: list[str] = field(default_factory=list)
    lessons: list[Lesson] = field(default_factory=list)

    def lesson_index(self, lesson_id: str) -> int:
        for i, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return i
        return -1

    def is_last_lesson(self, lesson_id: str) -> bool:
        return bool(self.lessons) and self.lesson_index(lesson_id) == len(self.lessons) - 1


@dataclass(frozen=True)
class Curriculum:
    modules: list[Module] = field(default_factory=list)

    def get(self, module_id: str) -> Module | None:
        return next((m for m in self.modules if m.id == module_id), None)


@dataclass(frozen=True)
class CheckOption:
    id: str
    text: str


@dataclass(frozen=True)
class CheckQuestion:
    id: str
    question: str
    options: list[CheckOption]
    correct_answer: str
    type: str = "concept"
    explanation: str = ""
    concept: str = ""


@dataclass(frozen=True)
class ComprehensionCheck:
    module_id: str
    questions: list[CheckQuestion]
    passing_score: int = 80
