from dataclasses import dataclass, field

from ..domain.entities import ModuleProgress


@dataclass
class CurrentModule:
    id: str
    title: str
    current_lesson_id: str
    progress: int


@dataclass
class ProgressSummary:
    completed_modules: int
    total_modules: int
    overall_progress: int
    current_module: CurrentModule | None = None
    modules: dict[str, ModuleProgress] = field(default_factory=dict)
    unlocked_modules: list[str] = field(default_factory=list)


@dataclass
class TutorContext:
    system_prompt: str
    module_context: str = ""
    lesson_content: str = ""
    topics_explained: list[str] = field(default_factory=list)
    identified_gaps: list[str] = field(default_factory=list)
