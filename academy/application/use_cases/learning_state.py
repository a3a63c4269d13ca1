from typing import Iterable

from ...domain.entities import LearningState


class ILearningStateRepository:
    def get(self, module_id: str) -> LearningState | None: ...
    def put(self, module_id: str, last_context: str | None,
            topics_explained: list[str], identified_gaps: list[str]) -> LearningState: ...


def _append_new(existing: list[str], items: Iterable[str]) -> list[str]:
    merged = list(existing)
    for item in items:
        if item and item not in merged:
            merged.append(item)
    return merged


class LearningStateLog:
    """What the tutor has covered with a learner, per module."""

    def __init__(self, repo: ILearningStateRepository):
        self.repo = repo

    def get(self, module_id: str) -> LearningState:
        return self.repo.get(module_id) or LearningState(module_id=module_id)

    def record(self, module_id: str, last_context: str | None = None,
               topics: Iterable[str] = (), gaps: Iterable[str] = ()) -> LearningState:
        current = self.get(module_id)
        return self.repo.put(
            module_id,
            last_context if last_context is not None else current.last_context,
            _append_new(current.topics_explained, topics),
            _append_new(current.identified_gaps, gaps),
        )
