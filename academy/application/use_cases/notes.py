from ...domain.entities import UserNote
from ...domain.errors import InvalidInput


class INoteRepository:
    def get(self, module_id: str, lesson_id: str) -> UserNote | None: ...
    def list_for_module(self, module_id: str) -> list[UserNote]: ...
    def put(self, module_id: str, lesson_id: str, content: str) -> UserNote: ...


class NoteBook:
    """Per-lesson notes; each save replaces the previous content."""

    def __init__(self, repo: INoteRepository):
        self.repo = repo

    def save(self, module_id: str, lesson_id: str, content: str) -> UserNote:
        if not module_id or not lesson_id:
            raise InvalidInput("module_id and lesson_id are required")
        return self.repo.put(module_id, lesson_id, content)

    def get(self, module_id: str, lesson_id: str) -> UserNote | None:
        return self.repo.get(module_id, lesson_id)

    def list_for_module(self, module_id: str) -> list[UserNote]:
        return self.repo.list_for_module(module_id)
