"""Curriculum, comprehension checks, exercises and knowledge base read from disk.

Layout under the content directory::

    curriculum.json
    checks/<module_id>.json
    exercises/<module_id>/<exercise>.json
    knowledge-base/<module_id>/*.md
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog

from ..config import settings
from ..domain.entities import (
    CheckOption, CheckQuestion, ComprehensionCheck, Curriculum, Lesson, Module,
)

logger = structlog.get_logger(__name__)


def _read_json(path: Path) -> Any | None:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("content_unreadable", path=str(path), error=str(e))
        return None


def _module_from_json(data: dict) -> Module:
    return Module(
        id=data["id"],
        title=data.get("title", data["id"]),
        description=data.get("description", ""),
        estimated_duration=data.get("estimatedDuration", ""),
        prerequisites=list(data.get("prerequisites", [])),
        lessons=[
            Lesson(
                id=l["id"],
                title=l.get("title", l["id"]),
                description=l.get("description", ""),
                estimated_duration=l.get("estimatedDuration", ""),
            )
            for l in data.get("lessons", [])
        ],
    )


class ContentRepository:
    def __init__(self, content_dir: str | Path):
        self.root = Path(content_dir)

    def load_curriculum(self) -> Curriculum:
        data = _read_json(self.root / "curriculum.json") or {}
        return Curriculum(modules=[_module_from_json(m) for m in data.get("modules", [])])

    def load_check(self, module_id: str) -> ComprehensionCheck | None:
        data = _read_json(self.root / "checks" / f"{module_id}.json")
        if not data:
            return None
        questions = [
            CheckQuestion(
                id=q["id"],
                question=q["question"],
                options=[CheckOption(id=o["id"], text=o["text"]) for o in q.get("options", [])],
                correct_answer=q["correctAnswer"],
                type=q.get("type", "concept"),
                explanation=q.get("explanation", ""),
                concept=q.get("concept", ""),
            )
            for q in data.get("questions", [])
        ]
        return ComprehensionCheck(
            module_id=data.get("moduleId", module_id),
            questions=questions,
            passing_score=int(data.get("passingScore", 80)),
        )

    def load_exercise(self, module_id: str) -> dict | None:
        exercise_dir = self.root / "exercises" / module_id
        if not exercise_dir.is_dir():
            return None
        for path in sorted(exercise_dir.glob("*.json")):
            return _read_json(path)
        return None

    def load_lesson_knowledge(self, module_id: str, lesson_id: str | None = None) -> str:
        """Concatenated markdown for the tutor; a file named after the lesson wins."""
        kb_dir = self.root / "knowledge-base" / module_id
        if not kb_dir.is_dir():
            return ""
        files = sorted(kb_dir.glob("*.md"))
        if lesson_id:
            specific = [f for f in files if f.stem == lesson_id]
            files = specific or files
        parts = []
        for f in files:
            try:
                parts.append(f"<!-- {f.name} -->\n{f.read_text(encoding='utf-8').strip()}")
            except OSError as e:
                logger.warning("knowledge_base_unreadable", path=str(f), error=str(e))
        return "\n\n---\n\n".join(parts)


@lru_cache
def get_content() -> ContentRepository:
    return ContentRepository(settings.CONTENT_DIR)
