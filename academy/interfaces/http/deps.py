from fastapi import Depends
from sqlalchemy.orm import Session

from ...application.key_store import LocalKeyStore
from ...application.use_cases.track_progress import ProgressTracker
from ...config import settings
from ...infrastructure.content import ContentRepository, get_content
from ...infrastructure.db import get_db
from ...infrastructure.repositories import ProgressRepository
from ...infrastructure.storage import RedisKeyValueStorage
from .authz import get_user_id, get_optional_user_id


def _tracker(db: Session, user_id: str | None, content: ContentRepository) -> ProgressTracker:
    return ProgressTracker(ProgressRepository(db, user_id), user_id, content.load_curriculum())


def get_tracker(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
    content: ContentRepository = Depends(get_content),
) -> ProgressTracker:
    return _tracker(db, user_id, content)


def get_optional_tracker(
    user_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    content: ContentRepository = Depends(get_content),
) -> ProgressTracker:
    return _tracker(db, user_id, content)


def get_key_storage() -> RedisKeyValueStorage:
    return RedisKeyValueStorage()


def get_key_store(
    user_id: str = Depends(get_user_id),
    storage: RedisKeyValueStorage = Depends(get_key_storage),
) -> LocalKeyStore:
    return LocalKeyStore(storage, f"{settings.KEY_STORE_PREFIX}:{user_id}")
