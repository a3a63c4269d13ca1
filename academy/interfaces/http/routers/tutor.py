import json

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import StreamingResponse
from openai import OpenAIError
from sqlalchemy.orm import Session

from ....application.dto import TutorContext
from ....application.key_store import LocalKeyStore
from ....application.use_cases.learning_state import LearningStateLog
from ....config import settings
from ....infrastructure.content import ContentRepository, get_content
from ....infrastructure.db import get_db
from ....infrastructure.metrics import tutor_requests_total
from ....infrastructure.repositories import LearningStateRepository
from ....infrastructure.tutor_client import BASE_SYSTEM_PROMPT, TutorClient
from ..authz import get_user_id
from ..deps import get_key_store
from ..schemas import ApiKeyIn, ApiKeyStatus, TutorChatReq

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/tutor", tags=["tutor"])


def get_tutor_client_factory():
    return TutorClient


@router.get("/key", response_model=ApiKeyStatus)
def key_status(store: LocalKeyStore = Depends(get_key_store)):
    key = store.get()
    return ApiKeyStatus(has_key=store.has_key, valid_format=store.is_valid_format(key))

@router.put("/key", response_model=ApiKeyStatus)
def save_key(payload: ApiKeyIn, store: LocalKeyStore = Depends(get_key_store)):
    if not store.is_valid_format(payload.api_key):
        raise HTTPException(400, "API key must start with 'sk-' and be longer than 20 characters")
    store.set(payload.api_key)
    return ApiKeyStatus(has_key=store.has_key, valid_format=True)

@router.delete("/key", status_code=status.HTTP_204_NO_CONTENT)
def delete_key(store: LocalKeyStore = Depends(get_key_store)):
    store.clear()


def _sse(data: dict | str) -> str:
    body = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"data: {body}\n\n"


@router.post("/chat")
def chat(
    payload: TutorChatReq,
    x_api_key: str | None = Header(default=None),
    user_id: str = Depends(get_user_id),
    store: LocalKeyStore = Depends(get_key_store),
    db: Session = Depends(get_db),
    content: ContentRepository = Depends(get_content),
    client_factory=Depends(get_tutor_client_factory),
):
    api_key = x_api_key or store.get() or settings.OPENROUTER_API_KEY
    if not api_key:
        tutor_requests_total.labels(status="no_key").inc()
        raise HTTPException(400, "AI tutor not configured - missing API key")

    state = LearningStateLog(LearningStateRepository(db, user_id)).get(payload.module_id)
    context = TutorContext(
        system_prompt=BASE_SYSTEM_PROMPT,
        module_context=content.load_lesson_knowledge(payload.module_id, payload.lesson_id),
        lesson_content=payload.lesson_content,
        topics_explained=state.topics_explained,
        identified_gaps=state.identified_gaps,
    )
    client = client_factory(api_key=api_key)
    messages = [m.model_dump() for m in payload.messages]
    logger.info("tutor_request", user_id=user_id, module_id=payload.module_id,
                lesson_id=payload.lesson_id, message_count=len(messages))

    def events():
        try:
            for chunk in client.stream_reply(messages, context):
                yield _sse({"text": chunk})
            yield _sse("[DONE]")
            tutor_requests_total.labels(status="ok").inc()
        except OpenAIError as e:
            logger.error("tutor_stream_failed", user_id=user_id, error=str(e))
            tutor_requests_total.labels(status="error").inc()
            yield _sse({"error": str(e)})

    return StreamingResponse(events(), media_type="text/event-stream",
                             headers={"Cache-Control": "no-cache", "Connection": "keep-alive"})
