from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.use_cases.learning_state import LearningStateLog
from ....infrastructure.db import get_db
from ....infrastructure.repositories import LearningStateRepository
from ..authz import get_user_id
from ..schemas import LearningStateIn, LearningStateOut

router = APIRouter(prefix="/api/learning-state", tags=["learning-state"])

def get_learning_log(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)) -> LearningStateLog:
    return LearningStateLog(LearningStateRepository(db, user_id))

@router.get("/{module_id}", response_model=LearningStateOut)
def get_learning_state(module_id: str, log: LearningStateLog = Depends(get_learning_log)):
    return log.get(module_id)

@router.put("/{module_id}", response_model=LearningStateOut)
def record_learning_state(module_id: str, payload: LearningStateIn,
                          log: LearningStateLog = Depends(get_learning_log)):
    # topics and gaps are appended, never replaced
    return log.record(module_id, payload.last_context,
                      topics=payload.topics_explained, gaps=payload.identified_gaps)
