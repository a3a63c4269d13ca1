from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ....application.use_cases.exercises import ExerciseSubmissions
from ....application.use_cases.track_progress import ProgressTracker
from ....infrastructure.content import ContentRepository, get_content
from ....infrastructure.db import get_db
from ....infrastructure.repositories import SubmissionRepository
from ..authz import get_user_id
from ..deps import get_tracker
from ..schemas import SubmissionIn, SubmissionOut

router = APIRouter(prefix="/api/exercises", tags=["exercises"])

def get_submissions(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)) -> ExerciseSubmissions:
    return ExerciseSubmissions(SubmissionRepository(db, user_id))

@router.get("/{module_id}")
def get_exercise(module_id: str, content: ContentRepository = Depends(get_content)):
    exercise = content.load_exercise(module_id)
    if exercise is None: raise HTTPException(404, "no exercise for this module")
    return exercise

@router.get("/{module_id}/{exercise_id}/submission", response_model=SubmissionOut)
def get_submission(module_id: str, exercise_id: str,
                   submissions: ExerciseSubmissions = Depends(get_submissions)):
    row = submissions.get(module_id, exercise_id)
    if row is None: raise HTTPException(404, "submission not found")
    return row

@router.put("/{module_id}/{exercise_id}/draft", response_model=SubmissionOut)
def save_draft(module_id: str, exercise_id: str, payload: SubmissionIn,
               submissions: ExerciseSubmissions = Depends(get_submissions),
               tracker: ProgressTracker = Depends(get_tracker)):
    tracker.require_unlocked(module_id)
    return submissions.save_draft(module_id, exercise_id, payload.form_data)

@router.post("/{module_id}/{exercise_id}/submit", response_model=SubmissionOut,
             status_code=status.HTTP_201_CREATED)
def submit(module_id: str, exercise_id: str, payload: SubmissionIn,
           submissions: ExerciseSubmissions = Depends(get_submissions),
           tracker: ProgressTracker = Depends(get_tracker)):
    tracker.require_unlocked(module_id)
    return submissions.submit(module_id, exercise_id, payload.form_data)
