from fastapi import APIRouter, Depends

from ....application.use_cases.track_progress import ProgressTracker
from ....infrastructure.metrics import progress_writes_total
from ..deps import get_tracker
from ..schemas import ModuleProgressOut, ProgressSummaryOut, StartModuleReq

router = APIRouter(prefix="/api/progress", tags=["progress"])

@router.get("/my", response_model=ProgressSummaryOut)
def my_progress(tracker: ProgressTracker = Depends(get_tracker)):
    tracker.refresh_progress()
    return tracker.summary()

@router.post("/{module_id}/start", response_model=ModuleProgressOut)
def start_module(module_id: str, payload: StartModuleReq,
                 tracker: ProgressTracker = Depends(get_tracker)):
    progress_writes_total.labels(operation="start").inc()
    return tracker.start_module(module_id, payload.first_lesson_id)

@router.post("/{module_id}/lessons/{lesson_id}", response_model=ModuleProgressOut)
def update_lesson(module_id: str, lesson_id: str,
                  tracker: ProgressTracker = Depends(get_tracker)):
    progress_writes_total.labels(operation="lesson").inc()
    return tracker.update_lesson(module_id, lesson_id)

@router.post("/{module_id}/bookmarks/{lesson_id}", response_model=ModuleProgressOut)
def toggle_bookmark(module_id: str, lesson_id: str,
                    tracker: ProgressTracker = Depends(get_tracker)):
    progress_writes_total.labels(operation="bookmark").inc()
    return tracker.toggle_bookmark(module_id, lesson_id)

@router.post("/{module_id}/complete", response_model=ModuleProgressOut)
def complete_module(module_id: str, tracker: ProgressTracker = Depends(get_tracker)):
    # idempotent: completing twice returns the original record unchanged
    progress_writes_total.labels(operation="complete").inc()
    tracker.mark_module_complete(module_id)
    tracker.refresh_progress()
    return tracker.progress[module_id]
