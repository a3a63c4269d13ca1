from fastapi import APIRouter, Depends, HTTPException

from ....application.use_cases.comprehension_check import ComprehensionCheckFlow, score_check
from ....application.use_cases.track_progress import ProgressTracker
from ....infrastructure.content import ContentRepository, get_content
from ....infrastructure.metrics import check_outcomes_total
from ..deps import get_optional_tracker
from ..schemas import CheckOut, CheckOutcomeOut, CheckSubmitReq

router = APIRouter(prefix="/api/checks", tags=["checks"])

def _load(module_id: str, content: ContentRepository):
    check = content.load_check(module_id)
    if check is None:
        raise HTTPException(404, "no comprehension check for this module")
    return check

@router.get("/{module_id}", response_model=CheckOut)
def get_check(module_id: str, content: ContentRepository = Depends(get_content)):
    # correct answers are not part of CheckOut
    return CheckOut.model_validate(_load(module_id, content))

@router.post("/{module_id}/submit", response_model=CheckOutcomeOut)
def submit_check(
    module_id: str,
    payload: CheckSubmitReq,
    tracker: ProgressTracker = Depends(get_optional_tracker),
    content: ContentRepository = Depends(get_content),
):
    check = _load(module_id, content)
    tracker.require_unlocked(module_id)
    score, passed = score_check(check, payload.answers)
    outcome = ComprehensionCheckFlow(tracker, module_id).handle_complete(passed, score)
    check_outcomes_total.labels(status=outcome.status.value).inc()
    return CheckOutcomeOut.model_validate(outcome)
