from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....infrastructure.db import get_db
from ....infrastructure.repositories import ProfileRepository
from ..authz import get_user_id
from ..schemas import ProfileOut, ProfileUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])

@router.get("/me", response_model=ProfileOut)
def get_profile(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)):
    return ProfileRepository(db, user_id).get()

@router.put("/me", response_model=ProfileOut)
def update_profile(payload: ProfileUpdate, user_id: str = Depends(get_user_id),
                   db: Session = Depends(get_db)):
    return ProfileRepository(db, user_id).update(**payload.model_dump(exclude_unset=True))
