from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ....application.use_cases.notes import NoteBook
from ....infrastructure.db import get_db
from ....infrastructure.repositories import NoteRepository
from ..authz import get_user_id
from ..schemas import NoteIn, NoteOut

router = APIRouter(prefix="/api/notes", tags=["notes"])

def get_notebook(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)) -> NoteBook:
    return NoteBook(NoteRepository(db, user_id))

@router.get("/{module_id}", response_model=list[NoteOut])
def module_notes(module_id: str, notes: NoteBook = Depends(get_notebook)):
    return notes.list_for_module(module_id)

@router.get("/{module_id}/{lesson_id}", response_model=NoteOut)
def get_note(module_id: str, lesson_id: str, notes: NoteBook = Depends(get_notebook)):
    note = notes.get(module_id, lesson_id)
    if note is None: raise HTTPException(404, "note not found")
    return note

@router.put("/{module_id}/{lesson_id}", response_model=NoteOut)
def save_note(module_id: str, lesson_id: str, payload: NoteIn,
              notes: NoteBook = Depends(get_notebook)):
    return notes.save(module_id, lesson_id, payload.content)
