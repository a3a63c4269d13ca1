from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from ...application.use_cases.comprehension_check import OutcomeStatus
from ...domain.entities import AuthProvider, ModuleStatus, SubmissionStatus

# --- auth / profile

class RegisterReq(BaseModel):
    email: EmailStr
    password: str

class LoginReq(BaseModel):
    email: EmailStr
    password: str

class TokenResp(BaseModel):
    access_token: str
    token_type: str = "bearer"

class ProfileOut(BaseModel):
    user_id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None
    auth_provider: AuthProvider
    last_active_at: datetime | None = None
    class Config: from_attributes = True

class ProfileUpdate(BaseModel):
    name: str | None = None
    avatar_url: str | None = None

# --- progress

class ModuleProgressOut(BaseModel):
    id: str
    module_id: str
    status: ModuleStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    current_lesson_id: str | None = None
    comprehension_checks: dict[str, Any] | None = None
    bookmarks: list[str] = []
    class Config: from_attributes = True

class StartModuleReq(BaseModel):
    first_lesson_id: str

class CurrentModuleOut(BaseModel):
    id: str
    title: str
    current_lesson_id: str
    progress: int
    class Config: from_attributes = True

class ProgressSummaryOut(BaseModel):
    completed_modules: int
    total_modules: int
    overall_progress: int
    current_module: CurrentModuleOut | None = None
    modules: dict[str, ModuleProgressOut] = {}
    unlocked_modules: list[str] = []
    class Config: from_attributes = True

# --- comprehension checks

class CheckOptionOut(BaseModel):
    id: str
    text: str
    class Config: from_attributes = True

class CheckQuestionOut(BaseModel):
    id: str
    type: str
    question: str
    options: list[CheckOptionOut]
    concept: str = ""
    class Config: from_attributes = True

class CheckOut(BaseModel):
    module_id: str
    passing_score: int
    questions: list[CheckQuestionOut]
    class Config: from_attributes = True

class CheckSubmitReq(BaseModel):
    answers: dict[str, str]

class CheckOutcomeOut(BaseModel):
    status: OutcomeStatus
    passed: bool
    score: int
    persisted: bool
    reason: str | None = None
    progress: ModuleProgressOut | None = None
    class Config: from_attributes = True

# --- notes / learning state / exercises

class NoteIn(BaseModel):
    content: str

class NoteOut(BaseModel):
    module_id: str
    lesson_id: str
    content: str
    class Config: from_attributes = True

class LearningStateIn(BaseModel):
    last_context: str | None = None
    topics_explained: list[str] = []
    identified_gaps: list[str] = []

class LearningStateOut(BaseModel):
    module_id: str
    last_context: str | None = None
    topics_explained: list[str] = []
    identified_gaps: list[str] = []
    class Config: from_attributes = True

class SubmissionIn(BaseModel):
    form_data: dict[str, Any] = Field(default_factory=dict)

class SubmissionOut(BaseModel):
    module_id: str
    exercise_id: str
    form_data: dict[str, Any]
    status: SubmissionStatus
    submitted_at: datetime | None = None
    updated_at: datetime
    class Config: from_attributes = True

# --- tutor

class ApiKeyIn(BaseModel):
    api_key: str

class ApiKeyStatus(BaseModel):
    has_key: bool
    valid_format: bool

class TutorMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class TutorChatReq(BaseModel):
    messages: list[TutorMessage]
    module_id: str = Field(min_length=1)
    lesson_id: str = Field(min_length=1)
    lesson_content: str = ""
