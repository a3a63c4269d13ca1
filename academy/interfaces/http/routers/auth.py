from fastapi import APIRouter, Depends, HTTPException, status, Request
from slowapi import Limiter
from sqlalchemy.orm import Session

from ....infrastructure.db import get_db
from ....infrastructure.models import AccountORM
from ....infrastructure.repositories import UserRepository, ProfileRepository
from ....infrastructure.security import PasswordHasher, create_access_token
from ....application.use_cases.register_user import RegisterUser
from ....config import settings
from ..authz import get_user_id
from ..schemas import RegisterReq, LoginReq, ProfileOut, TokenResp

router = APIRouter(prefix="/api/auth", tags=["auth"])

def get_limiter(request: Request) -> Limiter:
    return request.app.state.limiter

def _register_impl(
    request: Request,
    payload: RegisterReq,
    db: Session,
):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    try:
        user = uc.execute(payload.email, payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProfileOut.model_validate(ProfileRepository(db, user.id).get())

@router.post("/register", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def register(
    request: Request,
    payload: RegisterReq,
    db: Session = Depends(get_db),
    limiter: Limiter = Depends(get_limiter)
):
    limited_func = limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")(_register_impl)
    return limited_func(request, payload, db)

def _login_impl(
    request: Request,
    payload: LoginReq,
    db: Session,
):
    row = db.query(AccountORM).filter(AccountORM.email == payload.email).first()
    if not row or not row.is_active or not PasswordHasher().verify(payload.password, row.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    ProfileRepository(db, row.id).touch()
    token = create_access_token(sub=row.id, email=row.email, role=row.role)
    return TokenResp(access_token=token)

@router.post("/login", response_model=TokenResp)
def login(
    request: Request,
    payload: LoginReq,
    db: Session = Depends(get_db),
    limiter: Limiter = Depends(get_limiter)
):
    # stricter limit against brute force
    limited_func = limiter.limit("10/minute")(_login_impl)
    return limited_func(request, payload, db)


@router.get("/me", response_model=ProfileOut)
def me(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    return ProfileRepository(db, user_id).get()
