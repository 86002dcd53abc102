from fastapi import APIRouter, Depends

from ..auth import get_current_user, issue_token
from ..db import User
from ..schemas import AuthOut, LoginIn, RegisterIn, user_summary
from ..storage import Storage, get_storage

router = APIRouter(prefix="/auth", tags=["auth"])


def auth_out(user: User) -> AuthOut:
    return AuthOut(token=issue_token(user.id, user.email), user=user_summary(user))


@router.post("/register", response_model=AuthOut, status_code=201)
def register(payload: RegisterIn, storage: Storage = Depends(get_storage)):
    user = storage.register_user(payload.name, payload.email, payload.password)
    return auth_out(user)


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, storage: Storage = Depends(get_storage)):
    user = storage.authenticate(payload.email, payload.password)
    return auth_out(user)


@router.get("/me", response_model=dict)
def me(user_id: str = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    return {"user": user_summary(storage.get_user(user_id))}
