"""Session login/logout for API clients."""

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlmodel import Session

from exam_portal.database import get_session
from exam_portal.deps import require_login
from exam_portal.models import User
from exam_portal.schemas import LoginIn, UserOut
from exam_portal.security import authenticate_user

router = APIRouter()


@router.post("/login", response_model=UserOut)
def login(request: Request, payload: LoginIn = Body(...), session: Session = Depends(get_session)):
    user = authenticate_user(session, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is inactive. Please contact an administrator.",
        )

    # Clear any existing session first to avoid conflicts
    request.session.clear()
    request.session["user_id"] = user.id
    return UserOut.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    request.session.clear()


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(require_login)):
    return UserOut.model_validate(current_user)
