"""Shared FastAPI dependencies for database access and authentication."""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from exam_portal.database import get_session
from exam_portal.models import User
from exam_portal.permissions import Capability, has_capability
from exam_portal.services.attempt_service import AttemptLifecycle


def get_current_user(
    request: Request, session: Session = Depends(get_session)
) -> Optional[User]:
    """Return the currently logged-in user based on the session cookie, if any."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    user = session.get(User, user_id)
    if not user or not user.is_active:
        # Clear any stale session
        request.session.clear()
        return None
    return user


def require_login(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Ensure that a user is logged in."""
    if current_user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return current_user


def require_capability(capability: Capability):
    """Dependency factory that enforces a capability of the caller's role."""

    def wrapper(current_user: User = Depends(require_login)) -> User:
        if not has_capability(current_user.role, capability):
            raise HTTPException(status_code=403, detail="Forbidden")
        return current_user

    return wrapper


def get_attempt_lifecycle(session: Session = Depends(get_session)) -> AttemptLifecycle:
    return AttemptLifecycle.from_session(session)
