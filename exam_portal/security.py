"""Password hashing and credential checks for the session login."""

from typing import Optional

from passlib.context import CryptContext
from sqlmodel import Session, select

from exam_portal.models import User

# bcrypt "2b" ident; passlib's default ident trips over bcrypt 4.x
PWD_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=12,
)


def hash_password(plain_password: str) -> str:
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return PWD_CONTEXT.verify(plain_password, password_hash)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def authenticate_user(session: Session, email: str, password: str) -> Optional[User]:
    """Return the user for these credentials, or None if they do not match.

    Inactive accounts are returned as well; the caller decides how to
    report them.
    """
    user = session.exec(select(User).where(User.email == normalize_email(email))).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user
