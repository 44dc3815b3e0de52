"""
Session tokens and request authentication for CareXchange
Sessions are stateless signed JWTs carried in an HTTP-only cookie
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import Settings
from app.database import get_db
from app.models.user import User
from app.utils.error_handler import ForbiddenError, InvalidToken, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "token"

cookie_scheme = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


class AuthHandler:
    """Issues and verifies signed session tokens"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl_days: int = 30):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = timedelta(days=ttl_days)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthHandler":
        return cls(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.SESSION_TTL_DAYS)

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT embedding the user id and its expiry"""
        now = datetime.utcnow()
        to_encode = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + (expires_delta or self.ttl),
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict:
        """Verify a JWT and return {"user_id": int}; raises InvalidToken"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidToken() from e

        subject = payload.get("sub")
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            raise InvalidToken()

        return {"user_id": user_id}


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_handler(request: Request) -> AuthHandler:
    return request.app.state.auth_handler


def get_current_user(
    token: Optional[str] = Depends(cookie_scheme),
    auth_handler: AuthHandler = Depends(get_auth_handler),
) -> dict:
    """Dependency resolving the session cookie to {"user_id": ...}"""
    if not token:
        raise UnauthorizedError()
    return auth_handler.verify_token(token)


def get_current_user_record(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Dependency loading the authenticated user's record"""
    user = db.query(User).filter(User.id == current_user["user_id"]).first()
    if not user:
        raise NotFoundError("User not found")
    return user


# Role-based access control for API routes
class RoleChecker:
    """Check user roles for authorization"""

    def __init__(self, allowed_roles: list):
        self.allowed_roles = allowed_roles

    def __call__(self, user: User = Depends(get_current_user_record)) -> User:
        if user.role not in self.allowed_roles:
            logger.warning(f"User {user.id} with role '{user.role}' denied; requires {self.allowed_roles}")
            raise ForbiddenError()
        return user


donor_required = RoleChecker(["donor", "admin"])
recipient_required = RoleChecker(["recipient", "admin"])
