"""
Session gate for role-restricted pages
A declarative route table is consulted by a single authorize() function,
which returns a tagged decision; the middleware only carries it out.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.auth_handler import SESSION_COOKIE_NAME, clear_session_cookie
from app.models.user import User
from app.utils.error_handler import InvalidToken

logger = logging.getLogger(__name__)

ALLOW = "allow"
REDIRECT = "redirect"
DENY = "deny"

LOGIN_PATH = "/login"
HOME_PATH = "/"

LOGIN_REQUIRED_MESSAGE = "Please login to access this feature"
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please login again"

# Paths the gate never inspects
EXEMPT_PREFIXES = ("/api", "/docs", "/redoc", "/openapi.json", "/health", "/uploads", "/static", "/favicon.ico")


@dataclass(frozen=True)
class SessionState:
    """Authenticated session as seen by the gate"""
    user_id: int
    role: str


@dataclass(frozen=True)
class RouteRule:
    """Path prefix restricted to a set of roles"""
    prefix: str
    roles: frozenset
    on_role_mismatch: str = REDIRECT

    def matches(self, path: str) -> bool:
        return _matches_prefix(path, self.prefix)


@dataclass(frozen=True)
class Decision:
    kind: str
    location: Optional[str] = None
    reason: Optional[str] = None
    clear_cookie: bool = False

    @classmethod
    def allow(cls, clear_cookie: bool = False) -> "Decision":
        return cls(ALLOW, clear_cookie=clear_cookie)

    @classmethod
    def redirect_to(cls, location: str, clear_cookie: bool = False) -> "Decision":
        return cls(REDIRECT, location=location, clear_cookie=clear_cookie)

    @classmethod
    def deny(cls, reason: str = "Operation not permitted", clear_cookie: bool = False) -> "Decision":
        return cls(DENY, reason=reason, clear_cookie=clear_cookie)


ROUTE_RULES = (
    RouteRule("/donate", frozenset({"donor"})),
    RouteRule("/request", frozenset({"recipient"})),
    RouteRule("/profile", frozenset({"donor", "recipient", "admin"})),
    RouteRule("/admin", frozenset({"admin"}), on_role_mismatch=DENY),
)

PUBLIC_ONLY_ROUTES = ("/login", "/register")


def _matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def find_rule(path: str) -> Optional[RouteRule]:
    for rule in ROUTE_RULES:
        if rule.matches(path):
            return rule
    return None


def is_public_only(path: str) -> bool:
    return any(_matches_prefix(path, route) for route in PUBLIC_ONLY_ROUTES)


def login_redirect(path: str, message: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'from': path, 'message': message})}"


def authorize(path: str, session: Optional[SessionState], session_expired: bool = False) -> Decision:
    """
    Decide what happens to a request for `path`.

    `session_expired` is set when a cookie was presented but did not resolve
    to a user; such requests are unauthenticated and the cookie is cleared.
    """
    rule = find_rule(path)

    if session is None:
        if rule is not None:
            message = SESSION_EXPIRED_MESSAGE if session_expired else LOGIN_REQUIRED_MESSAGE
            return Decision.redirect_to(login_redirect(path, message), clear_cookie=session_expired)
        return Decision.allow(clear_cookie=session_expired)

    if is_public_only(path):
        return Decision.redirect_to(HOME_PATH)

    if rule is not None and session.role not in rule.roles:
        if rule.on_role_mismatch == DENY:
            return Decision.deny()
        return Decision.redirect_to(HOME_PATH)

    return Decision.allow()


def _load_session(database, auth_handler, token: str) -> Tuple[Optional[SessionState], bool]:
    try:
        claims = auth_handler.verify_token(token)
    except InvalidToken:
        return None, True

    db = database.session()
    try:
        user = db.query(User).filter(User.id == claims["user_id"]).first()
    except SQLAlchemyError as e:
        logger.error(f"Session lookup failed for user {claims['user_id']}: {e}")
        return None, True
    finally:
        db.close()

    if not user:
        return None, True
    return SessionState(user_id=user.id, role=user.role), False


def is_exempt(path: str) -> bool:
    return any(_matches_prefix(path, prefix) for prefix in EXEMPT_PREFIXES)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Applies authorize() to every page navigation"""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if is_exempt(path):
            return await call_next(request)

        session, expired = None, False
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if token:
            session, expired = await run_in_threadpool(
                _load_session, request.app.state.database, request.app.state.auth_handler, token
            )
        request.state.session = session

        decision = authorize(path, session, expired)
        if decision.kind == REDIRECT:
            logger.info(f"Session gate redirect {path} -> {decision.location}")
            response = RedirectResponse(decision.location, status_code=307)
        elif decision.kind == DENY:
            logger.warning(f"Session gate denied {path} for user {session.user_id if session else None}")
            response = JSONResponse(status_code=403, content={"error": decision.reason})
        else:
            response = await call_next(request)

        if decision.clear_cookie:
            clear_session_cookie(response, request.app.state.settings)
        return response
