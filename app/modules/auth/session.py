"""
Per-request session context.

A SessionContext is created for each request, loaded from the access token
the request carries, and handed to route handlers through dependency
injection. Lifecycle: init -> load() -> authenticated | anonymous, and
sign_out() moves it to disposed for good.
"""

from enum import Enum
from typing import Optional
import logging

from fastapi import HTTPException, status

from app.modules.auth.schemas import LoginRequest, SessionUser, SessionResponse, TokenResponse
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    DISPOSED = "disposed"


class SessionContext:
    def __init__(self, auth_service: AuthService):
        self.auth_service = auth_service
        self.state = SessionState.ANONYMOUS
        self.user: Optional[SessionUser] = None
        self.access_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.user is not None and self.user.is_admin

    def _activate(self, user: SessionUser, token: str) -> None:
        self.user = user
        self.access_token = token
        self.state = SessionState.AUTHENTICATED

    def _check_not_disposed(self) -> None:
        if self.state == SessionState.DISPOSED:
            raise RuntimeError("Session has been signed out")

    def load(self, token: Optional[str]) -> "SessionContext":
        """Resolve the request token; an absent or rejected token leaves the session anonymous"""
        self._check_not_disposed()
        if not token:
            return self
        try:
            self._activate(self.auth_service.get_current_user(token), token)
        except HTTPException as e:
            logger.debug(f"Session token rejected: {e.detail}")
            self.user = None
            self.access_token = None
            self.state = SessionState.ANONYMOUS
        return self

    def sign_in_with_password(self, login_data: LoginRequest) -> TokenResponse:
        self._check_not_disposed()
        token_response = self.auth_service.login(login_data)
        self._activate(
            SessionUser(id=token_response.user_id, email=token_response.email, role=token_response.role),
            token_response.access_token
        )
        return token_response

    def complete_sign_in(self, code: str, code_verifier: Optional[str] = None) -> SessionUser:
        """OAuth-style redirect completion; creates the profile on first sign-in"""
        self._check_not_disposed()
        user, token = self.auth_service.exchange_code(code, code_verifier)
        self._activate(user, token)
        return user

    def sign_out(self) -> None:
        if self.state == SessionState.DISPOSED:
            return
        self.auth_service.logout(self.access_token)
        self.user = None
        self.access_token = None
        self.state = SessionState.DISPOSED

    def require_user(self) -> SessionUser:
        if not self.is_authenticated:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"}
            )
        return self.user

    def require_admin(self) -> SessionUser:
        user = self.require_user()
        if not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required"
            )
        return user

    def describe(self) -> SessionResponse:
        return SessionResponse(state=self.state.value, user=self.user)
