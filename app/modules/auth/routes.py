from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from app.config import settings
from app.core.dependencies import get_session, get_current_user
from app.modules.auth.schemas import LoginRequest, TokenResponse, SessionUser, SessionResponse
from app.modules.auth.session import SessionContext
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])

# Login page of the admin dashboard; served outside /api/v1
login_router = APIRouter(tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax"
    )


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: LoginRequest,
    response: Response,
    session: SessionContext = Depends(get_session)
):
    """Login and get access token; also sets the session cookie"""
    token_response = session.sign_in_with_password(login_data)
    _set_session_cookie(response, token_response.access_token)
    return token_response


@router.get("/callback")
def auth_callback(
    code: Optional[str] = None,
    code_verifier: Optional[str] = None,
    session: SessionContext = Depends(get_session)
):
    """Complete an OAuth sign-in redirect, then send the browser home"""
    response = RedirectResponse(url="/", status_code=303)
    if code:
        session.complete_sign_in(code, code_verifier)
        _set_session_cookie(response, session.access_token)
    return response


@router.post("/logout", status_code=200)
def logout(response: Response, session: SessionContext = Depends(get_session)):
    """Logout and clear the session cookie"""
    session.sign_out()
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=SessionUser)
def get_me(current_user: SessionUser = Depends(get_current_user)):
    """Get current authenticated user and role (for frontend UI)"""
    return current_user


@router.get("/session", response_model=SessionResponse)
def get_session_state(session: SessionContext = Depends(get_session)):
    """Session state without requiring authentication"""
    return session.describe()


@login_router.get(settings.admin_login_path)
def login_page():
    return {"message": "Sign in required", "login_endpoint": "/api/v1/auth/login"}


@login_router.post(settings.admin_login_path, response_model=TokenResponse)
def login_page_submit(
    login_data: LoginRequest,
    response: Response,
    session: SessionContext = Depends(get_session)
):
    token_response = session.sign_in_with_password(login_data)
    _set_session_cookie(response, token_response.access_token)
    return token_response
