"""
Core dependencies for data access, sessions and admin route protection
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.database.supabase_client import get_supabase, get_service_supabase
from app.database.record_store import RecordStore
from app.database.object_storage import ObjectStorage
from app.modules.auth.schemas import SessionUser
from app.modules.auth.service import AuthService
from app.modules.auth.session import SessionContext
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_record_store(supabase: Client = Depends(get_supabase)) -> RecordStore:
    return RecordStore(supabase)


def get_admin_record_store(supabase: Client = Depends(get_service_supabase)) -> RecordStore:
    """Record store on the service-role client; only for routes behind require_admin"""
    return RecordStore(supabase)


def get_object_storage(supabase: Client = Depends(get_service_supabase)) -> ObjectStorage:
    return ObjectStorage(supabase)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> AuthService:
    return AuthService(supabase, RecordStore(service_supabase), service_supabase)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionContext:
    """Request-scoped session, loaded from the request token"""
    return SessionContext(auth_service).load(extract_token(request, credentials))


def get_current_user(session: SessionContext = Depends(get_session)) -> SessionUser:
    return session.require_user()


def require_admin(session: SessionContext = Depends(get_session)) -> SessionUser:
    return session.require_admin()


def resolve_session_token(token: Optional[str]) -> bool:
    """True when token belongs to a live session; used outside request DI by the admin gate"""
    if not token:
        return False
    service_supabase = get_service_supabase()
    auth_service = AuthService(get_supabase(), RecordStore(service_supabase), service_supabase)
    return SessionContext(auth_service).load(token).is_authenticated
