import hashlib
import time
from datetime import datetime, timezone
from supabase import Client
from app.config.catalog_config import USERS, PROFILES, ROLES, DEFAULT_ROLE
from app.database.record_store import RecordStore, RecordStoreError
from app.database.supabase_client import new_session_client
from app.modules.auth.schemas import LoginRequest, TokenResponse, SessionUser
from fastapi import HTTPException
from typing import Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(
        self,
        supabase: Client,
        store: Optional[RecordStore] = None,
        service_supabase: Optional[Client] = None
    ):
        # Shared anon client; only stateless token lookups run on it
        self.supabase = supabase
        # users/profiles lookups; the service-role store in production
        self.store = store or RecordStore(supabase)
        # Revokes sessions through the admin API
        self.service_supabase = service_supabase or supabase

    def resolve_role(self, user_id: str) -> str:
        """Role from the users row, then the profile, defaulting to student. Unknown roles are ignored."""
        try:
            for collection in (USERS, PROFILES):
                row = self.store.get(collection, user_id, columns="role")
                if row and row.get("role") in ROLES:
                    return row["role"]
        except RecordStoreError as e:
            logger.error(f"Error resolving role for {user_id}: {e}")
        return DEFAULT_ROLE

    def ensure_profile(self, user) -> bool:
        """Create the profile row on first sign-in. Returns True when a row was created."""
        if self.store.get(PROFILES, user.id):
            return False
        metadata = user.user_metadata or {}
        self.store.insert(PROFILES, {
            "id": user.id,
            "email": user.email,
            "full_name": metadata.get("full_name") or "",
            "avatar_url": metadata.get("avatar_url") or "",
            "role": DEFAULT_ROLE,
            "updated_at": datetime.now(timezone.utc).isoformat()
        })
        logger.info(f"Created profile for user {user.id}")
        return True

    def _session_user(self, user) -> SessionUser:
        metadata = user.user_metadata or {}
        return SessionUser(
            id=user.id,
            email=user.email,
            role=self.resolve_role(user.id),
            full_name=metadata.get("full_name")
        )

    def _start_session(self, auth_response, fallback_email: Optional[str] = None) -> Tuple[SessionUser, str]:
        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        try:
            self.ensure_profile(auth_response.user)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=f"Failed to create profile: {e.message}")
        session_user = self._session_user(auth_response.user)
        if not session_user.email:
            session_user.email = fallback_email
        token = auth_response.session.access_token
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[_cache_key(token)] = (session_user, time.monotonic() + _AUTH_CACHE_TTL_SEC)
        return session_user, token

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = new_session_client().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

        session_user, token = self._start_session(auth_response, fallback_email=login_data.email)
        return TokenResponse(
            access_token=token,
            token_type="bearer",
            user_id=session_user.id,
            email=session_user.email or login_data.email,
            role=session_user.role
        )

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> Tuple[SessionUser, str]:
        """Complete an OAuth redirect by exchanging the auth code for a session"""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = new_session_client().auth.exchange_code_for_session(params)
        except Exception as e:
            logger.error(f"Code exchange failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired sign-in code")
        return self._start_session(auth_response)

    def get_current_user(self, token: str) -> SessionUser:
        """Get current user from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = _cache_key(token)
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                session_user, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return session_user
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            session_user = self._session_user(user_response.user)
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (session_user, now + _AUTH_CACHE_TTL_SEC)
            return session_user
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: Optional[str]) -> bool:
        """Revoke the session that token belongs to"""
        if not token:
            return False
        _AUTH_USER_CACHE.pop(_cache_key(token), None)
        try:
            self.service_supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False
