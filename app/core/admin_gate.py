from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import RedirectResponse
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class AdminGateMiddleware:
    """Redirects anonymous requests away from the dashboard and signed-in requests away from the login page."""

    def __init__(
        self,
        app,
        resolve_session: Callable[[Optional[str]], bool],
        dashboard_path: str = "/admin/dashboard",
        login_path: str = "/admin/login",
        cookie_name: str = "access_token",
    ):
        self.app = app
        self.resolve_session = resolve_session
        self.dashboard_path = dashboard_path.rstrip("/")
        self.login_path = login_path.rstrip("/")
        self.cookie_name = cookie_name

    def _is_dashboard(self, path: str) -> bool:
        return path == self.dashboard_path or path.startswith(self.dashboard_path + "/")

    def _is_login(self, path: str) -> bool:
        return path.rstrip("/") == self.login_path

    def _token(self, request: Request) -> Optional[str]:
        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return request.cookies.get(self.cookie_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        dashboard, login = self._is_dashboard(path), self._is_login(path)
        if not dashboard and not login:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        signed_in = await run_in_threadpool(self.resolve_session, self._token(request))

        if dashboard and not signed_in:
            logger.info(f"Redirecting anonymous request for {path} to {self.login_path}")
            response = RedirectResponse(url=self.login_path, status_code=307)
            await response(scope, receive, send)
            return
        if login and signed_in:
            response = RedirectResponse(url=self.dashboard_path, status_code=307)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
