"""
Routes for the authentication server.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Header, HTTPException, Response

from passgate.common.exceptions import VerificationRejected
from passgate.common.models import (
    CheckGameEntryRequest,
    CheckGameEntryResponse,
    CredentialsResponse,
    LogoutResponse,
    SessionKeyAuthRequest,
    SessionKeyAuthResponse,
    SessionTokenRequest,
    SessionTokenResponse,
)

from .services import AuthService


def _http_error(e: VerificationRejected) -> HTTPException:
    return HTTPException(e.status_code, {"reason": e.reason, "message": str(e)})


class AuthRoutes:
    """Handles FastAPI routes for the authentication server."""

    def __init__(self, service: AuthService):
        self.service = service

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        app.get("/metrics")(self.metrics)
        app.post("/auth/session-key")(self.session_key)
        app.post("/auth/session_token")(self.session_token)
        app.get("/auth/credentials")(self.credentials)
        app.post("/auth/check-game-entry")(self.check_game_entry)
        app.post("/auth/logout")(self.logout)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    async def metrics(self) -> Response:
        """Handle /metrics endpoint."""
        return Response(
            content=self.service.render_metrics(),
            media_type=self.service.metrics.content_type,
        )

    async def session_key(self, req: SessionKeyAuthRequest) -> SessionKeyAuthResponse:
        """Handle /auth/session-key endpoint."""
        try:
            return await self.service.session_key(req)
        except VerificationRejected as e:
            raise _http_error(e) from e

    async def session_token(self, req: SessionTokenRequest) -> SessionTokenResponse:
        """Handle /auth/session_token endpoint."""
        try:
            return await self.service.session_token(req)
        except VerificationRejected as e:
            raise _http_error(e) from e

    async def credentials(
        self, authorization: str | None = Header(default=None)
    ) -> CredentialsResponse:
        """Handle /auth/credentials endpoint."""
        try:
            return await self.service.credentials(authorization)
        except VerificationRejected as e:
            raise _http_error(e) from e

    async def check_game_entry(
        self, req: CheckGameEntryRequest
    ) -> CheckGameEntryResponse:
        """Handle /auth/check-game-entry endpoint."""
        try:
            return await self.service.check_game_entry(req)
        except VerificationRejected as e:
            raise _http_error(e) from e

    async def logout(
        self, authorization: str | None = Header(default=None)
    ) -> LogoutResponse:
        """Handle /auth/logout endpoint."""
        try:
            return await self.service.logout(authorization)
        except VerificationRejected as e:
            raise _http_error(e) from e
