"""
HTTP client for the session authentication verifier.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import requests
from cryptography.exceptions import InvalidTag
from pydantic import BaseModel, ValidationError

from passgate.client.domain.entities import LoginResult, SessionToken
from passgate.client.infrastructure.config_loader import ConfigLoader
from passgate.common.exceptions import (
    CapabilityMissing,
    Expired,
    RateLimitError,
    TransportError,
    VerificationRejected,
)
from passgate.common.models import (
    CheckGameEntryRequest,
    CheckGameEntryResponse,
    ClientConfig,
    CredentialsResponse,
    LogoutResponse,
    SessionKeyAuthRequest,
    SessionKeyAuthResponse,
    SessionTokenResponse,
    SessionUser,
)

if TYPE_CHECKING:
    from passgate.client.domain.entities import PreparedRequest
    from passgate.common.models import Certificate

HTTP_OK = 200
ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


def _parse(model: type[ModelT], data: Any, path: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        msg = f"malformed response from {path}"
        raise TransportError(msg) from e


class AuthClient:
    """Talks to the verifier endpoints and maps failures to typed errors."""

    def __init__(self, client_config: ClientConfig | None = None):
        self.loader = ConfigLoader(client_config)
        self.server_url = self.loader.server_url
        self.timeout = self.loader.request_timeout
        self.logger = logger

    def _raise_for_response(self, response: Any) -> None:
        if response.status_code == HTTP_OK:
            return
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        if not isinstance(detail, dict):
            msg = f"verifier rejected request: {detail or response.status_code}"
            raise VerificationRejected(
                "invalid_request", msg, response.status_code
            )
        reason = detail.get("reason", "unknown")
        message = detail.get("message", reason)
        if reason == "capability_missing":
            raise CapabilityMissing(message)
        if reason == "expired_certificate":
            raise Expired(message)
        if reason == "rate_limited":
            raise RateLimitError(message)
        raise VerificationRejected(reason, message, response.status_code)

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        url = f"{self.server_url}{path}"
        try:
            if method == "GET":
                response = requests.get(url, headers=headers, timeout=self.timeout)
            else:
                response = requests.post(
                    url, json=payload, headers=headers, timeout=self.timeout
                )
        except requests.RequestException as e:
            msg = f"could not reach verifier at {url}"
            raise TransportError(msg) from e
        self._raise_for_response(response)
        try:
            return response.json()
        except ValueError as e:
            msg = f"verifier returned invalid JSON for {path}"
            raise TransportError(msg) from e

    def session_key_login(self, certificate: Certificate) -> LoginResult:
        """POST /auth/session-key with a signed certificate."""
        req = SessionKeyAuthRequest(
            signature=certificate.signature,
            session_key=certificate.session_vk,
            address=certificate.user,
            timestamp=certificate.creation_time,
            ttl_min=certificate.ttl_min,
        )
        data = self._request(
            "POST", "/auth/session-key", req.model_dump(by_alias=True)
        )
        resp = _parse(SessionKeyAuthResponse, data, "/auth/session-key")
        self.logger.info(
            "Session key login for %s: has_game_entry=%s",
            certificate.user,
            resp.has_game_entry,
        )
        return LoginResult(
            has_game_entry=resp.has_game_entry,
            is_new_user=resp.is_new_user,
            credentials=resp.credentials,
        )

    def exchange_token(self, prepared: PreparedRequest) -> SessionToken:
        """POST /auth/session_token; opens any sealed key with the request secret."""
        data = self._request(
            "POST", "/auth/session_token", prepared.request.model_dump()
        )
        resp = _parse(SessionTokenResponse, data, "/auth/session_token")

        resource_key = None
        if resp.sealed_key is not None:
            try:
                resource_key = prepared.material.open(resp.sealed_key)
            except (InvalidTag, ValueError) as e:
                msg = "sealed key does not open with this request's secret"
                raise VerificationRejected("invalid_sealed_key", msg) from e

        return SessionToken(
            auth_token=resp.auth_token,
            expires_at=resp.expires_at,
            profile=resp.profile.model_dump() if resp.profile else None,
            resource_key=resource_key,
        )

    def get_credentials(self, token: str) -> SessionUser | None:
        data = self._request("GET", "/auth/credentials", token=token)
        resp = _parse(CredentialsResponse, data, "/auth/credentials")
        return resp.credentials

    def check_game_entry(self, address: str) -> CheckGameEntryResponse:
        data = self._request(
            "POST",
            "/auth/check-game-entry",
            CheckGameEntryRequest(address=address).model_dump(),
        )
        return _parse(CheckGameEntryResponse, data, "/auth/check-game-entry")

    def logout(self, token: str) -> bool:
        data = self._request("POST", "/auth/logout", token=token)
        return _parse(LogoutResponse, data, "/auth/logout").success
