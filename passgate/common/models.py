"""
Pydantic models for request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Certificate(BaseModel):
    """Wallet-signed binding of a session public key to a chain identity."""

    model_config = ConfigDict(frozen=True)

    user: str
    session_vk: str
    creation_time: int
    ttl_min: int
    signature: str

    @property
    def expires_at(self) -> int:
        """Last millisecond the certificate is valid on the verifier side."""
        return self.creation_time + self.ttl_min * 60_000


class Profile(BaseModel):
    rating: int = 1500
    played: int = 0
    won: int = 0
    lost: int = 0


class SessionKeyAuthRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signature: str
    session_key: str = Field(alias="sessionKey")
    address: str
    timestamp: int
    ttl_min: int = Field(alias="ttlMin")


class Credentials(BaseModel):
    access_token: str
    expires_at: int
    address: str
    profile: Profile | None = None


class SessionKeyAuthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    credentials: Credentials | None = None
    has_game_entry: bool = Field(alias="hasGameEntry")
    is_new_user: bool = Field(alias="isNewUser")


class SealedKey(BaseModel):
    resource_id: str
    ephemeral_pub: str
    nonce: str
    ciphertext: str


class SessionTokenRequest(BaseModel):
    """Sealed token request sent to ``/auth/session_token``."""

    model_config = ConfigDict(frozen=True)

    ptb: str
    enc_key: str
    enc_verification_key: str
    request_signature: str
    certificate: Certificate
    enc_key_proof: str | None = None


class SessionTokenResponse(BaseModel):
    auth_token: str
    expires_at: int
    profile: Profile | None = None
    sealed_key: SealedKey | None = None


class CheckGameEntryRequest(BaseModel):
    address: str


class CheckGameEntryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_game_entry: bool = Field(alias="hasGameEntry")
    passport_id: str | None = Field(default=None, alias="passportId")
    game_entry_id: str | None = Field(default=None, alias="gameEntryId")


class SessionUser(BaseModel):
    address: str
    session_vk: str
    exp: int
    profile: Profile | None = None


class CredentialsResponse(BaseModel):
    success: bool
    credentials: SessionUser | None = None
    error: str | None = None


class LogoutResponse(BaseModel):
    success: bool
    message: str


class ChainObject(BaseModel):
    """Subset of an on-chain object the verifier needs."""

    object_id: str
    type: str
    owner: str | None = None


class ClientConfig(BaseModel):
    server_url: str | None = None
    server_host: str | None = None
    server_port: int | None = None
    log_level: int | None = None
    package_id: str | None = None
    ttl_minutes: int | None = None
    request_timeout: int | None = None
