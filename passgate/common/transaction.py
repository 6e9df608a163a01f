"""
Transaction fragment codec.

A fragment is the canonical JSON form of a single Move call. The client never
executes it; the verifier only inspects the target and the object arguments.
"""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, ConfigDict, ValidationError

from passgate.common.crypto import CryptoUtils

TARGET_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}::[A-Za-z_]\w*::[A-Za-z_]\w*$")


class MoveCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    args: list[str]

    @property
    def package_id(self) -> str:
        return self.target.split("::", 1)[0]

    @property
    def resource_id(self) -> str:
        """First argument names the guarded resource."""
        return self.args[0]

    @property
    def capability_ids(self) -> list[str]:
        """Remaining arguments are the gating capability objects."""
        return self.args[1:]

    def to_bytes(self) -> bytes:
        return CryptoUtils.canonical_json(self.model_dump())

    @classmethod
    def from_bytes(cls, data: bytes) -> MoveCall:
        """Parse a fragment; raises ValueError when it is not a valid call."""
        try:
            call = cls.model_validate(json.loads(data))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            msg = "malformed transaction fragment"
            raise ValueError(msg) from e
        if not TARGET_RE.match(call.target):
            msg = f"invalid call target: {call.target}"
            raise ValueError(msg)
        if not call.args:
            msg = "transaction fragment has no arguments"
            raise ValueError(msg)
        for arg in call.args:
            try:
                CryptoUtils.normalize_address(arg)
            except ValueError as e:
                msg = f"invalid object id: {arg}"
                raise ValueError(msg) from e
        return call
