"""Infrastructure layer: reference transaction fragment builder.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from passgate.common.config import Config
from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import ChainBuildError
from passgate.common.transaction import TARGET_RE, MoveCall

if TYPE_CHECKING:
    from passgate.common.interfaces import ITransactionBuilder

logger = logging.getLogger(__name__)


class JsonTransactionBuilder:
    """Serializes a single Move call as a canonical JSON fragment."""

    def build_call(self, target: str, args: list[str]) -> bytes:
        if not TARGET_RE.match(target):
            msg = f"unknown call target: {target}"
            raise ChainBuildError(msg)
        normalized = []
        for arg in args:
            try:
                normalized.append(CryptoUtils.normalize_address(arg))
            except ValueError as e:
                msg = f"invalid object id: {arg}"
                raise ChainBuildError(msg) from e
        if not normalized:
            msg = "call needs at least a resource id"
            raise ChainBuildError(msg)
        return MoveCall(target=target, args=normalized).to_bytes()


def verify_passport_call(
    builder: ITransactionBuilder,
    package_id: str,
    resource_id: str,
    passport_id: str,
    game_entry_id: str,
) -> Callable[[], bytes]:
    """Fragment builder for the passport / game entry access check."""
    config = Config()
    target = f"{package_id}::{config.VERIFY_MODULE}::{config.VERIFY_FUNCTION}"

    def build() -> bytes:
        logger.debug("Building %s for resource %s", target, resource_id)
        return builder.build_call(target, [resource_id, passport_id, game_entry_id])

    return build
