"""
Read-only access to chain state over JSON-RPC.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any

import requests

from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import VerificationRejected
from passgate.common.models import ChainObject
from passgate.common.protocol import current_epoch_time

if TYPE_CHECKING:
    from passgate.common.interfaces import IChainReader

logger = logging.getLogger(__name__)


class RpcChainReader:
    """Fullnode JSON-RPC client implementing ``IChainReader``.

    Objects come back as the JSON form of :class:`ChainObject`; an object
    that does not exist reads as empty bytes.
    """

    def __init__(self, rpc_url: str, timeout: int = 10):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = requests.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Chain RPC %s failed: %s", method, e)
            msg = "chain state is unavailable"
            raise VerificationRejected("chain_unavailable", msg, 503) from e
        if "error" in body:
            logger.error("Chain RPC %s returned error: %s", method, body["error"])
            msg = "chain state is unavailable"
            raise VerificationRejected("chain_unavailable", msg, 503)
        return body.get("result")

    def read_object(self, object_id: str) -> bytes:
        result = self._call(
            "sui_getObject", [object_id, {"showType": True, "showOwner": True}]
        )
        data = (result or {}).get("data")
        if not data:
            return b""
        owner = data.get("owner")
        address_owner = owner.get("AddressOwner") if isinstance(owner, dict) else None
        obj = ChainObject(
            object_id=data["objectId"], type=data.get("type", ""), owner=address_owner
        )
        return obj.model_dump_json().encode()

    def owned_objects(self, address: str, struct_type: str) -> list[str]:
        result = self._call(
            "suix_getOwnedObjects",
            [
                address,
                {"filter": {"StructType": struct_type}, "options": {"showType": True}},
            ],
        )
        return [
            item["data"]["objectId"]
            for item in (result or {}).get("data", [])
            if item.get("data")
        ]

    def latest_checkpoint_timestamp(self) -> int:
        """Timestamp in ms of the newest checkpoint the fullnode has executed."""
        sequence = self._call("sui_getLatestCheckpointSequenceNumber", [])
        checkpoint = self._call("sui_getCheckpoint", [str(sequence)])
        try:
            return int(checkpoint["timestampMs"])
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Unreadable checkpoint %s: %s", sequence, checkpoint)
            msg = "chain state is unavailable"
            raise VerificationRejected("chain_unavailable", msg, 503) from e


class InMemoryChainReader:
    """Static chain state, for tests and local development."""

    def __init__(self) -> None:
        self.objects: dict[str, ChainObject] = {}
        self.checkpoint_timestamp: int | None = None

    def add_object(self, object_id: str, struct_type: str, owner: str | None) -> None:
        object_id = CryptoUtils.normalize_address(object_id)
        if owner is not None:
            owner = CryptoUtils.normalize_address(owner)
        self.objects[object_id] = ChainObject(
            object_id=object_id, type=struct_type, owner=owner
        )

    def read_object(self, object_id: str) -> bytes:
        obj = self.objects.get(CryptoUtils.normalize_address(object_id))
        return obj.model_dump_json().encode() if obj else b""

    def owned_objects(self, address: str, struct_type: str) -> list[str]:
        address = CryptoUtils.normalize_address(address)
        return [
            obj.object_id
            for obj in self.objects.values()
            if obj.owner == address and type_matches(obj.type, struct_type)
        ]

    def latest_checkpoint_timestamp(self) -> int:
        """Fixed checkpoint time when set, otherwise always current."""
        if self.checkpoint_timestamp is None:
            return current_epoch_time()
        return self.checkpoint_timestamp


def check_fresh(reader: IChainReader, now: int, allowed_staleness_ms: int) -> None:
    """Refuse to answer from a fullnode lagging more than the allowed staleness."""
    staleness = now - reader.latest_checkpoint_timestamp()
    if staleness > allowed_staleness_ms:
        logger.warning("Fullnode is stale, latest checkpoint is %d ms old", staleness)
        msg = "chain state is stale"
        raise VerificationRejected("chain_unavailable", msg, 503)


def type_matches(object_type: str, struct_type: str) -> bool:
    """Compare struct types by ``module::Struct``, ignoring the package."""
    return object_type.split("::")[-2:] == struct_type.split("::")[-2:]
