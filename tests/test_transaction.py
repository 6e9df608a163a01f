import pytest

from passgate.client.infrastructure.transaction_builder import (
    JsonTransactionBuilder,
    verify_passport_call,
)
from passgate.common.exceptions import ChainBuildError
from passgate.common.transaction import MoveCall

TARGET = "0x1::citadel::seal_approve_verify_nexus_passport"


def test_build_call_normalizes_object_ids():
    fragment = JsonTransactionBuilder().build_call(TARGET, ["0xA", "0xb"])
    call = MoveCall.from_bytes(fragment)
    assert call.target == TARGET
    assert call.resource_id == "0x" + "0" * 63 + "a"
    assert call.capability_ids == ["0x" + "0" * 63 + "b"]


def test_build_call_is_canonical():
    builder = JsonTransactionBuilder()
    assert builder.build_call(TARGET, ["0x1"]) == builder.build_call(TARGET, ["0x01"])


@pytest.mark.parametrize(
    ("target", "args", "match"),
    [
        ("citadel::seal", ["0x1"], "unknown call target"),
        (TARGET, ["not-an-id"], "invalid object id"),
        (TARGET, [], "at least a resource id"),
    ],
)
def test_build_call_errors(target, args, match):
    with pytest.raises(ChainBuildError, match=match):
        JsonTransactionBuilder().build_call(target, args)


@pytest.mark.parametrize(
    "data",
    [
        b"not json",
        b'{"target": "0x1::m::f"}',
        b'{"target": "bad", "args": ["0x1"]}',
        b'{"target": "0x1::m::f", "args": []}',
        b'{"target": "0x1::m::f", "args": ["0x1", "passport"]}',
    ],
)
def test_from_bytes_rejects_malformed(data):
    with pytest.raises(ValueError):
        MoveCall.from_bytes(data)


def test_verify_passport_call():
    build = verify_passport_call(
        JsonTransactionBuilder(), "0x1", "0xa", "0xb", "0xc"
    )
    call = MoveCall.from_bytes(build())
    assert call.target == TARGET
    assert call.package_id == "0x1"
    assert len(call.capability_ids) == 2


def test_verify_passport_call_follows_configured_function(monkeypatch):
    monkeypatch.setenv("PASSGATE_VERIFY_MODULE", "arena")
    monkeypatch.setenv("PASSGATE_VERIFY_FUNCTION", "seal_approve_entry")
    build = verify_passport_call(
        JsonTransactionBuilder(), "0x1", "0xa", "0xb", "0xc"
    )
    assert MoveCall.from_bytes(build()).target == "0x1::arena::seal_approve_entry"
