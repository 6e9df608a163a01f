import pytest
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey

from passgate.common.crypto import CryptoUtils


def test_wallet_address_format():
    key = Ed25519PrivateKey.generate()
    address = CryptoUtils.wallet_address(CryptoUtils.raw_public_bytes(key.public_key()))
    assert address.startswith("0x")
    assert len(address) == 66


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0x1", "0x" + "0" * 63 + "1"),
        ("ABC", "0x" + "0" * 61 + "abc"),
    ],
)
def test_normalize_address(value, expected):
    assert CryptoUtils.normalize_address(value) == expected


@pytest.mark.parametrize("value", ["0x", "0xzz", "0xa_b", "0x" + "1" * 65])
def test_normalize_address_invalid(value):
    with pytest.raises(ValueError):
        CryptoUtils.normalize_address(value)


def test_uleb128():
    assert CryptoUtils._uleb128(0) == b"\x00"
    assert CryptoUtils._uleb128(127) == b"\x7f"
    assert CryptoUtils._uleb128(300) == b"\xac\x02"


def test_personal_message_signature():
    key = Ed25519PrivateKey.generate()
    address = CryptoUtils.wallet_address(CryptoUtils.raw_public_bytes(key.public_key()))
    signature = CryptoUtils.sign_personal_message(key, b"hello")

    assert len(CryptoUtils.b64decode(signature)) == 97
    assert CryptoUtils.verify_personal_message(b"hello", signature, address)
    assert not CryptoUtils.verify_personal_message(b"hullo", signature, address)
    assert not CryptoUtils.verify_personal_message(b"hello", signature, "0x1")
    assert not CryptoUtils.verify_personal_message(b"hello", "%%%", address)


def test_seal_and_open():
    recipient = X25519PrivateKey.generate()
    recipient_pub = CryptoUtils.raw_public_bytes(recipient.public_key())
    sealed = CryptoUtils.seal(recipient_pub, b"secret", b"aad")

    assert CryptoUtils.open_sealed(recipient, sealed, b"aad") == b"secret"
    with pytest.raises(InvalidTag):
        CryptoUtils.open_sealed(recipient, sealed, b"other")


def test_canonical_json_is_sorted_and_compact():
    assert CryptoUtils.canonical_json({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'


def test_derive_resource_key_depends_on_resource():
    secret = b"m" * 32
    assert CryptoUtils.derive_resource_key(
        secret, "0x1"
    ) != CryptoUtils.derive_resource_key(secret, "0x2")
