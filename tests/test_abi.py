# tests/test_abi.py
import pytest

from msigvote.abi import AbiService, LocalAbiCodec, create_abi_service
from msigvote.abi.local import function_id
from msigvote.abi.schemas import COMMENT_TRANSFER, WALLET
from msigvote.core.encoding import b64_decode, b64_encode
from msigvote.core.errors import SchemaMismatchError

from conftest import DEST_ADDR


@pytest.fixture
def codec() -> LocalAbiCodec:
    return LocalAbiCodec()


def submit_params(**overrides):
    params = {
        "dest": DEST_ADDR,
        "value": 1000000,
        "bounce": True,
        "allBalance": False,
        "payload": b64_encode(b"inner"),
    }
    params.update(overrides)
    return params


def test_factory_routes_local():
    assert isinstance(create_abi_service("local://"), LocalAbiCodec)
    with pytest.raises(ValueError, match="Unsupported"):
        create_abi_service("https://abi.example")


def test_local_codec_is_an_abi_service(codec):
    assert isinstance(codec, AbiService)


def test_function_ids():
    assert function_id(COMMENT_TRANSFER, COMMENT_TRANSFER.function("transfer")) == 0
    submit = function_id(WALLET, WALLET.function("submitTransaction"))
    confirm = function_id(WALLET, WALLET.function("confirmTransaction"))
    assert submit != confirm
    assert submit < 0x80000000


def test_transfer_body_layout(codec):
    body = codec.encode_body(COMMENT_TRANSFER, "transfer", {"comment": "6869"}, internal=True)
    assert b64_decode(body) == b"\x00\x00\x00\x00" + b"\x00\x00\x00\x02" + b"hi"


def test_external_body_has_header(codec):
    internal = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "42"}, internal=True)
    external = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "42"}, internal=False)
    assert b64_decode(external) == b"\x00" + b64_decode(internal)


def test_submit_roundtrip_json_forms(codec):
    body = codec.encode_body(WALLET, "submitTransaction", submit_params(), internal=True)
    decoded = codec.decode_input_body(WALLET, "submitTransaction", body)
    assert decoded == {
        "dest": DEST_ADDR,
        "value": "1000000",
        "bounce": True,
        "allBalance": False,
        "payload": b64_encode(b"inner"),
    }


def test_uint_accepts_decimal_and_hex_strings(codec):
    a = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": 42}, internal=True)
    b = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "42"}, internal=True)
    c = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "0x2a"}, internal=True)
    assert a == b == c


def test_arrays_and_tuples(codec):
    owners = ["1", "0x" + "ff" * 32]
    body = codec.encode_body(WALLET, "constructor", {"owners": owners, "reqConfirms": 2}, internal=True)
    decoded = codec.decode_input_body(WALLET, "constructor", body)
    assert decoded["owners"] == ["1", str(int("ff" * 32, 16))]
    assert decoded["reqConfirms"] == "2"


@pytest.mark.parametrize("params,match", [
    ({"transactionId": "42", "extra": 1}, "unknown"),
    ({}, "missing"),
    ({"transactionId": True}, "uint64"),
    ({"transactionId": "-1"}, "uint64"),
    ({"transactionId": str(1 << 64)}, "overflow"),
    ({"transactionId": "0x"}, "uint64"),
    ({"transactionId": " 42 "}, "uint64"),
])
def test_confirm_rejects_bad_params(codec, params, match):
    with pytest.raises(SchemaMismatchError, match=match):
        codec.encode_body(WALLET, "confirmTransaction", params, internal=False)


@pytest.mark.parametrize("field,value", [
    ("bounce", 1),
    ("bounce", "true"),
    ("dest", "not-an-address"),
    ("dest", "0:abc"),
    ("dest", "999:" + "00" * 32),
    ("dest", " 0:" + "00" * 32),
    ("dest", "0:" + "00 " * 32),
    ("dest", "+0:" + "00" * 32),
    ("payload", "%%%"),
    ("payload", b"raw bytes"),
])
def test_submit_rejects_coercion(codec, field, value):
    with pytest.raises(SchemaMismatchError):
        codec.encode_body(WALLET, "submitTransaction", submit_params(**{field: value}), internal=False)


def test_bytes_requires_hex(codec):
    with pytest.raises(SchemaMismatchError, match="hex"):
        codec.encode_body(COMMENT_TRANSFER, "transfer", {"comment": "xyz"}, internal=True)


@pytest.mark.parametrize("comment", ["abc", "0x6", "68 69"])
def test_bytes_rejects_odd_or_spaced_hex(codec, comment):
    with pytest.raises(SchemaMismatchError, match="hex"):
        codec.encode_body(COMMENT_TRANSFER, "transfer", {"comment": comment}, internal=True)


def test_unknown_function(codec):
    with pytest.raises(SchemaMismatchError):
        codec.encode_body(WALLET, "withdrawAll", {}, internal=False)


def test_decode_rejects_wrong_function(codec):
    body = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "1"}, internal=True)
    with pytest.raises(SchemaMismatchError, match="function id"):
        codec.decode_input_body(COMMENT_TRANSFER, "transfer", body)


@pytest.mark.parametrize("body", [
    "",
    "AAAA",                                           # 3 bytes, shorter than a function id
    b64_encode(b"\x00\x00\x00\x00\x00\x00\x00\x09hi"),  # declared length past the end
    b64_encode(b"\x00\x00\x00\x00\x00\x00\x00\x01hi"),  # trailing byte
    "!!not-base64!!",
])
def test_decode_rejects_malformed(codec, body):
    with pytest.raises(SchemaMismatchError):
        codec.decode_input_body(COMMENT_TRANSFER, "transfer", body)


def test_decode_external_requires_header(codec):
    internal = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "5"}, internal=True)
    external = codec.encode_body(WALLET, "confirmTransaction", {"transactionId": "5"}, internal=False)
    assert codec.decode_input_body(WALLET, "confirmTransaction", external, internal=False) == {"transactionId": "5"}
    with pytest.raises(SchemaMismatchError):
        codec.decode_input_body(WALLET, "confirmTransaction", b64_encode(b"\x01" + b64_decode(internal)), internal=False)
