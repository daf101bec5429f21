# msigvote/abi/local.py
"""
LocalAbiCodec: deterministic in-process ABI body encoder/decoder.

Layout
------
A body is the 4-byte function id followed by each declared input in order.
External bodies carry one leading header byte (0x00, "no signature"); signing
is the dispatcher's job.

Function id: the fixed `id` from the document when present, otherwise the
first 4 bytes of sha256(signature) where signature is `name(ins)(outs)vN`;
the high bit is cleared for input bodies.

Types and JSON transport forms:
  - "uintN"   : N/8 bytes big-endian   <-> int, decimal string or "0x" hex string
  - "bool"    : 1 byte                 <-> JSON true/false only
  - "bytes"   : u32 length + raw bytes <-> hex string
  - "cell"    : u32 length + raw bytes <-> base64 string
  - "address" : i8 workchain + 32 bytes <-> "wc:hex64"
  - "T[]"     : u32 count + items      <-> list
  - "tuple"   : components in order    <-> object with exactly the component names

Decoded uints come back as decimal strings.
"""

import hashlib
import logging
import re
from typing import Any, Dict, Mapping, Sequence

from msigvote.core.encoding import b64_decode, b64_encode, hex_to_bytes, parse_uint
from msigvote.core.errors import SchemaMismatchError
from msigvote.core.types import AbiParam, ContractInterface, FunctionSignature
from . import AbiService

logger = logging.getLogger("msigvote.abi.local")

ADDRESS_HASH_LEN = 32
_ADDRESS = re.compile(r"(-?[0-9]{1,3}):([0-9a-fA-F]{64})")
EXTERNAL_HEADER = b"\x00"


def function_id(interface: ContractInterface, f: FunctionSignature) -> int:
    if f.selector is not None:
        return int(f.selector, 16)
    digest = hashlib.sha256(f.signature(interface.abi_version).encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") & 0x7FFFFFFF


# ---------------- Encoding ----------------

def _uint_bits(t: str) -> int:
    try:
        bits = int(t[len("uint"):])
    except ValueError:
        raise SchemaMismatchError(f"unsupported abi type: {t}")
    if bits <= 0 or bits % 8:
        raise SchemaMismatchError(f"unsupported abi type: {t}")
    return bits


def _encode_value(p: AbiParam, t: str, value: Any, path: str) -> bytes:
    if t.endswith("[]"):
        if not isinstance(value, list):
            raise SchemaMismatchError(f"{path}: {t} expects a list")
        item_type = t[:-2]
        out = len(value).to_bytes(4, "big")
        for i, item in enumerate(value):
            out += _encode_value(p, item_type, item, f"{path}[{i}]")
        return out
    if t == "tuple":
        if not isinstance(value, Mapping):
            raise SchemaMismatchError(f"{path}: tuple expects an object")
        _check_names(p.components, value, path)
        return b"".join(
            _encode_value(c, c.type, value[c.name], f"{path}.{c.name}") for c in p.components
        )
    if t.startswith("uint"):
        bits = _uint_bits(t)
        try:
            n = parse_uint(value)
        except ValueError as e:
            raise SchemaMismatchError(f"{path}: {t} {e}") from e
        if n >= 1 << bits:
            raise SchemaMismatchError(f"{path}: {t} overflow")
        return n.to_bytes(bits // 8, "big")
    if t == "bool":
        if not isinstance(value, bool):
            raise SchemaMismatchError(f"{path}: bool expects true/false")
        return b"\x01" if value else b"\x00"
    if t == "bytes":
        if not isinstance(value, str):
            raise SchemaMismatchError(f"{path}: bytes expects a hex string")
        try:
            raw = hex_to_bytes(value)
        except ValueError as e:
            raise SchemaMismatchError(f"{path}: invalid hex: {e}") from e
        return _with_length(raw, path)
    if t == "cell":
        if not isinstance(value, str):
            raise SchemaMismatchError(f"{path}: cell expects a base64 string")
        try:
            raw = b64_decode(value)
        except ValueError as e:
            raise SchemaMismatchError(f"{path}: {e}") from e
        return _with_length(raw, path)
    if t == "address":
        return _encode_address(value, path)
    raise SchemaMismatchError(f"unsupported abi type: {t}")


def _with_length(raw: bytes, path: str) -> bytes:
    if len(raw) >= 1 << 32:
        raise SchemaMismatchError(f"{path}: exceeds maximum length")
    return len(raw).to_bytes(4, "big") + raw


def _encode_address(value: Any, path: str) -> bytes:
    match = _ADDRESS.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise SchemaMismatchError(f"{path}: address expects 'workchain:hex', got {value!r}")
    wc = int(match.group(1))
    if not -128 <= wc <= 127:
        raise SchemaMismatchError(f"{path}: workchain {wc} out of range")
    account = bytes.fromhex(match.group(2))
    return wc.to_bytes(1, "big", signed=True) + account


def _check_names(declared: Sequence[AbiParam], given: Mapping[str, Any], path: str) -> None:
    names = [p.name for p in declared]
    missing = [n for n in names if n not in given]
    unknown = [k for k in given if k not in names]
    if missing or unknown:
        parts = []
        if missing:
            parts.append(f"missing {missing}")
        if unknown:
            parts.append(f"unknown {unknown}")
        raise SchemaMismatchError(f"{path}: " + ", ".join(parts))


# ---------------- Decoding ----------------

class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int, what: str) -> bytes:
        if self.pos + n > len(self.data):
            raise SchemaMismatchError(f"body truncated while reading {what}")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos


def _decode_value(p: AbiParam, t: str, r: _Reader, path: str) -> Any:
    if t.endswith("[]"):
        count = int.from_bytes(r.take(4, path), "big")
        return [_decode_value(p, t[:-2], r, f"{path}[{i}]") for i in range(count)]
    if t == "tuple":
        return {c.name: _decode_value(c, c.type, r, f"{path}.{c.name}") for c in p.components}
    if t.startswith("uint"):
        return str(int.from_bytes(r.take(_uint_bits(t) // 8, path), "big"))
    if t == "bool":
        b = r.take(1, path)
        if b not in (b"\x00", b"\x01"):
            raise SchemaMismatchError(f"{path}: invalid bool byte")
        return b == b"\x01"
    if t in ("bytes", "cell"):
        length = int.from_bytes(r.take(4, path), "big")
        raw = r.take(length, path)
        return raw.hex() if t == "bytes" else b64_encode(raw)
    if t == "address":
        wc = int.from_bytes(r.take(1, path), "big", signed=True)
        return f"{wc}:{r.take(ADDRESS_HASH_LEN, path).hex()}"
    raise SchemaMismatchError(f"unsupported abi type: {t}")


class LocalAbiCodec(AbiService):
    """In-process AbiService. Pure and deterministic: no clock, no randomness."""

    def encode_body(
        self,
        interface: ContractInterface,
        function: str,
        params: Mapping[str, Any],
        internal: bool,
    ) -> str:
        f = interface.function(function)
        if not isinstance(params, Mapping):
            raise SchemaMismatchError(f"{function}: params must be an object")
        _check_names(f.inputs, params, function)

        body = function_id(interface, f).to_bytes(4, "big")
        for p in f.inputs:
            body += _encode_value(p, p.type, params[p.name], f"{function}.{p.name}")
        if not internal:
            body = EXTERNAL_HEADER + body
        logger.debug(f"Encoded {interface.name}.{function} body ({len(body)} bytes, internal={internal})")
        return b64_encode(body)

    def decode_input_body(
        self,
        interface: ContractInterface,
        function: str,
        body: str,
        internal: bool = True,
    ) -> Dict[str, Any]:
        f = interface.function(function)
        if not isinstance(body, str):
            raise SchemaMismatchError("body must be a base64 string")
        try:
            data = b64_decode(body)
        except ValueError as e:
            raise SchemaMismatchError(str(e)) from e

        r = _Reader(data)
        if not internal and r.take(1, "header") != EXTERNAL_HEADER:
            raise SchemaMismatchError("unexpected external message header")
        fid = int.from_bytes(r.take(4, "function id"), "big")
        expected = function_id(interface, f)
        if fid != expected:
            raise SchemaMismatchError(
                f"function id 0x{fid:08x} does not match {interface.name}.{function} (0x{expected:08x})")

        decoded = {p.name: _decode_value(p, p.type, r, f"{function}.{p.name}") for p in f.inputs}
        if r.remaining:
            raise SchemaMismatchError(f"{r.remaining} trailing bytes after {interface.name}.{function} body")
        return decoded

