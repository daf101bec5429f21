# msigvote/core/canon.py
import hashlib
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")


def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Used for call parameters handed to the dispatcher and for schema fingerprints.
    """
    return jcs.canonicalize(obj)


def canonical_json_str(obj: Any) -> str:
    """Same as above, but returns string (the form dispatchers take as paramsJson)."""
    return canonical_json(obj).decode("utf-8")


def fingerprint(obj: Any) -> str:
    """hex(sha256) of the canonical form; stable across key order and whitespace."""
    return hashlib.sha256(canonical_json(obj)).hexdigest()
