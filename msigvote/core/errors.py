# msigvote/core/errors.py
"""
Error kinds raised by msigvote.

MsigVoteError
 ├─ SchemaMismatchError    : ABI encode/decode rejected the shape of a call or body
 │   └─ NotACommentTransfer : body decodes as something, just not as a comment transfer
 ├─ Utf8DecodeError        : recovered comment bytes are not valid UTF-8
 ├─ Utf8EncodeError        : comment text cannot be encoded as UTF-8 (lone surrogates)
 ├─ NotFoundError          : no transaction with the requested id in a listing
 ├─ TransportError         : ABI service or ledger unreachable / failed
 ├─ MalformedRecordError   : remote result is missing a field or has the wrong type
 └─ SchemaValidationError  : a bundled interface document drifted from expectations
"""

from typing import List, Optional


class MsigVoteError(Exception):
    """Base class for every msigvote error."""

    code: str = "MsigVoteError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def __str__(self) -> str:
        return self.message


class SchemaMismatchError(MsigVoteError):
    code = "SchemaMismatch"


class NotACommentTransfer(SchemaMismatchError):
    """Expected outcome for transactions whose payload carries no comment."""

    code = "NotACommentTransfer"


class Utf8DecodeError(MsigVoteError):
    code = "Utf8Decode"


class Utf8EncodeError(MsigVoteError):
    code = "Utf8Encode"


class NotFoundError(MsigVoteError):
    code = "NotFound"

    def __init__(self, message: str = "", *, transaction_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id


class TransportError(MsigVoteError):
    code = "Transport"


class MalformedRecordError(MsigVoteError):
    code = "MalformedRecord"

    def __init__(self, message: str = "", *, field: Optional[str] = None) -> None:
        if field is not None:
            message = f"{message} (field: {field})"
        super().__init__(message)
        self.field = field


class SchemaValidationError(MsigVoteError):
    code = "SchemaValidation"

    def __init__(self, message: str = "", failures: Optional[List] = None) -> None:
        super().__init__(message)
        self.failures = list(failures or [])
