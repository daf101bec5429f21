# msigvote/abi/comment.py
import logging
from typing import Optional

from msigvote.abi import AbiService
from msigvote.abi.local import LocalAbiCodec
from msigvote.abi.schemas import COMMENT_TRANSFER
from msigvote.core.encoding import hex_to_bytes, text_to_hex
from msigvote.core.errors import NotACommentTransfer, SchemaMismatchError, Utf8DecodeError, Utf8EncodeError

logger = logging.getLogger("msigvote.abi.comment")

TRANSFER_FUNCTION = "transfer"


class CommentCodec:
    """
    Encodes free text as a comment-transfer message body and back.

    The body is meant to be embedded as the `payload` argument of another call
    (an internal body), never submitted on its own.
    """

    def __init__(self, abi: Optional[AbiService] = None):
        self.abi = abi or LocalAbiCodec()

    def encode(self, comment: str) -> str:
        """Text -> base64 body. Errors from the ABI service propagate unchanged."""
        try:
            params = {"comment": text_to_hex(comment)}
        except UnicodeEncodeError as e:
            raise Utf8EncodeError(f"comment is not encodable as UTF-8: {e}") from e
        return self.abi.encode_body(COMMENT_TRANSFER, TRANSFER_FUNCTION, params, internal=True)

    def decode(self, payload: str) -> str:
        """
        Base64 body -> text.

        Raises NotACommentTransfer when the body is not a comment transfer (the
        transaction simply carries no comment) and Utf8DecodeError when the
        recovered bytes are not text. TransportError propagates.
        """
        try:
            decoded = self.abi.decode_input_body(COMMENT_TRANSFER, TRANSFER_FUNCTION, payload)
        except NotACommentTransfer:
            raise
        except SchemaMismatchError as e:
            raise NotACommentTransfer(f"transaction doesn't contain comment: {e}") from e

        comment_hex = decoded.get("comment") if isinstance(decoded, dict) else None
        if not isinstance(comment_hex, str):
            raise NotACommentTransfer("transaction doesn't contain comment: no comment field in decoded body")
        try:
            raw = hex_to_bytes(comment_hex)
        except ValueError as e:
            raise NotACommentTransfer(f"transaction doesn't contain comment: {e}") from e

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise Utf8DecodeError(f"comment is not valid UTF-8: {e}") from e
        logger.debug(f"Decoded comment ({len(raw)} bytes)")
        return text


_default_codec = CommentCodec()


def encode_comment(comment: str) -> str:
    return _default_codec.encode(comment)


def decode_comment(payload: str) -> str:
    return _default_codec.decode(payload)
