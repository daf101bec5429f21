# msigvote/__init__.py
"""
msigvote: propose, confirm and explain multisig wallet transactions.
Each proposal can carry a human-readable comment embedded in its message payload.
"""

__version__ = "0.1.0"

from msigvote.abi.comment import CommentCodec, decode_comment, encode_comment
from msigvote.crypto.keys import SignerKeys
from msigvote.wallet.proposals import MultisigWallet, PROPOSAL_VALUE

__all__ = [
    "CommentCodec",
    "MultisigWallet",
    "PROPOSAL_VALUE",
    "SignerKeys",
    "decode_comment",
    "encode_comment",
]
