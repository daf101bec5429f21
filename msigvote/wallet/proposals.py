# msigvote/wallet/proposals.py
"""High-level proposal operations on a multisig wallet."""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from msigvote.abi import AbiService
from msigvote.abi.comment import CommentCodec
from msigvote.abi.schemas import WALLET
from msigvote.core.errors import MalformedRecordError, NotACommentTransfer, NotFoundError
from msigvote.core.types import CallParameters, Proposal, ProposalLookup, TransactionRecord
from msigvote.crypto.keys import SignerKeys
from msigvote.transport import Dispatcher

logger = logging.getLogger("msigvote.wallet.proposals")

# Value attached to every proposal, in nanotokens.
# TODO: confirm with product whether this is fee provisioning or should be caller-configurable
PROPOSAL_VALUE = 1000000


def build_submit_params(dest: str, payload: str) -> CallParameters:
    return CallParameters(
        function="submitTransaction",
        params={
            "dest": dest,
            "value": PROPOSAL_VALUE,
            "bounce": True,
            "allBalance": False,
            "payload": payload,
        },
    )


def build_confirm_params(trid: str) -> CallParameters:
    return CallParameters(function="confirmTransaction", params={"transactionId": trid})


def raw_transactions(result: Any) -> List[Any]:
    """Pull the `transactions` list out of a getTransactions result record, unparsed."""
    if not isinstance(result, Mapping):
        raise MalformedRecordError("getTransactions returned no result record")
    output = result.get("output", result)
    if not isinstance(output, Mapping) or "transactions" not in output:
        raise MalformedRecordError("getTransactions result has no transactions", field="transactions")
    raw = output["transactions"]
    if not isinstance(raw, list):
        raise MalformedRecordError("transactions is not a list", field="transactions")
    return raw


def transactions_from_result(result: Any) -> List[TransactionRecord]:
    return [TransactionRecord.from_dict(t) for t in raw_transactions(result)]


def find_transaction(raw_records: Iterable[Any], trid: str) -> TransactionRecord:
    """
    First record in listing order whose id equals *trid*; ids are assumed unique.

    Only ids are read up to the match, and only the matching record is parsed
    in full, so a malformed record further down the listing does not matter.
    """
    for raw in raw_records:
        if TransactionRecord.id_from_dict(raw) == trid:
            return TransactionRecord.from_dict(raw)
    raise NotFoundError(f"Proposal with id {trid} not found", transaction_id=trid)


class MultisigWallet:
    """Proposes, votes on and explains transactions of one deployed wallet."""

    def __init__(
        self,
        address: str,
        dispatcher: Dispatcher,
        abi: Optional[AbiService] = None,
    ) -> None:
        self.address = address
        self.dispatcher = dispatcher
        self.codec = CommentCodec(abi)

    def _send(self, call: CallParameters, keys: Optional[SignerKeys]) -> None:
        self.dispatcher.call(WALLET, self.address, call.function, call.to_json(), keys, False)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def create_proposal(self, dest: str, comment: str, keys: Optional[SignerKeys] = None) -> None:
        """
        Submit a transaction to *dest* carrying *comment* in its payload.

        The assigned transaction id is not returned; find it later with
        `list_proposals` / `decode_proposal`.
        """
        payload = self.codec.encode(comment)
        call = build_submit_params(dest, payload)
        self._send(call, keys)
        logger.info(f"Proposal to {dest} submitted on {self.address}")

    def vote(self, trid: str, keys: Optional[SignerKeys] = None) -> None:
        """Confirm transaction *trid*. No local duplicate check: the contract owns that."""
        self._send(build_confirm_params(trid), keys)
        logger.info(f"Confirmation for transaction {trid} sent to {self.address}")

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _get_transactions(self) -> Any:
        return self.dispatcher.call(WALLET, self.address, "getTransactions", "{}", None, True)

    def transactions(self) -> List[TransactionRecord]:
        return transactions_from_result(self._get_transactions())

    def decode_proposal(self, trid: str) -> ProposalLookup:
        """
        Find transaction *trid* and recover its comment.

        Not finding it is a normal outcome (found=False). A transaction whose
        payload is not a comment raises NotACommentTransfer.
        """
        raw = raw_transactions(self._get_transactions())
        try:
            record = find_transaction(raw, trid)
        except NotFoundError as e:
            logger.info(f"Transaction {trid} not in listing of {len(raw)} on {self.address}")
            return ProposalLookup(transaction_id=trid, found=False, message=str(e))

        comment = self.codec.decode(record.payload)
        return ProposalLookup(
            transaction_id=trid,
            found=True,
            proposal=Proposal(record=record, comment=comment),
            message=f"Proposal Comment: {comment}",
        )

    def list_proposals(self) -> List[Proposal]:
        """All pending transactions in listing order; comment is None where there is none."""
        proposals = []
        for record in self.transactions():
            try:
                comment = self.codec.decode(record.payload)
            except NotACommentTransfer as e:
                logger.warning(f"Transaction {record.id} carries no comment: {e}")
                comment = None
            proposals.append(Proposal(record=record, comment=comment))
        return proposals
