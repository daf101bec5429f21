# msigvote/transport/sandbox.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from msigvote.abi import AbiService
from msigvote.abi.local import LocalAbiCodec
from msigvote.core.encoding import b64_decode, parse_uint
from msigvote.core.errors import SchemaMismatchError, TransportError
from msigvote.core.types import ContractInterface
from msigvote.crypto.keys import SignerKeys
from . import Dispatcher

logger = logging.getLogger("msigvote.transport.sandbox")

# Exit codes the SafeMultisig contract uses for the same conditions
EXIT_NOT_CUSTODIAN = 100
EXIT_TRANSACTION_NOT_FOUND = 102
DEFAULT_SEND_FLAGS = 3


class SandboxLedger(Dispatcher):
    """
    Local stand-in for the ledger, good enough to exercise proposals end to end.

    Every call is shaped through the ABI service exactly as a real external
    message would be, so field-name/type errors surface the same way. Only
    the wallet bookkeeping needed for submit/confirm/list is modelled; the
    contract's execution rules are not.
    State can be persisted to a JSON file so separate CLI runs share it.
    """

    def __init__(
        self,
        abi: Optional[AbiService] = None,
        state_path: Optional[Path] = None,
    ):
        self.abi = abi or LocalAbiCodec()
        self.state_path = Path(state_path) if state_path else None
        self.wallets: Dict[str, Dict[str, Any]] = {}

        if self.state_path and self.state_path.exists():
            with open(self.state_path, "r", encoding="utf-8") as f:
                self.wallets = json.load(f).get("wallets", {})
            logger.info(f"Loaded {len(self.wallets)} wallets from {self.state_path}")

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    def deploy(self, address: str, custodians: Sequence[str], required_confirms: int = 1) -> None:
        """Register a wallet with the given custodian public keys (hex)."""
        if not custodians:
            raise ValueError("At least one custodian is required")
        if not 1 <= required_confirms <= len(custodians):
            raise ValueError(f"required_confirms must be between 1 and {len(custodians)}")
        if address in self.wallets:
            raise ValueError(f"Wallet {address} is already deployed")
        self.wallets[address] = {
            "custodians": [c.lower() for c in custodians],
            "required": required_confirms,
            "next_id": 1,
            "transactions": [],
        }
        self._save()
        logger.info(f"Deployed wallet {address} ({required_confirms}/{len(custodians)} confirmations)")

    def _wallet(self, address: str) -> Dict[str, Any]:
        wallet = self.wallets.get(address)
        if wallet is None:
            raise TransportError(f"Account {address} does not exist")
        return wallet

    def _save(self) -> None:
        if self.state_path is None:
            return
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, "w", encoding="utf-8") as f:
            json.dump({"wallets": self.wallets}, f, indent=2)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def call(
        self,
        interface: ContractInterface,
        address: str,
        function: str,
        params_json: str,
        keys: Optional[SignerKeys],
        local: bool,
    ) -> Optional[Dict[str, Any]]:
        try:
            params = json.loads(params_json)
        except json.JSONDecodeError as e:
            raise SchemaMismatchError(f"params are not valid JSON: {e}") from e
        if not isinstance(params, dict):
            raise SchemaMismatchError("params must be a JSON object")

        body = self.abi.encode_body(interface, function, params, internal=False)
        wallet = self._wallet(address)

        if local:
            return {"output": self._run_getter(wallet, function, params)}

        if keys is None or keys.secret is None:
            raise TransportError("Signer keys with a secret are required to send a message")
        if keys.public not in wallet["custodians"]:
            raise TransportError(f"Contract exit code {EXIT_NOT_CUSTODIAN}: sender is not a custodian")
        index = wallet["custodians"].index(keys.public)

        message = b64_decode(body)
        signature = keys.sign(message)
        custodian = SignerKeys(public=wallet["custodians"][index])
        if not custodian.verify(signature, message):
            raise TransportError(f"Message signature does not match custodian {index}")

        if function == "submitTransaction":
            self._submit(wallet, params, keys, index)
        elif function == "confirmTransaction":
            self._confirm(wallet, params, index)
        else:
            raise TransportError(f"Sandbox does not execute '{function}'")
        self._save()
        return None

    def _submit(self, wallet: Dict[str, Any], params: Dict[str, Any], keys: SignerKeys, index: int) -> None:
        trid = str(wallet["next_id"])
        wallet["next_id"] += 1
        wallet["transactions"].append({
            "id": trid,
            "confirmationsMask": 1 << index,
            "signsRequired": wallet["required"],
            "signsReceived": 1,
            "creator": "0x" + keys.public,
            "index": index,
            "dest": params["dest"],
            "value": str(parse_uint(params["value"])),
            "sendFlags": DEFAULT_SEND_FLAGS,
            "payload": params["payload"],
            "bounce": params["bounce"],
        })
        logger.info(f"Transaction {trid} submitted by custodian {index}")

    def _confirm(self, wallet: Dict[str, Any], params: Dict[str, Any], index: int) -> None:
        trid = str(parse_uint(params["transactionId"]))
        for txn in wallet["transactions"]:
            if txn["id"] == trid:
                bit = 1 << index
                # Repeated confirmation by the same custodian leaves the mask unchanged
                if not txn["confirmationsMask"] & bit:
                    txn["confirmationsMask"] |= bit
                    txn["signsReceived"] += 1
                logger.info(f"Transaction {trid} confirmed by custodian {index} "
                            f"({txn['signsReceived']}/{txn['signsRequired']})")
                return
        raise TransportError(f"Contract exit code {EXIT_TRANSACTION_NOT_FOUND}: transaction {trid} does not exist")

    def _run_getter(self, wallet: Dict[str, Any], function: str, params: Dict[str, Any]) -> Dict[str, Any]:
        txns: List[Dict[str, Any]] = wallet["transactions"]
        if function == "getTransactions":
            return {"transactions": [dict(t) for t in txns]}
        if function == "getTransactionIds":
            return {"ids": [t["id"] for t in txns]}
        if function == "getTransaction":
            trid = str(parse_uint(params["transactionId"]))
            for t in txns:
                if t["id"] == trid:
                    return {"trans": dict(t)}
            raise TransportError(f"Contract exit code {EXIT_TRANSACTION_NOT_FOUND}: transaction {trid} does not exist")
        if function == "getCustodians":
            return {"custodians": [
                {"index": i, "pubkey": "0x" + pk} for i, pk in enumerate(wallet["custodians"])
            ]}
        raise TransportError(f"Sandbox does not run getter '{function}'")
