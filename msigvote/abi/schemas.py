# msigvote/abi/schemas.py
"""
Bundled contract interfaces.

WALLET            : SafeMultisig wallet (ABI v2), the contract proposals and votes go to.
COMMENT_TRANSFER  : single `transfer(comment: bytes)` function pinned to id 0x00000000,
                    only ever used as the layout of an embedded message body.

Both documents are checked against the expectation tables below when this
module is imported; drift raises SchemaValidationError instead of showing up
later as an obscure encode failure.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from msigvote.core.errors import SchemaValidationError
from msigvote.core.types import ContractInterface
from msigvote.verify.schema_check import Expectation, SchemaCheckResult, SchemaVerifier

logger = logging.getLogger("msigvote.abi.schemas")

SCHEMA_VERSION = "2020.1"

WALLET_ABI = r"""{
	"ABI version": 2,
	"header": ["pubkey", "time", "expire"],
	"functions": [
		{
			"name": "constructor",
			"inputs": [
				{"name":"owners","type":"uint256[]"},
				{"name":"reqConfirms","type":"uint8"}
			],
			"outputs": []
		},
		{
			"name": "acceptTransfer",
			"inputs": [
				{"name":"payload","type":"bytes"}
			],
			"outputs": []
		},
		{
			"name": "sendTransaction",
			"inputs": [
				{"name":"dest","type":"address"},
				{"name":"value","type":"uint128"},
				{"name":"bounce","type":"bool"},
				{"name":"flags","type":"uint8"},
				{"name":"payload","type":"cell"}
			],
			"outputs": []
		},
		{
			"name": "submitTransaction",
			"inputs": [
				{"name":"dest","type":"address"},
				{"name":"value","type":"uint128"},
				{"name":"bounce","type":"bool"},
				{"name":"allBalance","type":"bool"},
				{"name":"payload","type":"cell"}
			],
			"outputs": [
				{"name":"transId","type":"uint64"}
			]
		},
		{
			"name": "confirmTransaction",
			"inputs": [
				{"name":"transactionId","type":"uint64"}
			],
			"outputs": []
		},
		{
			"name": "isConfirmed",
			"inputs": [
				{"name":"mask","type":"uint32"},
				{"name":"index","type":"uint8"}
			],
			"outputs": [
				{"name":"confirmed","type":"bool"}
			]
		},
		{
			"name": "getParameters",
			"inputs": [],
			"outputs": [
				{"name":"maxQueuedTransactions","type":"uint8"},
				{"name":"maxCustodianCount","type":"uint8"},
				{"name":"expirationTime","type":"uint64"},
				{"name":"minValue","type":"uint128"},
				{"name":"requiredTxnConfirms","type":"uint8"}
			]
		},
		{
			"name": "getTransaction",
			"inputs": [
				{"name":"transactionId","type":"uint64"}
			],
			"outputs": [
				{"components":[{"name":"id","type":"uint64"},{"name":"confirmationsMask","type":"uint32"},{"name":"signsRequired","type":"uint8"},{"name":"signsReceived","type":"uint8"},{"name":"creator","type":"uint256"},{"name":"index","type":"uint8"},{"name":"dest","type":"address"},{"name":"value","type":"uint128"},{"name":"sendFlags","type":"uint16"},{"name":"payload","type":"cell"},{"name":"bounce","type":"bool"}],"name":"trans","type":"tuple"}
			]
		},
		{
			"name": "getTransactions",
			"inputs": [],
			"outputs": [
				{"components":[{"name":"id","type":"uint64"},{"name":"confirmationsMask","type":"uint32"},{"name":"signsRequired","type":"uint8"},{"name":"signsReceived","type":"uint8"},{"name":"creator","type":"uint256"},{"name":"index","type":"uint8"},{"name":"dest","type":"address"},{"name":"value","type":"uint128"},{"name":"sendFlags","type":"uint16"},{"name":"payload","type":"cell"},{"name":"bounce","type":"bool"}],"name":"transactions","type":"tuple[]"}
			]
		},
		{
			"name": "getTransactionIds",
			"inputs": [],
			"outputs": [
				{"name":"ids","type":"uint64[]"}
			]
		},
		{
			"name": "getCustodians",
			"inputs": [],
			"outputs": [
				{"components":[{"name":"index","type":"uint8"},{"name":"pubkey","type":"uint256"}],"name":"custodians","type":"tuple[]"}
			]
		}
	],
	"data": [],
	"events": [
		{
			"name": "TransferAccepted",
			"inputs": [
				{"name":"payload","type":"bytes"}
			],
			"outputs": []
		}
	]
}"""

COMMENT_TRANSFER_ABI = r"""{
	"ABI version": 1,
	"functions": [
		{
			"name": "transfer",
			"id": "0x00000000",
			"inputs": [{"name":"comment","type":"bytes"}],
			"outputs": []
		}
	],
	"events": [],
	"data": []
}"""

_TRANSACTION = (
    "id:uint64,confirmationsMask:uint32,signsRequired:uint8,signsReceived:uint8,"
    "creator:uint256,index:uint8,dest:address,value:uint128,sendFlags:uint16,"
    "payload:cell,bounce:bool"
)

WALLET_FUNCTIONS: Dict[str, Expectation] = {
    "constructor": (["owners:uint256[]", "reqConfirms:uint8"], [], None),
    "acceptTransfer": (["payload:bytes"], [], None),
    "sendTransaction": (
        ["dest:address", "value:uint128", "bounce:bool", "flags:uint8", "payload:cell"], [], None),
    "submitTransaction": (
        ["dest:address", "value:uint128", "bounce:bool", "allBalance:bool", "payload:cell"],
        ["transId:uint64"], None),
    "confirmTransaction": (["transactionId:uint64"], [], None),
    "isConfirmed": (["mask:uint32", "index:uint8"], ["confirmed:bool"], None),
    "getParameters": ([], [
        "maxQueuedTransactions:uint8", "maxCustodianCount:uint8", "expirationTime:uint64",
        "minValue:uint128", "requiredTxnConfirms:uint8"], None),
    "getTransaction": (["transactionId:uint64"], [f"trans:tuple({_TRANSACTION})"], None),
    "getTransactions": ([], [f"transactions:tuple[]({_TRANSACTION})"], None),
    "getTransactionIds": ([], ["ids:uint64[]"], None),
    "getCustodians": ([], ["custodians:tuple[](index:uint8,pubkey:uint256)"], None),
}
WALLET_EVENTS = {"TransferAccepted": ["payload:bytes"]}

COMMENT_TRANSFER_FUNCTIONS: Dict[str, Expectation] = {
    "transfer": (["comment:bytes"], [], "0x00000000"),
}


def check_interface(
    interface: ContractInterface,
    functions: Mapping[str, Expectation],
    events: Optional[Mapping[str, Sequence[str]]] = None,
) -> SchemaCheckResult:
    return SchemaVerifier(functions, events).verify(interface)


def load_interface(
    name: str,
    document: str,
    functions: Mapping[str, Expectation],
    events: Optional[Mapping[str, Sequence[str]]] = None,
) -> ContractInterface:
    """Parse *document* and fail fast if it does not match the expectation table."""
    interface = ContractInterface.from_json(name, document)
    result = check_interface(interface, functions, events)
    if not result:
        raise SchemaValidationError(str(result), result.failures)
    logger.debug(f"Loaded {name} interface v{interface.abi_version} ({interface.fingerprint[:12]})")
    return interface


WALLET = load_interface("Wallet", WALLET_ABI, WALLET_FUNCTIONS, WALLET_EVENTS)
COMMENT_TRANSFER = load_interface("CommentTransfer", COMMENT_TRANSFER_ABI, COMMENT_TRANSFER_FUNCTIONS)

REGISTRY: Dict[str, ContractInterface] = {
    WALLET.name: WALLET,
    COMMENT_TRANSFER.name: COMMENT_TRANSFER,
}


def verify_registry() -> List[SchemaCheckResult]:
    """Re-run the startup checks; used by the `schemas` CLI command."""
    return [
        check_interface(WALLET, WALLET_FUNCTIONS, WALLET_EVENTS),
        check_interface(COMMENT_TRANSFER, COMMENT_TRANSFER_FUNCTIONS),
    ]
