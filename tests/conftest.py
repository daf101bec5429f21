# tests/conftest.py
import json
from typing import Any, Dict, List, Optional

import pytest

from msigvote.abi.comment import encode_comment
from msigvote.crypto.keys import SignerKeys
from msigvote.transport import Dispatcher

WALLET_ADDR = "0:" + "a1" * 32
DEST_ADDR = "0:" + "b2" * 32


class FakeDispatcher(Dispatcher):
    """Records every call; getters return whatever `result` is set to."""

    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def call(self, interface, address, function, params_json, keys, local):
        self.calls.append({
            "interface": interface,
            "address": address,
            "function": function,
            "params": json.loads(params_json),
            "params_json": params_json,
            "keys": keys,
            "local": local,
        })
        if self.error is not None:
            raise self.error
        return self.result if local else None


def make_record(trid: str = "1", payload: Optional[str] = None, **overrides) -> Dict[str, Any]:
    record = {
        "id": trid,
        "confirmationsMask": 1,
        "signsRequired": 2,
        "signsReceived": 1,
        "creator": "0x" + "c3" * 32,
        "index": 0,
        "dest": DEST_ADDR,
        "value": "1000000",
        "sendFlags": 3,
        "payload": payload if payload is not None else encode_comment(f"proposal {trid}"),
        "bounce": True,
    }
    record.update(overrides)
    return record


@pytest.fixture
def keys() -> SignerKeys:
    return SignerKeys.generate()
