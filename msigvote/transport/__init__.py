# msigvote/transport/__init__.py
"""
Dispatchers: send signed calls to a wallet, or run its getters locally.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from msigvote.abi import AbiService
from msigvote.core.types import ContractInterface
from msigvote.crypto.keys import SignerKeys


class Dispatcher(ABC):
    """Abstract base for everything that can talk to a deployed wallet."""

    @abstractmethod
    def call(
        self,
        interface: ContractInterface,
        address: str,
        function: str,
        params_json: str,
        keys: Optional[SignerKeys],
        local: bool,
    ) -> Optional[Dict[str, Any]]:
        """
        local=True runs a read-only getter and returns {"output": {...}};
        local=False submits a signed message and returns None.
        Failures of the ledger itself raise TransportError.
        """


def create_dispatcher(uri: str, abi: Optional[AbiService] = None) -> Dispatcher:
    from .sandbox import SandboxLedger

    stripped = uri.strip()
    if stripped.startswith("memory://"):
        return SandboxLedger(abi=abi)
    elif stripped.startswith("sandbox://"):
        raw_path = stripped[len("sandbox://"):]
        if not raw_path:
            raise ValueError(f"Sandbox URI needs a state file path: {uri}")
        return SandboxLedger(abi=abi, state_path=Path(raw_path).resolve())
    elif stripped.endswith(".json") and "://" not in stripped:
        # Plain file path -> sandbox state file
        return SandboxLedger(abi=abi, state_path=Path(stripped).resolve())
    else:
        raise ValueError(f"Unsupported network URI: {uri}")


from .sandbox import SandboxLedger

__all__ = ["Dispatcher", "create_dispatcher", "SandboxLedger"]
