# msigvote/abi/__init__.py
"""
ABI services: turn call parameters into message bodies and back.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping

from msigvote.core.types import ContractInterface


class AbiService(ABC):
    """
    Capability interface for ABI encode/decode.

    Implementations raise SchemaMismatchError when a call or body does not fit
    the interface and TransportError when the service itself fails.
    """

    @abstractmethod
    def encode_body(
        self,
        interface: ContractInterface,
        function: str,
        params: Mapping[str, Any],
        internal: bool,
    ) -> str:
        """Encode a call to *function* as a base64 message body."""

    @abstractmethod
    def decode_input_body(
        self,
        interface: ContractInterface,
        function: str,
        body: str,
        internal: bool = True,
    ) -> Dict[str, Any]:
        """Decode a base64 input body that must be a call to *function*."""


def create_abi_service(uri: str) -> AbiService:
    if uri.startswith("local:"):
        from .local import LocalAbiCodec
        return LocalAbiCodec()
    else:
        raise ValueError(f"Unsupported ABI service URI: {uri}")


from .local import LocalAbiCodec

__all__ = ["AbiService", "create_abi_service", "LocalAbiCodec"]
