# msigvote/crypto/keys.py
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)


def _raw_public(pub: Ed25519PublicKey) -> bytes:
    return pub.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


@dataclass(frozen=True)
class SignerKeys:
    """
    Ed25519 key pair in the wallet key-file format: {"public": hex64, "secret": hex64}.
    Only handed to the dispatcher, which does the actual signing.
    """
    public: str
    secret: Optional[str] = None

    @classmethod
    def generate(cls) -> "SignerKeys":
        sk = Ed25519PrivateKey.generate()
        secret = sk.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(public=_raw_public(sk.public_key()).hex(), secret=secret.hex())

    @classmethod
    def from_dict(cls, d: dict) -> "SignerKeys":
        try:
            public = bytes.fromhex(d["public"])
            secret = bytes.fromhex(d["secret"]) if d.get("secret") else None
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid key material: {e}") from e
        if len(public) != 32 or (secret is not None and len(secret) != 32):
            raise ValueError("Invalid key material: expected 32-byte public and secret keys")
        if secret is not None:
            derived = _raw_public(Ed25519PrivateKey.from_private_bytes(secret).public_key())
            if derived != public:
                raise ValueError("Invalid key material: public key does not match secret key")
        return cls(public=public.hex(), secret=secret.hex() if secret else None)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SignerKeys":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        d = {"public": self.public}
        if self.secret is not None:
            d["secret"] = self.secret
        return d

    @property
    def public_int(self) -> int:
        return int(self.public, 16)

    def sign(self, data: bytes) -> bytes:
        if self.secret is None:
            raise ValueError("Cannot sign without a secret key")
        return Ed25519PrivateKey.from_private_bytes(bytes.fromhex(self.secret)).sign(data)

    def verify(self, signature: bytes, data: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(bytes.fromhex(self.public)).verify(signature, data)
            return True
        except InvalidSignature:
            return False
