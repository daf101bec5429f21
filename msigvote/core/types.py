# msigvote/core/types.py
import json
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Mapping, Optional, Tuple

from msigvote.core.canon import canonical_json_str, fingerprint
from msigvote.core.encoding import parse_uint
from msigvote.core.errors import MalformedRecordError, SchemaMismatchError


@dataclass(frozen=True)
class AbiParam:
    """One typed input/output field. `components` is only set for tuple types."""
    name: str
    type: str
    components: Tuple["AbiParam", ...] = ()

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AbiParam":
        return cls(
            name=d["name"],
            type=d["type"],
            components=tuple(cls.from_dict(c) for c in d.get("components", ())),
        )

    def to_dict(self) -> dict:
        d = {"name": self.name, "type": self.type}
        if self.components:
            d["components"] = [c.to_dict() for c in self.components]
        return d


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    inputs: Tuple[AbiParam, ...] = ()
    outputs: Tuple[AbiParam, ...] = ()
    selector: Optional[str] = None      # "0x%08x" when the contract pins the function id

    @property
    def input_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.inputs)

    def signature(self, abi_version: int) -> str:
        """Canonical text form, e.g. `transfer(bytes)()v1`."""
        ins = ",".join(_type_string(p) for p in self.inputs)
        outs = ",".join(_type_string(p) for p in self.outputs)
        return f"{self.name}({ins})({outs})v{abi_version}"


@dataclass(frozen=True)
class EventSignature:
    name: str
    inputs: Tuple[AbiParam, ...] = ()


def _type_string(p: AbiParam) -> str:
    if p.components:
        inner = "(" + ",".join(_type_string(c) for c in p.components) + ")"
        return p.type.replace("tuple", inner, 1)
    return p.type


@dataclass(frozen=True)
class ContractInterface:
    """Immutable ABI document for one contract kind."""
    name: str
    abi_version: int
    functions: Tuple[FunctionSignature, ...]
    events: Tuple[EventSignature, ...] = ()
    header: Tuple[str, ...] = ()
    fingerprint: str = ""               # hex(sha256) of the canonical source document

    @classmethod
    def from_json(cls, name: str, document: str) -> "ContractInterface":
        # Tolerates the trailing commas / semicolon some hand-written ABI files carry
        doc = json.loads(_strip_trailing_commas(document))
        functions = tuple(
            FunctionSignature(
                name=f["name"],
                inputs=tuple(AbiParam.from_dict(p) for p in f.get("inputs", ())),
                outputs=tuple(AbiParam.from_dict(p) for p in f.get("outputs", ())),
                selector=f.get("id"),
            )
            for f in doc.get("functions", ())
        )
        events = tuple(
            EventSignature(
                name=e["name"],
                inputs=tuple(AbiParam.from_dict(p) for p in e.get("inputs", ())),
            )
            for e in doc.get("events", ())
        )
        return cls(
            name=name,
            abi_version=int(doc["ABI version"]),
            functions=functions,
            events=events,
            header=tuple(doc.get("header", ())),
            fingerprint=fingerprint(doc),
        )

    def function(self, name: str) -> FunctionSignature:
        for f in self.functions:
            if f.name == name:
                return f
        raise SchemaMismatchError(f"{self.name} has no function '{name}'")

    @property
    def function_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.functions)

    def to_dict(self) -> dict:
        """Back to the JSON document shape accepted by ABI services."""
        d: Dict[str, Any] = {"ABI version": self.abi_version}
        if self.header:
            d["header"] = list(self.header)
        functions = []
        for f in self.functions:
            fd: Dict[str, Any] = {"name": f.name}
            if f.selector is not None:
                fd["id"] = f.selector
            fd["inputs"] = [p.to_dict() for p in f.inputs]
            fd["outputs"] = [p.to_dict() for p in f.outputs]
            functions.append(fd)
        d["functions"] = functions
        d["events"] = [
            {"name": e.name, "inputs": [p.to_dict() for p in e.inputs], "outputs": []}
            for e in self.events
        ]
        d["data"] = []
        return d


def _strip_trailing_commas(document: str) -> str:
    cleaned = re.sub(r",(\s*[\]}])", r"\1", document.strip())
    return cleaned.rstrip(";").rstrip()


@dataclass(frozen=True)
class CallParameters:
    """Function name + named arguments for one contract call. Never persisted."""
    function: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return canonical_json_str(self.params)


# remote field name -> (attribute, kind)
_RECORD_FIELDS = (
    ("id", "id", "uint"),
    ("confirmationsMask", "confirmations_mask", "uint"),
    ("signsRequired", "signs_required", "uint"),
    ("signsReceived", "signs_received", "uint"),
    ("creator", "creator", "uint"),
    ("index", "index", "uint"),
    ("dest", "dest", "str"),
    ("value", "value", "uint"),
    ("sendFlags", "send_flags", "uint"),
    ("payload", "payload", "str"),
    ("bounce", "bounce", "bool"),
)


@dataclass(frozen=True)
class TransactionRecord:
    """One entry of the wallet's `getTransactions` listing. Read-only."""
    id: str                         # decimal string
    confirmations_mask: int
    signs_required: int
    signs_received: int
    creator: int                    # custodian public key as integer
    index: int                      # custodian index of the creator
    dest: str
    value: int
    send_flags: int
    payload: str                    # base64 message body
    bounce: bool

    @classmethod
    def from_dict(cls, raw: Any) -> "TransactionRecord":
        if not isinstance(raw, Mapping):
            raise MalformedRecordError(f"transaction record must be an object, got {type(raw).__name__}")
        values = {}
        for remote, attr, kind in _RECORD_FIELDS:
            if remote == "payload" and remote not in raw and "body" in raw:
                remote = "body"
            if remote not in raw:
                raise MalformedRecordError("transaction record is missing a field", field=remote)
            value = raw[remote]
            try:
                if kind == "uint":
                    value = parse_uint(value)
                elif kind == "str" and not isinstance(value, str):
                    raise ValueError(f"expected string, got {type(value).__name__}")
                elif kind == "bool" and not isinstance(value, bool):
                    raise ValueError(f"expected bool, got {type(value).__name__}")
            except ValueError as e:
                raise MalformedRecordError(f"bad value in transaction record: {e}", field=remote) from e
            values[attr] = value
        values["id"] = str(values["id"])
        return cls(**values)

    @staticmethod
    def id_from_dict(raw: Any) -> str:
        """Normalized id of a raw record, without validating its other fields."""
        if not isinstance(raw, Mapping):
            raise MalformedRecordError(f"transaction record must be an object, got {type(raw).__name__}")
        if "id" not in raw:
            raise MalformedRecordError("transaction record is missing a field", field="id")
        try:
            return str(parse_uint(raw["id"]))
        except ValueError as e:
            raise MalformedRecordError(f"bad value in transaction record: {e}", field="id") from e

    def to_dict(self) -> dict:
        d = asdict(self)
        return {remote: d[attr] for remote, attr, _ in _RECORD_FIELDS}


@dataclass(frozen=True)
class Proposal:
    """A transaction together with the comment recovered from its payload."""
    record: TransactionRecord
    comment: Optional[str]

    @property
    def id(self) -> str:
        return self.record.id


@dataclass
class ProposalLookup:
    transaction_id: str
    found: bool
    proposal: Optional[Proposal] = None
    message: str = ""

    @property
    def comment(self) -> Optional[str]:
        return self.proposal.comment if self.proposal else None

    def __bool__(self):
        return self.found

    def __str__(self):
        if self.found:
            return f"Proposal Comment: {self.comment}"
        return self.message or f"Proposal with id {self.transaction_id} not found"
