# msigvote/verify/schema_check.py
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from msigvote.core.types import AbiParam, ContractInterface

# function name -> (inputs, outputs, selector); each field is "name:type"
Expectation = Tuple[Sequence[str], Sequence[str], Optional[str]]

# TON ABI scalar types this package knows how to shape calls for
KNOWN_TYPES = {
    "bool", "bytes", "cell", "address", "tuple",
    "uint8", "uint16", "uint32", "uint64", "uint128", "uint256",
}


@dataclass
class SchemaFailure:
    location: str
    message: str
    category: str = "general"  # e.g. "function", "input", "output", "selector", "event", "type"


@dataclass
class SchemaCheckResult:
    interface: str
    is_valid: bool
    message: str = ""
    failures: List[SchemaFailure] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[SchemaFailure]:
        return self.failures[0] if self.failures else None

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return f"{self.interface}: schema is valid ✓"
        lines = [f"{self.interface}: schema check FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.location}] {f.category}: {f.message}")
        return "\n".join(lines)


def _flatten(params: Sequence[AbiParam]) -> List[str]:
    """`name:type` strings; tuple components are written as name:type(c1:t1,...)."""
    out = []
    for p in params:
        if p.components:
            inner = ",".join(_flatten(p.components))
            out.append(f"{p.name}:{p.type}({inner})")
        else:
            out.append(f"{p.name}:{p.type}")
    return out


def _base_type(t: str) -> str:
    while t.endswith("[]"):
        t = t[:-2]
    return t


class SchemaVerifier:
    """
    Compares a parsed interface document against the field names and types
    the rest of the package was written for.
    """

    def __init__(self, functions: Mapping[str, Expectation], events: Optional[Mapping[str, Sequence[str]]] = None):
        if not functions:
            raise ValueError("expected function table is required")
        self.functions = dict(functions)
        self.events: Dict[str, Sequence[str]] = dict(events or {})

    def verify(self, interface: ContractInterface) -> SchemaCheckResult:
        result = SchemaCheckResult(interface.name, True)

        # 1. Function set, in declared order
        declared = list(interface.function_names)
        if declared != list(self.functions):
            missing = [n for n in self.functions if n not in declared]
            extra = [n for n in declared if n not in self.functions]
            msg = "function set differs"
            if missing:
                msg += f"; missing {missing}"
            if extra:
                msg += f"; unexpected {extra}"
            if not missing and not extra:
                msg += "; order changed"
            result.failures.append(SchemaFailure(interface.name, msg, "function"))

        # 2. Inputs / outputs / selectors
        for f in interface.functions:
            expected = self.functions.get(f.name)
            if expected is None:
                continue
            inputs, outputs, selector = expected
            if _flatten(f.inputs) != list(inputs):
                result.failures.append(SchemaFailure(
                    f.name, f"inputs {_flatten(f.inputs)} != expected {list(inputs)}", "input"))
            if _flatten(f.outputs) != list(outputs):
                result.failures.append(SchemaFailure(
                    f.name, f"outputs {_flatten(f.outputs)} != expected {list(outputs)}", "output"))
            if f.selector != selector:
                result.failures.append(SchemaFailure(
                    f.name, f"selector {f.selector} != expected {selector}", "selector"))
            for p in _walk(f.inputs + f.outputs):
                if _base_type(p.type) not in KNOWN_TYPES:
                    result.failures.append(SchemaFailure(f.name, f"unknown type '{p.type}' on '{p.name}'", "type"))

        # 3. Events
        declared_events = {e.name: _flatten(e.inputs) for e in interface.events}
        if set(declared_events) != set(self.events):
            result.failures.append(SchemaFailure(
                interface.name, f"events {sorted(declared_events)} != expected {sorted(self.events)}", "event"))
        for name, inputs in self.events.items():
            if name in declared_events and declared_events[name] != list(inputs):
                result.failures.append(SchemaFailure(name, f"event inputs {declared_events[name]} differ", "event"))

        result.is_valid = not result.failures
        result.message = "Valid schema" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result


def _walk(params: Sequence[AbiParam]):
    for p in params:
        yield p
        yield from _walk(p.components)
