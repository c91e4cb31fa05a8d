"""Parameter validation for operation calls.

Every operation receives a loosely-typed parameter bag. Before a request is
built, the bag is checked against the operation's required and allowed
parameter names. All violations are reported together.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Always accepted, whatever the operation declares
RESERVED_PARAMS = frozenset({"headers"})


class ViolationKind(str, Enum):
    """Kind of parameter violation."""

    MISSING = "missing"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Violation:
    """A single problem found in a parameter bag."""

    kind: ViolationKind
    name: str

    def __str__(self) -> str:
        if self.kind is ViolationKind.MISSING:
            return f"Missing required parameter: {self.name}"
        return f"Parameter '{self.name}' is not recognized for this operation"


def validate_params(
    bag: Mapping[str, Any] | None,
    required: Iterable[str],
    valid: Iterable[str],
) -> list[Violation] | None:
    """Check a parameter bag against required and allowed names.

    A required parameter is missing when it is absent or bound to None.
    Falsy values such as False, 0 and "" count as present.

    Args:
        bag: Caller-supplied parameters (None is treated as empty)
        required: Names that must be present, in declaration order
        valid: Every name the operation accepts

    Returns:
        None when the bag is acceptable, otherwise a non-empty list of
        violations: missing parameters first in declaration order, then
        unrecognized parameters in the order they appear in the bag.
    """
    bag = bag or {}
    allowed = set(valid)

    violations = [
        Violation(ViolationKind.MISSING, name)
        for name in required
        if bag.get(name) is None
    ]
    violations.extend(
        Violation(ViolationKind.UNRECOGNIZED, key)
        for key in bag
        if key not in allowed and key not in RESERVED_PARAMS
    )
    return violations or None
