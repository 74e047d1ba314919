"""Parsing of Kubernetes-style resource quantities.

CPU limits are normalized to millicores and memory limits to MiB:

    "500m" -> 500      "2" -> 2000
    "512Mi" -> 512     "1Gi" -> 1024     "256" -> 256
"""

import re
from dataclasses import dataclass

QUANTITY_PATTERN = re.compile(r"^\s*(?P<value>[+-]?\d+)(?P<suffix>.*?)\s*$")

MILLICORES_PER_CORE = 1000
MIB_PER_GIB = 1024


class InvalidQuantityError(ValueError):
    """Raised when a resource quantity has no numeric prefix."""


@dataclass(frozen=True)
class Quantity:
    """A parsed quantity: integer prefix plus the (possibly empty) unit suffix."""

    value: int
    suffix: str = ""


def parse_quantity(text: str) -> Quantity:
    """Split a quantity string into its integer prefix and unit suffix.

    Only the leading integer is read, so "1.5Gi" parses as value 1 with
    suffix ".5Gi".

    Args:
        text: Quantity string such as "500m" or "2Gi"

    Returns:
        Parsed Quantity

    Raises:
        InvalidQuantityError: If the string does not start with an integer
    """
    if not isinstance(text, str):
        raise InvalidQuantityError(f"Quantity must be a string, got {type(text).__name__}")

    match = QUANTITY_PATTERN.match(text)
    if match is None:
        raise InvalidQuantityError(f"Invalid resource quantity: {text!r}")

    return Quantity(value=int(match.group("value")), suffix=match.group("suffix"))


def cpu_millicores(quantity: Quantity) -> int:
    """Convert a parsed CPU quantity to millicores."""
    if quantity.suffix.endswith("m"):
        return quantity.value
    return quantity.value * MILLICORES_PER_CORE


def memory_mib(quantity: Quantity) -> int:
    """Convert a parsed memory quantity to MiB. Unknown suffixes count as MiB."""
    if quantity.suffix.endswith("Gi"):
        return quantity.value * MIB_PER_GIB
    return quantity.value


def parse_cpu(text: str) -> int:
    """Parse a CPU limit to millicores, returning 0 for malformed input."""
    try:
        return cpu_millicores(parse_quantity(text))
    except InvalidQuantityError:
        return 0


def parse_memory(text: str) -> int:
    """Parse a memory limit to MiB, returning 0 for malformed input."""
    try:
        return memory_mib(parse_quantity(text))
    except InvalidQuantityError:
        return 0
