"""
Best-effort normalization of Kubernetes resource quantities.

Memory and storage quantities are expressed in gigabytes and CPU quantities
in cores. Binary and decimal suffixes both map onto the same GB base, so
``"1Gi"`` and ``"1G"`` both normalize to ``1.0``. A bare number is returned
as is by ``normalize_quantity`` (whole cores for CPU); ``normalize_memory``
reads it as a byte count instead.

The parser is lenient on purpose: missing or malformed input yields ``0.0``.
It feeds aggregate statistics and utilization views only and must not be
used for anything that needs an exact quantity.
"""

import re
from typing import Any, Dict, List, Optional, Union

_QUANTITY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)([A-Za-z]*)\s*$")

# Multipliers onto the GB / core base.
_BINARY_SUFFIXES = {
    "Ki": 1.0 / 1024**2,
    "Mi": 1.0 / 1024,
    "Gi": 1.0,
    "Ti": 1024.0,
    "Pi": 1024.0**2,
    "Ei": 1024.0**3,
}

_DECIMAL_SUFFIXES = {
    "n": 1e-9,
    "u": 1e-6,
    "m": 1e-3,
    "k": 1.0 / 1000**2,
    "M": 1.0 / 1000,
    "G": 1.0,
    "T": 1000.0,
    "P": 1000.0**2,
    "E": 1000.0**3,
}


def normalize_quantity(quantity: Union[str, int, float, None]) -> float:
    """
    Normalizes a quantity string into gigabytes (memory/storage) or cores (CPU).

    Examples:
        >>> normalize_quantity("512Mi")
        0.5
        >>> normalize_quantity("500m")
        0.5
        >>> normalize_quantity("garbage")
        0.0
    """
    if quantity is None:
        return 0.0
    if isinstance(quantity, bool):
        return 0.0
    if isinstance(quantity, (int, float)):
        return float(quantity)

    match = _QUANTITY_RE.match(str(quantity))
    if not match:
        return 0.0

    value = float(match.group(1))
    suffix = match.group(2)
    if not suffix:
        return value
    if suffix in _BINARY_SUFFIXES:
        return value * _BINARY_SUFFIXES[suffix]
    if suffix in _DECIMAL_SUFFIXES:
        return value * _DECIMAL_SUFFIXES[suffix]
    return 0.0


def normalize_memory(quantity: Union[str, int, float, None]) -> float:
    """
    Like normalize_quantity, but a memory quantity without a suffix is a
    byte count, as Kubernetes reads it.

    Examples:
        >>> normalize_memory("134217728")
        0.125
        >>> normalize_memory("1Gi")
        1.0
    """
    if isinstance(quantity, bool):
        return 0.0
    if isinstance(quantity, (int, float)):
        return float(quantity) / 1024**3
    match = _QUANTITY_RE.match(str(quantity)) if quantity is not None else None
    if match and not match.group(2):
        return float(match.group(1)) / 1024**3
    return normalize_quantity(quantity)


def sum_container_requests(containers: Optional[List[Any]]) -> Dict[str, float]:
    """Sums CPU (cores) and memory (GB) requests over a pod's containers."""
    totals = {"cpu": 0.0, "memory": 0.0}
    for container in containers or []:
        resources = getattr(container, "resources", None)
        requests = (getattr(resources, "requests", None) if resources else None) or {}
        totals["cpu"] += normalize_quantity(requests.get("cpu"))
        totals["memory"] += normalize_memory(requests.get("memory"))
    return totals
