from __future__ import annotations
from typing import Union

_NS = {"ns":1, "us":1_000, "ms":1_000_000, "s":1_000_000_000}

TIME_UNITS = tuple(_NS)

def to_ns(value: float, unit: str) -> int:
    if unit not in _NS: raise ValueError(f"Unknown unit {unit}")
    return int(round(value * _NS[unit]))

def parse_time(s: str) -> int:
    """Parse a literal such as "5 ms" or "250us" into nanoseconds."""
    s = s.strip().lower()
    # "ns"/"us"/"ms" must be tried before the bare "s" suffix
    for u in ["ns","us","ms","s"]:
        if s.endswith(f" {u}") or s.endswith(u):
            v = float(s[: -len(u)].strip())
            return to_ns(v, u)
    raise ValueError(f"Bad time literal: {s}")

def duration_in(v: Union[str, int], unit: str) -> int:
    """
    Normalize a duration to integer ticks of `unit`.
    Ints are taken as already expressed in `unit`; strings are time literals.
    """
    if unit not in _NS: raise ValueError(f"Unknown unit {unit}")
    if isinstance(v, bool): raise ValueError(f"Bad duration: {v!r}")
    if isinstance(v, int): return v
    if isinstance(v, str): return int(round(parse_time(v) / _NS[unit]))
    raise ValueError(f"Bad duration: {v!r}")
