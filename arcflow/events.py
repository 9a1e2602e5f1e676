from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum

class Polarity(IntEnum):
    NEGATIVE = 0
    POSITIVE = 1

@dataclass(frozen=True)
class Event:
    """A single DVS change event; `t` is in the stream's integer time unit."""
    x: int; y: int; t: int; polarity: Polarity = Polarity.POSITIVE

def dvs_event(t, x, y, p) -> Event:
    return Event(int(x), int(y), int(t), Polarity.POSITIVE if p else Polarity.NEGATIVE)

__all__ = ["Polarity", "Event", "dvs_event"]
