"""
spec_values.py — turn raw product spec values into comparable SpecValues.

Spec values arrive from an AI-backed product source, so the same field can
be 16, "16", "16 GB" or "N/A" depending on the product. normalize() keeps
the original value for display and derives a separate `rank` used only for
ranking:

  16        → numeric, rank 16.0
  "16"      → numeric, rank 16.0
  "16 GB"   → text,    rank 16.0   (first embedded number)
  "N/A"     → text,    rank None   (never highlighted)

Nothing here raises: malformed input degrades to text with no rank.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

NUMERIC = "numeric"
TEXT = "text"

_WHOLE_NUMBER = re.compile(r"^\d+(\.\d+)?$")
_EMBEDDED_NUMBER = re.compile(r"\d+(\.\d+)?")

RawSpec = Union[str, int, float]


@dataclass(frozen=True)
class SpecValue:
    kind: str                   # NUMERIC | TEXT
    display: RawSpec            # what the comparison view shows
    rank: Optional[float]       # comparable projection; None = not ranked

    @property
    def is_numeric(self) -> bool:
        return self.kind == NUMERIC

    @property
    def comparable(self) -> bool:
        return self.rank is not None

    @classmethod
    def numeric(cls, value: float) -> "SpecValue":
        return cls(kind=NUMERIC, display=value, rank=float(value))

    @classmethod
    def text(cls, value: str, rank: Optional[float] = None) -> "SpecValue":
        return cls(kind=TEXT, display=value, rank=rank)


def normalize(raw: Any) -> SpecValue:
    """Normalise one raw spec value. Never raises."""
    if isinstance(raw, bool):
        # bool is an int subclass; True/False are labels, not quantities
        return SpecValue.text(str(raw))

    if isinstance(raw, (int, float)):
        if math.isfinite(raw):
            return SpecValue.numeric(raw)
        return SpecValue.text(str(raw))

    if not isinstance(raw, str):
        return SpecValue.text("" if raw is None else str(raw))

    text = raw.strip()
    if _WHOLE_NUMBER.match(text):
        return SpecValue(kind=NUMERIC, display=raw, rank=float(text))

    match = _EMBEDDED_NUMBER.search(text)
    if match:
        return SpecValue.text(raw, rank=float(match.group(0)))
    return SpecValue.text(raw)


def normalize_specs(specs: Any) -> dict[str, RawSpec]:
    """
    Convert wholly-numeric string values ("16", "6.1") to numbers, leaving
    everything else as the source sent it. Keys keep their original case.
    A non-mapping input (null, list, …) yields an empty dict.
    """
    if not isinstance(specs, dict):
        return {}

    result: dict[str, RawSpec] = {}
    for key, value in specs.items():
        if isinstance(value, str) and _WHOLE_NUMBER.match(value.strip()):
            num = float(value.strip())
            result[str(key)] = int(num) if num.is_integer() and "." not in value else num
        else:
            result[str(key)] = value
    return result
