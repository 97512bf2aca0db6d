from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from eth_utils import keccak

from .card import DOUBLE_LINE, FULL_HOUSE, LINE

WIN_TYPE_INDEX = {LINE: 0, DOUBLE_LINE: 1, FULL_HOUSE: 2}

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_label(raw: str) -> str:
    """
    Map a free-text win description onto LINE / DOUBLE_LINE / FULL_HOUSE.
    Unrecognised text is upper-cased and passed through.
    """
    letters = _NON_LETTERS.sub("", str(raw).lower())
    # "full house", "full card", "fullhouse"
    if "full" in letters:
        return FULL_HOUSE
    if "double" in letters:
        return DOUBLE_LINE
    if "line" in letters:
        return LINE
    return str(raw).upper()


def normalize(raw_labels: Iterable[str]) -> List[str]:
    return [normalize_label(r) for r in raw_labels]


@dataclass(frozen=True)
class Encodings:
    strings: Tuple[str, ...]
    hashes: Tuple[bytes, ...]
    # None when a label has no enum slot on the contract
    indices: Optional[Tuple[int, ...]]


def label_hash(label: str) -> bytes:
    return keccak(text=label)


def encode(labels: Iterable[str]) -> Encodings:
    labels = tuple(labels)
    indices: Optional[Tuple[int, ...]]
    if all(label in WIN_TYPE_INDEX for label in labels):
        indices = tuple(WIN_TYPE_INDEX[label] for label in labels)
    else:
        indices = None
    return Encodings(
        strings=labels,
        hashes=tuple(label_hash(label) for label in labels),
        indices=indices,
    )
