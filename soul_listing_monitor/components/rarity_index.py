"""
Rarity index loading for the Soul Listing Monitor.

The rarity dataset is a JSON array of objects with "Soul Name",
"Rarity Score" and "Rank" (formatted as "#123") keys. Loading it is a
startup precondition: any problem raises and aborts initialization.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterator, Union

from ..models.rarity import RarityEntry

logger = logging.getLogger(__name__)

NAME_KEY = "Soul Name"
SCORE_KEY = "Rarity Score"
RANK_KEY = "Rank"


def parse_rank(value: Any) -> int:
    """
    Parse a rank field such as "#123" into an integer.

    Args:
        value: Rank as found in the dataset

    Returns:
        Rank as a positive integer

    Raises:
        ValueError: If the rank cannot be parsed or is below 1
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid rank: {value!r}")

    if isinstance(value, int):
        rank = value
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("#"):
            text = text[1:]
        try:
            rank = int(text)
        except ValueError:
            raise ValueError(f"Invalid rank: {value!r}")
    else:
        raise ValueError(f"Invalid rank: {value!r}")

    if rank < 1:
        raise ValueError(f"Rank must be at least 1: {value!r}")

    return rank


def _parse_entry(raw: Any, position: int) -> RarityEntry:
    if not isinstance(raw, dict):
        raise ValueError(f"Rarity entry #{position} must be an object")

    try:
        name = raw[NAME_KEY]
        score = raw[SCORE_KEY]
        rank = raw[RANK_KEY]
    except KeyError as e:
        raise ValueError(f"Rarity entry #{position} is missing key {e}")

    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"Rarity entry #{position} has non-numeric score: {score!r}")

    entry = RarityEntry(name=str(name), rarity_score=float(score), rank=parse_rank(rank))
    entry.validate()
    return entry


def load_rarity_index(path: Union[str, Path]) -> Dict[str, RarityEntry]:
    """
    Load the rarity dataset into a name-keyed mapping.

    Args:
        path: Path to the rarity JSON file

    Returns:
        Mapping of item name to RarityEntry

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid rarity dataset
    """
    rarity_path = Path(path)
    if not rarity_path.exists():
        raise FileNotFoundError(f"Rarity file not found: {rarity_path}")

    try:
        with open(rarity_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in rarity file {rarity_path}: {e}")

    if not isinstance(data, list):
        raise ValueError(f"Rarity file root must be an array: {rarity_path}")

    index: Dict[str, RarityEntry] = {}
    for position, raw in enumerate(data):
        entry = _parse_entry(raw, position)
        if entry.name in index:
            logger.warning(f"Duplicate rarity entry ignored: {entry.name}")
            continue
        index[entry.name] = entry

    logger.info(f"Loaded {len(index)} rarity entries from {rarity_path}")
    return index


class RarityIndex(Mapping):
    """Read-only name lookup over a loaded rarity dataset."""

    def __init__(self, entries: Dict[str, RarityEntry]):
        self._entries = dict(entries)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RarityIndex":
        """Load a rarity index from a JSON file."""
        return cls(load_rarity_index(path))

    def __getitem__(self, name: str) -> RarityEntry:
        return self._entries[name]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
