"""
Identifier parsing.

An identifier is a path-style address with exactly two valid shapes::

    records        -> Collection()
    records/<n>    -> Item(n)

``parse_identifier`` is the only place strings are matched; everything
downstream switches on the returned variant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from recordstore.domain.contract import COLUMN_ID, PATH_RECORDS
from recordstore.errors import UnsupportedIdentifier

MAX_RECORD_ID = 2**63 - 1

_ITEM_PATTERN = re.compile(rf"{re.escape(PATH_RECORDS)}/([0-9]+)")


@dataclass(frozen=True)
class Collection:
    """The whole table."""

    def filter(self) -> Tuple[Optional[str], Tuple[object, ...]]:
        return None, ()

    def __str__(self) -> str:
        return PATH_RECORDS


@dataclass(frozen=True)
class Item:
    """Exactly one record, addressed by its primary key."""

    record_id: int

    def __post_init__(self) -> None:
        record_id = self.record_id
        if (
            not isinstance(record_id, int)
            or isinstance(record_id, bool)
            or not 0 <= record_id <= MAX_RECORD_ID
        ):
            raise UnsupportedIdentifier(f"{PATH_RECORDS}/{record_id}")

    @property
    def collection(self) -> Collection:
        return Collection()

    def filter(self) -> Tuple[Optional[str], Tuple[object, ...]]:
        return f"{COLUMN_ID} = ?", (self.record_id,)

    def __str__(self) -> str:
        return f"{PATH_RECORDS}/{self.record_id}"


Identifier = Union[Collection, Item]


def parse_identifier(identifier: Union[str, Identifier]) -> Identifier:
    """
    Classify ``identifier`` as a Collection or an Item.

    Already-parsed values pass through unchanged; ``Item`` checks its own id
    range on construction. Anything else that does not match the grammar,
    including ids beyond the signed 64-bit range, raises UnsupportedIdentifier.
    """
    if isinstance(identifier, (Collection, Item)):
        return identifier
    if not isinstance(identifier, str):
        raise UnsupportedIdentifier(identifier)
    if identifier == PATH_RECORDS:
        return Collection()
    match = _ITEM_PATTERN.fullmatch(identifier)
    if match is None:
        raise UnsupportedIdentifier(identifier)
    record_id = int(match.group(1))
    if record_id > MAX_RECORD_ID:
        raise UnsupportedIdentifier(identifier)
    return Item(record_id)


__all__ = [
    "Collection",
    "Identifier",
    "Item",
    "MAX_RECORD_ID",
    "parse_identifier",
]
