from __future__ import annotations

import pytest

from recordstore.domain.identifiers import (
    MAX_RECORD_ID,
    Collection,
    Item,
    parse_identifier,
)
from recordstore.errors import UnsupportedIdentifier

MALFORMED = [
    "records/",
    "records/abc",
    "other",
    "",
    "records/-1",
    "records/1/2",
    "records/ 1",
    "records/1\n",
    "/records",
    "Records",
    "records/١",  # non-ASCII digit
    f"records/{MAX_RECORD_ID + 1}",
    None,
    42,
]


def test_parse_collection() -> None:
    assert parse_identifier("records") == Collection()


def test_parse_item() -> None:
    parsed = parse_identifier("records/42")

    assert parsed == Item(42)
    assert parsed.record_id == 42
    assert parsed.collection == Collection()


def test_parse_item_accepts_zero_and_leading_zeros() -> None:
    assert parse_identifier("records/0") == Item(0)
    assert parse_identifier("records/007") == Item(7)


def test_parse_item_accepts_largest_signed_64_bit_id() -> None:
    assert parse_identifier(f"records/{MAX_RECORD_ID}") == Item(MAX_RECORD_ID)


@pytest.mark.parametrize("identifier", MALFORMED)
def test_parse_rejects_malformed(identifier) -> None:
    with pytest.raises(UnsupportedIdentifier) as excinfo:
        parse_identifier(identifier)
    assert excinfo.value.identifier == identifier


def test_parsed_values_pass_through_and_format() -> None:
    item = Item(5)

    assert parse_identifier(item) is item
    assert str(item) == "records/5"
    assert str(Collection()) == "records"


def test_implicit_filters() -> None:
    assert Collection().filter() == (None, ())
    assert Item(9).filter() == ("id = ?", (9,))


@pytest.mark.parametrize("record_id", [-1, MAX_RECORD_ID + 1, 2**64, True, "5", 1.0])
def test_item_rejects_ids_outside_the_grammar(record_id) -> None:
    with pytest.raises(UnsupportedIdentifier):
        Item(record_id)


def test_item_accepts_bounds() -> None:
    assert Item(0).record_id == 0
    assert Item(MAX_RECORD_ID).record_id == MAX_RECORD_ID
