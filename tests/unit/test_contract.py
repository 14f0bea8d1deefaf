from __future__ import annotations

import pytest

from recordstore.domain.contract import (
    ALL_COLUMNS,
    CONTENT_ITEM_TYPE,
    CONTENT_LIST_TYPE,
    DEFAULT_CATEGORY_LABEL,
    Classifier,
    is_valid_classifier,
)
from recordstore.domain.models import Record

EXPECTED_COLUMNS = ("id", "name", "category", "classifier", "measure")


@pytest.mark.parametrize("value", [0, 1, 2, Classifier.UNKNOWN, Classifier.A, Classifier.B])
def test_is_valid_classifier_accepts_defined_constants(value) -> None:
    assert is_valid_classifier(value) is True


@pytest.mark.parametrize("value", [-1, 3, 99, None, "1", 1.0, True, False])
def test_is_valid_classifier_rejects_everything_else(value) -> None:
    assert is_valid_classifier(value) is False


def test_columns_and_type_tokens() -> None:
    assert ALL_COLUMNS == EXPECTED_COLUMNS
    assert CONTENT_LIST_TYPE != CONTENT_ITEM_TYPE
    assert CONTENT_LIST_TYPE.endswith("/records")
    assert CONTENT_ITEM_TYPE.endswith("/records")


def test_record_from_row_and_display_category() -> None:
    record = Record.from_row(
        {"id": 3, "name": "Toto", "category": None, "classifier": 2, "measure": 0}
    )

    assert record.classifier is Classifier.B
    assert record.category is None
    assert record.display_category == DEFAULT_CATEGORY_LABEL
    assert record.model_copy(update={"category": ""}).display_category == DEFAULT_CATEGORY_LABEL
    assert record.model_copy(update={"category": "Terrier"}).display_category == "Terrier"
