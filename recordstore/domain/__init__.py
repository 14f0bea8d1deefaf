"""
Domain package for the record store.

Exports the schema definition, the identifier variant type and the record
model. Keep this package focused on data definitions; it performs no I/O.
"""

from recordstore.domain.contract import Classifier, is_valid_classifier
from recordstore.domain.identifiers import (
    Collection,
    Identifier,
    Item,
    parse_identifier,
)
from recordstore.domain.models import Record

__all__ = [
    "Classifier",
    "Collection",
    "Identifier",
    "Item",
    "Record",
    "is_valid_classifier",
    "parse_identifier",
]
