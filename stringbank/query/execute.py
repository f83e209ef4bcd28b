"""Query engine - TypedFilterSet applied to a record sequence.

All predicates are ANDed and applied in FilterName order. The input
sequence is never modified; an empty result is a valid result.
"""

from typing import Callable, Iterable, List

from stringbank.schemas import AnalysisRecord, FilterName, TypedFilterSet

Predicate = Callable[[AnalysisRecord], bool]


def build_predicates(filters: TypedFilterSet) -> List[Predicate]:
    """Turn each set filter into a record predicate, in application order."""
    predicates: List[Predicate] = []

    if filters.is_palindrome is not None:
        wanted = filters.is_palindrome
        predicates.append(lambda r: r.properties.is_palindrome == wanted)

    if filters.min_length is not None:
        min_length = filters.min_length
        predicates.append(lambda r: r.properties.length >= min_length)

    if filters.max_length is not None:
        max_length = filters.max_length
        predicates.append(lambda r: r.properties.length <= max_length)

    if filters.word_count is not None:
        word_count = filters.word_count
        predicates.append(lambda r: r.properties.word_count == word_count)

    if filters.contains_character is not None:
        char = filters.contains_character
        # presence only; the frequency itself is irrelevant
        predicates.append(lambda r: char in r.properties.character_frequency_map)

    return predicates


def apply_filters(
    records: Iterable[AnalysisRecord],
    filters: TypedFilterSet,
) -> List[AnalysisRecord]:
    """Filter records by a compiled filter set.

    Args:
        records: Base sequence, usually ``RecordStore.list_all()``
        filters: Output of ``compile_filters``

    Returns:
        New list of the matching records, in input order
    """
    result = list(records)
    for predicate in build_predicates(filters):
        result = [record for record in result if predicate(record)]
    return result
