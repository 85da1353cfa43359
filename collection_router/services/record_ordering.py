# collection_router/services/record_ordering.py
"""
Named orderings for submission tables, all driven through stable_sort so
that records comparing equal keep the order the table had.
"""

from datetime import date
from typing import Dict, List, Sequence

from collection_router.core.config import settings
from collection_router.models.records import SortPreset, SubmissionRecord
from collection_router.services.stable_sort import Comparator, key_comparator, stable_sort


def compare_dates(a: SubmissionRecord, b: SubmissionRecord) -> int:
    """
    Oldest first. Falls back to plain string comparison when either date is
    not an ISO date.
    """
    try:
        da, db = date.fromisoformat(a.date), date.fromisoformat(b.date)
    except ValueError:
        da, db = a.date, b.date
    return (da > db) - (da < db)


def _reversed(compare: Comparator) -> Comparator:
    return lambda a, b: compare(b, a)


PRESETS: Dict[str, Comparator] = {
    "date_desc": _reversed(compare_dates),
    "date_asc": compare_dates,
    "material_asc": key_comparator(lambda r: r.material),
    "material_desc": key_comparator(lambda r: r.material, reverse=True),
    "weight_desc": key_comparator(lambda r: r.weight, reverse=True),
    "weight_asc": key_comparator(lambda r: r.weight),
}


def sort_records(
    records: Sequence[SubmissionRecord],
    preset: SortPreset = "date_desc",
) -> List[SubmissionRecord]:
    try:
        compare = PRESETS[preset]
    except KeyError:
        raise ValueError(f"Unknown sort preset: {preset!r}") from None
    return stable_sort(records, compare, min_merge=settings.SORT_MIN_MERGE)
