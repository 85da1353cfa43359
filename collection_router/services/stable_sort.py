# collection_router/services/stable_sort.py
"""
Stable run-merge sort used to order records for presentation.

Short inputs are insertion-sorted. Longer inputs are cut into runs of
`min_run_length(n)` elements, each run is insertion-sorted, and runs are
merged pairwise with doubling block sizes. Merges take from the left run on
ties, which keeps the sort stable. There is no galloping mode.

Comparators follow the classic cmp protocol: negative, zero or positive for
a < b, a == b, a > b. They must define a total order; with an inconsistent
comparator the output order is unspecified.
"""

from typing import Any, Callable, Iterable, List, Sequence, TypeVar

T = TypeVar("T")

Comparator = Callable[[T, T], int]

MIN_MERGE = 32


def stable_sort(
    items: Iterable[T],
    compare: Comparator,
    min_merge: int = MIN_MERGE,
) -> List[T]:
    """
    Return a new list with `items` sorted by `compare`. The input is not modified.
    """
    if min_merge < 2:
        raise ValueError(f"min_merge must be >= 2, got {min_merge}")

    a: List[T] = list(items)
    n = len(a)
    if n < 2:
        return a

    if n < min_merge:
        _insertion_sort(a, 0, n, compare)
        return a

    min_run = min_run_length(n, min_merge)

    for lo in range(0, n, min_run):
        _insertion_sort(a, lo, min(lo + min_run, n), compare)

    size = min_run
    while size < n:
        for left in range(0, n, 2 * size):
            mid = left + size
            right = min(left + 2 * size, n)
            if mid < right:
                _merge(a, left, mid, right, compare)
        size *= 2

    return a


def min_run_length(n: int, min_merge: int = MIN_MERGE) -> int:
    """
    Run length in [min_merge / 2, min_merge] such that n / run is close to,
    but not above, a power of two.
    """
    r = 0
    while n >= min_merge:
        r |= n & 1
        n >>= 1
    return n + r


def key_comparator(key: Callable[[T], Any], reverse: bool = False) -> Comparator:
    """
    Build a comparator from a key function.

    `reverse` flips the order of distinct keys only; equal keys still compare
    equal, so a reversed sort stays stable.
    """

    def compare(a: T, b: T) -> int:
        ka, kb = key(a), key(b)
        if ka < kb:
            result = -1
        elif kb < ka:
            result = 1
        else:
            return 0
        return -result if reverse else result

    return compare


def chain_comparators(*comparators: Comparator) -> Comparator:
    """
    Combine comparators lexicographically: the first non-zero result wins.
    """

    def compare(a: T, b: T) -> int:
        for c in comparators:
            result = c(a, b)
            if result:
                return result
        return 0

    return compare


def is_sorted(items: Sequence[T], compare: Comparator) -> bool:
    return all(compare(items[i], items[i + 1]) <= 0 for i in range(len(items) - 1))


# ---------------------------------------------------------------------- #
# Internal helpers
# ---------------------------------------------------------------------- #


def _insertion_sort(a: List[T], left: int, right: int, compare: Comparator) -> None:
    # Sorts a[left:right] in place; strict > keeps equal elements in order
    for i in range(left + 1, right):
        item = a[i]
        j = i - 1
        while j >= left and compare(a[j], item) > 0:
            a[j + 1] = a[j]
            j -= 1
        a[j + 1] = item


def _merge(a: List[T], left: int, mid: int, right: int, compare: Comparator) -> None:
    # Merges the sorted blocks a[left:mid] and a[mid:right]
    lhs = a[left:mid]
    rhs = a[mid:right]
    i = j = 0
    k = left

    while i < len(lhs) and j < len(rhs):
        if compare(lhs[i], rhs[j]) <= 0:
            a[k] = lhs[i]
            i += 1
        else:
            a[k] = rhs[j]
            j += 1
        k += 1

    # At most one of these tails is non-empty
    a[k:right] = lhs[i:] + rhs[j:]
