"""
Sorting utilities
=================

The ranker needs a *stable* descending sort: when two categories have the
same total, the one that came first in the aggregate list must stay first.

Included:
- Merge Sort (stable in both directions, O(n log n))
- take_top: stable sort + truncation
"""

from __future__ import annotations
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")


def merge_sort(arr: Sequence[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Stable merge sort. Returns a new list; `arr` is not modified."""
    if len(arr) <= 1:
        return list(arr)
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key, reverse=reverse)
    right = merge_sort(arr[mid:], key=key, reverse=reverse)
    return _merge(left, right, key=key, reverse=reverse)


def _merge(left: List[T], right: List[T], key: Callable[[T], object], reverse: bool) -> List[T]:
    out: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = key(left[i]), key(right[j])
        # ties go to the left run in both directions
        take_left = (a >= b) if reverse else (a <= b)
        if take_left:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out


def take_top(arr: Sequence[T], n: int, key: Callable[[T], object]) -> List[T]:
    """First `n` items of `arr` sorted descending by `key` (stable)."""
    if n < 0:
        raise ValueError("n must be >= 0")
    return merge_sort(arr, key=key, reverse=True)[:n]
