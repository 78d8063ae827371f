# pack_installer/diff.py
from __future__ import annotations
from functools import cmp_to_key
from typing import Callable, Sequence, TypeVar

from .pack import ModFile

T = TypeVar("T")


def _is_sorted(xs: list[T], cmp: Callable[[T, T], int]) -> bool:
    return all(cmp(xs[i], xs[i + 1]) <= 0 for i in range(len(xs) - 1))


def diff_sorted(old: Sequence[T], new: Sequence[T],
                cmp: Callable[[T, T], int]) -> tuple[list[T], list[T], list[T]]:
    """
    Split two sequences into (added, removed, unchanged) with a merge walk.

    cmp(a, b) < 0 means a sorts first, 0 means equal. Inputs are copied,
    never mutated. Items compared equal are reported once, taken from new.
    """
    if not old and not new:
        return [], [], []
    if not old:
        return list(new), [], []
    if not new:
        return [], list(old), []

    o = list(old)
    n = list(new)
    if not _is_sorted(o, cmp):
        o.sort(key=cmp_to_key(cmp))
    if not _is_sorted(n, cmp):
        n.sort(key=cmp_to_key(cmp))

    added: list[T] = []
    removed: list[T] = []
    unchanged: list[T] = []

    i = j = 0
    while i < len(o) and j < len(n):
        c = cmp(o[i], n[j])
        if c < 0:
            removed.append(o[i])
            i += 1
        elif c == 0:
            unchanged.append(n[j])
            i += 1
            j += 1
        else:
            added.append(n[j])
            j += 1

    removed.extend(o[i:])
    added.extend(n[j:])
    return added, removed, unchanged


def compare_files(a: ModFile, b: ModFile) -> int:
    """Order by path; same path with another hash sorts old-first."""
    if a.path < b.path:
        return -1
    if a.path > b.path:
        return 1
    if a.hash != b.hash:
        return -1
    return 0


def diff_files(old: Sequence[ModFile],
               new: Sequence[ModFile]) -> tuple[list[ModFile], list[ModFile], list[ModFile]]:
    """(added, removed, unchanged) between an installed list and a target list.

    A path whose hash changed shows up in removed (old entry) and in
    added (new entry), never in unchanged.
    """
    return diff_sorted(old, new, compare_files)
