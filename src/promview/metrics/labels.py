"""Label sets and series identity.

A series is identified by its full set of ``(name, value)`` label pairs,
including the metric name stored under ``__name__``. The order in which a
producer lists the pairs never matters: ``LabelSet`` keeps them sorted by
name, and :func:`series_identity` digests that canonical form.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promview._internal.types import LabelPair, LabelsLike

METRIC_NAME_LABEL = "__name__"
BUCKET_LABEL = "le"
INSTANCE_LABEL = "instance"
JOB_LABEL = "job"
DEFAULT_ENTITY_LABEL = "controller"

# Bytes that cannot appear in valid label names or UTF-8 label values.
_PAIR_SEP = b"\xff"
_NAME_SEP = b"\xfe"


class LabelSet(Mapping[str, str]):
    """Immutable, hashable set of label pairs.

    Behaves as a read-only mapping. Two label sets built from the same
    pairs in any order compare and hash equal.

    Example::

        a = LabelSet({"__name__": "up", "job": "api"})
        b = LabelSet([("job", "api"), ("__name__", "up")])
        assert a == b and hash(a) == hash(b)
    """

    __slots__ = ("_hash", "_index", "_pairs")

    def __init__(self, labels: LabelsLike | None = None) -> None:
        items = labels.items() if isinstance(labels, Mapping) else (labels or ())
        # dict() keeps the last value for a repeated name.
        index = {str(name): str(value) for name, value in items}
        self._pairs: tuple[LabelPair, ...] = tuple(sorted(index.items()))
        self._index = index
        self._hash: int | None = None

    @classmethod
    def of(cls, labels: LabelsLike | LabelSet | None) -> LabelSet:
        """Return *labels* as a LabelSet, without copying one that already is."""
        if isinstance(labels, LabelSet):
            return labels
        return cls(labels)

    def __getitem__(self, name: str) -> str:
        return self._index[name]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LabelSet):
            return self._pairs == other._pairs
        if isinstance(other, Mapping):
            return self._index == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self._pairs)
        return self._hash

    def __repr__(self) -> str:
        return f"LabelSet({dict(self._pairs)!r})"

    def __str__(self) -> str:
        inner = ", ".join(f'{name}="{value}"' for name, value in self._pairs)
        return "{" + inner + "}"

    @property
    def pairs(self) -> tuple[LabelPair, ...]:
        """Label pairs sorted by name."""
        return self._pairs

    @property
    def metric_name(self) -> str:
        """Value of the reserved ``__name__`` label, or ``""``."""
        return self._index.get(METRIC_NAME_LABEL, "")

    def get(self, name: str, default: str = "") -> str:  # type: ignore[override]
        """Return the value of *name*; a missing label reads as *default*."""
        return self._index.get(name, default)

    def matches(self, predicate: LabelsLike | None) -> bool:
        """Return True if every predicate pair equals this set's value for that name.

        An empty or None predicate matches everything. A name missing from
        this set reads as ``""``.
        """
        if not predicate:
            return True
        items = predicate.items() if isinstance(predicate, Mapping) else predicate
        return all(self._index.get(name, "") == value for name, value in items)

    def with_labels(self, extra: LabelsLike) -> LabelSet:
        """Return a copy with *extra* pairs added; existing names are kept."""
        items = extra.items() if isinstance(extra, Mapping) else extra
        merged = dict(items)
        merged.update(self._index)
        return LabelSet(merged)

    def without(self, *names: str) -> LabelSet:
        """Return a copy with the given label names removed."""
        return LabelSet((n, v) for n, v in self._pairs if n not in names)


def series_identity(labels: LabelsLike | LabelSet) -> int:
    """Digest a label set into a 64-bit series identity.

    The digest is computed over the name-sorted pairs, so it is independent
    of the order the pairs were supplied in and stable across processes
    (unlike the builtin ``hash`` of strings).

    Args:
        labels: Label set, mapping, or iterable of ``(name, value)`` pairs.

    Returns:
        Unsigned 64-bit integer identity.
    """
    digest = hashlib.blake2b(digest_size=8)
    for name, value in LabelSet.of(labels).pairs:
        digest.update(name.encode("utf-8"))
        digest.update(_NAME_SEP)
        digest.update(value.encode("utf-8"))
        digest.update(_PAIR_SEP)
    return int.from_bytes(digest.digest(), "big")
