"""Shared type aliases for promview."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# A (name, value) label pair.
LabelPair = tuple[str, str]

# Anything a label set can be built from.
LabelsLike = Mapping[str, str] | Iterable[LabelPair]

# Opaque handle returned by a store write. It is the series identity.
SeriesHandle = int
