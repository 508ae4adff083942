"""
Header normalization: map arbitrary spreadsheet column names to canonical fields.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from data_alchemist.data.schemas import EntityKind, get_schema

_WHITESPACE_RE = re.compile(r"\s+")


def _squash(text: str) -> str:
    return _WHITESPACE_RE.sub("", text.strip().lower())


def build_header_mapping(headers: Iterable[Any], kind: EntityKind | str) -> dict[Any, str]:
    """Map each raw header to a canonical field name.

    The first label in declaration order whose squashed form is contained in
    the squashed raw header wins, so "Client ID Number" still maps to ClientID.
    Headers matching no label map to themselves.
    """
    labels = [(_squash(label), name) for label, name in get_schema(kind).labels.items()]

    mapping: dict[Any, str] = {}
    for header in headers:
        normalized = _squash(str(header))
        target = next((name for label, name in labels if label in normalized), None)
        mapping[header] = target if target is not None else header
    return mapping


def normalize_headers(rows: list[Mapping[str, Any]], kind: EntityKind | str) -> list[dict[str, Any]]:
    """Rename every row's keys using the mapping built from the first row."""
    if not rows:
        return rows

    mapping = build_header_mapping(rows[0].keys(), kind)

    normalized: list[dict[str, Any]] = []
    for row in rows:
        renamed: dict[str, Any] = {}
        for key, value in row.items():
            new_key = mapping.get(key)
            if new_key:
                renamed[new_key] = value
        normalized.append(renamed)
    return normalized
