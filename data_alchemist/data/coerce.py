"""
Record coercion: turn canonical-keyed rows into typed, total records.

Coercion never raises. Malformed values fall back to the field default and
each substitution is written to a CoercionReport so callers can surface it.
"""
from __future__ import annotations

import json
import math
import numbers
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from data_alchemist.data.schemas import EntityKind, FieldSpec, FieldType, Record, get_schema

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_MONEY_RE = re.compile(r"[\$,]")


@dataclass(frozen=True)
class CoercionNote:
    """A single substitution made while coercing a row."""
    row_index: int
    field: str
    original: Any
    substituted: Any
    reason: str

    @property
    def message(self) -> str:
        return (
            f"Row {self.row_index}: {self.field} value {self.original!r} "
            f"{self.reason}; using {self.substituted!r}"
        )


@dataclass
class CoercionReport:
    kind: EntityKind
    notes: list[CoercionNote] = field(default_factory=list)

    def add(self, row_index: int, field_name: str, original: Any, substituted: Any, reason: str) -> None:
        self.notes.append(CoercionNote(row_index, field_name, _jsonable(original), substituted, reason))

    def for_row(self, row_index: int) -> list[CoercionNote]:
        return [n for n in self.notes if n.row_index == row_index]

    @property
    def messages(self) -> list[str]:
        return [f"{self.kind.value}: {n.message}" for n in self.notes]

    def __len__(self) -> int:
        return len(self.notes)


# ---------------------------------------------------------------------------
# Scalar parsing
# ---------------------------------------------------------------------------

def is_missing(value: Any) -> bool:
    """None, NaN, or a blank string."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: "3 phases" -> 3, 2.9 -> 2, "abc" -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        m = _INT_PREFIX_RE.match(value)
        return int(m.group(1)) if m else None
    return None


def parse_float(value: Any, money: bool = False) -> Optional[float]:
    """Leading-number parse; money fields drop "$" and thousands separators first."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        result = float(value)
        return result if math.isfinite(result) else None
    if isinstance(value, str):
        text = _MONEY_RE.sub("", value) if money else value
        m = _FLOAT_PREFIX_RE.match(text)
        if not m:
            return None
        result = float(m.group(1))
        return result if math.isfinite(result) else None
    return None


def to_text(value: Any) -> str:
    if is_missing(value) and not isinstance(value, str):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def _coerce_list(spec: FieldSpec, value: Any, row_index: int, report: CoercionReport) -> tuple:
    if is_missing(value):
        return ()

    if isinstance(value, (list, tuple)):
        pieces = list(value)
    elif isinstance(value, str):
        pieces = [piece.strip() for piece in value.split(",")]
    else:
        pieces = [value]

    items: list[Any] = []
    for piece in pieces:
        if is_missing(piece):
            continue
        if spec.type == FieldType.INT_LIST:
            parsed = parse_int(piece)
            if parsed is None:
                report.add(row_index, spec.name, piece, None, "is not an integer and was dropped")
                continue
            items.append(parsed)
        else:
            items.append(piece if isinstance(piece, str) else to_text(piece))
    return tuple(items)


def _coerce_number(spec: FieldSpec, value: Any, row_index: int, report: CoercionReport) -> int | float:
    if spec.type == FieldType.INT:
        parsed = parse_int(value)
    else:
        parsed = parse_float(value, money=spec.money)

    if parsed is None:
        reason = "is missing" if is_missing(value) else "is not a number"
        report.add(row_index, spec.name, value, spec.default, reason)
        return spec.default
    return parsed


def _coerce_json(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return to_text(value)


def coerce_value(spec: FieldSpec, value: Any, row_index: int, report: CoercionReport) -> Any:
    """Coerce one raw value to the declared type of `spec`."""
    if spec.type.is_list:
        return _coerce_list(spec, value, row_index, report)
    if spec.type.is_number:
        return _coerce_number(spec, value, row_index, report)
    if spec.type == FieldType.JSON:
        return _coerce_json(value)
    return to_text(value)


def coerce_row(
    row: Mapping[str, Any],
    row_index: int,
    kind: EntityKind | str,
    report: CoercionReport,
) -> Record:
    """Build one typed record; every declared field is present afterwards."""
    schema = get_schema(kind)

    record_id = to_text(row.get(schema.id_field))
    if not record_id:
        record_id = f"temp-{row_index}"
        report.add(row_index, schema.id_field, row.get(schema.id_field), record_id, "is missing")

    values: dict[str, Any] = {}
    for spec in schema.fields:
        if spec.name == schema.id_field:
            values[spec.attr] = record_id
        else:
            values[spec.attr] = coerce_value(spec, row.get(spec.name), row_index, report)

    known = set(schema.field_names) | {"id"}
    extra = {str(k): _jsonable(v) for k, v in row.items() if k not in known}

    return schema.record_cls(id=record_id, extra=extra, **values)


def coerce_rows(
    rows: list[Mapping[str, Any]],
    kind: EntityKind | str,
) -> tuple[list[Record], CoercionReport]:
    """Coerce every row; returns the records and the substitutions made."""
    kind = EntityKind(kind)
    report = CoercionReport(kind)
    records = [coerce_row(row, index, kind, report) for index, row in enumerate(rows)]
    return records, report
