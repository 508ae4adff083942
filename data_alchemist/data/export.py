"""
Export cleaned collections (CSV / XLSX / JSON) and the rules bundle (JSON).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

import pandas as pd

from data_alchemist.data.common import records_to_dicts, sanitize_for_json
from data_alchemist.data.findings import ValidationFinding
from data_alchemist.data.priorities import PrioritizationWeights
from data_alchemist.data.rules import BusinessRule
from data_alchemist.data.schemas import EntityKind, Record, get_schema
from data_alchemist.excel import ExcelWriter, cell_value


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.JSON: "application/json",
}


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str


def _columns(kind: EntityKind, rows: list[dict]) -> list[str]:
    """Canonical fields first, then any extra columns in first-seen order."""
    columns = get_schema(kind).field_names
    for row in rows:
        for key in row:
            if key != "id" and key not in columns:
                columns.append(key)
    return columns


def export_csv(kind: EntityKind, records: Sequence[Record]) -> bytes:
    rows = records_to_dicts(records)
    columns = _columns(kind, rows)
    frame = pd.DataFrame(
        [{col: cell_value(row.get(col)) for col in columns} for row in rows],
        columns=columns,
    )
    return frame.to_csv(index=False).encode("utf-8")


def export_xlsx(
    kind: EntityKind,
    records: Sequence[Record],
    findings: Iterable[ValidationFinding] = (),
) -> bytes:
    """One sheet per kind; cells with an open finding are highlighted."""
    schema = get_schema(kind)
    rows = records_to_dicts(records)
    types = {spec.name: spec.type.value for spec in schema.fields}
    columns = [(name, types.get(name, "text"), name) for name in _columns(kind, rows)]

    flagged = {(f.entity_id, f.field): f.severity.value for f in findings}

    def highlight(row: dict, key: str):
        return flagged.get((row.get("id"), key))

    writer = ExcelWriter()
    ws = writer.add_sheet(kind.value)
    next_row = writer.write_table(ws, 1, columns, rows, highlight_fn=highlight)
    writer.write_note(ws, next_row + 1, f"Exported {datetime.now():%Y-%m-%d %H:%M}")
    return writer.to_bytes()


def export_json(records: Sequence[Record]) -> bytes:
    return json.dumps(records_to_dicts(records), indent=2).encode("utf-8")


def export_collection(
    kind: EntityKind | str,
    records: Sequence[Record],
    fmt: ExportFormat | str = ExportFormat.CSV,
    findings: Iterable[ValidationFinding] = (),
) -> ExportFile:
    kind = EntityKind(kind)
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.CSV:
        content = export_csv(kind, records)
    elif fmt == ExportFormat.XLSX:
        content = export_xlsx(kind, records, findings)
    else:
        content = export_json(records)
    return ExportFile(filename=f"{kind.value}.{fmt.value}", content=content, media_type=MEDIA_TYPES[fmt])


def export_rules(rules: Sequence[BusinessRule], weights: PrioritizationWeights) -> ExportFile:
    payload = {
        "rules": [rule.to_dict() for rule in rules],
        "priorities": weights.to_dict(),
    }
    content = json.dumps(sanitize_for_json(payload), indent=2).encode("utf-8")
    return ExportFile(filename="rules.json", content=content, media_type=MEDIA_TYPES[ExportFormat.JSON])
