"""
Validation findings shown next to the grid.

There is no rule engine here: findings come from coercion reports, i.e. the
values the importer had to replace with a default.
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Iterable, Optional

from data_alchemist.data.coerce import CoercionNote, CoercionReport
from data_alchemist.data.schemas import Record, get_schema


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationFinding:
    id: str
    entity_type: str             # "client" | "worker" | "task"
    entity_id: str
    field: str
    message: str
    severity: Severity = Severity.WARNING
    suggested_fix: Optional[str] = None
    row_index: Optional[int] = None
    column_index: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


def _finding_id() -> str:
    return f"finding-{uuid.uuid4().hex[:12]}"


def finding_from_note(note: CoercionNote, report: CoercionReport, entity_id: str) -> ValidationFinding:
    schema = get_schema(report.kind)
    names = schema.field_names
    column = names.index(note.field) if note.field in names else None

    if note.substituted is None:
        fix = f"Remove or correct {note.original!r}"
    else:
        fix = f"Set {note.field} to {note.substituted!r}"

    return ValidationFinding(
        id=_finding_id(),
        entity_type=report.kind.singular,
        entity_id=entity_id,
        field=note.field,
        message=f"{note.field} {note.reason}",
        severity=Severity.WARNING,
        suggested_fix=fix,
        row_index=note.row_index,
        column_index=column,
    )


def findings_from_report(report: CoercionReport, records: list[Record]) -> list[ValidationFinding]:
    """One warning per substitution, attached to the record it came from."""
    findings = []
    for note in report.notes:
        entity_id = records[note.row_index].id if note.row_index < len(records) else f"temp-{note.row_index}"
        findings.append(finding_from_note(note, report, entity_id))
    return findings


def filter_findings(
    findings: Iterable[ValidationFinding],
    severity: Severity | str | None = None,
) -> list[ValidationFinding]:
    if severity is None or severity == "all":
        return list(findings)
    severity = Severity(severity)
    return [f for f in findings if f.severity == severity]


def severity_counts(findings: Iterable[ValidationFinding]) -> dict[str, int]:
    stats = {s.value: 0 for s in Severity}
    for finding in findings:
        stats[finding.severity.value] += 1
    return stats
