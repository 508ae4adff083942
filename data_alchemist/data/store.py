"""
DataStore: process-wide application state.

Created once at startup and handed to every route through a dependency.
Every update swaps in a whole new collection or list; nothing held here is
mutated in place, so a reader always sees a complete snapshot.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any, Optional

from data_alchemist.config import ACTIVE_VIEWS, SEARCH_HISTORY_SIZE
from data_alchemist.data.coerce import CoercionReport, coerce_value, to_text
from data_alchemist.data.findings import (
    Severity,
    ValidationFinding,
    filter_findings,
    finding_from_note,
    findings_from_report,
    severity_counts,
)
from data_alchemist.data.loader import ImportResult
from data_alchemist.data.priorities import PRESET_PROFILES, PrioritizationWeights
from data_alchemist.data.rules import BusinessRule
from data_alchemist.data.schemas import EntityKind, Record, get_schema

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    pass


class RuleNotFoundError(LookupError):
    pass


class FindingNotFoundError(LookupError):
    pass


class ProfileNotFoundError(LookupError):
    pass


class DataStore:
    """In-memory records, rules, weights and findings."""

    def __init__(self) -> None:
        self._collections: dict[EntityKind, tuple[Record, ...]] = {kind: () for kind in EntityKind}
        self._rules: tuple[BusinessRule, ...] = ()
        self._weights = PrioritizationWeights()
        self._findings: tuple[ValidationFinding, ...] = ()
        self._search_history: tuple[dict[str, Any], ...] = ()
        self.active_view = "upload"

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def publish_import(self, result: ImportResult) -> None:
        """Install a successful import and switch the UI to the data view."""
        if not result.success or result.data is None:
            raise ValueError("Only successful imports can be published")

        collections = {kind: tuple(result.data.get(kind, [])) for kind in EntityKind}
        findings: list[ValidationFinding] = []
        for kind, report in result.reports.items():
            findings.extend(findings_from_report(report, list(collections[kind])))

        self._collections = collections
        self._findings = tuple(findings)
        self.set_active_view("data")
        logger.info("Published import: %s, %d findings", result.counts(), len(findings))

    def collection(self, kind: EntityKind | str) -> tuple[Record, ...]:
        return self._collections[EntityKind(kind)]

    def replace_collection(self, kind: EntityKind | str, records: list[Record]) -> None:
        self._collections = {**self._collections, EntityKind(kind): tuple(records)}

    def get_record(self, kind: EntityKind | str, record_id: str) -> Record:
        for record in self.collection(kind):
            if record.id == record_id:
                return record
        raise RecordNotFoundError(f"No {EntityKind(kind).singular} with id '{record_id}'")

    def update_cell(self, kind: EntityKind | str, record_id: str, field: str, value: Any) -> Record:
        """Edit one cell, coercing the value exactly as the importer would."""
        kind = EntityKind(kind)
        schema = get_schema(kind)
        records = list(self.collection(kind))
        index = next((i for i, r in enumerate(records) if r.id == record_id), None)
        if index is None:
            raise RecordNotFoundError(f"No {kind.singular} with id '{record_id}'")
        record = records[index]

        if field == "id":
            raise ValueError("The record id cannot be edited")

        report = CoercionReport(kind)
        spec = schema.field(field)
        if spec is None:
            updated = dataclasses.replace(record, extra={**record.extra, field: value})
        elif spec.name == schema.id_field:
            text = to_text(value).strip()
            if not text:
                raise ValueError(f"{field} cannot be empty")
            updated = dataclasses.replace(record, **{spec.attr: text})
        else:
            coerced = coerce_value(spec, value, index, report)
            updated = dataclasses.replace(record, **{spec.attr: coerced})

        records[index] = updated
        self.replace_collection(kind, records)

        kept = [f for f in self._findings if not (
            f.entity_type == kind.singular and f.entity_id == record_id and f.field == field
        )]
        kept.extend(finding_from_note(note, report, record_id) for note in report.notes)
        self._findings = tuple(kept)
        return updated

    def row_count(self, kind: EntityKind | str | None = None) -> int:
        if kind is not None:
            return len(self.collection(kind))
        return sum(len(records) for records in self._collections.values())

    def counts(self) -> dict[str, int]:
        return {kind.value: len(records) for kind, records in self._collections.items()}

    @property
    def is_loaded(self) -> bool:
        return self.row_count() > 0

    def set_active_view(self, view: str) -> None:
        if view not in ACTIVE_VIEWS:
            raise ValueError(f"Unknown view: {view}")
        self.active_view = view

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @property
    def rules(self) -> tuple[BusinessRule, ...]:
        return self._rules

    def replace_rules(self, rules: list[BusinessRule]) -> None:
        self._rules = tuple(rules)

    def add_rule(self, rule: BusinessRule) -> BusinessRule:
        if any(r.id == rule.id for r in self._rules):
            raise ValueError(f"Rule '{rule.id}' already exists")
        self.replace_rules([*self._rules, rule])
        return rule

    def update_rule(self, rule_id: str, rule: BusinessRule) -> BusinessRule:
        if not any(r.id == rule_id for r in self._rules):
            raise RuleNotFoundError(f"No rule with id '{rule_id}'")
        rule = rule.model_copy(update={"id": rule_id})
        self.replace_rules([rule if r.id == rule_id else r for r in self._rules])
        return rule

    def delete_rule(self, rule_id: str) -> None:
        remaining = [r for r in self._rules if r.id != rule_id]
        if len(remaining) == len(self._rules):
            raise RuleNotFoundError(f"No rule with id '{rule_id}'")
        self.replace_rules(remaining)

    # ------------------------------------------------------------------
    # Prioritization
    # ------------------------------------------------------------------

    @property
    def weights(self) -> PrioritizationWeights:
        return self._weights

    def set_weights(self, weights: PrioritizationWeights) -> None:
        self._weights = weights

    def apply_profile(self, profile_id: str) -> PrioritizationWeights:
        profile = PRESET_PROFILES.get(profile_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile with id '{profile_id}'")
        self._weights = profile.weights
        return self._weights

    # ------------------------------------------------------------------
    # Findings
    # ------------------------------------------------------------------

    def findings(self, severity: Severity | str | None = None) -> list[ValidationFinding]:
        return filter_findings(self._findings, severity)

    def finding_stats(self) -> dict[str, int]:
        return severity_counts(self._findings)

    def cell_finding(self, record_id: str, field: str) -> Optional[ValidationFinding]:
        return next((f for f in self._findings if f.entity_id == record_id and f.field == field), None)

    def dismiss_finding(self, finding_id: str) -> None:
        remaining = tuple(f for f in self._findings if f.id != finding_id)
        if len(remaining) == len(self._findings):
            raise FindingNotFoundError(f"No finding with id '{finding_id}'")
        self._findings = remaining

    # ------------------------------------------------------------------
    # Search history
    # ------------------------------------------------------------------

    def record_search(self, query: str, result: dict[str, Any]) -> None:
        entry = {"query": query, "result": result, "timestamp": datetime.now().isoformat()}
        self._search_history = (entry, *self._search_history)[:SEARCH_HISTORY_SIZE]

    @property
    def search_history(self) -> tuple[dict[str, Any], ...]:
        return self._search_history

    def clear_search_history(self) -> None:
        self._search_history = ()
