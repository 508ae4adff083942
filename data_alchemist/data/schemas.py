"""
Entity kinds, canonical field declarations, and the typed record classes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EntityKind(str, Enum):
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"

    @property
    def singular(self) -> str:
        return self.value[:-1]


class FieldType(str, Enum):
    TEXT = "text"
    INT = "int"
    FLOAT = "float"
    TEXT_LIST = "text_list"
    INT_LIST = "int_list"
    JSON = "json"

    @property
    def is_list(self) -> bool:
        return self in (FieldType.TEXT_LIST, FieldType.INT_LIST)

    @property
    def is_number(self) -> bool:
        return self in (FieldType.INT, FieldType.FLOAT)


@dataclass(frozen=True)
class FieldSpec:
    """One canonical column: its name, human label, record attribute and type."""
    name: str
    label: str
    attr: str
    type: FieldType = FieldType.TEXT
    default: Any = None
    money: bool = False          # strip "$" and thousands separators before parsing


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class _Record:
    """Shared behaviour for the three closed record types."""

    KIND: EntityKind

    def to_dict(self) -> dict[str, Any]:
        """Canonical-keyed view: id, declared fields, then unrecognized columns."""
        out: dict[str, Any] = {"id": self.id}
        for spec in get_schema(self.KIND).fields:
            value = getattr(self, spec.attr)
            out[spec.name] = list(value) if spec.type.is_list else value
        for key, value in self.extra.items():
            out.setdefault(key, value)
        return out

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a value by canonical field name (or an extra column)."""
        if name == "id":
            return self.id
        spec = get_schema(self.KIND).field(name)
        if spec is not None:
            return getattr(self, spec.attr)
        return self.extra.get(name, default)


@dataclass(frozen=True)
class ClientRecord(_Record):
    KIND = EntityKind.CLIENTS

    id: str
    client_id: str = ""
    client_name: str = ""
    client_group: str = ""
    priority_level: int = 1
    requested_task_ids: tuple[str, ...] = ()
    preferred_phases: tuple[int, ...] = ()
    max_budget: float = 0.0
    attributes_json: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkerRecord(_Record):
    KIND = EntityKind.WORKERS

    id: str
    worker_id: str = ""
    worker_name: str = ""
    worker_group: str = ""
    skills: tuple[str, ...] = ()
    available_slots: tuple[int, ...] = ()
    max_load_per_phase: int = 1
    hourly_rate: float = 0.0
    attributes_json: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TaskRecord(_Record):
    KIND = EntityKind.TASKS

    id: str
    task_id: str = ""
    task_name: str = ""
    duration: int = 1
    required_skills: tuple[str, ...] = ()
    preferred_phases: tuple[int, ...] = ()
    priority_level: int = 1
    dependencies: tuple[str, ...] = ()
    max_concurrent: int = 1
    attributes_json: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


Record = ClientRecord | WorkerRecord | TaskRecord


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntitySchema:
    kind: EntityKind
    id_field: str
    fields: tuple[FieldSpec, ...]
    record_cls: type

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    @property
    def labels(self) -> dict[str, str]:
        """Human label → canonical name, in declaration order."""
        return {spec.label: spec.name for spec in self.fields}


_ATTRIBUTES = FieldSpec("AttributesJSON", "Attributes JSON", "attributes_json", FieldType.JSON, "")

ENTITY_SCHEMAS: dict[EntityKind, EntitySchema] = {
    EntityKind.CLIENTS: EntitySchema(
        kind=EntityKind.CLIENTS,
        id_field="ClientID",
        record_cls=ClientRecord,
        fields=(
            FieldSpec("ClientID", "Client ID", "client_id"),
            FieldSpec("ClientName", "Client Name", "client_name"),
            FieldSpec("ClientGroup", "Client Group", "client_group"),
            FieldSpec("PriorityLevel", "Priority Level", "priority_level", FieldType.INT, 1),
            FieldSpec("RequestedTaskIDs", "Requested Task IDs", "requested_task_ids", FieldType.TEXT_LIST),
            FieldSpec("PreferredPhases", "Preferred Phases", "preferred_phases", FieldType.INT_LIST),
            FieldSpec("MaxBudget", "Max Budget", "max_budget", FieldType.FLOAT, 0.0, money=True),
            _ATTRIBUTES,
        ),
    ),
    EntityKind.WORKERS: EntitySchema(
        kind=EntityKind.WORKERS,
        id_field="WorkerID",
        record_cls=WorkerRecord,
        fields=(
            FieldSpec("WorkerID", "Worker ID", "worker_id"),
            FieldSpec("WorkerName", "Worker Name", "worker_name"),
            FieldSpec("WorkerGroup", "Worker Group", "worker_group"),
            FieldSpec("Skills", "Skills", "skills", FieldType.TEXT_LIST),
            FieldSpec("AvailableSlots", "Available Slots", "available_slots", FieldType.INT_LIST),
            FieldSpec("MaxLoadPerPhase", "Max Load Per Phase", "max_load_per_phase", FieldType.INT, 1),
            FieldSpec("HourlyRate", "Hourly Rate", "hourly_rate", FieldType.FLOAT, 0.0, money=True),
            _ATTRIBUTES,
        ),
    ),
    EntityKind.TASKS: EntitySchema(
        kind=EntityKind.TASKS,
        id_field="TaskID",
        record_cls=TaskRecord,
        fields=(
            FieldSpec("TaskID", "Task ID", "task_id"),
            FieldSpec("TaskName", "Task Name", "task_name"),
            FieldSpec("Duration", "Duration", "duration", FieldType.INT, 1),
            FieldSpec("RequiredSkills", "Required Skills", "required_skills", FieldType.TEXT_LIST),
            FieldSpec("PreferredPhases", "Preferred Phases", "preferred_phases", FieldType.INT_LIST),
            FieldSpec("PriorityLevel", "Priority Level", "priority_level", FieldType.INT, 1),
            FieldSpec("Dependencies", "Dependencies", "dependencies", FieldType.TEXT_LIST),
            FieldSpec("MaxConcurrent", "Max Concurrent", "max_concurrent", FieldType.INT, 1),
            _ATTRIBUTES,
        ),
    ),
}


def get_schema(kind: EntityKind | str) -> EntitySchema:
    """Return the schema for an entity kind ("clients", "workers", "tasks")."""
    return ENTITY_SCHEMAS[EntityKind(kind)]


