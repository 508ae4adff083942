"""
Pydantic request and response schemas for the API.
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from data_alchemist.data.priorities import PrioritizationWeights


class HealthResponse(BaseModel):
    status: str
    rows: int
    clients: int
    workers: int
    tasks: int
    active_view: str
    llm_configured: bool


class ImportResponse(BaseModel):
    success: bool
    counts: dict[str, int]
    errors: list[str]
    warnings: list[str]


class RecordsResponse(BaseModel):
    kind: str
    count: int
    total: int
    records: list[dict[str, Any]]
    sort_key: Optional[str] = None
    direction: Optional[str] = None


class ColumnInfo(BaseModel):
    name: str
    label: str
    type: str


class ColumnsResponse(BaseModel):
    kind: str
    id_field: str
    columns: list[ColumnInfo]


class CellUpdateRequest(BaseModel):
    field: str = Field(..., min_length=1)
    value: Any = None


class CellUpdateResponse(BaseModel):
    record: dict[str, Any]
    finding: Optional[dict[str, Any]] = None


class FindingsResponse(BaseModel):
    findings: list[dict[str, Any]]
    stats: dict[str, int]


class RulesResponse(BaseModel):
    rules: list[dict[str, Any]]
    count: int


class NaturalLanguageRuleRequest(BaseModel):
    text: str = Field(..., min_length=1)


class WeightsRequest(BaseModel):
    priority_level: float = Field(0.3, ge=0, le=1)
    fulfillment: float = Field(0.25, ge=0, le=1)
    fairness: float = Field(0.2, ge=0, le=1)
    workload: float = Field(0.15, ge=0, le=1)
    efficiency: float = Field(0.1, ge=0, le=1)

    def to_weights(self) -> PrioritizationWeights:
        return PrioritizationWeights(**self.model_dump())


class PrioritiesResponse(BaseModel):
    weights: dict[str, float]
    total: float

    @classmethod
    def from_weights(cls, weights: PrioritizationWeights) -> "PrioritiesResponse":
        return cls(weights=weights.to_dict(), total=weights.total)


class ProfilesResponse(BaseModel):
    profiles: list[dict[str, Any]]


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    entity_type: Literal["all", "client", "worker", "task"] = "all"
    # Optional snapshot keyed by "clients" / "workers" / "tasks"; the loaded data is used otherwise
    data: Optional[dict[str, list[dict[str, Any]]]] = None


class SearchResponse(BaseModel):
    entities: list[dict[str, Any]]
    explanation: str
    confidence: float
    source: str
    superseded: bool = False


class SearchHistoryResponse(BaseModel):
    history: list[dict[str, Any]]
