"""
Business rules: a tagged union over six rule kinds.

Rules are authored and stored only; nothing evaluates them against the data.
"""
from __future__ import annotations

import re
import uuid
from typing import Annotated, Any, Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

_TOKEN_RE = re.compile(r"[A-Za-z0-9_\-]+")


def new_rule_id() -> str:
    return f"rule-{uuid.uuid4().hex[:12]}"


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CoRunParams(_Params):
    task_ids: list[str] = Field(default_factory=list, alias="taskIds")


class SlotRestrictionParams(_Params):
    group_type: Literal["client", "worker"] = Field(default="client", alias="groupType")
    group_name: str = Field(default="", alias="groupName")
    min_common_slots: int = Field(default=1, ge=0, alias="minCommonSlots")


class LoadLimitParams(_Params):
    worker_group: str = Field(default="", alias="workerGroup")
    max_slots_per_phase: int = Field(default=1, ge=0, alias="maxSlotsPerPhase")


class PhaseWindowParams(_Params):
    task_id: str = Field(default="", alias="taskId")
    allowed_phases: list[int] = Field(default_factory=list, alias="allowedPhases")


class PatternMatchParams(_Params):
    regex: str = ""
    rule_template: str = Field(default="", alias="ruleTemplate")
    parameters: dict[str, Any] = Field(default_factory=dict)


class PrecedenceOverrideParams(_Params):
    global_rules: list[str] = Field(default_factory=list, alias="globalRules")
    specific_rules: dict[str, list[str]] = Field(default_factory=dict, alias="specificRules")
    priority_order: list[str] = Field(default_factory=list, alias="priorityOrder")


class _RuleBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_rule_id)
    name: str = ""
    description: str = ""
    enabled: bool = True
    priority: int = 1
    natural_language: Optional[str] = Field(default=None, alias="naturalLanguage")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CoRunRule(_RuleBase):
    type: Literal["coRun"] = "coRun"
    parameters: CoRunParams = Field(default_factory=CoRunParams)


class SlotRestrictionRule(_RuleBase):
    type: Literal["slotRestriction"] = "slotRestriction"
    parameters: SlotRestrictionParams = Field(default_factory=SlotRestrictionParams)


class LoadLimitRule(_RuleBase):
    type: Literal["loadLimit"] = "loadLimit"
    parameters: LoadLimitParams = Field(default_factory=LoadLimitParams)


class PhaseWindowRule(_RuleBase):
    type: Literal["phaseWindow"] = "phaseWindow"
    parameters: PhaseWindowParams = Field(default_factory=PhaseWindowParams)


class PatternMatchRule(_RuleBase):
    type: Literal["patternMatch"] = "patternMatch"
    parameters: PatternMatchParams = Field(default_factory=PatternMatchParams)


class PrecedenceOverrideRule(_RuleBase):
    type: Literal["precedenceOverride"] = "precedenceOverride"
    parameters: PrecedenceOverrideParams = Field(default_factory=PrecedenceOverrideParams)


BusinessRule = Annotated[
    Union[
        CoRunRule,
        SlotRestrictionRule,
        LoadLimitRule,
        PhaseWindowRule,
        PatternMatchRule,
        PrecedenceOverrideRule,
    ],
    Field(discriminator="type"),
]

RULE_TYPES = (
    "coRun", "slotRestriction", "loadLimit", "phaseWindow", "patternMatch", "precedenceOverride",
)

_rule_adapter: TypeAdapter = TypeAdapter(BusinessRule)


def parse_rule(payload: dict[str, Any]) -> BusinessRule:
    """Validate a rule payload; raises pydantic.ValidationError on bad input."""
    return _rule_adapter.validate_python(payload)


def draft_rule_from_text(text: str, known_task_ids: Iterable[str] = ()) -> CoRunRule:
    """Turn a natural-language request into an editable co-run rule.

    Task IDs are taken from the text when they match a known TaskID; the user
    finishes the rule in the form.
    """
    text = text.strip()
    known = {task_id.upper(): task_id for task_id in known_task_ids if task_id}
    mentioned: list[str] = []
    for token in _TOKEN_RE.findall(text):
        match = known.get(token.upper())
        if match and match not in mentioned:
            mentioned.append(match)

    return CoRunRule(
        name="AI Generated Rule",
        description=text,
        natural_language=text,
        parameters=CoRunParams(task_ids=mentioned),
    )
