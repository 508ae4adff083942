"""
Business-rule endpoints: CRUD and natural-language drafting.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from data_alchemist.data.rules import BusinessRule, draft_rule_from_text, parse_rule
from data_alchemist.data.schemas import EntityKind
from data_alchemist.data.store import DataStore, RuleNotFoundError
from data_alchemist.api.dependencies import get_store
from data_alchemist.api.response_models import NaturalLanguageRuleRequest, RulesResponse

router = APIRouter(prefix="/api", tags=["rules"])


def _parse(payload: dict[str, Any]) -> BusinessRule:
    try:
        return parse_rule(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.get("/rules", response_model=RulesResponse)
async def list_rules(store: DataStore = Depends(get_store)):
    return RulesResponse(rules=[r.to_dict() for r in store.rules], count=len(store.rules))


@router.post("/rules", status_code=201)
async def create_rule(payload: dict[str, Any] = Body(...), store: DataStore = Depends(get_store)):
    """Add a rule; ``type`` selects the parameter shape."""
    rule = _parse(payload)
    try:
        store.add_rule(rule)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return rule.to_dict()


@router.put("/rules/{rule_id}")
async def update_rule(rule_id: str, payload: dict[str, Any] = Body(...), store: DataStore = Depends(get_store)):
    rule = _parse({**payload, "id": rule_id})
    try:
        rule = store.update_rule(rule_id, rule)
    except RuleNotFoundError as e:
        raise HTTPException(404, str(e))
    return rule.to_dict()


@router.delete("/rules/{rule_id}")
async def delete_rule(rule_id: str, store: DataStore = Depends(get_store)):
    try:
        store.delete_rule(rule_id)
    except RuleNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"status": "deleted", "id": rule_id}


@router.post("/rules/natural-language", status_code=201)
async def create_rule_from_text(payload: NaturalLanguageRuleRequest, store: DataStore = Depends(get_store)):
    """Draft a co-run rule from plain text and add it to the list."""
    task_ids = [task.task_id for task in store.collection(EntityKind.TASKS)]
    rule = draft_rule_from_text(payload.text, task_ids)
    store.add_rule(rule)
    return rule.to_dict()
