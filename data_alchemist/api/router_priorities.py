"""
Prioritization endpoints: weights and preset profiles.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from data_alchemist.data.priorities import PRESET_PROFILES
from data_alchemist.data.store import DataStore, ProfileNotFoundError
from data_alchemist.api.dependencies import get_store
from data_alchemist.api.response_models import PrioritiesResponse, ProfilesResponse, WeightsRequest

router = APIRouter(prefix="/api/priorities", tags=["priorities"])


@router.get("", response_model=PrioritiesResponse)
async def get_weights(store: DataStore = Depends(get_store)):
    return PrioritiesResponse.from_weights(store.weights)


@router.put("", response_model=PrioritiesResponse)
async def set_weights(payload: WeightsRequest, store: DataStore = Depends(get_store)):
    """Replace all five weights; each must lie in [0, 1]."""
    store.set_weights(payload.to_weights())
    return PrioritiesResponse.from_weights(store.weights)


@router.get("/profiles", response_model=ProfilesResponse)
async def list_profiles():
    return ProfilesResponse(profiles=[p.to_dict() for p in PRESET_PROFILES.values()])


@router.post("/profiles/{profile_id}", response_model=PrioritiesResponse)
async def apply_profile(profile_id: str, store: DataStore = Depends(get_store)):
    try:
        weights = store.apply_profile(profile_id)
    except ProfileNotFoundError as e:
        raise HTTPException(404, str(e))
    return PrioritiesResponse.from_weights(weights)
