"""
JSON helpers shared by export and search.
"""
from __future__ import annotations

import math

import numpy as np
import pandas as pd


def sanitize_for_json(obj):
    """Recursively convert numpy/pandas types to native Python for JSON serialization."""
    if isinstance(obj, dict):
        clean = {}
        for k, v in obj.items():
            if k is None:
                continue
            if isinstance(k, float) and (math.isnan(k) or math.isinf(k)):
                continue
            clean[str(k) if not isinstance(k, str) else k] = sanitize_for_json(v)
        return clean
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        v = float(obj)
        return None if (math.isnan(v) or math.isinf(v)) else v
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return sanitize_for_json(obj.tolist())
    if isinstance(obj, float):
        return None if (math.isnan(obj) or math.isinf(obj)) else obj
    if pd.api.types.is_scalar(obj) and pd.isna(obj):
        return None
    return obj


def records_to_dicts(records) -> list[dict]:
    """Typed records → JSON-safe canonical dicts."""
    return [sanitize_for_json(r.to_dict()) for r in records]
