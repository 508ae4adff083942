from __future__ import annotations

import io
import json

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from data_alchemist.config import MISSING_FILES_MESSAGE
from data_alchemist.main import create_app

from conftest import CLIENTS_CSV, TASKS_CSV, WORKERS_CSV


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def _files(**overrides):
    files = {
        "clients": ("clients.csv", CLIENTS_CSV.encode(), "text/csv"),
        "workers": ("workers.csv", WORKERS_CSV.encode(), "text/csv"),
        "tasks": ("tasks.csv", TASKS_CSV.encode(), "text/csv"),
    }
    files.update(overrides)
    return {k: v for k, v in files.items() if v is not None}


@pytest.fixture
def loaded(client):
    response = client.post("/api/upload", files=_files())
    assert response.status_code == 200
    return client


def test_health_before_upload(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["rows"] == 0
    assert body["active_view"] == "upload"
    assert body["llm_configured"] is False


def test_upload_publishes_data(client):
    response = client.post("/api/upload", files=_files())
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["counts"] == {"clients": 3, "workers": 2, "tasks": 2}
    assert body["warnings"]
    assert client.get("/api/health").json()["active_view"] == "data"


def test_upload_missing_file_is_rejected(client):
    response = client.post("/api/upload", files=_files(workers=None))

    assert response.status_code == 400
    assert response.json()["errors"] == [MISSING_FILES_MESSAGE]
    assert client.get("/api/health").json()["rows"] == 0


def test_upload_unsupported_file_is_rejected(client):
    response = client.post("/api/upload", files=_files(tasks=("tasks.txt", b"TaskID\nT1\n", "text/plain")))
    assert response.status_code == 400
    assert "tasks.txt" in response.json()["errors"][0]


def test_upload_accepts_xlsx(client, make_xlsx):
    tasks = make_xlsx([{"TaskID": "T9", "TaskName": "Ship", "Duration": "2"}])
    response = client.post("/api/upload", files=_files(tasks=("tasks.xlsx", tasks, "application/octet-stream")))

    assert response.status_code == 200
    records = client.get("/api/data/tasks").json()["records"]
    assert records[0]["TaskID"] == "T9"
    assert records[0]["Duration"] == 2


def test_list_records_search_and_sort(loaded):
    body = loaded.get("/api/data/clients", params={"search": "ac"}).json()
    assert body["total"] == 3
    assert [r["id"] for r in body["records"]] == ["C1"]

    body = loaded.get("/api/data/clients", params={"sort_key": "MaxBudget", "direction": "desc"}).json()
    assert [r["MaxBudget"] for r in body["records"]] == [12000.0, 3000.0, 0.0]


def test_unknown_kind_is_404(loaded):
    assert loaded.get("/api/data/vendors").status_code == 404
    assert loaded.get("/api/export/vendors").status_code == 404


def test_bad_direction_is_400(loaded):
    response = loaded.get("/api/data/tasks", params={"sort_key": "Duration", "direction": "up"})
    assert response.status_code == 400


def test_columns(client):
    body = client.get("/api/data/workers/columns").json()
    assert body["id_field"] == "WorkerID"
    assert body["columns"][3] == {"name": "Skills", "label": "Skills", "type": "text_list"}


def test_patch_cell(loaded):
    response = loaded.patch("/api/data/tasks/T1", json={"field": "RequiredSkills", "value": "python, go"})
    assert response.status_code == 200
    assert response.json()["record"]["RequiredSkills"] == ["python", "go"]

    response = loaded.patch("/api/data/tasks/T1", json={"field": "Duration", "value": "n/a"})
    assert response.json()["record"]["Duration"] == 1
    assert response.json()["finding"]["field"] == "Duration"

    assert loaded.patch("/api/data/tasks/T404", json={"field": "Duration", "value": 2}).status_code == 404
    assert loaded.patch("/api/data/tasks/T1", json={"field": "id", "value": "X"}).status_code == 400


def test_findings_listing_and_dismissal(loaded):
    body = loaded.get("/api/findings", params={"severity": "warning"}).json()
    assert body["findings"]
    assert body["stats"]["warning"] == len(body["findings"])

    finding_id = body["findings"][0]["id"]
    assert loaded.delete(f"/api/findings/{finding_id}").status_code == 200
    assert loaded.delete(f"/api/findings/{finding_id}").status_code == 404
    assert loaded.get("/api/findings", params={"severity": "fatal"}).status_code == 400


def test_rules_crud(client):
    payload = {"type": "coRun", "name": "pair", "parameters": {"taskIds": ["T1", "T2"]}}
    created = client.post("/api/rules", json=payload)
    assert created.status_code == 201
    rule_id = created.json()["id"]

    updated = client.put(f"/api/rules/{rule_id}", json={"type": "loadLimit", "name": "cap",
                                                        "parameters": {"workerGroup": "GroupA",
                                                                       "maxSlotsPerPhase": 2}})
    assert updated.status_code == 200
    assert updated.json()["id"] == rule_id
    assert updated.json()["parameters"]["maxSlotsPerPhase"] == 2

    listing = client.get("/api/rules").json()
    assert listing["count"] == 1

    assert client.delete(f"/api/rules/{rule_id}").status_code == 200
    assert client.delete(f"/api/rules/{rule_id}").status_code == 404
    assert client.put("/api/rules/missing", json={"type": "coRun"}).status_code == 404


def test_invalid_rule_is_422(client):
    assert client.post("/api/rules", json={"type": "teleport"}).status_code == 422


def test_natural_language_rule(loaded):
    response = loaded.post("/api/rules/natural-language", json={"text": "T1 and T2 always together"})
    body = response.json()

    assert response.status_code == 201
    assert body["name"] == "AI Generated Rule"
    assert body["parameters"]["taskIds"] == ["T1", "T2"]
    assert loaded.get("/api/rules").json()["count"] == 1


def test_priorities(client):
    assert client.get("/api/priorities").json()["total"] == 1.0

    weights = {"priority_level": 1, "fulfillment": 1, "fairness": 0, "workload": 0, "efficiency": 0.5}
    body = client.put("/api/priorities", json=weights).json()
    assert body["total"] == 2.5

    assert client.put("/api/priorities", json={**weights, "fairness": 1.5}).status_code == 422

    profiles = client.get("/api/priorities/profiles").json()["profiles"]
    assert {p["id"] for p in profiles} == {"balanced", "fulfillment-first", "fairness-first"}

    applied = client.post("/api/priorities/profiles/fulfillment-first").json()
    assert applied["weights"]["fulfillment"] == 0.5
    assert client.post("/api/priorities/profiles/nope").status_code == 404


def test_ai_search_falls_back_and_records_history(loaded):
    response = loaded.post("/api/ai-search", json={"query": "client priority"})
    body = response.json()

    assert response.status_code == 200
    assert body["source"] == "fallback"
    assert [e["id"] for e in body["entities"]] == ["C1"]

    history = loaded.get("/api/ai-search/history").json()["history"]
    assert history[0]["query"] == "client priority"

    assert loaded.delete("/api/ai-search/history").status_code == 200
    assert loaded.get("/api/ai-search/history").json()["history"] == []


def test_ai_search_with_supplied_data(client):
    data = {"tasks": [{"id": "X1", "Duration": 4}, {"id": "X2", "Duration": 1}]}
    body = client.post("/api/ai-search", json={"query": "task duration", "data": data}).json()
    assert [e["id"] for e in body["entities"]] == ["X1"]

    bad = client.post("/api/ai-search", json={"query": "x", "data": {"vendors": []}})
    assert bad.status_code == 400


def test_export_collection_formats(loaded):
    csv = loaded.get("/api/export/clients")
    assert csv.status_code == 200
    assert csv.headers["content-type"].startswith("text/csv")
    assert 'filename="clients.csv"' in csv.headers["content-disposition"]
    frame = pd.read_csv(io.BytesIO(csv.content), dtype=str, keep_default_na=False)
    assert frame.loc[0, "RequestedTaskIDs"] == "T1, T2"

    xlsx = loaded.get("/api/export/workers", params={"format": "xlsx"})
    assert xlsx.status_code == 200
    assert pd.read_excel(io.BytesIO(xlsx.content), sheet_name="workers", dtype=str).shape[0] >= 2

    assert json.loads(loaded.get("/api/export/tasks", params={"format": "json"}).content)[0]["id"] == "T1"
    assert loaded.get("/api/export/tasks", params={"format": "pdf"}).status_code == 400


def test_export_rules_bundle(client):
    client.post("/api/rules", json={"type": "phaseWindow", "parameters": {"taskId": "T1", "allowedPhases": [1]}})
    response = client.get("/api/export/rules")
    body = json.loads(response.content)

    assert 'filename="rules.json"' in response.headers["content-disposition"]
    assert body["rules"][0]["type"] == "phaseWindow"
    assert body["priorities"]["efficiency"] == 0.1


def test_sort_toggle_cycles_through_header_clicks(loaded):
    first = loaded.get("/api/data/tasks", params={"toggle": "Duration"}).json()
    assert (first["sort_key"], first["direction"]) == ("Duration", "asc")
    assert [r["Duration"] for r in first["records"]] == [1, 3]

    second = loaded.get("/api/data/tasks", params={"sort_key": "Duration", "direction": "asc",
                                                    "toggle": "Duration"}).json()
    assert second["direction"] == "desc"
    assert [r["Duration"] for r in second["records"]] == [3, 1]

    third = loaded.get("/api/data/tasks", params={"sort_key": "Duration", "direction": "desc",
                                                   "toggle": "Duration"}).json()
    assert third["sort_key"] is None
    assert [r["id"] for r in third["records"]] == ["T1", "T2"]


def test_patched_extra_value_still_exports_to_xlsx(loaded):
    response = loaded.patch("/api/data/clients/C1", json={"field": "Notes", "value": {"tier": "gold"}})
    assert response.status_code == 200

    xlsx = loaded.get("/api/export/clients", params={"format": "xlsx"})
    assert xlsx.status_code == 200
    frame = pd.read_excel(io.BytesIO(xlsx.content), sheet_name="clients", dtype=str)
    assert frame.loc[0, "Notes"] == '{"tier": "gold"}'
