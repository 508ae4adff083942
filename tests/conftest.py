from __future__ import annotations

import io

import pandas as pd
import pytest

from data_alchemist.config import get_settings
from data_alchemist.data.loader import UploadedFile

CLIENTS_CSV = (
    "Client ID,Client Name,Client Group,Priority Level,Requested Task IDs,Preferred Phases,Max Budget,Notes\n"
    'C1,Acme Corp,Enterprise,5,"T1,T2","1,2","$12,000",vip\n'
    "C2,Beta LLC,SMB,abc,T3,3,,\n"
    ",Gamma Inc,SMB,2,,,3000,\n"
)

WORKERS_CSV = (
    "WorkerID,WorkerName,WorkerGroup,Skills,AvailableSlots,MaxLoadPerPhase,HourlyRate\n"
    'W1,Alice,GroupA,"python, sql","1,2,3",2,45.5\n'
    'W2,Bob,GroupB,,"2,x",1,$60\n'
)

TASKS_CSV = (
    "TaskID,TaskName,Duration,RequiredSkills,PreferredPhases,PriorityLevel,Dependencies,MaxConcurrent\n"
    'T1,Build,3 phases,python,"1,2",4,,2\n'
    "T2,Test,1,sql,2,3,T1,1\n"
)


def xlsx_bytes(rows: list[dict]) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(rows).to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    return xlsx_bytes


@pytest.fixture(autouse=True)
def _no_llm_credentials(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DATA_ALCHEMIST_SEARCH_FALLBACK_DELAY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def uploads() -> dict[str, UploadedFile]:
    return {
        "clients": UploadedFile("clients.csv", CLIENTS_CSV.encode()),
        "workers": UploadedFile("workers.csv", WORKERS_CSV.encode()),
        "tasks": UploadedFile("tasks.csv", TASKS_CSV.encode()),
    }
