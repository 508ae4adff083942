"""Schema registry, import pipeline, in-memory state and grid queries."""
from .schemas import EntityKind, ClientRecord, WorkerRecord, TaskRecord, get_schema
from .normalize import build_header_mapping, normalize_headers
from .coerce import CoercionNote, CoercionReport, coerce_rows
from .loader import ImportResult, UploadedFile, import_files
from .store import DataStore
from .query import SortConfig, SortDirection, filter_records, sort_records, toggle_sort, query_view
