"""
HTTP surface for the record store.
Handlers only call the store, validator, query, codec and stats modules; they
never touch the storage medium directly.
"""

from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .schemas import (
    DiagnosticsResponse,
    ErrorResponse,
    HealthResponse,
    MutationResponse,
    RecordListResponse,
    RecordResponse,
    StatsResponse,
)
from ..core.codec import export_filename, export_records, import_document
from ..core.config import VERSION, debug_enabled, get_storage_backend
from ..core.errors import (
    CapacityError,
    FormatError,
    RecordNotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from ..core.notifier import ChangeNotifier
from ..core.query import ALL_CATEGORIES, DEFAULT_SORT, apply_query
from ..core.schema import Record
from ..core.stats import summarize
from ..core.store import MutationResult, RecordStore
from ..core.validator import prepare_edit, prepare_new
from ..util.logging import logger

app = FastAPI(
    title="Casefile Records API",
    version=VERSION,
    description="Local-first suspect case record store",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

# Allow a local web UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store = None


def get_store() -> RecordStore:
    """Process-wide store wired to the configured backend. Tests override this dependency."""
    global _store
    if _store is None:
        backend = get_storage_backend()
        _store = RecordStore(backend, ChangeNotifier(backend))
        _store.init()
    return _store


def _error(status_code: int, error_type: str, message: str, details: Dict[str, Any] = None) -> JSONResponse:
    body = ErrorResponse(error_type=error_type, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    errors = [{"field": field, "message": message} for field, message in exc.errors]
    return _error(422, "VALIDATION_ERROR", str(exc), {"errors": errors})


@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError):
    return _error(400, "FORMAT_ERROR", str(exc), {"index": exc.index})


@app.exception_handler(CapacityError)
async def capacity_error_handler(request: Request, exc: CapacityError):
    return _error(507, "CAPACITY_ERROR", str(exc))


@app.exception_handler(RecordNotFoundError)
async def not_found_error_handler(request: Request, exc: RecordNotFoundError):
    return _error(404, "NOT_FOUND", str(exc), {"record_id": exc.record_id})


@app.exception_handler(StorageUnavailableError)
async def storage_error_handler(request: Request, exc: StorageUnavailableError):
    return _error(503, "STORAGE_UNAVAILABLE", str(exc))


def _record_response(record: Record) -> RecordResponse:
    return RecordResponse.model_validate(record.to_dict())


def _mutation_response(result: MutationResult) -> MutationResponse:
    return MutationResponse(
        success=True,
        operation=result.operation,
        count=result.count,
        record_id=result.record_id,
        changed=result.changed,
        image_stripped=result.image_stripped,
    )


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(store: RecordStore = Depends(get_store)):
    """Check system health."""
    db_health = store.backend.health_check()
    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        record_count=store.count() if db_health else 0
    )


@app.get("/records", response_model=RecordListResponse, response_model_exclude_none=True)
def list_records_endpoint(q: str = "", sort: str = DEFAULT_SORT, category: str = ALL_CATEGORIES,
                          store: RecordStore = Depends(get_store)):
    """Filtered, searched and sorted record list."""
    records = store.get_all()
    try:
        view = apply_query(records, q, sort, category)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return RecordListResponse(
        records=[_record_response(r) for r in view],
        count=len(view),
        total=len(records)
    )


@app.get("/records/{record_id}", response_model=RecordResponse, response_model_exclude_none=True)
def get_record_endpoint(record_id: str, store: RecordStore = Depends(get_store)):
    record = store.get_by_id(record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return _record_response(record)


@app.post("/records", response_model=MutationResponse, status_code=201)
def create_record_endpoint(form: Dict[str, Any], store: RecordStore = Depends(get_store)):
    """Validate a new submission and add it."""
    record = prepare_new(form)
    return _mutation_response(store.add(record))


@app.put("/records/{record_id}", response_model=MutationResponse)
def update_record_endpoint(record_id: str, form: Dict[str, Any], store: RecordStore = Depends(get_store)):
    """Validate an edit and replace the stored record, keeping id and creation time."""
    existing = store.get_by_id(record_id)
    if not existing:
        raise RecordNotFoundError(record_id)

    record = prepare_edit(existing, form)
    return _mutation_response(store.update(record))


@app.delete("/records/{record_id}", response_model=MutationResponse)
def delete_record_endpoint(record_id: str, store: RecordStore = Depends(get_store)):
    return _mutation_response(store.delete(record_id))


@app.delete("/records", response_model=MutationResponse)
def clear_records_endpoint(store: RecordStore = Depends(get_store)):
    """Wipe every record."""
    return _mutation_response(store.clear())


@app.get("/export")
def export_endpoint(store: RecordStore = Depends(get_store)):
    """Download the full record set as a dated JSON file."""
    records = store.get_all()
    filename = export_filename()
    logger.log_export(len(records), filename)
    return Response(
        content=export_records(records),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.post("/import", response_model=MutationResponse)
async def import_endpoint(request: Request, store: RecordStore = Depends(get_store)):
    """Replace the store with an uploaded export document."""
    body = await request.body()
    return _mutation_response(import_document(store, body))


@app.get("/stats", response_model=StatsResponse, response_model_exclude_none=True)
def stats_endpoint(time_range: str = Query("all", alias="range"), store: RecordStore = Depends(get_store)):
    try:
        stats = summarize(store.get_all(), time_range)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    stats["recent"] = [_record_response(r) for r in stats["recent"]]
    return StatsResponse(**stats)


@app.get("/debug/storage", response_model=DiagnosticsResponse)
def debug_storage_endpoint(store: RecordStore = Depends(get_store)):
    """Storage snapshot for operator troubleshooting."""
    if not debug_enabled():
        raise HTTPException(status_code=403, detail="Storage diagnostics require debug mode")
    return DiagnosticsResponse(**store.diagnostic_dump())
