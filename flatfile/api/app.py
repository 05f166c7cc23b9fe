"""
FlatFile HTTP API — FastAPI application exposing the resource kinds.

Routes (under ``server.api_prefix``, default /api), per kind segment
``hello`` (raw), ``json`` and ``csv``:

    GET    /{kind}          list names            200
    POST   /{kind}          create                201 / 422 / 409 / 415
    GET    /{kind}/{name}   read shaped content   200 / 404 / 415
    PUT    /{kind}/{name}   replace content       200 / 422 / 404 / 415
    DELETE /{kind}/{name}   delete                200 / 404

Every response body is ``{"mensaje": str}`` plus ``contenido`` where there
is a payload. Errors from the service map to status codes through a single
exception handler.

Run:
    flatfile run
Or:
    uvicorn flatfile.api.app:create_app --factory
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flatfile import __version__
from flatfile.api.schemas import FileCreateRequest, FileUpdateRequest, HealthResponse
from flatfile.engine.config import FlatFileConfig, get_config
from flatfile.engine.errors import FlatFileError, StorageError
from flatfile.engine.logging import (
    http_request_record,
    init_logging,
    log,
    shutdown_logging,
    system_event_record,
)
from flatfile.resources import messages
from flatfile.resources.kinds import ResourceKind
from flatfile.resources.service import FileResourceService
from flatfile.storage.base import BlobStore
from flatfile.storage.local import LocalBlobStore

logger = logging.getLogger("flatfile.api.app")


def get_service(request: Request) -> FileResourceService:
    return request.app.state.service


def build_kind_router(kind: ResourceKind) -> APIRouter:
    """CRUD routes for one resource kind, mounted at ``/{kind.route}``."""
    router = APIRouter(prefix=f"/{kind.route}", tags=[kind.value])

    @router.get("")
    def list_files(service: FileResourceService = Depends(get_service)) -> Dict[str, Any]:
        return {"mensaje": messages.LIST_OK, "contenido": service.list(kind)}

    @router.post("", status_code=201)
    def create_file(
        payload: Optional[FileCreateRequest] = None,
        service: FileResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        payload = payload or FileCreateRequest()
        service.create(payload.filename, payload.content, kind)
        return {"mensaje": messages.CREATED}

    @router.get("/{name}")
    def read_file(
        name: str,
        service: FileResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        return {"mensaje": messages.READ_OK, "contenido": service.read(name, kind)}

    @router.put("/{name}")
    def update_file(
        name: str,
        payload: Optional[FileUpdateRequest] = None,
        service: FileResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        payload = payload or FileUpdateRequest()
        service.update(name, payload.content, kind)
        return {"mensaje": messages.UPDATED}

    @router.delete("/{name}")
    def delete_file(
        name: str,
        service: FileResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        service.delete(name, kind)
        return {"mensaje": messages.DELETED}

    return router


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

async def handle_flatfile_error(request: Request, exc: FlatFileError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.to_json()}")
        return JSONResponse({"mensaje": messages.STORAGE_FAILURE}, status_code=exc.status_code)
    return JSONResponse({"mensaje": exc.message}, status_code=exc.status_code)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies get the same envelope as missing parameters."""
    logger.debug(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse({"mensaje": messages.MISSING_PARAMS}, status_code=422)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    config: Optional[FlatFileConfig] = None,
    store: Optional[BlobStore] = None,
    file_logging: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Loaded configuration; defaults to ``get_config()``.
        store: Backing store; defaults to a LocalBlobStore on the
            configured storage root.
        file_logging: Start the structured JSONL log queue on startup.
    """
    config = config or get_config()
    if store is None:
        store = LocalBlobStore(
            config.resolve_storage_root(), create_root=config.storage.create_root
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if file_logging:
            queue_cfg = config.logging.async_queue
            init_logging(
                log_dir=str(config.resolve_log_dir()),
                level=config.logging.level,
                flush_interval_ms=queue_cfg.flush_interval_ms,
                flush_batch_size=queue_cfg.flush_batch_size,
                max_queue_size=queue_cfg.max_queue_size,
            )
        log(system_event_record("startup", details={"store": repr(store)}))
        logger.info(f"{config.app.name} started ({store!r})")
        yield
        log(system_event_record("shutdown"))
        if file_logging:
            shutdown_logging()

    app = FastAPI(
        title=config.app.name,
        description="CRUD over flat files: raw, JSON and CSV resources",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.service = FileResourceService(store, encoding=config.storage.encoding)

    app.add_exception_handler(FlatFileError, handle_flatfile_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        log(http_request_record(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_ip=request.client.host if request.client else None,
        ))
        return response

    @app.get("/health", response_model=HealthResponse)
    def health_check() -> HealthResponse:
        root = getattr(store, "root", None)
        return HealthResponse(
            status="healthy",
            version=__version__,
            environment=config.app.environment,
            storage_root=str(root) if root is not None else repr(store),
        )

    for kind in ResourceKind:
        app.include_router(build_kind_router(kind), prefix=config.server.api_prefix)

    return app
