"""FlatFile HTTP API — FastAPI app factory and per-kind routers."""

from flatfile.api.app import build_kind_router, create_app

__all__ = ["create_app", "build_kind_router"]
