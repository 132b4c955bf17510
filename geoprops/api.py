from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError as FastAPIValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .db.base import PropertyStore
from .db.repo import get_repository
from .exceptions import GeoPropsError
from .models.filters import FilterRequest
from .models.property import IngestRequest
from .services.catalog_service import CatalogService
from .services.filter_service import FilterService
from .services.ingest_service import IngestService
from .services.stats_service import StatsService
from .utils.logging import configure_logging, get_logger

LOGGER = get_logger("api")

router = APIRouter(prefix="/api")


@dataclass
class Services:
    ingest: IngestService
    filter: FilterService
    catalog: CatalogService
    stats: StatsService


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/properties")
def ingest(req: IngestRequest, services: Services = Depends(get_services)):
    result = services.ingest.load(req.properties, replace=req.replace)
    return {
        "success": True,
        "message": result.message,
        "inserted": result.inserted,
        "updated": result.updated,
        "total": result.total,
    }


@router.post("/filter")
def filter_comparables(req: FilterRequest, services: Services = Depends(get_services)):
    result = services.filter.filter(req)
    properties = [item.to_wire() for item in result.items]
    return jsonable_encoder(
        {
            "success": True,
            "count": result.count,
            "ids": result.ids,
            "properties": properties,
            "filters": result.filters,
        }
    )


@router.get("/properties")
def list_all(services: Services = Depends(get_services)):
    records = services.catalog.list_all()
    return jsonable_encoder(
        {"success": True, "count": len(records), "properties": [r.to_wire() for r in records]}
    )


@router.get("/properties/{property_id}")
def get_by_id(property_id: str, services: Services = Depends(get_services)):
    record = services.catalog.get(property_id)
    return jsonable_encoder({"success": True, "property": record.to_wire()})


@router.delete("/properties/{property_id}")
def delete_by_id(property_id: str, services: Services = Depends(get_services)):
    total = services.catalog.delete(property_id)
    return {"success": True, "message": f"Propiedad {property_id} eliminada", "total": total}


@router.get("/stats")
def stats(services: Services = Depends(get_services)):
    result = services.stats.stats()
    return {
        "success": True,
        "total": result.total,
        "by_operacion": result.by_operation,
        "by_tipo": result.by_kind,
    }


@router.get("/health")
def health(services: Services = Depends(get_services)):
    payload = services.stats.health()
    if payload["status"] != "ok":
        return JSONResponse(status_code=500, content=payload)
    return payload


async def _handle_domain_error(request: Request, exc: GeoPropsError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("request_failed path=%s error=%s", request.url.path, exc.message)
    else:
        LOGGER.info("request_rejected path=%s status=%d error=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_payload()))


async def _handle_request_validation(request: Request, exc: FastAPIValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    LOGGER.info("request_rejected path=%s status=400 error=%s", request.url.path, details)
    return JSONResponse(status_code=400, content={"success": False, "error": f"Solicitud invalida: {details}"})


def create_app(settings: Optional[Settings] = None, store: Optional[PropertyStore] = None) -> FastAPI:
    """Wire the store and services into a FastAPI application.

    The store is opened and its schema ensured on startup, and closed on
    shutdown.
    """

    settings = settings or Settings.from_env()
    configure_logging(level=settings.log_level)
    store = store or get_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        store.init_schema()
        LOGGER.info("startup mode=%s", store.mode)
        yield
        store.close()
        LOGGER.info("shutdown")

    app = FastAPI(title="geoprops", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.store = store
    app.state.services = Services(
        ingest=IngestService(store, legacy_truthy=settings.legacy_truthy),
        filter=FilterService(store, legacy_truthy=settings.legacy_truthy),
        catalog=CatalogService(store),
        stats=StatsService(store),
    )
    app.add_exception_handler(GeoPropsError, _handle_domain_error)
    app.add_exception_handler(FastAPIValidationError, _handle_request_validation)
    app.include_router(router)
    return app


app = create_app()


def main() -> None:  # pragma: no cover - process entry point
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":  # pragma: no cover
    main()
