import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings
from .models import (
    Bill,
    BillIn,
    CheckoutResponse,
    Dish,
    DishIn,
    ErrorResponse,
    Ingredient,
    SaveResponse,
)
from .store import BILLS, DISHES, RecordNotFound, RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class ApiError(Exception):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = ErrorResponse(error=exc.error, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    body = ErrorResponse(error="Something broke!", details=str(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


@router.get("/dishes", response_model=List[Dish])
def list_dishes(store: RecordStore = Depends(get_store)):
    try:
        return store.read_all(DISHES)
    except Exception as exc:
        logger.exception("Error reading dishes")
        raise ApiError(500, "Error reading dishes data", str(exc)) from exc


@router.post("/dishes", response_model=SaveResponse)
def create_dish(payload: Optional[DishIn] = None, store: RecordStore = Depends(get_store)):
    logger.info("Received dish data: %s", payload)
    try:
        if payload is None:
            payload = DishIn()
        store.append(DISHES, payload.to_record())
    except Exception as exc:
        logger.exception("Error saving dish")
        raise ApiError(500, "Error saving dishes data", str(exc)) from exc

    return {"success": True, "message": "Dish saved successfully"}


@router.get("/bills", response_model=List[Bill])
def list_bills(store: RecordStore = Depends(get_store)):
    try:
        return store.read_all(BILLS)
    except Exception as exc:
        logger.exception("Error reading bills")
        raise ApiError(500, "Error reading bills data", str(exc)) from exc


@router.post("/bills", response_model=SaveResponse)
def create_bill(payload: Optional[BillIn] = None, store: RecordStore = Depends(get_store)):
    logger.info("Received bill data: %s", payload)
    try:
        if payload is None:
            payload = BillIn()
        store.append(BILLS, payload.to_record())
    except Exception as exc:
        logger.exception("Error saving bill")
        raise ApiError(500, "Error saving bill data", str(exc)) from exc

    return {"success": True, "message": "Bill saved successfully"}


# `path` keeps names containing an encoded "/" routable
@router.put("/bills/{bill_name:path}", response_model=CheckoutResponse)
def checkout_bill(bill_name: str, store: RecordStore = Depends(get_store)):
    try:
        bill = store.checkout(bill_name)
    except RecordNotFound:
        logger.info("Bill not found: %r", bill_name)
        raise ApiError(404, "Bill not found")
    except Exception as exc:
        logger.exception("Error updating bill")
        raise ApiError(500, "Failed to update bill", str(exc)) from exc

    return {"success": True, "message": "Bill checked out successfully", "bill": bill}


@router.get("/ingredients", response_model=List[Ingredient])
def list_ingredients(store: RecordStore = Depends(get_store)):
    try:
        return store.read_ingredients()
    except FileNotFoundError:
        raise ApiError(404, "Ingredient list not found")
    except Exception as exc:
        logger.exception("Error reading ingredients")
        raise ApiError(500, "Error reading ingredients data", str(exc)) from exc


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = Settings() if settings is None else settings
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(
        title="footprint-dashboard-api",
        description="Dish and bill records with carbon and water footprints, stored as CSV",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = RecordStore(settings.data_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    app.mount("/data", StaticFiles(directory=settings.data_dir), name="data")
    return app
