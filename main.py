import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, load_settings
from database import SingletonStore
from schemas import (
    MoneyResponse,
    StartTimeResponse,
    UpdateResponse,
    coerce_number,
    format_timestamp,
    is_number,
    offset_from_now,
    parse_timestamp,
    to_bson_number,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error returned to the client as {key: message} with the given status"""

    status_code = 500

    def __init__(self, message: str, key: str = "error"):
        super().__init__(message)
        self.message = message
        self.key = key


class InvalidInput(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404

    def __init__(self, message: str, key: str = "message"):
        super().__init__(message, key)


class InternalError(ApiError):
    status_code = 500


app = FastAPI(title="Countdown State API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.settings = load_settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(settings: Settings = Depends(get_settings)) -> SingletonStore:
    return SingletonStore(settings)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code == 404:
        logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={exc.key: exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s: invalid request body - %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object."})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("%s %s: unexpected error - %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


@app.get("/")
def read_root():
    return {"message": "Countdown state API is running"}


@app.get("/test")
async def test_database(store: SingletonStore = Depends(get_store)):
    """Test endpoint to check if the database is configured and both collections are reachable"""
    settings = store.settings
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Configured",
        "database_name": settings.db_name,
        "collections": {},
    }

    if not settings.is_configured:
        return response

    try:
        for name in (settings.time_collection, settings.money_collection):
            response["collections"][name] = await store.count_documents(name)
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:50]}"

    return response


# ============================================================================
# START TIME ENDPOINTS
# ============================================================================

@app.post("/start-time/set", response_model=UpdateResponse)
async def set_start_time(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    store: SingletonStore = Depends(get_store),
):
    """
    Overwrite the stored start time with the given date
    Body: {"timestamp": ISO 8601 string or epoch milliseconds}
    """
    timestamp = (payload or {}).get("timestamp")
    if not timestamp:
        raise InvalidInput("Timestamp is required in the body.")

    new_timestamp = parse_timestamp(timestamp)
    if new_timestamp is None:
        raise InvalidInput("Invalid timestamp format.")

    try:
        result = await store.set_field(store.settings.time_collection, "timestamp", new_timestamp)
    except Exception:
        logger.exception("Error in /start-time/set route")
        raise InternalError("An error occurred while updating the timestamp.")

    if result.matched_count == 0:
        raise NotFound("No document found to update.")

    return {"message": "Timestamp updated successfully", "modifiedCount": result.modified_count}


@app.post("/start-time/add", response_model=UpdateResponse)
async def add_start_time(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    store: SingletonStore = Depends(get_store),
):
    """
    Set the start time to now plus an offset
    Body: {"timestamp": ...}, parsed like /start-time/set; its epoch
    milliseconds are the offset (e.g. 3600000 for one hour)
    """
    timestamp = (payload or {}).get("timestamp")
    if not timestamp:
        raise InvalidInput("Timestamp is required in the body.")

    offset = parse_timestamp(timestamp)
    if offset is None:
        raise InvalidInput("Invalid timestamp format.")

    new_timestamp = offset_from_now(offset)
    if new_timestamp is None:
        raise InvalidInput("Invalid timestamp format.")

    try:
        result = await store.set_field(store.settings.time_collection, "timestamp", new_timestamp)
    except Exception:
        logger.exception("Error in /start-time/add route")
        raise InternalError("An error occurred while updating the timestamp.")

    if result.matched_count == 0:
        raise NotFound("No document found to update.")

    return {"message": "Timestamp updated successfully", "modifiedCount": result.modified_count}


@app.get("/start-time", response_model=StartTimeResponse)
async def get_start_time(store: SingletonStore = Depends(get_store)):
    try:
        result = await store.get_field(store.settings.time_collection, "timestamp")
    except Exception:
        logger.exception("Error fetching start time")
        raise InternalError("Internal Server Error")

    if not result or not result.get("timestamp"):
        raise NotFound("DateTime value not found", key="error")

    return {"timestamp": format_timestamp(result["timestamp"])}


# ============================================================================
# MONEY RAISED ENDPOINTS
# ============================================================================

@app.post("/money-raised/set", response_model=UpdateResponse)
async def set_money(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    store: SingletonStore = Depends(get_store),
):
    """
    Overwrite the money raised total
    Body: {"value": number}; numeric strings are rejected
    """
    value = (payload or {}).get("value")
    if not is_number(value):
        raise InvalidInput("A numeric 'value' is required in the body.")

    try:
        result = await store.set_field(store.settings.money_collection, "money", to_bson_number(value))
    except Exception:
        logger.exception("Error in /money-raised/set route")
        raise InternalError("An error occurred while setting the money value.")

    if result.matched_count == 0:
        raise NotFound("No document found to update.")

    return {"message": "Money value set successfully", "modifiedCount": result.modified_count}


@app.post("/money-raised/add", response_model=UpdateResponse)
async def add_money(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    store: SingletonStore = Depends(get_store),
):
    """
    Add to the money raised total with an atomic $inc
    Body: {"value": number or numeric string}
    """
    body = payload or {}
    value = coerce_number(body["value"]) if "value" in body else None
    if value is None:
        raise InvalidInput("A numeric 'value' is required in the body.")

    try:
        result = await store.increment_field(store.settings.money_collection, "money", value)
    except Exception:
        logger.exception("Error in /money-raised/add route")
        raise InternalError("An error occurred while updating the money value.")

    if result.matched_count == 0:
        raise NotFound("No document found to update.")

    return {"message": "Money value updated successfully", "modifiedCount": result.modified_count}


@app.get("/money-raised", response_model=MoneyResponse)
async def get_money(store: SingletonStore = Depends(get_store)):
    try:
        result = await store.get_field(store.settings.money_collection, "money")
    except Exception:
        logger.exception("Error in /money-raised route")
        raise InternalError("An error occurred while retrieving the money value.")

    if not result or "money" not in result:
        raise NotFound("Money value not found.")

    return {"money": result["money"]}


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
