# restopos/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from restopos.config import settings
from restopos.db import ensure_indexes, get_db
from restopos.errors import ServiceError
from restopos.middleware import RequestIdMiddleware
from restopos.routers import admin, bills, dining, holds, menu, subscriptions

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("restopos")

app = FastAPI(title="RestoPOS API", version="0.4.0")

@app.on_event("startup")
def init_db():
    ensure_indexes(get_db())

# Middlewares
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error bodies are always {"message": ...}
@app.exception_handler(ServiceError)
def service_error(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

@app.exception_handler(StarletteHTTPException)
def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)

@app.exception_handler(RequestValidationError)
def validation_error(request: Request, exc: RequestValidationError):
    details = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    return JSONResponse(status_code=400, content={"message": "Invalid request", "details": details})

@app.exception_handler(PyMongoError)
def datastore_error(request: Request, exc: PyMongoError):
    logger.exception("Unhandled datastore error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error", "error": str(exc)})

app.include_router(admin.router)
app.include_router(bills.router)
app.include_router(holds.router)
app.include_router(dining.router)
app.include_router(menu.router)
app.include_router(subscriptions.router)

@app.get("/healthz")
def healthz():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("restopos.main:app", host="0.0.0.0", port=8000)
