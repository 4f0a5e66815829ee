from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from homecare.config import CORS_ORIGINS, configure_logging
from homecare.db import init_db
from homecare.errors import DomainError

from homecare import api_appointments, api_auth, api_medications, api_notifications, api_people

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables in both stores (idempotent)
    init_db()
    logger.info("Home-care API started")
    yield
    logger.info("Home-care API stopped")


app = FastAPI(title="Home-Care API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(api_auth.router)
app.include_router(api_appointments.router)
app.include_router(api_medications.router)
app.include_router(api_people.patients_router)
app.include_router(api_people.employees_router)
app.include_router(api_notifications.router)


# Errors

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    message = "; ".join(problems) or "Invalid request"
    logger.warning("Rejected request %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
