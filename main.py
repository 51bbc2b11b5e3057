from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from loguru import logger
from database.postgres import init_postgres, close_postgres
import uvicorn
from api.v1.endpoints.availability import router as availability_router
from api.v1.endpoints.bookings import router as bookings_router
from api.v1.endpoints.calendar import router as calendar_router
from api.v1.endpoints.profile import router as profile_router
from fastapi.middleware.cors import CORSMiddleware
from core.config import FRONTEND_URL
from core.exceptions import (
    BookingConflictError,
    InvalidBookingTransitionError,
    NotFoundError,
    ProfileValidationError,
    StoreUnavailableError,
)
from core.logging import setup_logging
origins = [
    "http://127.0.0.1:3000",
    FRONTEND_URL
]
from core.middleware import RequestLogMiddleware
from fastapi.openapi.utils import get_openapi

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Health-e Availability API",
        version="1.0",
        description="Professional availability, slots and bookings",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }

    openapi_schema["security"] = [
        {"BearerAuth": []}
    ]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    app.state.database = await init_postgres()
    yield
    await close_postgres(app.state.database)


app: FastAPI = FastAPI(lifespan=lifespan, title="Health-e")
app.include_router(availability_router)
app.include_router(calendar_router)
app.include_router(profile_router)
app.include_router(bookings_router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in origins if o], # type: ignore
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLogMiddleware)
app.openapi=custom_openapi


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ProfileValidationError)
async def profile_validation_handler(request: Request, exc: ProfileValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.errors})


@app.exception_handler(BookingConflictError)
async def booking_conflict_handler(request: Request, exc: BookingConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(InvalidBookingTransitionError)
async def booking_transition_handler(request: Request, exc: InvalidBookingTransitionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get('/health')
def health():
    return {"status": "ok"}

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
