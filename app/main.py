"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.errors import DisceptoError, PermissionDenied

app = FastAPI(
    title="Discepto API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(DisceptoError)
def handle_discepto_error(request: Request, exc: DisceptoError) -> JSONResponse:
    """Map core error kinds to their HTTP status; denials also list the missing permissions."""
    content: dict[str, object] = {"detail": exc.message}
    if isinstance(exc, PermissionDenied):
        content["missing"] = [p.value for p in exc.missing]
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Discepto API"}
