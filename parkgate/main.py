# parkgate/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
Admission services and the gate controller are built once at startup and
shared through app.state.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from parkgate.routers import admission, gate, health
from parkgate.database import SessionLocal, create_tables
from parkgate.config import settings
from parkgate.services.admission_service import AdmissionController
from parkgate.services.capacity_pool import CapacityPool
from parkgate.services.gate_controller import GateController
from parkgate.services.gate_link import GateLink
from parkgate.services.request_dispatcher import RequestDispatcher
from parkgate.services.vehicle_ledger import VehicleLedger
from parkgate.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="ParkGate API",
    description="Parking admission control and barrier gate actuation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (scanner / kiosk frontend) ─────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-API-Key"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Health check and docs stay open. Set API_KEY in .env; leave empty to disable.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"message": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(admission.router, prefix="/api", tags=["🚗 Admission"])
app.include_router(gate.router,      prefix="/api", tags=["🚧 Gate"])
app.include_router(health.router,    prefix="/api", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 ParkGate starting up...")
    create_tables()
    logger.info("✅ Database tables ready")

    pool = CapacityPool()
    with SessionLocal() as session:
        pool.sync(session)
    controller = AdmissionController(session_factory=SessionLocal, pool=pool, ledger=VehicleLedger())
    app.state.admission = controller
    app.state.dispatcher = RequestDispatcher(controller)
    logger.info(f"🅿️  Capacity partitions: {pool.limits}")

    app.state.gate = GateController(GateLink())
    if settings.GATE_ENABLED:
        app.state.gate.attach()
    else:
        logger.info("🚧 Gate disabled by configuration")

    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 ParkGate shutting down...")
    app.state.gate.shutdown()
    app.state.dispatcher.shutdown()
