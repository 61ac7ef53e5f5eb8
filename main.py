import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from config import APP_NAME, APP_VERSION, CORS_ALLOW_ORIGINS, ENVIRONMENT, LOG_LEVEL
from core.db import get_db_context
from core.logging import configure_logging, request_id_var
from routers.auth import api as auth_api
from routers.notifications import api as notifications_api
from routers.owner import api as owner_api
from routers.projects import api as projects_api
from routers.support import api as support_api
from routers.wallet import api as wallet_api

log_level = configure_logging(environment=ENVIRONMENT, log_level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_NAME,
    description="Crowdlending platform API - profiles, wallets, projects, investments and back-office review",
    version=APP_VERSION,
    swagger_ui_parameters={
        "docExpansion": "none",
        "displayRequestDuration": True,
        "filter": True,
        "persistAuthorization": False,
    },
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        token = request_id_var.set(request_id)
        request.state.request_id = request_id

        start_time = time.time()
        query_str = f"?{request.url.query}" if request.query_params else ""
        logger.info(
            f"REQUEST | id={request_id} | method={request.method} | path={request.url.path}{query_str} | "
            f"ip={request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            # set by get_current_claims once the token has been verified
            subject = getattr(request.state, "subject_id", None)
            logger.info(
                f"RESPONSE | id={request_id} | method={request.method} | path={request.url.path} | "
                f"status={response.status_code} | time={process_time:.3f}s | "
                f"user_id={subject[:8] if subject else 'anonymous'}"
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"ERROR | id={request_id} | method={request.method} | path={request.url.path} | "
                f"error={type(e).__name__}: {str(e)} | time={process_time:.3f}s",
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)


# Add request logging middleware (before CORS so it logs all requests)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
    expose_headers=["X-Request-ID"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "DB_ERROR | id=%s | path=%s | error=%s",
        getattr(request.state, "request_id", "-"),
        request.url.path,
        exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Database error", "message": str(exc)})


app.include_router(auth_api.router)      # Profile, settings and accounts
app.include_router(wallet_api.router)    # Wallet and top-ups
app.include_router(projects_api.router)  # Projects, interest, investments, admin review
app.include_router(owner_api.router)     # Owner back-office and team
app.include_router(support_api.router)   # Support tickets
app.include_router(notifications_api.router)  # In-app notifications


@app.on_event("startup")
async def startup_event():
    logger.info(f"{APP_NAME} started successfully ({ENVIRONMENT})")

    from fastapi.routing import APIRoute

    logger.debug("=== Registered Routes ===")
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(sorted(route.methods))
            logger.debug(f"{methods:8} {route.path}")
    logger.debug("=== End of Routes ===")


@app.get("/")
async def read_root():
    """
    Root endpoint to check if the server is running.
    Returns basic API information.
    """
    return {
        "status": "online",
        "message": f"Welcome to {APP_NAME}!",
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
    }


@app.get("/health")
def health_check():
    """Liveness plus a round trip to the database."""
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        logger.error(f"Health check database query failed: {exc}")
        database = "unavailable"
    return {"status": "healthy" if database == "ok" else "degraded", "database": database}
