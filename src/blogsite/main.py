"""
# Blogsite - Main Application Module

Entry point and lifecycle orchestrator of the blog service.

## Architecture Overview

```
┌───────────────────────────────────────────────────────┐
│                  FastAPI Application                  │
│  ┌──────────────┐  ┌───────────────────────────────┐  │
│  │  Middleware  │  │   Routers                     │  │
│  │  - CORS      │  │  - /blogs   public read path  │  │
│  │  - Logging   │  │  - /admin   gated management  │  │
│  └──────────────┘  │  - /auth    sign-in/session   │  │
│                    │  - /ws      invalidations     │  │
│                    └───────────────────────────────┘  │
└───────────────────────────────────────────────────────┘
                 │                          │
                 ▼                          ▼
          ┌────────────┐         ┌──────────────────────┐
          │  MongoDB   │         │ Prometheus /metrics  │
          └────────────┘         └──────────────────────┘
```

## Lifespan

**Startup:** connect to MongoDB (with retries), then create/verify indexes.
**Shutdown:** disconnect from MongoDB.

## Running

```bash
uvicorn blogsite.main:app --reload --host 0.0.0.0 --port 8000
```
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from blogsite import __version__
from blogsite.config import settings
from blogsite.database import db_manager
from blogsite.managers.logging_manager import get_logger
from blogsite.routes import admin_router, auth_router, blog_router, websockets_router
from blogsite.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    **Startup Phase:**
    1.  **Database**: Connects to MongoDB.
    2.  **Indexes**: Creates the feed, admin and identity indexes.

    **Shutdown Phase:**
    1.  **Database**: Disconnects from MongoDB.

    Raises:
        HTTPException: If the database cannot be reached at startup.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {"app_name": "Blogsite API", "version": __version__, "debug_mode": settings.DEBUG},
    )

    try:
        db_connect_start = time.time()
        await db_manager.connect()
        log_application_lifecycle(
            "database_connected",
            {
                "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                "database_name": settings.MONGODB_DATABASE,
                "connection_url": settings.MONGODB_URL.split("@")[-1],
            },
        )

        indexes_start = time.time()
        await db_manager.create_indexes()
        log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})

    except Exception as e:
        log_error_with_context(e, {"operation": "database_startup"})
        raise HTTPException(status_code=503, detail="Service not ready: database connection failed") from e

    if settings.ADMIN_AUTO_PROVISION:
        logger.warning(
            "Admin auto-provisioning is enabled: any identity-provider account becomes an admin on first login%s",
            " (restricted to ADMIN_ALLOWED_EMAILS)" if settings.admin_allowed_emails_list else "",
        )

    log_application_lifecycle("startup_completed", {"total_startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated")
    try:
        await db_manager.disconnect()
        log_application_lifecycle("database_disconnected")
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnection"})

    log_application_lifecycle(
        "shutdown_completed", {"total_shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"}
    )


app = FastAPI(
    title="Blogsite API",
    description="Public blog feed, engagement tracking and a gated admin panel backed by MongoDB.",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[
        {"name": "Blogs", "description": "Public feed, post detail, views and likes"},
        {"name": "Admin", "description": "Content management and dashboard statistics"},
        {"name": "Authentication", "description": "Sign-in, sign-out and session lookup"},
        {"name": "System", "description": "Health and monitoring endpoints"},
    ],
)

cors_origins = settings.cors_origins_list
logger.info("Configuring CORS with origins: %s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured",
    {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins},
)

routers_config = [
    ("blogs", blog_router, "Public feed, detail and engagement endpoints"),
    ("admin", admin_router, "Admin panel content management endpoints"),
    ("auth", auth_router, "Authentication and session endpoints"),
    ("websockets", websockets_router, "Invalidation event stream"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append(router_name)
    logger.info("Included %s router: %s", router_name, description)

log_application_lifecycle("routers_configured", {"routers": included_routers})


@app.get("/health", tags=["System"])
async def health():
    """Report whether the database answers a ping."""
    database_ok = await db_manager.health_check()
    if not database_ok:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ok", "database": "connected", "version": __version__}


if settings.METRICS_ENABLED:
    try:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
        log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
    except Exception as e:
        log_error_with_context(e, {"operation": "prometheus_setup"})
        logger.error("Failed to configure Prometheus metrics: %s", e)


def run():
    uvicorn.run("blogsite.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")


if __name__ == "__main__":
    run()
