"""
Service Desk - Main Application
===============================

SLA lifecycle, escalation engine and agent matching for a help-desk portal.

Modules:
- SLA Monitoring: Stamp deadlines at creation, derive live SLA status
- Escalation: Ordered first-match rules that escalate open tickets
- Agent Matching: Score and rank agents for a ticket

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and domain services
- Infrastructure: In-memory store, YAML config, Slack, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from servicedesk.config import Settings, settings as default_settings
from servicedesk.core import ApplicationException

# Infrastructure
from servicedesk.infrastructure.store import close_store, get_store, init_store
from servicedesk.escalation.infrastructure import EscalationScheduler, SlackClient, YAMLRuleLoader
from servicedesk.sla.infrastructure import HourOfDayDemandSource, SLAConfigManager, SystemClock

# Module Routers
from servicedesk.escalation.interfaces import build_escalation_service, escalation_router
from servicedesk.matching.interfaces import matching_router
from servicedesk.sla.interfaces import sla_router

# Middleware & Logging
from servicedesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from servicedesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load SLA policy and start watching it
    3. Initialize the in-memory store (optionally seeded)
    4. Load escalation rules
    5. Create the Slack notifier
    6. Start the escalation scheduler

    SHUTDOWN:
    1. Stop the escalation scheduler
    2. Stop the policy watcher
    3. Close the Slack client
    4. Drop the store
    """
    app_settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(app_settings.log_level, app_settings.environment)
    logger.info("Starting Service Desk", extra={
        "version": app_settings.app_version,
        "environment": app_settings.environment
    })

    logger.info("Loading SLA policy")
    config_manager = SLAConfigManager()
    config_manager.load(app_settings.sla_config_path)
    config_manager.start_watching()

    clock = SystemClock()
    demand_source = HourOfDayDemandSource(config_manager, app_settings.demand_timezone)

    store = init_store(
        seed=app_settings.seed_demo_data,
        now=clock.now(),
        base_hours=config_manager.get_config().base_hours
    )
    store.rules.extend(YAMLRuleLoader(app_settings.escalation_rules_path).load())

    slack_client = SlackClient(
        app_settings.slack_webhook_url,
        channel=app_settings.slack_channel,
        timeout_seconds=app_settings.slack_timeout_seconds
    )
    if not slack_client.enabled:
        logger.info("Slack webhook not configured - escalation notifications disabled")

    # Store services in app state for dependency injection
    app.state.config_manager = config_manager
    app.state.clock = clock
    app.state.demand_source = demand_source
    app.state.notifier = slack_client if slack_client.enabled else None

    scheduler: Optional[EscalationScheduler] = None
    if app_settings.escalation_job_enabled:
        async def escalation_job():
            """Background escalation job."""
            service = build_escalation_service(
                get_store(),
                app.state.config_manager,
                app.state.clock,
                app.state.notifier
            )
            try:
                await service.run_job(app_settings.escalation_actor_id)
            except Exception as e:
                logger.error("Scheduled escalation run failed", extra={"error": str(e)})

        scheduler = EscalationScheduler(interval_seconds=app_settings.escalation_job_interval)
        scheduler.start(escalation_job)
    app.state.scheduler = scheduler

    logger.info("Service Desk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Service Desk")

    if scheduler:
        scheduler.stop()

    config_manager.stop_watching()
    await slack_client.close()
    close_store()

    logger.info("Service Desk shutdown complete")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Service Desk API",
        description="""
    ## Help-Desk SLA, Escalation and Agent Matching

    ### SLA Monitoring
    - `POST /sla/tickets` - Create a ticket and stamp its SLA
    - `GET /sla/tickets/{id}` - Ticket with live SLA status
    - `GET /sla/dashboard` - Breach and risk overview

    ### Escalation
    - `GET|POST /escalation/rules` - Ordered rule list, first match wins
    - `POST /escalation/run` - Run the escalation job now
    - `GET /escalation/audit-logs` - Audit trail

    ### Agent Matching
    - `GET /matching/tickets/{id}/agents` - Ranked agent recommendations
    - `POST /matching/tickets/{id}/assign` - Assign a ticket

    **Base resolution hours:** Critical 4, High 8, Medium 24, Low 72,
    scaled by the demand factor at creation time.
    """,
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = app_settings

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(sla_router)
    app.include_router(escalation_router)
    app.include_router(matching_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        scheduler = getattr(request.app.state, "scheduler", None)
        notifier = getattr(request.app.state, "notifier", None)
        config_manager = getattr(request.app.state, "config_manager", None)
        checks = {
            "sla_config": "watching" if config_manager and config_manager.is_watching else "loaded",
            "escalation_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
            "slack": "configured" if notifier else "not_configured",
        }
        return {
            "status": "healthy",
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Service Desk",
            "version": app_settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "modules": {
                "sla": {"prefix": "/sla"},
                "escalation": {"prefix": "/escalation"},
                "matching": {"prefix": "/matching"}
            }
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "servicedesk.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.environment == "development",
        log_level="info"
    )
