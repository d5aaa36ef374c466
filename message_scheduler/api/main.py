"""
FastAPI application entry point.

JSON API for managing WhatsApp numbers and scheduled messages.

Startup order matters: pending schedules are resumed from the store inside
the lifespan, before the application accepts its first request.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from message_scheduler import __version__
from message_scheduler.infra.config import Settings
from .routers import numbers, schedules, scheduler
from ._scheduler_state import (
    init_scheduler_service,
    shutdown_scheduler_service,
)
from .dependencies.auth import verify_api_key, API_AUTH_ENABLED


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Build the scheduler service from environment settings
    - Resume unsent schedules (store errors abort startup)

    Shutdown:
    - Drop pending timers, let in-flight dispatches finish
    """
    settings = Settings.from_env()
    service = init_scheduler_service(settings)
    service.resume_schedules()

    yield

    await shutdown_scheduler_service()


tags_metadata = [
    {
        "name": "numbers",
        "description": "Recipient numbers and group labels",
    },
    {
        "name": "schedules",
        "description": "Scheduled messages - create, list, cancel",
    },
    {
        "name": "scheduler",
        "description": "In-memory scheduler status",
    },
]

app = FastAPI(
    title="WhatsApp Message Scheduler API",
    lifespan=lifespan,
    description="""
## WhatsApp Message Scheduler API

Schedule a message for later delivery to individual numbers or to a group.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require
an `X-API-Key` header matching the `API_KEY` environment variable.

### Delivery semantics
- Group membership is resolved at send time
- Each recipient gets exactly one attempt; failures are logged, not retried
- A schedule is marked `sent` once delivery has been attempted
- Schedules whose send time has already passed are never sent

### Usage
```bash
python -m message_scheduler --host 127.0.0.1 --port 8000

curl -X POST http://localhost:8000/schedules \\
  -H "Content-Type: application/json" \\
  -d '{"message": "Reminder", "send_at": "2030-01-01T09:00:00", "group": "team"}'
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


# Health check - NO authentication
@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


auth_dependency = [Depends(verify_api_key)] if API_AUTH_ENABLED else []

app.include_router(
    numbers.router, prefix="/numbers", tags=["numbers"], dependencies=auth_dependency
)
app.include_router(
    schedules.router, prefix="/schedules", tags=["schedules"], dependencies=auth_dependency
)
app.include_router(
    scheduler.router, prefix="/scheduler", tags=["scheduler"], dependencies=auth_dependency
)
