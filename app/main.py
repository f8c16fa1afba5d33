"""FastAPI application entry point."""
from fastapi import FastAPI

from app.routers import health, notifications


app = FastAPI(title="Pending Tasks Notifier API")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(notifications.router)
