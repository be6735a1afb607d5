"""FastAPI application."""

from fastapi import FastAPI

from planora.api.routes.health import router as health_router
from planora.api.routes.itinerary import router as itinerary_router
from planora.api.routes.metrics import router as metrics_router

app = FastAPI(title="Planora API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itinerary_router, tags=["itinerary"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Planora API", "version": "0.1.0"}
