# routes.py
from fastapi import FastAPI
from controller.health_controller import health_router
from controller.snippet_controller import snippet_router


def register_routes(app: FastAPI) -> None:
    """Register controllers here. Health first: /{snippet_id} would shadow it."""
    app.include_router(health_router)
    app.include_router(snippet_router)
