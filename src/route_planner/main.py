"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, riders
from .config import settings
from .models.domain import DeliveryClass


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "dispatch_configured": bool(settings.dispatch_base_url),
            "default_origin": [settings.default_origin_latitude, settings.default_origin_longitude],
            "delivery_classes": [delivery_class.value for delivery_class in DeliveryClass],
            "routes": f"{settings.api_prefix}/riders/{{rider_id}}/route",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(riders.router, prefix=settings.api_prefix)
    return app


app = create_app()
