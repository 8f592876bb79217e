import logging

from fastapi import FastAPI

from push.config import PushSettings, get_settings
from push.routers import notifications
from push.services.push_handler import PushNotificationHandler, build_push_handler


def create_app(
    *,
    settings: PushSettings | None = None,
    handler: PushNotificationHandler | None = None,
) -> FastAPI:
    app = FastAPI(title="ThisDay Push Notification Function", version="0.1.0")
    app.state.settings = settings
    app.state.push_handler = handler

    app.include_router(notifications.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        env = app.state.settings.app_env if app.state.settings else "unknown"
        return {"status": "ok", "env": env}

    @app.on_event("startup")
    async def startup() -> None:
        if app.state.settings is None:
            app.state.settings = get_settings()
        logging.basicConfig(level=app.state.settings.log_level)
        if app.state.push_handler is None:
            app.state.push_handler = build_push_handler(app.state.settings)

    @app.on_event("shutdown")
    async def shutdown() -> None:
        if app.state.push_handler is not None:
            await app.state.push_handler.close()

    return app


app = create_app()
