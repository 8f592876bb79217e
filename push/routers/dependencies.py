from fastapi import Header, HTTPException, Request, status

from push.services.push_handler import PushNotificationHandler


async def get_push_handler(request: Request) -> PushNotificationHandler:
    handler = getattr(request.app.state, "push_handler", None)
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push handler is not ready",
        )
    return handler


async def require_internal_token(
    request: Request,
    x_internal_token: str | None = Header(default=None, alias="X-Internal-Token"),
) -> None:
    settings = getattr(request.app.state, "settings", None)
    if settings is None or not settings.push_internal_token:
        return
    if not x_internal_token or x_internal_token != settings.push_internal_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid internal token",
        )
