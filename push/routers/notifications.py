from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from push.routers.dependencies import get_push_handler, require_internal_token
from push.services.push_handler import PushNotificationHandler

router = APIRouter(tags=["notifications"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@router.options("/send-push-notification")
@router.options("/functions/v1/send-push-notification")
async def preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/send-push-notification")
@router.post("/functions/v1/send-push-notification")
async def send_push_notification(
    request: Request,
    handler: PushNotificationHandler = Depends(get_push_handler),
    _: None = Depends(require_internal_token),
) -> JSONResponse:
    # Parsed by the handler so malformed bodies get the same error containment.
    raw = await request.body()
    result = await handler.handle(raw)
    return JSONResponse(status_code=result.status_code, content=result.body)
