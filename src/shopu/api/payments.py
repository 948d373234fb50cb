"""Payment provider callbacks."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from shopu.payments.callback import handle_bog_callback

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/bog/callback", response_class=PlainTextResponse)
async def bog_callback(request: Request) -> PlainTextResponse:
    """Bank of Georgia payment callback.

    The signature is checked against the raw body, so the body is read
    before any JSON parsing.
    """
    raw_body = await request.body()
    status, text = handle_bog_callback(raw_body, request.headers.get("callback-signature"))
    return PlainTextResponse(text, status_code=status)
