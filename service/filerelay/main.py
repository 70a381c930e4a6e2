import hmac
import json

import httpx
from fastapi import FastAPI, Request, Header
from fastapi.responses import PlainTextResponse

from filerelay.config import get_settings
from filerelay.services.relay import RelayPipeline
from filerelay.telegram_bot.bot import cancel_background_tasks, spawn_update_task
from filerelay.telegram_bot.logging_config import bot_logger as logger, setup_logging
from filerelay.telegram_bot.telegram_api import TelegramAPI, TelegramAPIError

WEBHOOK_PATH = "/endpoint"

app = FastAPI(
    title="URL File Relay",
    description="Telegram bot that re-uploads files sent as URLs",
    version="0.1.0",
    # Only the routes below exist; everything else gets the fallback reply
    docs_url=None,
    redoc_url=None,
    openapi_url=None
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Load settings (fails fast when secrets are missing) and open the HTTP client."""
    settings = get_settings()
    setup_logging(settings.log_level)

    client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    api = TelegramAPI(settings, client)

    app.state.http_client = client
    app.state.telegram_api = api
    app.state.pipeline = RelayPipeline(api, client)
    logger.info(f"[STARTUP] Relay ready ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    """Abandon in-flight relays, then close the shared HTTP client."""
    await cancel_background_tasks()

    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
    logger.info("[SHUTDOWN] Relay stopped")


# Telegram webhook endpoint
@app.post(WEBHOOK_PATH)
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str = Header(None)
):
    """
    Webhook endpoint for Telegram updates.

    Answers "Ok" as soon as the secret matches; the file is relayed in
    the background so Telegram never waits for the upload.
    """
    settings = get_settings()

    if not x_telegram_bot_api_secret_token or not hmac.compare_digest(
        x_telegram_bot_api_secret_token.encode(), settings.telegram_webhook_secret.encode()
    ):
        logger.warning("Rejected webhook call with invalid secret token")
        return PlainTextResponse("Unauthorized", status_code=403)

    try:
        update_data = await request.json()
    except ValueError:
        # Acknowledge anyway, redelivery would not fix the body
        logger.warning("Webhook body is not valid JSON")
        return PlainTextResponse("Ok")

    if isinstance(update_data, dict) and "message" in update_data:
        spawn_update_task(update_data, request.app.state.pipeline)

    return PlainTextResponse("Ok")


@app.api_route("/setwebhook", methods=["GET", "POST"])
async def set_webhook(request: Request):
    """Register <this host>/endpoint as the bot webhook."""
    settings = get_settings()

    base_url = settings.webhook_base_url.rstrip("/")
    if not base_url:
        base_url = f"{request.url.scheme}://{request.url.hostname}"
    webhook_url = f"{base_url}{WEBHOOK_PATH}"

    try:
        result = await request.app.state.telegram_api.set_webhook(
            webhook_url, secret_token=settings.telegram_webhook_secret
        )
    except (httpx.HTTPError, TelegramAPIError) as e:
        logger.error(f"setWebhook request failed: {e}")
        return PlainTextResponse(f"Failed to register webhook: {e}", status_code=500)

    if result.get("ok"):
        logger.info(f"Webhook registered at {webhook_url}")
        return PlainTextResponse("Webhook registered successfully!")

    logger.error(f"setWebhook failed: {result.get('description')}")
    return PlainTextResponse(
        f"Failed to register webhook: {json.dumps(result, indent=2)}", status_code=500
    )


@app.api_route("/unregisterwebhook", methods=["GET", "POST"])
async def unregister_webhook(request: Request):
    """Remove the bot webhook."""
    try:
        result = await request.app.state.telegram_api.set_webhook("")
    except (httpx.HTTPError, TelegramAPIError) as e:
        logger.error(f"setWebhook (unregister) request failed: {e}")
        return PlainTextResponse(f"Failed to unregister webhook: {e}", status_code=500)

    if result.get("ok"):
        logger.info("Webhook unregistered")
        return PlainTextResponse("Webhook unregistered successfully!")

    logger.error(f"setWebhook (unregister) failed: {result.get('description')}")
    return PlainTextResponse(
        f"Failed to unregister webhook: {json.dumps(result, indent=2)}", status_code=500
    )


# Must stay last: matches every path
@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
)
async def fallback(path: str):
    return PlainTextResponse("No handler for this request")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
