"""HTTP surface for the Spigot faucet.

Endpoints:
- POST /: request a payout (form or JSON body)
- GET /, GET /api/status: faucet status snapshot
"""

import json
import logging

from aiohttp import web

from spigot.faucet.amounts import format_amount
from spigot.faucet.coordinator import (
    FaucetStatus,
    PayoutCoordinator,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)
from spigot.observability.logging import clear_request_id, new_request_id, set_request_id

from .identity import IPNetwork, resolve_client_identity

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

STATUS_CODES = {
    PayoutStatus.SUCCESS: 200,
    PayoutStatus.INVALID_AMOUNT: 400,
    PayoutStatus.AMOUNT_EXCEEDS_LIMIT: 400,
    PayoutStatus.INVALID_ADDRESS: 400,
    PayoutStatus.WRONG_NETWORK: 400,
    PayoutStatus.RATE_LIMITED: 429,
    PayoutStatus.SUBMISSION_FAILED: 502,
    PayoutStatus.CANCELLED: 503,
    PayoutStatus.UNAVAILABLE: 503,
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _payout_body(txid: str = "", error: str = "", retry_after: int | None = None) -> dict:
    body: dict = {"txid": txid, "error": error}
    if retry_after is not None:
        body["retry_after"] = retry_after
    return body


def result_to_response(result: PayoutResult) -> web.Response:
    """Map a payout result to its JSON response."""
    headers = {}
    if result.status == PayoutStatus.RATE_LIMITED and result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)

    if result.success:
        body = _payout_body(txid=result.tx_hash or "")
    else:
        body = _payout_body(error=result.message, retry_after=result.retry_after_seconds)

    return web.json_response(body, status=STATUS_CODES[result.status], headers=headers)


def status_to_dict(status: FaucetStatus) -> dict:
    """Convert a status snapshot to a JSON-serializable dict with coin amounts."""

    def coins(units: int | None) -> str | None:
        return None if units is None else format_amount(units)

    return {
        "healthy": status.healthy,
        "message": status.message,
        "network": status.network,
        "faucet_address": status.faucet_address,
        "balance": coins(status.spendable_balance),
        "transaction_limit": coins(status.transaction_limit),
        "default_amount": coins(status.default_amount),
        "cooldown_seconds": status.cooldown_seconds,
        "sent_last_24h": coins(status.sent_last_24h),
        "balance_updated_at": status.balance_updated_at,
    }


@web.middleware
async def request_context_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Tag each request with an ID and add CORS headers to every response."""
    request_id = new_request_id()
    set_request_id(request_id)
    try:
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(CORS_HEADERS)
            exc.headers[REQUEST_ID_HEADER] = request_id
            raise
        response.headers.update(CORS_HEADERS)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        clear_request_id()


class FaucetServer:
    """HTTP server in front of the payout coordinator.

    Parameters
    ----------
    coordinator : PayoutCoordinator
        Coordinator that handles payouts.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    trusted_proxies : list[IPNetwork] | None
        Peers allowed to set the client IP header.
    real_ip_header : str
        Header carrying the original client IP behind a proxy.
    request_timeout : float | None
        Seconds a request may wait before its payout is submitted.
    """

    def __init__(
        self,
        coordinator: PayoutCoordinator,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 8000,
        trusted_proxies: list[IPNetwork] | None = None,
        real_ip_header: str = "X-Real-IP",
        request_timeout: float | None = 60.0,
    ):
        self._coordinator = coordinator
        self._host = host
        self._port = port
        self._trusted = trusted_proxies or []
        self._real_ip_header = real_ip_header
        self._request_timeout = request_timeout
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application."""
        app = web.Application(middlewares=[request_context_middleware])
        app.router.add_post("/", self._handle_payout)
        app.router.add_get("/", self._handle_status)
        app.router.add_get("/api/status", self._handle_status)
        app.router.add_route("OPTIONS", "/", self._handle_preflight)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(
            "Faucet HTTP server started",
            extra={"host": self._host, "port": self._port},
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Faucet HTTP server stopped")

    def client_identity(self, request: web.Request) -> str:
        """Rate-limit identity of the requesting client."""
        return resolve_client_identity(
            request.remote,
            request.headers.get(self._real_ip_header),
            self._trusted,
        )

    async def _read_fields(self, request: web.Request) -> dict[str, str]:
        """Read request fields from a JSON or form body.

        The query string is not read.
        """
        fields: dict[str, str] = {}
        if request.content_type == "application/json":
            try:
                data = await request.json()
            except json.JSONDecodeError:
                raise ValueError("Request body is not valid JSON") from None
            if not isinstance(data, dict):
                raise ValueError("Request body must be a JSON object")
            fields.update({k: str(v) for k, v in data.items() if v is not None})
        elif request.body_exists:
            form = await request.post()
            fields.update({k: str(v) for k, v in form.items()})
        return fields

    async def _handle_payout(self, request: web.Request) -> web.Response:
        """Handle POST / (payout request)."""
        try:
            fields = await self._read_fields(request)
        except ValueError as e:
            return web.json_response(_payout_body(error=str(e)), status=400)

        identity = self.client_identity(request)
        payout = PayoutRequest(
            identity=identity,
            address=fields.get("address", "").strip(),
            amount=fields.get("amount") or None,
            override_token=fields.get("overridetoken") or None,
        )
        logger.info(
            "Payout requested",
            extra={
                "identity": identity,
                "address": payout.address,
                "amount": payout.amount,
            },
        )

        try:
            result = await self._coordinator.pay(payout, timeout=self._request_timeout)
        except Exception:
            logger.exception("Error handling payout request")
            return web.json_response(
                _payout_body(error="An unexpected error occurred. Please try again."),
                status=500,
            )

        return result_to_response(result)

    async def _handle_status(self, _request: web.Request) -> web.Response:
        """Handle GET / and GET /api/status."""
        status = await self._coordinator.get_status()
        return web.json_response(status_to_dict(status))

    async def _handle_preflight(self, _request: web.Request) -> web.Response:
        """Handle CORS preflight requests."""
        return web.Response(status=204)
