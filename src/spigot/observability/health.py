"""Health check endpoints for the Spigot faucet.

Endpoints:
- /health: Liveness probe (200 if process is alive)
- /ready: Readiness probe (200 if a balance is known and checks pass)
- /metrics: Prometheus metrics endpoint
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from aiohttp import web
from prometheus_client import REGISTRY, generate_latest

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health check status values."""

    OK = "ok"
    ERROR = "error"
    NOT_READY = "not_ready"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str | None = None


@dataclass
class HealthResult:
    """Combined health check result."""

    status: HealthStatus
    checks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {"status": self.status.value}
        if self.checks:
            result["checks"] = self.checks
        return result


class HealthCheck(ABC):
    """Abstract base class for health checks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the health check."""
        ...

    @abstractmethod
    async def check(self) -> CheckResult:
        """Perform the health check.

        Returns
        -------
        CheckResult
            The result of the health check.
        """
        ...


class _BalanceSource(Protocol):
    def snapshot(self): ...


class _ConnectionSource(Protocol):
    @property
    def connected(self) -> bool: ...


class BalanceKnownCheck(HealthCheck):
    """Ready once the balance tracker holds a spendable balance.

    Parameters
    ----------
    tracker : BalanceTracker
        Tracker whose snapshot is inspected.
    """

    def __init__(self, tracker: _BalanceSource):
        self._tracker = tracker

    @property
    def name(self) -> str:
        return "balance"

    async def check(self) -> CheckResult:
        state = self._tracker.snapshot()
        if state is None:
            return CheckResult(self.name, HealthStatus.NOT_READY, "balance not loaded")
        if state.transaction_limit <= 0:
            return CheckResult(self.name, HealthStatus.NOT_READY, "balance too low")
        return CheckResult(self.name, HealthStatus.OK)


class RPCConnectionCheck(HealthCheck):
    """Ready while the RPC endpoint answers.

    Parameters
    ----------
    client : ChainClient
        Client whose ``connected`` property is probed off the event loop.
    """

    def __init__(self, client: _ConnectionSource):
        self._client = client

    @property
    def name(self) -> str:
        return "rpc"

    async def check(self) -> CheckResult:
        connected = await asyncio.to_thread(lambda: self._client.connected)
        if connected:
            return CheckResult(self.name, HealthStatus.OK)
        return CheckResult(self.name, HealthStatus.ERROR, "rpc unreachable")


class HealthServer:
    """HTTP server for health and metrics endpoints.

    Parameters
    ----------
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    # Bound to all interfaces so probes and scrapers outside the container reach it.
    def __init__(self, host: str = "0.0.0.0", port: int = 8080):  # noqa: S104
        self._host = host
        self._port = port
        self._checks: list[HealthCheck] = []
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def add_check(self, check: HealthCheck) -> None:
        """Register a readiness check.

        Parameters
        ----------
        check : HealthCheck
            The health check to add.
        """
        self._checks.append(check)

    def create_app(self) -> web.Application:
        """Build the aiohttp application serving the probe routes."""
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/ready", self._handle_ready)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        """Start the health server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(
            "Health server started",
            extra={"host": self._host, "port": self._port},
        )

    async def stop(self) -> None:
        """Stop the health server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Health server stopped")

    async def _handle_health(self, _request: web.Request) -> web.Response:
        """Handle /health endpoint (liveness probe)."""
        return web.json_response({"status": "ok"})

    async def _handle_ready(self, _request: web.Request) -> web.Response:
        """Handle /ready endpoint (readiness probe)."""
        result = await self._check_readiness()

        status_code = 200 if result.status == HealthStatus.OK else 503
        return web.json_response(result.to_dict(), status=status_code)

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        """Handle /metrics endpoint (Prometheus)."""
        return web.Response(
            body=generate_latest(REGISTRY),
            content_type="text/plain",
            charset="utf-8",
        )

    async def _check_readiness(self) -> HealthResult:
        """Run all readiness checks.

        Returns
        -------
        HealthResult
            Combined result of all checks.
        """
        if not self._checks:
            return HealthResult(status=HealthStatus.OK)

        checks: dict[str, str] = {}
        all_ok = True

        for check in self._checks:
            try:
                result = await check.check()
            except Exception as e:
                logger.exception("Health check failed", extra={"check": check.name})
                checks[check.name] = f"error: {type(e).__name__}: {e}"
                all_ok = False
                continue

            if result.status == HealthStatus.OK:
                checks[result.name] = "ok"
            else:
                checks[result.name] = result.message or result.status.value
                all_ok = False

        return HealthResult(
            status=HealthStatus.OK if all_ok else HealthStatus.NOT_READY,
            checks=checks,
        )
