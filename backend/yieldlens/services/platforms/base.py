"""
Base adapter class for external platform APIs.

Every platform (yield provider, blockchain explorer, staking protocol) is
wrapped by one adapter that makes a single throttled, timed HTTP call and
normalizes the platform's response into ``AdapterData``. Expected failures
(non-2xx, transport errors, timeouts, unexpected response shapes) come back as
an unsuccessful ``AdapterResult``; adapters do not raise for them and do not
retry. Retry policy belongs to the scheduler.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from yieldlens.services.ratelimit.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
USER_AGENT = "YieldLens/1.0"

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
UNKNOWN = "unknown"

TIMEOUT_ERROR = "timeout"


class AdapterConfig(BaseModel):
    """Connection settings for one platform API."""
    api_type: str
    base_url: str
    endpoints: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    # api_key -> Bearer token, x_api_key -> X-API-Key header, query_api_key -> query parameter
    credentials: Dict[str, str] = Field(default_factory=dict)
    rate_limit_rpm: int = 60
    timeout_ms: int = DEFAULT_TIMEOUT_MS


class AdapterData(BaseModel):
    """Normalized platform payload."""
    apy: Optional[float] = None
    tvl: Optional[float] = None
    vault_info: Optional[Any] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AdapterResult(BaseModel):
    """Outcome of one adapter call."""
    success: bool
    data: Optional[AdapterData] = None
    error: Optional[str] = None
    response_time_ms: float = 0.0
    status_code: Optional[int] = None


class ResponseShapeError(ValueError):
    """The platform answered, but not in the shape the adapter understands."""


def safe_get(d: Any, path: str, default: Any = None) -> Any:
    """Walk a dotted path through nested dicts."""
    cur = d
    for key in path.split("."):
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def to_float(x: Any) -> Optional[float]:
    if x is None:
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


class BasePlatformAdapter(ABC):
    """Abstract base class for platform adapters."""

    # Adapter types whose API rejects anonymous calls set this
    requires_credentials = False
    # Query parameter carrying ``query_api_key``
    api_key_param = "apikey"
    # Key into ``config.endpoints`` probed by validate_config
    primary_endpoint: Optional[str] = None

    def __init__(
        self,
        config: AdapterConfig,
        platform_id: str,
        platform_name: str,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Connection settings and credentials
            platform_id: Stable platform identifier, also the rate limiter source id
            platform_name: Display name used in messages
            rate_limiter: Shared limiter; a private one is created if omitted
            transport: httpx transport override (tests)
        """
        self.config = config
        self.platform_id = platform_id
        self.platform_name = platform_name
        self.rate_limiter = rate_limiter or RateLimiter()
        self.rate_limiter.configure(platform_id, config.rate_limit_rpm)
        self._transport = transport

    # Contract

    @abstractmethod
    async def fetch_live_data(self) -> AdapterResult:
        """Fetch and normalize the platform's current figures."""

    async def validate_config(self) -> bool:
        """Cheap reachability check of the primary endpoint (HEAD probe)."""
        if not self.has_credentials():
            logger.warning(f"{self.platform_name}: missing API credentials")
            return False
        endpoint = self.config.endpoints.get(self.primary_endpoint) if self.primary_endpoint else None
        if endpoint is None:
            logger.warning(f"{self.platform_name}: endpoint '{self.primary_endpoint}' not configured")
            return False
        try:
            response = await self.request("HEAD", endpoint)
        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            logger.error(f"{self.platform_name} config validation failed: {e!r}")
            return False
        # 405 still proves the endpoint exists (GraphQL servers reject HEAD)
        return response.is_success or response.status_code == 405

    async def get_health_status(self) -> str:
        """Map a live fetch attempt to 'healthy' / 'unhealthy'."""
        result = await self.fetch_live_data()
        if not result.success:
            logger.warning(f"{self.platform_name} health check failed: {result.error}")
        return HEALTHY if result.success else UNHEALTHY

    # Shared behavior

    @property
    def timeout_seconds(self) -> float:
        return (self.config.timeout_ms or DEFAULT_TIMEOUT_MS) / 1000.0

    def has_credentials(self) -> bool:
        if not self.requires_credentials:
            return True
        return any(self.config.credentials.get(k) for k in ("api_key", "x_api_key", "query_api_key"))

    def build_url(self, endpoint: str) -> str:
        base_url = self.config.base_url.rstrip("/")
        if not endpoint:
            return base_url
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{base_url}{endpoint}"

    def get_default_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        headers.update(self.config.headers or {})

        creds = self.config.credentials or {}
        if creds.get("api_key"):
            headers["Authorization"] = f"Bearer {creds['api_key']}"
        if creds.get("x_api_key"):
            headers["X-API-Key"] = creds["x_api_key"]
        return headers

    def build_params(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        merged = dict(params or {})
        query_key = (self.config.credentials or {}).get("query_api_key")
        if query_key:
            merged[self.api_key_param] = query_key
        return merged

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> httpx.Response:
        """Throttled HTTP call bounded by the configured timeout.

        Raises:
            asyncio.TimeoutError: The call outlived the timeout and was cancelled
            httpx.HTTPError: Transport failure
        """
        await self.rate_limiter.acquire(self.platform_id)

        url = self.build_url(endpoint)
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            return await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    params=self.build_params(params),
                    json=json,
                    headers=self.get_default_headers(),
                ),
                timeout=self.timeout_seconds,
            )

    async def call(
        self,
        endpoint_name: str,
        normalize: Callable[[Any], AdapterData],
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> AdapterResult:
        """Perform one call and fold every expected failure into the result.

        Args:
            endpoint_name: Key into ``config.endpoints``
            normalize: Turns the decoded JSON body into AdapterData; raises
                ResponseShapeError (or KeyError/TypeError/ValueError) on
                unexpected shapes
            method: HTTP method
            params: Query parameters
            json: JSON body
        """
        start = time.monotonic()

        def elapsed_ms() -> float:
            return (time.monotonic() - start) * 1000

        if not self.has_credentials():
            return self.create_result(False, error=f"Missing API credentials for {self.platform_name}")

        endpoint = self.config.endpoints.get(endpoint_name)
        if endpoint is None:
            return self.create_result(False, error=f"{self.platform_name} {endpoint_name} endpoint not configured")

        try:
            response = await self.request(method, endpoint, params=params, json=json)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"{self.platform_name} call to {endpoint} timed out after {self.timeout_seconds}s")
            return self.create_result(False, error=TIMEOUT_ERROR, response_time_ms=elapsed_ms())
        except httpx.HTTPError as e:
            logger.warning(f"{self.platform_name} call to {endpoint} failed: {e!r}")
            return self.create_result(False, error=f"API call failed: {e}", response_time_ms=elapsed_ms())

        response_time = elapsed_ms()
        if not response.is_success:
            return self.create_result(
                False,
                error=f"{self.platform_name} API responded with {response.status_code}: {response.reason_phrase}",
                response_time_ms=response_time,
                status_code=response.status_code,
            )

        try:
            data = normalize(response.json())
        except (ValueError, KeyError, TypeError, IndexError, AttributeError) as e:
            logger.warning(f"{self.platform_name} returned an unexpected response: {e}")
            return self.create_result(
                False,
                error=f"Invalid response from {self.platform_name}: {e}",
                response_time_ms=response_time,
                status_code=response.status_code,
            )

        data.metadata.setdefault("source", f"{self.config.api_type}_api")
        data.metadata.setdefault("platform_id", self.platform_id)
        data.metadata.setdefault("endpoint", endpoint)
        data.metadata.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        return self.create_result(True, data=data, response_time_ms=response_time, status_code=response.status_code)

    def create_result(
        self,
        success: bool,
        data: Optional[AdapterData] = None,
        error: Optional[str] = None,
        response_time_ms: float = 0.0,
        status_code: Optional[int] = None,
    ) -> AdapterResult:
        return AdapterResult(
            success=success,
            data=data,
            error=error,
            response_time_ms=response_time_ms,
            status_code=status_code,
        )
