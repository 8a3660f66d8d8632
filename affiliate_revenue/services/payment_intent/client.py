"""
Payment intent lookup client.

Fetches processor-side metadata (currency, rail, exchange rate, net
amount) for a charge by its transaction id. Successful lookups are
memoized in the shared result cache; failures are not, so the next
call retries.
"""

from typing import Any

import aiohttp
from loguru import logger
from pydantic import ValidationError

from affiliate_revenue.config.settings import settings
from affiliate_revenue.services.cache import ResultCache
from affiliate_revenue.services.payment_intent.models import PaymentIntentMetadata
from affiliate_revenue.utils.exceptions import RemoteLookupError


CACHE_FUNCTION_NAME = "payment_intent_info"


class PaymentIntentClient:
    """
    Client for the processor metadata endpoint.

    Usage:
        async with PaymentIntentClient(cache) as client:
            metadata = await client.fetch("pi_123")
    """

    def __init__(
        self,
        cache: ResultCache,
        endpoint_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        cache_ttl: int | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize lookup client.

        Args:
            cache: Shared result cache
            endpoint_url: Metadata endpoint, defaults to settings
            api_token: Bearer token, defaults to settings
            timeout: Total request timeout in seconds
            cache_ttl: Memo lifetime for successful lookups
            session: Existing aiohttp session (not closed by this client)
        """
        self.cache = cache
        self.endpoint_url = endpoint_url or settings.processor_metadata_url
        self.api_token = api_token if api_token is not None else settings.processor_api_token
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.http_timeout)
        self.cache_ttl = cache_ttl or settings.payment_intent_cache_ttl
        self._session = session
        self._owns_session = session is None
        self.logger = logger.bind(service="PaymentIntentClient")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the owned HTTP session."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "PaymentIntentClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch(self, transaction_id: str) -> PaymentIntentMetadata | None:
        """
        Get metadata for a processor charge.

        Args:
            transaction_id: Processor payment intent id

        Returns:
            PaymentIntentMetadata, or None when the lookup failed
        """
        if not transaction_id:
            return None

        params = {"payment_intent_id": transaction_id}
        cached = self.cache.get(CACHE_FUNCTION_NAME, params)
        if cached is not None:
            return cached

        try:
            data = await self._request(transaction_id)
            metadata = PaymentIntentMetadata.model_validate(data)
        except RemoteLookupError as e:
            self.logger.warning(str(e))
            return None
        except ValidationError as e:
            self.logger.warning(
                f"Malformed metadata for {transaction_id}: {e.error_count()} error(s)"
            )
            return None
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.error(f"Metadata request failed for {transaction_id}: {e}")
            return None

        self.cache.set(CACHE_FUNCTION_NAME, metadata, params, ttl=self.cache_ttl)
        return metadata

    async def _request(self, transaction_id: str) -> dict[str, Any]:
        """
        POST the lookup and return the decoded body.

        Raises:
            RemoteLookupError: Non-2xx status, non-JSON body or success=false
        """
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        session = await self._get_session()
        async with session.post(
            self.endpoint_url,
            json={"payment_intent_id": transaction_id},
            headers=headers,
            timeout=self.timeout,
        ) as response:
            if response.status // 100 != 2:
                raise RemoteLookupError(transaction_id, f"HTTP {response.status}")
            try:
                data = await response.json()
            except (aiohttp.ContentTypeError, ValueError) as e:
                raise RemoteLookupError(transaction_id, f"invalid JSON body: {e}") from e

        if not isinstance(data, dict) or not data.get("success"):
            raise RemoteLookupError(transaction_id, "endpoint reported failure")
        return data
