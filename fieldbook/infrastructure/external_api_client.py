"""
Infrastructure layer: weather and chat completion API clients.
"""
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from fieldbook.config import settings
from fieldbook.domain.models import WeatherData
from fieldbook.infrastructure.store_paths import APIConstants

logger = logging.getLogger(__name__)


class ExternalAPIError(Exception):
    """Custom exception for external API errors."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WeatherClient:
    """
    Client for the weatherapi.com current conditions API.
    Implements retry logic with exponential backoff.
    """

    def __init__(self):
        """Initialize the API client with configuration."""
        self.base_url = settings.weather_api_base_url
        self.api_key = settings.weather_api_key
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"accept": APIConstants.CONTENT_TYPE_JSON},
            timeout=APIConstants.DEFAULT_TIMEOUT,
        )

    async def __aenter__(self) -> "WeatherClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Response data as dictionary

        Raises:
            ExternalAPIError: If the request fails with a client error
        """
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            # Retry on server errors (5xx)
            if e.response.status_code >= 500:
                raise
            # Don't retry on client errors (4xx)
            raise ExternalAPIError(
                f"API request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )

    async def _current(self, query: str) -> WeatherData:
        try:
            data = await self._make_request(
                "GET",
                "/current.json",
                params={"key": self.api_key, "q": query, "aqi": "no"},
            )
        except httpx.HTTPStatusError as e:
            raise ExternalAPIError(
                f"Weather API error: {e.response.status_code}",
                status_code=502,
            ) from e
        except httpx.RequestError as e:
            raise ExternalAPIError(f"Weather API request error: {str(e)}") from e

        return WeatherData.model_validate(data)

    async def get_current(self, lat: float, lng: float) -> WeatherData:
        """
        Fetch current weather at coordinates.

        Args:
            lat: Latitude in degrees
            lng: Longitude in degrees

        Returns:
            WeatherData instance

        Raises:
            ExternalAPIError: If the request fails
        """
        return await self._current(f"{lat},{lng}")

    async def get_by_city(self, city: str) -> WeatherData:
        """
        Fetch current weather for a named place.

        Raises:
            ExternalAPIError: If the request fails
        """
        return await self._current(city)


class ChatCompletionClient:
    """
    Client for an OpenAI-compatible chat completions endpoint.

    Answers are streamed; no retries are made once a stream has started.
    """

    def __init__(self):
        self.url = settings.chat_api_url
        self.api_key = settings.chat_api_key
        self.model = settings.chat_model
        self.client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": APIConstants.CONTENT_TYPE_JSON,
            },
            timeout=httpx.Timeout(APIConstants.LONG_TIMEOUT, read=None),
        )

    async def close(self):
        await self.client.aclose()

    async def stream_completion(self, prompt: str) -> AsyncIterator[str]:
        """
        Stream the answer to a single-message prompt.

        Args:
            prompt: Complete prompt text

        Yields:
            Content fragments as they arrive

        Raises:
            ExternalAPIError: If the request fails
        """
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": True,
        }
        try:
            async with self.client.stream("POST", self.url, json=body) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise ExternalAPIError(
                        f"Chat API error: {response.status_code} - {response.text}",
                        status_code=502,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    data = line[len("data: "):]
                    if data == "[DONE]":
                        return
                    try:
                        parsed = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping undecodable chunk: {data[:80]}")
                        continue
                    choices = parsed.get("choices") or [{}]
                    content = (choices[0].get("delta") or {}).get("content")
                    if content:
                        yield content
        except httpx.RequestError as e:
            raise ExternalAPIError(f"Chat API request error: {str(e)}") from e


# Singleton instances
_weather_client: Optional[WeatherClient] = None
_chat_client: Optional[ChatCompletionClient] = None


def get_weather_client() -> WeatherClient:
    """
    Get or create the singleton weather client instance.

    Returns:
        WeatherClient instance
    """
    global _weather_client
    if _weather_client is None:
        _weather_client = WeatherClient()
    return _weather_client


def get_chat_client() -> ChatCompletionClient:
    global _chat_client
    if _chat_client is None:
        _chat_client = ChatCompletionClient()
    return _chat_client
