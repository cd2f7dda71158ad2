"""CardTrader API client for reference data and order history."""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from cardtrader_sales_tracker.api.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class CardTraderAPIError(Exception):
    """Exception raised for CardTrader API errors."""


class CardTraderClient:
    """
    Client for the CardTrader v2 REST API.

    Parameters
    ----------
    api_token : str
        Bearer token of the seller account
    base_url : str
        API base URL
    page_limit : int
        Orders requested per page
    timeout : float
        Request timeout in seconds
    retry_config : RetryConfig | None
        Backoff for transient failures. Uses default config if None.
    transport : httpx.BaseTransport | None
        Custom transport (e.g., httpx.MockTransport in tests)
    sleep : Callable[[float], None]
        Sleep used between retries

    """

    BASE_URL = "https://api.cardtrader.com/api/v2"

    def __init__(
        self,
        api_token: str,
        base_url: str = BASE_URL,
        page_limit: int = 200,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_limit = page_limit
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )
        self._get_with_retry = with_retry(retry_config, sleep=sleep)(self._get)

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a JSON resource, retrying transient failures.

        Parameters
        ----------
        path : str
            Path relative to the base URL (e.g., '/expansions')
        params : dict[str, Any] | None
            Query parameters

        Returns
        -------
        Any
            Decoded JSON body

        Raises
        ------
        CardTraderAPIError
            If the request fails or the body is not JSON

        """
        try:
            return self._get_with_retry(path, params)
        except httpx.TimeoutException as e:
            msg = f"Request timeout: {e}"
            raise CardTraderAPIError(msg) from e
        except httpx.HTTPStatusError as e:
            msg = f"HTTP error {e.response.status_code}: {e}"
            raise CardTraderAPIError(msg) from e
        except httpx.HTTPError as e:
            msg = f"HTTP request failed: {e}"
            raise CardTraderAPIError(msg) from e
        except ValueError as e:
            msg = f"Invalid JSON from {path}: {e}"
            raise CardTraderAPIError(msg) from e

    def _get_list(self, path: str) -> list[Any]:
        data = self.get_json(path)
        if not isinstance(data, list):
            msg = f"Unexpected response shape from {path}: expected a list"
            raise CardTraderAPIError(msg)
        return data

    def get_categories(self) -> list[dict[str, Any]]:
        """
        Fetch all product categories.

        Returns
        -------
        list[dict[str, Any]]
            Raw category objects ({id, name, game_id, ...})

        """
        return self._get_list("/categories")

    def get_expansions(self) -> list[dict[str, Any]]:
        """
        Fetch all expansions across games.

        Returns
        -------
        list[dict[str, Any]]
            Raw expansion objects ({id, game_id, code, name})

        """
        return self._get_list("/expansions")

    def get_orders(self, on_page: Callable[[int], None] | None = None) -> list[dict[str, Any]]:
        """
        Fetch the complete order history, newest first.

        Pages are requested until one comes back shorter than the page limit.

        Parameters
        ----------
        on_page : Callable[[int], None] | None
            Called with the page number before each request

        Returns
        -------
        list[dict[str, Any]]
            Raw order objects

        """
        orders: list[dict[str, Any]] = []
        page = 1
        while True:
            if on_page:
                on_page(page)
            logger.debug("Fetching orders page %d", page)
            data = self.get_json(
                "/orders",
                params={"sort": "date.desc", "page": page, "limit": self.page_limit},
            )
            if not isinstance(data, list):
                msg = "Unexpected response shape from /orders: expected a list"
                raise CardTraderAPIError(msg)
            if not data:
                break
            orders.extend(data)
            if len(data) < self.page_limit:
                break
            page += 1

        logger.debug("Fetched %d orders in %d pages", len(orders), page)
        return orders

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "CardTraderClient":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Context manager exit."""
        self.close()
