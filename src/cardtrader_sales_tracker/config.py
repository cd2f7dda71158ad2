"""Runtime settings assembled from packaged defaults, a .env file, and environment variables."""

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, Field, ValidationError

from cardtrader_sales_tracker.data import get_category_suffixes, load_defaults

# Environment variable -> settings field
ENV_OVERRIDES = {
    "API_URL": "api_url",
    "API_TOKEN": "api_token",
    "PAGE_LIMIT": "page_limit",
    "CACHE_DIR": "cache_dir",
    "CACHE_TTL_HOURS": "cache_ttl_hours",
    "ORDERS_CACHE_TTL_HOURS": "orders_cache_ttl_hours",
}


class ConfigError(Exception):
    """Exception raised for invalid or incomplete settings."""


class Settings(BaseModel):
    """
    Application settings.

    Attributes
    ----------
    api_url : str
        CardTrader API base URL, without trailing slash
    api_token : str | None
        Bearer token for the CardTrader API
    page_limit : int
        Orders requested per page
    cache_dir : Path
        Directory holding cached API payloads
    cache_ttl_hours : float
        Maximum age of cached categories and expansions
    orders_cache_ttl_hours : float
        Maximum age of the cached order history
    request_timeout : float
        HTTP timeout in seconds
    escape_timeout : float
        Seconds to wait after ESC before reporting a bare Escape key
    top_n : int
        Number of best-selling cards listed per expansion
    category_suffixes : list[str]
        Product-type words stripped from category names to obtain game names

    """

    api_url: str = "https://api.cardtrader.com/api/v2"
    api_token: str | None = None
    page_limit: int = Field(default=200, gt=0)
    cache_dir: Path = Path(".cache")
    cache_ttl_hours: float = Field(default=168, ge=0)
    orders_cache_ttl_hours: float = Field(default=1, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    escape_timeout: float = Field(default=0.05, gt=0)
    top_n: int = Field(default=5, gt=0)
    category_suffixes: list[str] = Field(default_factory=get_category_suffixes)

    @property
    def cache_ttl_seconds(self) -> float:
        """Reference data TTL in seconds."""
        return self.cache_ttl_hours * 3600

    @property
    def orders_cache_ttl_seconds(self) -> float:
        """Order history TTL in seconds."""
        return self.orders_cache_ttl_hours * 3600

    def require_token(self) -> str:
        """
        Return the API token.

        Returns
        -------
        str
            Configured API token

        Raises
        ------
        ConfigError
            If no token is configured

        """
        if not self.api_token:
            msg = "Missing API_TOKEN in environment (.env)"
            raise ConfigError(msg)
        return self.api_token


def read_environment(dotenv_path: Path | str | None = None) -> dict[str, str]:
    """
    Merge a .env file with the process environment.

    Variables already set in the environment win over the file, as with
    ``load_dotenv()``; the process environment itself is left untouched.

    Parameters
    ----------
    dotenv_path : Path | str | None
        .env file to read. Searched upwards from the working directory if None.

    Returns
    -------
    dict[str, str]
        Combined variables

    """
    path = dotenv_path or find_dotenv(usecwd=True)
    values: dict[str, str] = {}
    if path:
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
    values.update(os.environ)
    return values


def load_settings(environ: Mapping[str, str] | None = None, dotenv_path: Path | str | None = None) -> Settings:
    """
    Build settings from defaults.yaml overridden by environment variables.

    Parameters
    ----------
    environ : Mapping[str, str] | None
        Environment to read. Uses the process environment over the .env
        file if None.
    dotenv_path : Path | str | None
        .env file used when environ is None. Found from the working
        directory if None.

    Returns
    -------
    Settings
        Validated settings

    Raises
    ------
    ConfigError
        If a value fails validation

    """
    if environ is None:
        environ = read_environment(dotenv_path)

    values = dict(load_defaults())
    for env_name, field in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is not None and raw != "":
            values[field] = raw

    if values.get("api_url"):
        values["api_url"] = str(values["api_url"]).rstrip("/")

    try:
        return Settings(**values)
    except ValidationError as e:
        msg = f"Invalid settings: {e}"
        raise ConfigError(msg) from e
