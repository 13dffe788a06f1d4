# src/addon_manifest/utils.py
import importlib.metadata
import os
import time
import unicodedata
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import requests
from pyuca import Collator
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from addon_manifest.constants import (
    API_CALL_DELAY,
    BYTES_PER_MB,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONNECT_RETRIES,
    GITHUB_API_TIMEOUT,
    GITHUB_API_VERSION,
    GITHUB_TOKEN_ENV_VAR,
    RATE_LIMIT_LOW_WATERMARK,
    RETRY_STATUS_FORCELIST,
)
from addon_manifest.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `addon-manifest/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        _USER_AGENT_CACHE = f"addon-manifest/{get_app_version()}"

    return _USER_AGENT_CACHE


def get_app_version() -> str:
    try:
        return importlib.metadata.version("addon-manifest")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.
        allow_env_token (bool): If True, fall back to the `GITHUB_TOKEN` environment variable when no explicit token is provided.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
    return env_token.strip() if env_token else None


def build_retry_session(
    retries: int = DEFAULT_CONNECT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """
    Create a requests Session that retries transient GitHub API failures.

    Connection errors, read errors and the statuses in RETRY_STATUS_FORCELIST
    are retried up to `retries` times with exponential backoff. The final HTTP
    status is left for the caller to raise.
    """
    session = requests.Session()
    retry_strategy: Retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=list(RETRY_STATUS_FORCELIST),
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    """
    Parse an HTTP rate-limit header value into an integer remaining count.

    Returns:
        Optional[int]: The parsed integer value if successful, `None` otherwise.
    """
    try:
        if isinstance(header_value, str) and header_value.isdigit():
            return int(header_value)
        elif isinstance(header_value, (int, float)):
            return int(header_value)
    except (ValueError, TypeError):
        pass
    return None


def _log_rate_limit(response: requests.Response) -> None:
    resp_headers = getattr(response, "headers", None)
    # CaseInsensitiveDict is not a dict subclass, so check for dict-like behavior
    if resp_headers is None or not hasattr(resp_headers, "get"):
        return
    remaining = _parse_rate_limit_header(resp_headers.get("X-RateLimit-Remaining"))
    if remaining is None:
        return
    logger.debug(f"GitHub API rate-limit remaining: {remaining}")
    if remaining <= RATE_LIMIT_LOW_WATERMARK:
        logger.warning(
            f"GitHub API rate limit running low: {remaining} requests remaining"
        )


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[int] = None,
    session: Optional[requests.Session] = None,
    _is_retry: bool = False,
) -> requests.Response:
    """
    Perform a GitHub API GET request with optional token authentication, retrying once without authentication if token-based auth returns 401.

    Parameters:
        url (str): GitHub API URL to request.
        github_token (Optional[str]): Explicit GitHub token to prefer for Authorization; trimmed before use.
        allow_env_token (bool): If True, allow falling back to the GITHUB_TOKEN environment variable when no explicit token is provided.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[int]): Request timeout in seconds; if omitted the module default is used.
        session (Optional[requests.Session]): Session to send the request through (e.g. one from build_retry_session); plain `requests.get` is used when omitted.

    Returns:
        requests.Response: The HTTP response returned by GitHub.

    Raises:
        requests.HTTPError: For HTTP error responses (including 403 rate-limit exhaustion, raised with a descriptive message).
        requests.RequestException: For lower-level network or request errors, including timeouts.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": get_user_agent(),
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
        logger.debug("Using GitHub token for API authentication")
    else:
        logger.debug("No GitHub token available - using unauthenticated API requests")

    getter = session.get if session is not None else requests.get
    try:
        actual_timeout = timeout or GITHUB_API_TIMEOUT
        logger.debug(f"Making GitHub API request: {url}")
        response = getter(url, timeout=actual_timeout, headers=headers, params=params)
        response.raise_for_status()
    except requests.HTTPError as e:
        if (
            not _is_retry
            and e.response is not None
            and e.response.status_code == 401
            and effective_token
        ):
            logger.warning(
                f"GitHub token authentication failed for {url}. Retrying without authentication."
            )
            return make_github_api_request(
                url,
                github_token=None,
                allow_env_token=False,  # Don't try env token on retry
                params=params,
                timeout=timeout,
                session=session,
                _is_retry=True,
            )
        elif e.response is not None and e.response.status_code == 403:
            remaining_val = _parse_rate_limit_header(
                e.response.headers.get("X-RateLimit-Remaining")
            )
            if remaining_val == 0:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                reset_time_str = (
                    datetime.fromtimestamp(int(reset_time), timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                    if reset_time
                    else "unknown"
                )
                error_msg = (
                    f"GitHub API rate limit exceeded. Resets at {reset_time_str}. "
                    f"Set GITHUB_TOKEN environment variable for higher rate limits."
                )
            else:
                error_msg = "GitHub API access forbidden"
            raise requests.HTTPError(error_msg, response=e.response) from None
        else:
            raise
    finally:
        # Small delay to be respectful to GitHub API, even on errors
        time.sleep(API_CALL_DELAY)

    _log_rate_limit(response)
    return response


def bytes_to_mb(size: int) -> float:
    """Convert a byte count to megabytes rounded half up to one decimal place."""
    megabytes = Decimal(size) / Decimal(BYTES_PER_MB)
    return float(megabytes.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@lru_cache(maxsize=None)
def _collator() -> Collator:
    # Loads the collation element table once per process
    return Collator()


def collation_key(text: Optional[str]) -> Tuple[int, ...]:
    """
    Build a sort key for display strings.

    Keys follow the Unicode Collation Algorithm, so accented Latin letters
    sort next to their base letters and Hangul syllables sort in jamo order
    ('맵' before '버스'). Text is NFC-normalized and case-folded first.
    """
    normalized = unicodedata.normalize("NFC", text or "").casefold()
    return tuple(_collator().sort_key(normalized))


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with a 'Z' suffix."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )
