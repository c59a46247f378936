# utils.py
import time
import uuid
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from config import WEB_SCHEMES
from exceptions import InvalidUrlError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def iso_from_ms(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).isoformat(timespec="seconds")


def is_web_url(url: Optional[str]) -> bool:
    """True for http/https pages; extension and internal pages are never touched."""
    return bool(url) and url.startswith(WEB_SCHEMES)


def extract_domain(url: str) -> str:
    """
    Returns the host name of a URL, e.g. 'a.com' for 'http://a.com/x'.

    Raises:
        InvalidUrlError: if the URL has no parseable host.
    """
    try:
        hostname = urlparse(url).hostname
    except (ValueError, AttributeError) as e:
        raise InvalidUrlError(f"Cannot parse URL '{url}': {e}")
    if not hostname:
        raise InvalidUrlError(f"URL has no host: '{url}'")
    return hostname


def generate_workspace_id() -> str:
    return f"ws_{uuid.uuid4().hex[:12]}"
