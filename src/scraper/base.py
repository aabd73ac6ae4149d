"""
HTTP plumbing shared by the LeekDuck scrapers.

BaseScraper gives every scraper:

  - a requests.Session with urllib3 retries on 429 and 5xx responses
  - a RateLimiter that the detail worker threads share
  - an optional on-disk ResponseCache of response bodies
  - JSON read/write helpers for the data directory

Subclasses implement scrape_all(). Scrapers are batch jobs started from the
CLI, so everything here is synchronous.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from configs.constants import Constants

logger = logging.getLogger(__name__)

USER_AGENT = "leekduck-events/1.0 (event-data-scraper)"
RETRY_STATUSES = (429, 500, 502, 503, 504)

_UNSAFE_CACHE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ScrapeConfig:
    """
    Runtime settings for one scrape run.

    output_dir        directory holding events.min.json
    temp_dir          detail documents waiting for the combine step
    cache_dir         response bodies, only touched when use_cache is on
    calls_per_second  request budget shared by all threads (<= 0 disables it)
    max_retries       urllib3 retries on 429 / 5xx
    timeout           seconds per request
    """

    output_dir: Path = field(default_factory=lambda: Constants.DATA_DIR)
    temp_dir: Path = field(default_factory=lambda: Constants.TEMP_DIR)
    cache_dir: Path = field(default_factory=lambda: Constants.DATA_DIR / "scraper_cache")
    use_cache: bool = False
    calls_per_second: float = 2.0
    max_retries: int = 3
    timeout: int = 30

    def __post_init__(self) -> None:
        for name in ("output_dir", "temp_dir", "cache_dir"):
            setattr(self, name, Path(getattr(self, name)))


class RateLimiter:
    """Keep outbound requests at least ``1 / calls_per_second`` apart."""

    def __init__(self, calls_per_second: float = 2.0) -> None:
        self.min_interval = 1.0 / calls_per_second if calls_per_second > 0 else 0.0
        self._next_slot = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        if not self.min_interval:
            return
        with self._lock:
            now = time.monotonic()
            if now < self._next_slot:
                time.sleep(self._next_slot - now)
                now = self._next_slot
            self._next_slot = now + self.min_interval


class ResponseCache:
    """Response bodies on disk, one file per URL and suffix."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def path_for(self, url: str, suffix: str) -> Path:
        # readable prefix, the digest keeps names unique
        readable = _UNSAFE_CACHE_CHARS.sub("_", url.split("://", 1)[-1]).strip("_")[:80]
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
        return self.root / f"{readable}-{digest}{suffix}"

    def read(self, url: str, suffix: str) -> Optional[str]:
        path = self.path_for(url, suffix)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning(f"Unreadable cache entry {path}: {exc}")
            return None

    def write(self, url: str, suffix: str, body: str) -> None:
        path = self.path_for(url, suffix)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")


def build_session(max_retries: int) -> requests.Session:
    """A session that retries GETs on throttling and server errors."""
    retry = Retry(
        total=max_retries,
        backoff_factor=1.0,
        status_forcelist=RETRY_STATUSES,
        respect_retry_after_header=True,
        allowed_methods=frozenset({"GET"}),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    session.headers.update({"User-Agent": USER_AGENT, "Accept-Language": "en-US,en;q=0.9"})
    return session


class BaseScraper(ABC):
    """
    Base class for the LeekDuck scrapers.

    Parameters
    ----------
    config : ScrapeConfig, optional
        Defaults to ``ScrapeConfig()``.
    session : requests.Session, optional
        Injected by tests; built with :func:`build_session` otherwise.
    """

    def __init__(self, config: Optional[ScrapeConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or ScrapeConfig()
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.session = session or build_session(self.config.max_retries)
        self.rate_limiter = RateLimiter(self.config.calls_per_second)
        self.cache = ResponseCache(self.config.cache_dir) if self.config.use_cache else None

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def fetch_text(self, url: str, suffix: str = ".html") -> Optional[str]:
        """
        GET *url* and return the body, or ``None`` when it cannot be fetched.

        A 404 is logged at debug level since event pages disappear once an
        event is over. Every other failure is logged as an error.
        """
        if self.cache is not None:
            cached = self.cache.read(url, suffix)
            if cached is not None:
                return cached

        self.rate_limiter.wait()
        try:
            resp = self.session.get(url, timeout=self.config.timeout)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            log = self.logger.debug if status == 404 else self.logger.error
            log(f"HTTP {status} fetching {url}")
            return None
        except requests.RequestException as exc:
            self.logger.error(f"Request failed for {url}: {exc}")
            return None

        if self.cache is not None:
            self.cache.write(url, suffix, resp.text)
        return resp.text

    def get_html(self, url: str) -> Optional[str]:
        return self.fetch_text(url, suffix=".html")

    def get_json(self, url: str) -> Optional[Any]:
        """Parsed JSON body of *url*; ``None`` if unavailable or not JSON."""
        body = self.fetch_text(url, suffix=".json")
        if body is None:
            return None
        try:
            return json.loads(body)
        except ValueError as exc:
            self.logger.error(f"Invalid JSON from {url}: {exc}")
            return None

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def save_json(self, data: Any, path: Union[str, Path], indent: Optional[int] = None) -> None:
        """Write *data* to *path*, minified unless *indent* is given."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        separators = (",", ":") if indent is None else None
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False, separators=separators)
        self.logger.debug(f"Saved {path}")

    def load_json(self, path: Union[str, Path]) -> Optional[Any]:
        """Contents of *path*, or ``None`` if it is missing or not JSON."""
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return None
        except (ValueError, OSError) as exc:
            self.logger.warning(f"Could not read {path}: {exc}")
            return None

    @abstractmethod
    def scrape_all(self) -> Any:
        """Run this scraper end to end and return what it wrote."""
