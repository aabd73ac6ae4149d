"""
LeekDuck scrapers.

EventsScraper
    Discovers events from two sources that can disagree:

      - the JSON date feed  https://leekduck.com/feeds/events.json
      - the HTML listing    https://leekduck.com/events/

    The listing provides name, type and image; the feed provides dates. An
    event spanning "current" and "upcoming" is listed twice, so the rows are
    de-duplicated before ``events.min.json`` is written.

EventDetailScraper
    Visits every event page and writes one detail document per
    (event, scraper) into ``data/temp/`` for the combine step. The generic
    scraper runs for every event; type-specific fetchers can be registered
    per event type. Pages are fetched on a small thread pool and one failed
    page never affects the others.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from configs.constants import Constants
from src.pipeline.combine import flatten_event_listing
from src.pipeline.dates import normalize_date_pair
from src.pipeline.dedupe import deduplicate_events, event_id
from src.pipeline.exceptions import PipelineError
from src.scraper.base import BaseScraper, ScrapeConfig
from utils.custom_threading import ThreadExecutor

DetailFetcher = Callable[[str], Optional[Dict[str, Any]]]

_UNSAFE_FILENAME_RE = re.compile(r"[^a-z0-9_\-]", re.IGNORECASE)


class ListingUnavailableError(PipelineError):
    """The events listing page could not be fetched."""


def sanitize_filename(name: Optional[str]) -> str:
    """'a/b c' → 'a_b_c'"""
    if not name:
        return ""
    return _UNSAFE_FILENAME_RE.sub("_", name)


def write_temp_file(
    temp_dir: Path, event_id: str, detail_type: str, data: Any, suffix: str = ""
) -> Path:
    """Write one detail document ``{id, type, data}`` and return its path."""
    temp_dir.mkdir(parents=True, exist_ok=True)
    path = temp_dir / f"{sanitize_filename(event_id)}{sanitize_filename(suffix)}.json"
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"id": event_id, "type": detail_type, "data": data}, fh, ensure_ascii=False)
    return path


def heading_from_type(event_type: str) -> str:
    """'community-day' → 'Community Day'"""
    return " ".join(word[:1].upper() + word[1:] for word in event_type.split("-"))


# ---------------------------------------------------------------------------
# Events listing + feed
# ---------------------------------------------------------------------------


class EventsScraper(BaseScraper):
    """Build the base event dataset from the listing page and date feed."""

    def fetch_event_dates(self) -> Dict[str, Dict[str, Optional[str]]]:
        """Map event id → ``{"start", "end"}`` from the feed (empty on failure)."""
        feed = self.get_json(Constants.EVENTS_FEED_URL)
        if not isinstance(feed, list):
            self.logger.error("Failed to fetch events feed; event dates will be null")
            return {}
        dates: Dict[str, Dict[str, Optional[str]]] = {}
        for entry in feed:
            if isinstance(entry, dict) and entry.get("eventID"):
                dates[entry["eventID"]] = {"start": entry.get("start"), "end": entry.get("end")}
        return dates

    @staticmethod
    def _image_url(src: str) -> str:
        # resized images are served through cdn-cgi; point at the original asset
        if "cdn-cgi" in src and "/assets/" in src:
            return "https://cdn.leekduck.com/assets/" + src.split("/assets/", 1)[1]
        return src

    def parse_listing(
        self, html: str, dates: Dict[str, Dict[str, Optional[str]]]
    ) -> List[Dict[str, Any]]:
        """Turn the listing HTML into raw event rows (duplicates included)."""
        soup = BeautifulSoup(html, "lxml")
        rows: List[Dict[str, Any]] = []

        for category in Constants.LISTING_CATEGORIES:
            links = soup.select(f"div.events-list.{category}-events a.event-item-link")
            for link in links:
                href = link.get("href", "")
                if "/events/" not in href:
                    continue
                slug = href.split("/events/", 1)[1].strip("/")
                if not slug:
                    continue

                wrapper = link.find("div", class_="event-item-wrapper")
                classes = wrapper.get("class", []) if wrapper is not None else []
                event_type = " ".join(
                    c for c in classes if c not in ("event-item-wrapper", "skeleton-loading")
                ).replace("é", "e")

                title = link.select_one(".event-text h2")
                image = link.select_one(".event-img-wrapper img")

                if slug not in dates:
                    self.logger.warning(
                        f"Event '{slug}' not present in events feed. Date values will be null."
                    )
                start, end = normalize_date_pair(
                    dates.get(slug, {}).get("start"), dates.get(slug, {}).get("end")
                )

                rows.append(
                    {
                        "eventID": slug,
                        "name": title.get_text(strip=True) if title is not None else None,
                        "eventType": event_type,
                        "heading": heading_from_type(event_type),
                        "image": self._image_url(image.get("src", "")) if image is not None else None,
                        "start": start,
                        "end": end,
                    }
                )
        return rows

    def scrape_all(self) -> List[Dict[str, Any]]:
        """Scrape, de-duplicate and write ``events.min.json``."""
        dates = self.fetch_event_dates()
        html = self.get_html(Constants.EVENTS_PAGE_URL)
        if html is None:
            raise ListingUnavailableError(f"Could not fetch {Constants.EVENTS_PAGE_URL}")

        rows = self.parse_listing(html, dates)
        events = deduplicate_events(rows)
        self.logger.info(f"Scraped {len(rows)} listing rows → {len(events)} events")

        self.save_json(events, self.config.output_dir / Constants.EVENTS_FILE)
        return events


# ---------------------------------------------------------------------------
# Detail pages
# ---------------------------------------------------------------------------


class EventDetailScraper(BaseScraper):
    """
    Write detail documents for every event into ``config.temp_dir``.

    Usage
    -----
    ::

        scraper = EventDetailScraper(ScrapeConfig())
        scraper.register("community-day", my_community_day_fetcher)
        scraper.scrape_all()
        # → data/temp/<event>_generic.json, data/temp/<event>.json, ...
    """

    def __init__(
        self,
        config: Optional[ScrapeConfig] = None,
        session=None,
        max_workers: int = Constants.DETAIL_CONCURRENCY,
    ) -> None:
        super().__init__(config, session=session)
        self.max_workers = max_workers
        self._fetchers: Dict[str, DetailFetcher] = {}

    def register(self, event_type: str, fetcher: DetailFetcher) -> None:
        """Run *fetcher* (event id → data dict) for events of *event_type*."""
        self._fetchers[event_type] = fetcher

    def fetch_generic(self, event_id: str) -> Optional[Dict[str, bool]]:
        """Which well-known sections exist on the event page."""
        html = self.get_html(Constants.EVENT_DETAIL_URL.format(event_id=event_id))
        if html is None:
            return None
        soup = BeautifulSoup(html, "lxml")
        return {
            flag: soup.find(id=section_id) is not None
            for flag, section_id in Constants.GENERIC_SECTION_FLAGS.items()
        }

    def _run_job(self, fetcher: DetailFetcher, eid: str, detail_type: str, suffix: str) -> Optional[Path]:
        data = fetcher(eid)
        if data is None:
            self.logger.warning(f"No {detail_type} details for {eid}")
            return None
        return write_temp_file(self.config.temp_dir, eid, detail_type, data, suffix)

    def load_events(self) -> List[Dict[str, Any]]:
        payload = self.load_json(self.config.output_dir / Constants.EVENTS_FILE)
        if payload is None:
            raise PipelineError(
                f"No readable {Constants.EVENTS_FILE} in {self.config.output_dir}; scrape events first"
            )
        return [e for e in flatten_event_listing(payload) if isinstance(e, dict)]

    def scrape_all(self, events: Optional[List[Dict[str, Any]]] = None) -> List[Path]:
        """Fetch details for *events* (default: ``events.min.json``)."""
        if events is None:
            events = self.load_events()
        self.config.temp_dir.mkdir(parents=True, exist_ok=True)

        jobs = []
        for event in events:
            eid = event_id(event)
            if not eid:
                continue
            jobs.append((self.fetch_generic, eid, "generic", "_generic"))
            event_type = event.get("eventType")
            if event_type in self._fetchers:
                jobs.append((self._fetchers[event_type], eid, event_type, ""))

        with ThreadExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._run_job, *job): job for job in jobs}
            executor.wait_on_futures(futures)

        written: List[Path] = []
        for future, (_, eid, detail_type, _) in futures.items():
            error = future.exception()
            if error is not None:
                self.logger.error(f"{detail_type} scraper failed for {eid}: {error}")
                continue
            if future.result() is not None:
                written.append(future.result())

        self.logger.info(f"Completed {len(jobs)} detail jobs, wrote {len(written)} documents")
        return written
