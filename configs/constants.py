"""
Constants
"""

# Ignore pylint warnings
# pylint: disable = line-too-long

from pathlib import Path


class Constants:
    """
    Constants configurations
    """

    LEEKDUCK_URL = "https://leekduck.com/"
    EVENTS_PAGE_URL = "https://leekduck.com/events/"
    EVENTS_FEED_URL = "https://leekduck.com/feeds/events.json"
    EVENT_DETAIL_URL = "https://www.leekduck.com/events/{event_id}/"

    DATA_DIR = Path("data")
    TEMP_DIR = DATA_DIR / "temp"
    EVENTS_FILE = "events.min.json"
    EVENT_TYPES_DIR = "eventTypes"

    # Upper bound of detail pages fetched at the same time
    DETAIL_CONCURRENCY = 5

    LISTING_CATEGORIES = ["current", "upcoming"]

    # Detail document types whose payload is overlaid onto the base event
    MERGEABLE_DETAIL_TYPES = frozenset(
        {
            "generic",
            "research-breakthrough",
            "pokemon-spotlight-hour",
            "community-day",
            "raid-battles",
            "raid-hour",
            "raid-day",
            "team-go-rocket",
            "go-rocket-takeover",
            "go-battle-league",
            "season",
            "pokemon-go-tour",
            "timed-research",
            "special-research",
            "max-battles",
            "max-mondays",
            "go-pass",
            "pokestop-showcase",
            "research",
            "event",
            "promo-codes",
        }
    )

    # Section ids probed by the generic detail scraper
    GENERIC_SECTION_FLAGS = {
        "hasSpawns": "spawns",
        "hasFieldResearchTasks": "field-research-tasks",
        "hasBonuses": "bonuses",
        "hasRaids": "raids",
        "hasEggs": "eggs",
        "hasShiny": "shiny",
    }

    RAID_TIER_LABELS = {
        "mega": "Mega",
        "fiveStar": "5-Star",
        "threeStar": "3-Star",
        "oneStar": "1-Star",
    }

    UNKNOWN_EVENT_TYPE = "unknown"
