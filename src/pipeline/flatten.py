"""
Event flattening.

WHAT THIS FILE DOES
───────────────────
Every detail scraper names its fields its own way: a community day brings
``spawns`` and ``bonuses``, a raid event ``bosses`` or ``tiers``, a season
``eggs`` keyed by distance, a rocket takeover ``shadowPokemon`` and
``grunts``. ``flatten_event`` projects all of them onto one fixed schema:

  envelope  eventID, name, eventType, heading, image, start, end
  buckets   pokemon, raids, battle, rocket, eggs, bonuses, research,
            rewards, showcases, shinies, ... (only when non-empty)

WHY IDEMPOTENT?
───────────────
The next run reads the previous ``events.min.json`` back in as its base
dataset, so already-flattened events go through this function again.
Flattening a flattened event must return it unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from configs.constants import Constants

# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

ENVELOPE_FIELDS: Tuple[str, ...] = (
    "eventID",
    "name",
    "eventType",
    "heading",
    "image",
    "start",
    "end",
)

# Short input names accepted for envelope fields
ENVELOPE_ALIASES: Dict[str, str] = {"eventID": "id", "eventType": "type"}

# Keys that only exist after flattening
CONSOLIDATED_KEYS: Tuple[str, ...] = ("pokemon", "raids", "battle", "rocket", "research", "rewards")

# Keys that only exist before flattening
RAW_KEYS: Tuple[str, ...] = (
    "spawns",
    "featured",
    "incenseEncounters",
    "costumedPokemon",
    "pokemonDebuts",
    "maxPokemonDebuts",
    "bosses",
    "tiers",
)

# raw list field -> ``source`` tag in the pokemon bucket
POKEMON_SOURCES: Tuple[Tuple[str, str], ...] = (
    ("spawns", "spawn"),
    ("featured", "featured"),
    ("incenseEncounters", "incense"),
    ("costumedPokemon", "costumed"),
    ("pokemonDebuts", "debut"),
    ("maxPokemonDebuts", "maxDebut"),
)

# bucket -> ((raw field, key inside the bucket), ...)
GROUPED_BUCKETS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "battle": (
        ("leagues", "leagues"),
        ("featuredAttack", "featuredAttack"),
    ),
    "rocket": (
        ("shadowPokemon", "shadows"),
        ("leaders", "leaders"),
        ("giovanni", "giovanni"),
        ("grunts", "grunts"),
    ),
    "research": (
        ("fieldResearchTasks", "field"),
        ("specialresearch", "special"),
        ("timedResearch", "timed"),
        ("researchBreakthrough", "breakthrough"),
        ("masterworkResearch", "masterwork"),
    ),
    "rewards": (
        ("ticketedResearch", "ticketedResearch"),
        ("ticketBonuses", "ticketBonuses"),
        ("ticketPrice", "ticketPrice"),
        ("ticketAddOns", "ticketAddOns"),
    ),
}

# raw field -> output key, copied when non-empty
PASS_THROUGH: Tuple[Tuple[str, str], ...] = (
    ("alternationPattern", "raidAlternation"),
    ("featuredAttacks", "raidFeaturedAttacks"),
    ("bonuses", "bonuses"),
    ("bonusDisclaimers", "bonusDisclaimers"),
    ("lureModuleBonus", "lureModuleBonus"),
    ("exclusiveBonuses", "exclusiveBonuses"),
    ("pokestopShowcases", "showcases"),
    ("shinies", "shinies"),
    ("shinyDebuts", "shinyDebuts"),
    ("photobomb", "photobomb"),
    ("communityDays", "communityDays"),
    ("features", "features"),
    ("goBattleLeague", "goBattleLeague"),
    ("goPass", "goPass"),
    ("pricing", "pricing"),
    ("pointTasks", "pointTasks"),
    ("ranks", "ranks"),
    ("featuredPokemon", "featuredPokemon"),
    ("milestoneBonuses", "milestoneBonuses"),
    ("eventInfo", "eventInfo"),
    ("habitats", "habitats"),
    ("whatsNew", "whatsNew"),
    ("sales", "sales"),
    ("customSections", "customSections"),
    ("maxBattles", "maxBattles"),
    ("maxMondays", "maxMondays"),
    ("description", "description"),
    ("bonus", "bonus"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_content(value: Any) -> bool:
    """None and empty strings/lists/dicts are "absent"; anything else counts."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _is_pokemon(entry: Any) -> bool:
    return isinstance(entry, Mapping) and bool(entry.get("name"))


def _envelope(event: Mapping[str, Any]) -> Dict[str, Any]:
    envelope: Dict[str, Any] = {}
    for key in ENVELOPE_FIELDS:
        value = event.get(key)
        alias = ENVELOPE_ALIASES.get(key)
        if value is None and alias:
            value = event.get(alias)
        envelope[key] = value
    return envelope


def is_flattened(event: Mapping[str, Any]) -> bool:
    """An event is flattened when it has a non-empty consolidated bucket and no raw field."""
    has_bucket = any(_has_content(event.get(key)) for key in CONSOLIDATED_KEYS)
    has_raw = any(key in event for key in RAW_KEYS)
    return has_bucket and not has_raw


# ---------------------------------------------------------------------------
# Bucket builders
# ---------------------------------------------------------------------------


def _collect_pokemon(event: Mapping[str, Any]) -> List[Dict[str, Any]]:
    pokemon: List[Dict[str, Any]] = []
    for field_name, source in POKEMON_SOURCES:
        for entry in _as_list(event.get(field_name)):
            if _is_pokemon(entry):
                pokemon.append({**entry, "source": source})
    return pokemon


def _tier_label(tier_key: str) -> str:
    return Constants.RAID_TIER_LABELS.get(tier_key, tier_key)


def _collect_raids(event: Mapping[str, Any]) -> List[Any]:
    """
    Raid bosses, either listed directly or grouped by tier.

    ``tiers`` arrives in two shapes:
      {"fiveStar": [{"name": "Mewtwo"}], ...}            (raid battles page)
      [{"tier": "5-Star", "pokemon": [{"name": ...}]}]   (other raid pages)
    Both end up as ``{"name": "Mewtwo", "tier": "5-Star"}``.
    """
    raids: List[Any] = list(_as_list(event.get("bosses")))

    tiers = event.get("tiers")
    if isinstance(tiers, Mapping):
        for tier_key, members in tiers.items():
            for member in _as_list(members):
                if isinstance(member, Mapping):
                    raids.append({**member, "tier": _tier_label(tier_key)})
    elif isinstance(tiers, (list, tuple)):
        for group in tiers:
            if not isinstance(group, Mapping):
                continue
            label = group.get("tier") or group.get("name")
            for member in _as_list(group.get("pokemon")):
                if isinstance(member, Mapping):
                    raids.append({**member, "tier": label})
    return raids


def _collect_group(event: Mapping[str, Any], rules: Tuple[Tuple[str, str], ...]) -> Dict[str, Any]:
    group: Dict[str, Any] = {}
    for source_key, target_key in rules:
        value = event.get(source_key)
        if _has_content(value):
            group[target_key] = value
    return group


def _eggs(value: Any) -> Optional[Any]:
    """Eggs are kept in either shape: a list, or a map of distance -> list."""
    if isinstance(value, (list, tuple)):
        return value if value else None
    if isinstance(value, Mapping):
        if any(isinstance(pool, (list, tuple)) and pool for pool in value.values()):
            return value
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def flatten_event(event: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Project a merged event onto the flattened schema.

    Pure: *event* is not modified. Idempotent: passing the result back in
    returns an equal dict. A record without any recognised content field
    flattens to just its envelope.
    """
    flattened = _envelope(event)

    if is_flattened(event):
        aliases = set(ENVELOPE_ALIASES.values())
        for key, value in event.items():
            if key not in flattened and key not in aliases and _has_content(value):
                flattened[key] = value
        return flattened

    pokemon = _collect_pokemon(event)
    if pokemon:
        flattened["pokemon"] = pokemon

    raids = _collect_raids(event)
    if raids:
        flattened["raids"] = raids

    for bucket, rules in GROUPED_BUCKETS.items():
        group = _collect_group(event, rules)
        if group:
            flattened[bucket] = group

    eggs = _eggs(event.get("eggs"))
    if eggs is not None:
        flattened["eggs"] = eggs

    for source_key, target_key in PASS_THROUGH:
        # renamed fields also accept their output name
        value = event.get(source_key)
        if not _has_content(value) and source_key != target_key:
            value = event.get(target_key)
        if _has_content(value):
            flattened[target_key] = value

    if event.get("canBeShiny") is not None:
        flattened["canBeShiny"] = event["canBeShiny"]

    return flattened


def flatten_events(events: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [flatten_event(event) for event in events]
