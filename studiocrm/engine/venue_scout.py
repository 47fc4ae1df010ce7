"""
Venue Scout - Automated Venue Discovery
Finds open calls, residencies and festivals for projection / immersive work.

Pipeline: Brave web search -> dedupe by domain -> LLM extraction ->
bounded, name-deduplicated insert into the venues table.

Best effort and not transactional: each insert is its own transaction, and
per-candidate failures are logged and counted as skipped.
"""

import json
import logging
import random
import re
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse

import requests
from tqdm import tqdm

from studiocrm.config import config
from studiocrm.engine import crm, ai_client
from studiocrm.logging_config import log_call
from studiocrm.bus.events import (
    bus, EVENT_SCOUT_STARTED, EVENT_SCOUT_COMPLETE, EVENT_VENUE_DISCOVERED,
)

logger = logging.getLogger(__name__)

# Scout results storage
SCOUT_DIR = Path(__file__).parent.parent.parent / "data" / "scout_results"

SEARCH_QUERY_TEMPLATES = [
    '"immersive art" "open call"',
    '"projection mapping" "artist submissions"',
    '"new media art" "exhibition opportunity"',
    '"digital art" "residency" "accepting applications"',
    '"light festival" "call for artists"',
    '"immersive experience" "artist" "commission"',
    '"time-based media" "gallery" "submissions"',
    '"video art" "installation" "open call"',
    '"art and technology" "residency" OR "exhibition"',
    '"projection art" "festival"',
]

PRIMARY_CITIES = [
    "NYC", "Los Angeles", "Chicago", "Houston", "Miami",
    "Washington DC", "San Francisco", "Denver", "Austin",
    "Phoenix", "Philadelphia", "Boston", "Seattle", "Portland", "Minneapolis",
]

GENERIC_QUERIES = [
    '"immersive art" "open call"',
    '"projection mapping" "artist submissions"',
    '"new media art" "residency"',
]

FOCUS_QUERIES = [
    '"immersive art" {focus}',
    '"projection mapping" OR "new media art" {focus}',
    '"digital art" OR "video art" "open call" {focus}',
    '"art installation" "submissions" {focus}',
]

CITIES_PER_RUN = 5
DEFAULT_NOTES = "[Scout] Found by venue scout agent"

SCOUT_SYSTEM_PROMPT = """You are a venue scout for a video projection and immersive installation artist specializing in new media art, projection mapping, and interactive installations.

Your task is to evaluate web search results and identify legitimate venue opportunities. For each qualifying result, extract structured venue data.

## Qualification Criteria (ALL must be met)
1. Is an actual venue, institution, festival, or program, not a news article, blog post, or directory listing
2. Hosts or commissions visual/installation/immersive art, not purely performing arts unless they also feature installation work
3. Has a physical presence or event, not purely online/virtual galleries
4. Appears to accept external artists: has open calls, submission forms, residency applications, or a curatorial contact

## Bonus Indicators
- Has an active open call or upcoming deadline
- Specifically mentions new media, projection, immersive, or digital art
- Has previously shown work similar to video projection installations
- Has a submission form URL or direct curator contact

## Disqualification Criteria (FILTER OUT)
- News articles or press coverage about venues
- Social media posts or personal blogs
- Venues that only show traditional media (painting, sculpture) with no history of installation/new media
- Closed or defunct spaces
- Generic event listing aggregators (e.g., Eventbrite, Meetup)
- Art supply stores, equipment rental, or production companies

## Output Format
Return a JSON array of qualifying venues. Each venue object should have:
- "name": string (venue/institution name)
- "url": string (website URL)
- "city": string or null
- "state": string or null
- "country": string (default "US" if unclear)
- "notes": string (1-2 sentences on why it's relevant, include any deadlines found)
- "submissionFormUrl": string or null (direct link to submission/application form if found)

Return ONLY the JSON array, no other text. If no results qualify, return an empty array []."""

# Structured output for Claude: same fields as the JSON array above
RECORD_VENUES_TOOL = {
    "name": "record_venues",
    "description": "Record every search result that qualifies as a venue opportunity.",
    "input_schema": {
        "type": "object",
        "properties": {
            "venues": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "url": {"type": ["string", "null"]},
                        "city": {"type": ["string", "null"]},
                        "state": {"type": ["string", "null"]},
                        "country": {"type": "string"},
                        "notes": {"type": ["string", "null"]},
                        "submissionFormUrl": {"type": ["string", "null"]},
                    },
                    "required": ["name"],
                },
            },
        },
        "required": ["venues"],
    },
}


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass
class SearchResult:
    """One web search hit."""
    title: str = ''
    url: str = ''
    description: str = ''


@dataclass
class VenueCandidate:
    """A venue proposed by the LLM, before insertion."""
    name: str
    url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = 'US'
    notes: Optional[str] = None
    submission_form_url: Optional[str] = None

    @property
    def scout_notes(self) -> str:
        return f"[Scout] {self.notes}" if self.notes else DEFAULT_NOTES


# =============================================================================
# SEARCH
# =============================================================================

def build_search_queries(search_focus: Optional[str] = None, rng=None, year: Optional[int] = None) -> List[str]:
    """
    Args:
        search_focus: Free text (e.g. "Chicago" or "light festival"); blank means unfocused
        rng: random.Random-like source for city/template picks (default: module random)
        year: Year appended to unfocused queries (default: current year)

    Returns: 4 focused queries, or 5 random city queries + 3 generic ones
    """
    focus = (search_focus or '').strip()
    if focus:
        return [template.format(focus=focus) for template in FOCUS_QUERIES]

    rng = rng or random
    year = year or datetime.now().year

    queries = [
        f"{rng.choice(SEARCH_QUERY_TEMPLATES)} {city} {year}"
        for city in rng.sample(PRIMARY_CITIES, CITIES_PER_RUN)
    ]
    queries.extend(f"{q} {year}" for q in GENERIC_QUERIES)
    return queries


def brave_search(query: str, api_key: str, count: Optional[int] = None) -> List[SearchResult]:
    """
    Run one Brave Web Search query.
    Raises RuntimeError on HTTP or transport errors.
    """
    count = count or config.SCOUT_RESULTS_PER_QUERY

    try:
        response = requests.get(
            config.BRAVE_SEARCH_URL,
            params={'q': query, 'count': count},
            headers={
                'Accept': 'application/json',
                'Accept-Encoding': 'gzip',
                'X-Subscription-Token': api_key,
            },
            timeout=config.SCOUT_REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        raise RuntimeError(f"Brave Search API error for {query!r}: {e}")

    results = (data.get('web') or {}).get('results') or []
    return [
        SearchResult(
            title=r.get('title', ''),
            url=r.get('url', ''),
            description=r.get('description', ''),
        )
        for r in results
    ]


def run_searches(queries: List[str], api_key: str) -> List[SearchResult]:
    """Run queries one after another; a failing query is logged and skipped."""
    all_results = []
    for query in tqdm(queries, desc="Searching", unit="query"):
        try:
            results = brave_search(query, api_key)
        except RuntimeError as e:
            logger.warning(f"Search failed, skipping: {e}")
            continue
        logger.debug(f"{len(results)} results for {query!r}")
        all_results.extend(results)
    return all_results


def normalize_domain(url: str) -> Optional[str]:
    """Lowercased hostname without a leading 'www.', or None if unparsable."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname[4:] if hostname.startswith('www.') else hostname


def deduplicate_by_domain(results: List[SearchResult]) -> List[SearchResult]:
    """Keep the first result per domain; drop results without a usable URL."""
    seen = set()
    unique = []
    for result in results:
        domain = normalize_domain(result.url)
        if domain is None or domain in seen:
            continue
        seen.add(domain)
        unique.append(result)
    return unique


# =============================================================================
# EXTRACTION
# =============================================================================

def format_results_digest(results: List[SearchResult]) -> str:
    return "\n\n".join(
        f'{i}. "{r.title}" - {r.url}\n   {r.description}'
        for i, r in enumerate(results, start=1)
    )


def build_extraction_prompt(results: List[SearchResult]) -> str:
    return (
        f"Here are {len(results)} web search results to evaluate. Identify which ones are "
        f"legitimate venue opportunities for an immersive/projection artist and extract their data."
        f"\n\n{format_results_digest(results)}"
    )


def parse_candidates_text(text: str) -> List[Any]:
    """
    Pull the JSON array out of a free-text reply (greedy first '[' to last ']').
    No array at all means no candidates. Raises ValueError on malformed JSON.
    """
    match = re.search(r'\[.*\]', text or '', re.DOTALL)
    if not match:
        return []

    items = json.loads(match.group(0))
    if not isinstance(items, list):
        raise ValueError(f"Expected a JSON array, got {type(items).__name__}")
    return items


def validate_candidates(items: List[Any]) -> List[VenueCandidate]:
    """Keep dicts with a non-empty string name; log and drop the rest."""
    candidates = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get('name'), str) or not item['name'].strip():
            logger.warning(f"Dropping malformed venue candidate: {item!r}")
            continue
        candidates.append(VenueCandidate(
            name=item['name'].strip(),
            url=item.get('url') or None,
            city=item.get('city') or None,
            state=item.get('state') or None,
            country=item.get('country') or 'US',
            notes=item.get('notes') or None,
            submission_form_url=item.get('submissionFormUrl') or item.get('submission_form_url') or None,
        ))
    return candidates


def extract_candidates(results: List[SearchResult], model: str) -> List[VenueCandidate]:
    """
    Ask the LLM which results are real venue opportunities.
    Raises ValueError (unparsable reply) or RuntimeError (API failure).
    """
    prompt = build_extraction_prompt(results)

    if model == 'claude':
        tool_input, text = ai_client.call_claude_tool(
            prompt, RECORD_VENUES_TOOL, system=SCOUT_SYSTEM_PROMPT, max_tokens=4096
        )
        if tool_input is not None:
            items = tool_input.get('venues') or []
        else:
            items = parse_candidates_text(text)
    else:
        text = ai_client.call_ai(prompt, model=model, system=SCOUT_SYSTEM_PROMPT, max_tokens=4096)
        items = parse_candidates_text(text)

    return validate_candidates(items)


# =============================================================================
# MAIN SCOUT FUNCTION
# =============================================================================

def _save_results(data: Dict[str, Any]) -> Path:
    SCOUT_DIR.mkdir(exist_ok=True, parents=True)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    results_file = SCOUT_DIR / f"scout_{timestamp}.json"
    results_file.write_text(json.dumps(data, indent=2, default=str))
    logger.info(f"Scout results saved to {results_file}")
    return results_file


@log_call
def scout_venues(
    search_focus: Optional[str] = None,
    max_results: Optional[int] = None,
    model: Optional[str] = None,
) -> Dict[str, int]:
    """
    Search the web for venue opportunities and add the new ones as venues.

    Args:
        search_focus: Optional city, region or keyword to narrow the search
        max_results: Cap on candidates inserted (default: SCOUT_MAX_RESULTS)
        model: AI model for extraction (default: DEFAULT_AI_MODEL)

    Returns: {'inserted', 'skipped', 'searched'} where searched is the number
    of unique-domain results handed to the LLM
    """
    model = model or config.DEFAULT_AI_MODEL
    if max_results is None:
        max_results = config.SCOUT_MAX_RESULTS

    # Check credentials before any network call
    if not config.BRAVE_SEARCH_API_KEY:
        raise ValueError("BRAVE_SEARCH_API_KEY not set in environment")
    key_name = ai_client.required_key_name(model)
    if not getattr(config, key_name):
        raise ValueError(f"{key_name} not set in environment")

    stats = {'inserted': 0, 'skipped': 0, 'searched': 0}
    queries = build_search_queries(search_focus)
    logger.info(f"Starting venue scout: {len(queries)} queries, focus={search_focus!r}, model={model}")
    bus.emit(EVENT_SCOUT_STARTED, {'queries': queries, 'search_focus': search_focus})

    results = run_searches(queries, config.BRAVE_SEARCH_API_KEY)
    if not results:
        logger.warning("Venue scout: no search results")
        bus.emit(EVENT_SCOUT_COMPLETE, dict(stats))
        return stats

    unique_results = deduplicate_by_domain(results)
    stats['searched'] = len(unique_results)
    logger.info(f"{len(results)} results, {len(unique_results)} unique domains")

    try:
        candidates = extract_candidates(unique_results, model)
    except (ValueError, RuntimeError) as e:
        logger.error(f"Venue extraction failed, nothing inserted: {e}")
        bus.emit(EVENT_SCOUT_COMPLETE, dict(stats))
        return stats

    limited = candidates[:max_results]
    inserted_ids = []
    for candidate in tqdm(limited, desc="Inserting venues", unit="venue"):
        try:
            venue_id = crm.insert_venue_if_new(
                name=candidate.name,
                url=candidate.url,
                submission_form_url=candidate.submission_form_url,
                city=candidate.city,
                state=candidate.state,
                country=candidate.country,
                notes=candidate.scout_notes,
            )
        except Exception as e:
            logger.error(f"Failed to insert venue {candidate.name!r}: {e}")
            stats['skipped'] += 1
            continue

        if venue_id is None:
            stats['skipped'] += 1
        else:
            stats['inserted'] += 1
            inserted_ids.append(venue_id)
            bus.emit(EVENT_VENUE_DISCOVERED, {'venue_id': venue_id, 'name': candidate.name})

    # Venues are already committed; a failed dump only loses the run record
    try:
        results_file = str(_save_results({
            'timestamp': datetime.now().isoformat(),
            'search_focus': search_focus,
            'model': model,
            'queries': queries,
            'stats': stats,
            'results': [asdict(r) for r in unique_results],
            'candidates': [asdict(c) for c in candidates],
            'inserted_ids': inserted_ids,
        }))
    except OSError as e:
        logger.warning(f"Could not save scout results to {SCOUT_DIR}: {e}")
        results_file = None

    logger.info(f"Venue scout done: {stats}")
    bus.emit(EVENT_SCOUT_COMPLETE, dict(stats, results_file=results_file))
    return stats
