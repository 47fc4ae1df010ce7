"""
Trello card integration.
Creates one card in the configured list per call; nothing is stored locally.
"""

import logging
from typing import Dict, Tuple

import requests

from studiocrm.config import config
from studiocrm.models import Contact, Venue
from studiocrm.bus.events import bus, EVENT_CARD_CREATED

logger = logging.getLogger(__name__)

TRELLO_CARDS_URL = "https://api.trello.com/1/cards"


def contact_card(contact: Contact) -> Tuple[str, str]:
    """Returns: (card name, card description) for a person."""
    lines = [
        f"Person: {contact.name}",
        f"Email: {contact.email}" if contact.email else "",
        f"Role: {contact.role}" if contact.role else "",
    ]
    return f"Contact: {contact.name}", "\n".join(line for line in lines if line)


def venue_card(venue: Venue) -> Tuple[str, str]:
    """Returns: (card name, card description) for a venue review."""
    location = venue.locations[0].label() if venue.locations else ""
    lines = [
        f"Venue: {venue.name}",
        f"URL: {venue.url}" if venue.url else "",
        f"Location: {location}" if location else "",
    ]
    return f"Venue Review: {venue.name}", "\n".join(line for line in lines if line)


def create_card(name: str, description: str) -> Dict[str, str]:
    """
    Create a Trello card.

    Returns: {'id': card id, 'url': card url}
    Raises: ValueError if credentials are missing, RuntimeError on API failure
    """
    if not (config.TRELLO_API_KEY and config.TRELLO_TOKEN and config.TRELLO_LIST_ID):
        raise ValueError("TRELLO_API_KEY, TRELLO_TOKEN and TRELLO_LIST_ID must be set in environment")

    try:
        response = requests.post(
            TRELLO_CARDS_URL,
            params={'key': config.TRELLO_API_KEY, 'token': config.TRELLO_TOKEN},
            json={'idList': config.TRELLO_LIST_ID, 'name': name, 'desc': description},
            timeout=15,
        )
        response.raise_for_status()
        card = response.json()
        result = {'id': card['id'], 'url': card['url']}
    except requests.exceptions.RequestException as e:
        logger.error(f"Trello API error: {e}")
        raise RuntimeError(f"Failed to create Trello card: {e}")
    except (KeyError, ValueError) as e:
        logger.error(f"Trello response parse error: {e}")
        raise RuntimeError(f"Unexpected Trello response format: {e}")

    logger.info(f"Created Trello card {result['id']}: {name}")
    bus.emit(EVENT_CARD_CREATED, {'name': name, **result})
    return result
