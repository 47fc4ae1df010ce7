"""
Unit tests for the Trello card integration (studiocrm/engine/trello.py).
requests.post is patched; no network.
"""

import pytest
import requests
from unittest.mock import MagicMock, patch

from studiocrm.models import Contact, Venue, Location
from studiocrm.engine.trello import TRELLO_CARDS_URL, contact_card, venue_card, create_card
from studiocrm.bus.events import EVENT_CARD_CREATED


@pytest.fixture
def trello_config():
    with patch('studiocrm.engine.trello.config.TRELLO_API_KEY', 'key'), \
         patch('studiocrm.engine.trello.config.TRELLO_TOKEN', 'tok'), \
         patch('studiocrm.engine.trello.config.TRELLO_LIST_ID', 'list1'):
        yield


def test_contact_card_skips_blank_lines():
    name, desc = contact_card(Contact(name='Ana Ruiz', email='ana@lumen.org'))
    assert name == 'Contact: Ana Ruiz'
    assert desc == 'Person: Ana Ruiz\nEmail: ana@lumen.org'


def test_venue_card_includes_location():
    venue = Venue(name='Lumen', url='https://lumen.example', locations=[Location(city='Portland', state='OR')])
    name, desc = venue_card(venue)
    assert name == 'Venue Review: Lumen'
    assert 'Location: Portland, OR' in desc
    assert 'URL: https://lumen.example' in desc


def test_venue_card_without_location():
    _, desc = venue_card(Venue(name='Lumen'))
    assert desc == 'Venue: Lumen'


def test_create_card_missing_config_raises():
    with patch('studiocrm.engine.trello.config.TRELLO_API_KEY', ''), \
         patch('requests.post') as mock_post:
        with pytest.raises(ValueError, match='TRELLO'):
            create_card('x', 'y')
    mock_post.assert_not_called()


def test_create_card_posts_and_emits(trello_config):
    resp = MagicMock()
    resp.json.return_value = {'id': 'c1', 'url': 'https://trello.com/c/c1', 'extra': True}
    with patch('requests.post', return_value=resp) as mock_post, \
         patch('studiocrm.engine.trello.bus.emit') as mock_emit:
        result = create_card('Venue Review: Lumen', 'Venue: Lumen')

    assert result == {'id': 'c1', 'url': 'https://trello.com/c/c1'}
    args, kwargs = mock_post.call_args
    assert args[0] == TRELLO_CARDS_URL
    assert kwargs['params'] == {'key': 'key', 'token': 'tok'}
    assert kwargs['json'] == {'idList': 'list1', 'name': 'Venue Review: Lumen', 'desc': 'Venue: Lumen'}
    mock_emit.assert_called_once_with(
        EVENT_CARD_CREATED, {'name': 'Venue Review: Lumen', 'id': 'c1', 'url': 'https://trello.com/c/c1'}
    )


def test_create_card_http_error_becomes_runtime_error(trello_config):
    resp = MagicMock()
    resp.raise_for_status.side_effect = requests.exceptions.HTTPError('401')
    with patch('requests.post', return_value=resp):
        with pytest.raises(RuntimeError, match='Failed to create Trello card'):
            create_card('x', 'y')


def test_create_card_bad_payload_becomes_runtime_error(trello_config):
    resp = MagicMock()
    resp.json.return_value = {'name': 'x'}
    with patch('requests.post', return_value=resp):
        with pytest.raises(RuntimeError, match='Unexpected'):
            create_card('x', 'y')
