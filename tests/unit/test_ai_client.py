"""
Unit tests for the AI client router (studiocrm/engine/ai_client.py).

Mocking strategy:
- studiocrm.engine.ai_client.Anthropic  → Claude SDK client
- requests.post                         → DeepSeek HTTP
- studiocrm.engine.ai_client.config.*   → API keys
"""

import pytest
import requests
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from studiocrm.engine.ai_client import (
    MODEL_CHOICES,
    DEFAULT_SYSTEM,
    required_key_name,
    call_claude,
    call_claude_tool,
    call_deepseek,
    call_ai,
)

TOOL = {'name': 'record_venues', 'description': 'x', 'input_schema': {'type': 'object'}}


def text_block(text):
    return SimpleNamespace(type='text', text=text)


def tool_block(name, data):
    return SimpleNamespace(type='tool_use', name=name, input=data)


def claude_message(*blocks, stop_reason='end_turn'):
    return SimpleNamespace(content=list(blocks), stop_reason=stop_reason)


@pytest.fixture
def anthropic_client():
    client = MagicMock()
    with patch('studiocrm.engine.ai_client.config.ANTHROPIC_API_KEY', 'sk-ant'), \
         patch('studiocrm.engine.ai_client.Anthropic', return_value=client):
        yield client


# ---------------------------------------------------------------------------
# required_key_name
# ---------------------------------------------------------------------------

def test_required_key_name_per_model():
    assert required_key_name('claude') == 'ANTHROPIC_API_KEY'
    assert required_key_name('deepseek-chat') == 'DEEPSEEK_API_KEY'
    assert required_key_name('deepseek-reasoner') == 'DEEPSEEK_API_KEY'


def test_required_key_name_unknown_model_raises():
    with pytest.raises(ValueError, match='Unknown AI model'):
        required_key_name('gpt-2')


def test_every_model_choice_has_a_key():
    for model in MODEL_CHOICES:
        assert required_key_name(model).endswith('_API_KEY')


# ---------------------------------------------------------------------------
# Claude
# ---------------------------------------------------------------------------

def test_call_claude_without_key_raises():
    with patch('studiocrm.engine.ai_client.config.ANTHROPIC_API_KEY', ''):
        with pytest.raises(ValueError, match='ANTHROPIC_API_KEY'):
            call_claude('hello')


def test_call_claude_returns_joined_text(anthropic_client):
    anthropic_client.messages.create.return_value = claude_message(text_block('Hello '), text_block('there'))
    assert call_claude('hi') == 'Hello there'
    assert anthropic_client.messages.create.call_args[1]['system'] == DEFAULT_SYSTEM


def test_call_claude_api_error_becomes_runtime_error(anthropic_client):
    anthropic_client.messages.create.side_effect = Exception('overloaded')
    with pytest.raises(RuntimeError, match='overloaded'):
        call_claude('hi')


def test_call_claude_tool_forces_tool_choice(anthropic_client):
    anthropic_client.messages.create.return_value = claude_message(
        tool_block('record_venues', {'venues': []}), stop_reason='tool_use'
    )
    tool_input, text = call_claude_tool('prompt', TOOL, system='scout')
    assert tool_input == {'venues': []}
    assert text == ''
    kwargs = anthropic_client.messages.create.call_args[1]
    assert kwargs['tool_choice'] == {'type': 'tool', 'name': 'record_venues'}
    assert kwargs['tools'] == [TOOL]
    assert kwargs['system'] == 'scout'


def test_call_claude_tool_without_tool_block_returns_text(anthropic_client):
    anthropic_client.messages.create.return_value = claude_message(
        text_block('[{"name": "Lumen"}]'), stop_reason='max_tokens'
    )
    tool_input, text = call_claude_tool('prompt', TOOL)
    assert tool_input is None
    assert text == '[{"name": "Lumen"}]'


def test_call_claude_tool_api_error_becomes_runtime_error(anthropic_client):
    anthropic_client.messages.create.side_effect = Exception('timeout')
    with pytest.raises(RuntimeError):
        call_claude_tool('prompt', TOOL)


# ---------------------------------------------------------------------------
# DeepSeek
# ---------------------------------------------------------------------------

def test_call_deepseek_without_key_raises():
    with patch('studiocrm.engine.ai_client.config.DEEPSEEK_API_KEY', ''):
        with pytest.raises(ValueError, match='DEEPSEEK_API_KEY'):
            call_deepseek('hi')


def test_call_deepseek_returns_content():
    resp = MagicMock()
    resp.json.return_value = {'choices': [{'message': {'content': 'ok'}}]}
    with patch('studiocrm.engine.ai_client.config.DEEPSEEK_API_KEY', 'ds'), \
         patch('requests.post', return_value=resp) as mock_post:
        assert call_deepseek('hi', model='deepseek-reasoner', system='sys') == 'ok'
    body = mock_post.call_args[1]['json']
    assert body['model'] == 'deepseek-reasoner'
    assert body['messages'][0] == {'role': 'system', 'content': 'sys'}
    assert mock_post.call_args[1]['headers']['Authorization'] == 'Bearer ds'


def test_call_deepseek_http_error_becomes_runtime_error():
    resp = MagicMock()
    resp.raise_for_status.side_effect = requests.exceptions.HTTPError('500')
    with patch('studiocrm.engine.ai_client.config.DEEPSEEK_API_KEY', 'ds'), \
         patch('requests.post', return_value=resp):
        with pytest.raises(RuntimeError, match='DeepSeek'):
            call_deepseek('hi')


def test_call_deepseek_bad_payload_becomes_runtime_error():
    resp = MagicMock()
    resp.json.return_value = {'choices': []}
    with patch('studiocrm.engine.ai_client.config.DEEPSEEK_API_KEY', 'ds'), \
         patch('requests.post', return_value=resp):
        with pytest.raises(RuntimeError, match='Unexpected'):
            call_deepseek('hi')


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

def test_call_ai_routes_to_claude_by_default():
    with patch('studiocrm.engine.ai_client.config.DEFAULT_AI_MODEL', 'claude'), \
         patch('studiocrm.engine.ai_client.call_claude', return_value='c') as mock_claude:
        assert call_ai('hi') == 'c'
    mock_claude.assert_called_once_with('hi', system=None, max_tokens=2000)


def test_call_ai_routes_to_deepseek():
    with patch('studiocrm.engine.ai_client.call_deepseek', return_value='d') as mock_ds:
        assert call_ai('hi', model='deepseek-chat', max_tokens=10) == 'd'
    mock_ds.assert_called_once_with('hi', model='deepseek-chat', system=None, max_tokens=10)


def test_call_ai_unknown_model_raises():
    with pytest.raises(ValueError):
        call_ai('hi', model='llama')
