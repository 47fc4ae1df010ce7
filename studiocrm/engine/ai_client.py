"""
AI Client - Unified interface for all AI backends.
Supports: Claude API (free text and forced tool output), DeepSeek Chat, DeepSeek Reasoner.
"""

import logging
from typing import Optional, Dict, Any, Tuple

import requests
from anthropic import Anthropic

from studiocrm.config import config

logger = logging.getLogger(__name__)

MODEL_CHOICES = ['claude', 'deepseek-chat', 'deepseek-reasoner']

DEFAULT_SYSTEM = "You are a research assistant helping an independent artist manage venues and outreach."


def required_key_name(model: str) -> str:
    """Name of the config key a model needs."""
    if model == 'claude':
        return 'ANTHROPIC_API_KEY'
    if model in ('deepseek-chat', 'deepseek-reasoner'):
        return 'DEEPSEEK_API_KEY'
    raise ValueError(f"Unknown AI model '{model}'. Choose from: {', '.join(MODEL_CHOICES)}")


# =============================================================================
# CLAUDE CLIENT
# =============================================================================

def _claude_client() -> Anthropic:
    if not config.ANTHROPIC_API_KEY:
        raise ValueError("ANTHROPIC_API_KEY not set in environment")
    return Anthropic(api_key=config.ANTHROPIC_API_KEY)


def _text_of(message) -> str:
    return ''.join(block.text for block in message.content if block.type == 'text')


def call_claude(prompt: str, system: Optional[str] = None, max_tokens: int = 2000) -> str:
    """Call Claude API. Returns generated text."""
    client = _claude_client()

    try:
        logger.debug(f"Calling Claude API ({config.CLAUDE_MODEL})")
        message = client.messages.create(
            model=config.CLAUDE_MODEL,
            max_tokens=max_tokens,
            system=system if system else DEFAULT_SYSTEM,
            messages=[
                {"role": "user", "content": prompt}
            ]
        )
        return _text_of(message)

    except Exception as e:
        logger.error(f"Claude API error: {e}")
        raise RuntimeError(f"Failed to call Claude API: {e}")


def call_claude_tool(
    prompt: str,
    tool: Dict[str, Any],
    system: Optional[str] = None,
    max_tokens: int = 4096,
) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    Call Claude with one tool it is forced to use.

    Args:
        prompt: User prompt text
        tool: Tool definition ({'name', 'description', 'input_schema'})
        system: Optional system prompt
        max_tokens: Max tokens to generate

    Returns: (tool input dict or None if no tool_use block came back, any free text)
    """
    client = _claude_client()

    try:
        logger.debug(f"Calling Claude API with forced tool '{tool['name']}'")
        message = client.messages.create(
            model=config.CLAUDE_MODEL,
            max_tokens=max_tokens,
            system=system if system else DEFAULT_SYSTEM,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool['name']},
            messages=[
                {"role": "user", "content": prompt}
            ]
        )
    except Exception as e:
        logger.error(f"Claude API error: {e}")
        raise RuntimeError(f"Failed to call Claude API: {e}")

    for block in message.content:
        if block.type == 'tool_use' and block.name == tool['name']:
            return block.input, _text_of(message)

    logger.warning(f"Claude returned no '{tool['name']}' tool call (stop_reason={message.stop_reason})")
    return None, _text_of(message)


# =============================================================================
# DEEPSEEK CLIENT
# =============================================================================

def call_deepseek(
    prompt: str,
    model: str = 'deepseek-chat',
    system: Optional[str] = None,
    max_tokens: int = 2000
) -> str:
    """Call DeepSeek API (OpenAI-compatible). Returns generated text."""
    if not config.DEEPSEEK_API_KEY:
        raise ValueError("DEEPSEEK_API_KEY not set in environment")

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    try:
        logger.debug(f"Calling DeepSeek API with model {model}")
        response = requests.post(
            f"{config.DEEPSEEK_BASE_URL}/chat/completions",
            json={
                "model": model,
                "messages": messages,
                "max_tokens": max_tokens,
                "stream": False,
            },
            headers={
                "Authorization": f"Bearer {config.DEEPSEEK_API_KEY}",
                "Content-Type": "application/json",
            },
            timeout=(10, 120),
        )
        response.raise_for_status()
        return response.json()['choices'][0]['message']['content']

    except requests.exceptions.RequestException as e:
        logger.error(f"DeepSeek API error: {e}")
        raise RuntimeError(f"Failed to call DeepSeek API: {e}")
    except (KeyError, IndexError) as e:
        logger.error(f"DeepSeek response parse error: {e}")
        raise RuntimeError(f"Unexpected DeepSeek response format: {e}")


# =============================================================================
# UNIFIED ROUTER
# =============================================================================

def call_ai(
    prompt: str,
    model: Optional[str] = None,
    system: Optional[str] = None,
    max_tokens: int = 2000
) -> str:
    """
    Route a free-text AI call to the appropriate backend.

    Args:
        prompt: User prompt text
        model: One of 'claude', 'deepseek-chat', 'deepseek-reasoner' (default: DEFAULT_AI_MODEL)
        system: Optional system prompt
        max_tokens: Max tokens to generate

    Returns: Generated text
    """
    model = model or config.DEFAULT_AI_MODEL
    required_key_name(model)

    if model == 'claude':
        return call_claude(prompt, system=system, max_tokens=max_tokens)
    return call_deepseek(prompt, model=model, system=system, max_tokens=max_tokens)
