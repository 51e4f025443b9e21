"""LLM-based standalone title generation for article headings."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Optional

from .config import Config, get_config
from .errors import GenerationError, ValidationError

logger = logging.getLogger(__name__)


TITLE_SYSTEM_PROMPT = """You write standalone titles for sections of educational articles.

A standalone title names the subject of one section so that it makes complete
sense on its own, without the article around it. Respond with JSON only."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def create_standalone_title_prompt(article_title: str, heading_texts: list[str]) -> str:
    """Build the user prompt asking for one standalone title per heading."""
    numbered = "\n".join(f"{i}. {text}" for i, text in enumerate(heading_texts, 1))
    return f"""Article title: {article_title}

Subsection headings:
{numbered}

For each subsection heading, write a standalone title that:
- Is 2-8 words long
- Makes complete sense without the article for context
- Follows Wikipedia-style naming conventions
- Includes the article's subject where the heading alone would be ambiguous

Return a JSON object of the form {{"titles": ["...", "..."]}} with exactly
{len(heading_texts)} titles, in the same order as the headings above."""


def parse_titles_response(text: str, expected: int) -> list[str]:
    """Parse the model's JSON reply into a list of titles.

    Args:
        text: Raw model output, optionally wrapped in a code fence.
        expected: Number of titles that must be present.

    Returns:
        The titles, untrimmed.

    Raises:
        GenerationError: If the reply is not the expected JSON shape.
    """
    text = text.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Title response is not valid JSON: {e}") from e

    titles = payload.get("titles") if isinstance(payload, dict) else None
    if not isinstance(titles, list) or not all(isinstance(t, str) for t in titles):
        raise GenerationError("Title response must be an object with a 'titles' string list")
    if len(titles) != expected:
        raise GenerationError(
            f"Expected {expected} titles, got {len(titles)}"
        )
    return titles


def generate_titles(
    article_title: str,
    heading_texts: list[str],
    requester_id: Optional[str] = None,
    config: Optional[Config] = None,
) -> list[str]:
    """Ask the configured LLM for one standalone title per heading.

    Args:
        article_title: Title of the article the headings belong to.
        heading_texts: Heading texts, in document order.
        requester_id: Who asked, forwarded to the provider as request metadata.
        config: Configuration to use.

    Returns:
        Titles in the same order and of the same length as ``heading_texts``.

    Raises:
        ValidationError: If title generation is not configured.
        GenerationError: If the LLM call fails or its output is unusable.
    """
    if config is None:
        config = get_config()

    if not config.titles.enabled:
        raise ValidationError(
            "Title generation not configured. Add 'titles' section to config.yaml with "
            "'backend' (anthropic/openai) and 'model' settings."
        )

    prompt = create_standalone_title_prompt(article_title, heading_texts)
    backend = config.titles.backend

    if backend == "anthropic":
        text = _generate_anthropic(prompt, requester_id, config)
    elif backend == "openai":
        text = _generate_openai(prompt, requester_id, config)
    else:
        raise ValidationError(f"Unknown title backend: {backend}")

    return parse_titles_response(text, len(heading_texts))


def _generate_anthropic(prompt: str, requester_id: Optional[str], config: Config) -> str:
    """Generate titles using the Anthropic API."""
    import anthropic

    api_key = config.titles.api_key or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ValidationError(
            "Anthropic API key not found. Set 'api_key' in titles config or "
            "ANTHROPIC_API_KEY environment variable."
        )

    client = anthropic.Anthropic(api_key=api_key)
    kwargs = {}
    if requester_id:
        kwargs["metadata"] = {"user_id": requester_id}

    try:
        response = client.messages.create(
            model=config.titles.model,
            max_tokens=config.titles.max_tokens,
            system=TITLE_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
    except anthropic.APIError as e:
        raise GenerationError(f"Anthropic request failed: {e}") from e

    return response.content[0].text


def _generate_openai(prompt: str, requester_id: Optional[str], config: Config) -> str:
    """Generate titles using the OpenAI API."""
    import openai

    api_key = config.titles.api_key or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ValidationError(
            "OpenAI API key not found. Set 'api_key' in titles config or "
            "OPENAI_API_KEY environment variable."
        )

    client = openai.OpenAI(api_key=api_key)
    kwargs = {}
    if requester_id:
        kwargs["user"] = requester_id

    try:
        response = client.chat.completions.create(
            model=config.titles.model,
            max_tokens=config.titles.max_tokens,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            **kwargs,
        )
    except openai.OpenAIError as e:
        raise GenerationError(f"OpenAI request failed: {e}") from e

    content = response.choices[0].message.content
    if content is None:
        raise GenerationError("OpenAI returned an empty message")
    return content
