"""Tag Generator — asks the model for 3-5 Japanese tags, falls back to static tags.

Invariants:
    - generate() never raises: any API failure or empty answer yields fallback_tags
    - Disabled generator (no key / TAG_GENERATION_ENABLED=false) never calls the API
    - Model output passes through core.tagging.clean_tags (<= MAX_TAGS, de-duplicated)

Design Decisions:
    - Forced tool call (tool_choice) instead of parsing free text (ADR: structured output)
    - Fallback over failure: a case study is always savable even when the model is down
"""

import logging

from app.core.errors import AnthropicAPIError, ErrorContext
from app.core.tagging import (
    TAG_SYSTEM_PROMPT, TAG_TOOL, TAG_TOOL_NAME,
    build_tag_request, extract_tool_tags, fallback_tags,
)
from app.infrastructure.anthropic_client import ResilientAnthropicClient

logger = logging.getLogger(__name__)

_MAX_TOKENS = 256


class TagGenerator:
    """Generates case study tags via the Anthropic API."""

    def __init__(
        self,
        client: ResilientAnthropicClient | None,
        model: str,
        enabled: bool = True,
    ):
        self.client = client
        self.model = model
        self.enabled = enabled and client is not None

    async def generate(
        self,
        title: str,
        description: str,
        tools: list[str],
        category: str,
        user_id: int | None = None,
    ) -> list[str]:
        if not self.enabled:
            return fallback_tags(category, tools)

        try:
            response = await self.client.create_message(
                model=self.model,
                max_tokens=_MAX_TOKENS,
                system=TAG_SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": build_tag_request(title, description, tools, category),
                }],
                tools=[TAG_TOOL],
                tool_choice={"type": "tool", "name": TAG_TOOL_NAME},
                context=ErrorContext(user_id=user_id),
            )
        except AnthropicAPIError as e:
            logger.warning(
                f"Tag generation failed, using fallback: {e.message}",
                extra={"user_id": user_id, "error_code": e.code},
            )
            return fallback_tags(category, tools)

        tags = extract_tool_tags(response.content)
        if not tags:
            logger.warning(
                "Tag generation returned no tags, using fallback",
                extra={"user_id": user_id},
            )
            return fallback_tags(category, tools)
        return tags
