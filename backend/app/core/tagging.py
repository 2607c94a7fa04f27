"""Tag Rules — prompt construction, tool schema, output cleaning and static fallback.

Invariants:
    - All functions are PURE: no IO, no async
    - clean_tags: strip, drop blanks, de-duplicate (order kept), at most MAX_TAGS
    - fallback_tags is [category, *tools[:2]] and never calls the model

Design Decisions:
    - Schema-constrained output via a forced tool call: the model must call
      record_tags, so the answer is structured JSON, not free text to parse
"""

MAX_TAGS = 5
TAG_TOOL_NAME = "record_tags"

TAG_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates relevant tags for AI use cases. "
    "Return only a JSON array of 3-5 short tags in Japanese."
)

TAG_TOOL = {
    "name": TAG_TOOL_NAME,
    "description": "Record 3-5 short Japanese tags for the AI use case.",
    "input_schema": {
        "type": "object",
        "properties": {
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Array of 3-5 relevant tags",
            },
        },
        "required": ["tags"],
        "additionalProperties": False,
    },
}


def build_tag_request(
    title: str, description: str, tools: list[str], category: str,
) -> str:
    """User message describing the case study."""
    return (
        "Generate tags for this AI use case:\n"
        f"Title: {title}\n"
        f"Description: {description}\n"
        f"Tools: {', '.join(tools)}\n"
        f"Category: {category}"
    )


def clean_tags(raw: object) -> list[str]:
    """Normalize model output; anything that is not a list of strings yields []."""
    if not isinstance(raw, list):
        return []
    seen: set[str] = set()
    tags: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        tag = item.strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
        if len(tags) == MAX_TAGS:
            break
    return tags


def fallback_tags(category: str, tools: list[str]) -> list[str]:
    return [category, *tools[:2]]


def extract_tool_tags(content: list) -> list[str]:
    """Pull tags from the first record_tags tool_use block of a response."""
    for block in content:
        if getattr(block, "type", None) != "tool_use":
            continue
        if getattr(block, "name", None) != TAG_TOOL_NAME:
            continue
        tool_input = getattr(block, "input", None)
        if isinstance(tool_input, dict):
            return clean_tags(tool_input.get("tags"))
    return []
