"""HTML sanitizing for submitted meal instructions."""

import nh3

INSTRUCTION_TAGS = frozenset({"br", "p", "ul", "ol", "li", "em", "strong"})
_DROPPED_CONTENT_TAGS = frozenset({"script", "style"})


def sanitize_instructions(raw: str) -> str:
    """Keep basic formatting tags, turning plain newlines into ``<br>``."""
    normalized = raw.replace("\r\n", "\n").replace("\r", "\n")
    return nh3.clean(
        normalized.replace("\n", "<br>"),
        tags=set(INSTRUCTION_TAGS),
        clean_content_tags=set(_DROPPED_CONTENT_TAGS),
        attributes={},
    )
