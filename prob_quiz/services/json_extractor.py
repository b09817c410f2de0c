import json
import logging
import re
from typing import Any, Dict, Iterator, Optional, Tuple

from prob_quiz.errors import NoJsonFound

logger = logging.getLogger(__name__)

# Models like to leave a comma before a closing bracket; json.loads rejects it.
_TRAILING_COMMA_REGEX = re.compile(r",\s*([}\]])")


def _find_closing_brace(text: str, start: int) -> Optional[int]:
    """
    Return the offset of the brace that closes the object opened at `start`,
    or None if the text ends first.

    Braces inside string literals do not count. A backslash escapes the next
    character inside a string, so an escaped quote does not end the string.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _balanced_spans(text: str) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) offsets of brace-balanced spans, left to right."""
    pos = 0
    while True:
        start = text.find("{", pos)
        if start == -1:
            return
        end = _find_closing_brace(text, start)
        if end is None:
            # Truncated object: anything complete must start further in.
            pos = start + 1
            continue
        yield start, end
        pos = end + 1


def _try_parse(fragment: str) -> Optional[Dict[str, Any]]:
    """Parse a fragment as a JSON object, retrying once with trailing commas removed."""
    for attempt in (fragment, _TRAILING_COMMA_REGEX.sub(r"\1", fragment)):
        try:
            value = json.loads(attempt)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


# PUBLIC_INTERFACE
def extract_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Locate and parse the first JSON object embedded in free-form text.

    Surrounding prose and markdown code fences are skipped over, since they
    carry no braces. The first brace-balanced span that parses wins; a span
    that fails to parse is skipped and scanning resumes right after it.
    Unlike a plain depth counter, an object that never closes is not fatal:
    scanning restarts just inside it, so a complete nested object can still
    be returned from truncated output.

    Args:
        text: Raw text, typically a language model completion.

    Returns:
        dict: The parsed object.

    Raises:
        NoJsonFound: if no span parses as a JSON object.
    """
    if not text:
        raise NoJsonFound("empty text")

    for start, end in _balanced_spans(text):
        parsed = _try_parse(text[start:end + 1])
        if parsed is not None:
            return parsed
        logger.debug("Skipping unparseable span at %d..%d", start, end)

    raise NoJsonFound("no parseable JSON object in text")
