"""Answer text parsing."""

import json
import re
from typing import Any

from ..errors import ParseFailure

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_FENCED_ANY = re.compile(r"```\s*([\s\S]*?)\s*```")


def strip_code_fences(answer: str) -> str:
    """Return the contents of the first Markdown code fence, or the text itself."""
    match = _FENCED_JSON.search(answer) or _FENCED_ANY.search(answer)
    if match:
        return match.group(1).strip()
    return answer.strip()


def parse_json_answer(answer: str) -> Any:
    """
    Parse an answer that should contain JSON.

    Raises:
        ParseFailure: If the text is empty or not valid JSON
    """
    text = strip_code_fences(answer or "")
    if not text:
        raise ParseFailure("Empty answer", answer=answer)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Answer is not valid JSON: {e}", answer=answer) from e
