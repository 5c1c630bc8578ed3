"""Pull JSON out of chat completion text"""
import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)


def extract_json(content: str) -> Optional[Any]:
    """
    Parse JSON from model output.

    Tries, in order: the whole text, a ```json fenced block, any ``` fenced
    block, then the outermost {...} or [...] span.

    Returns:
        Parsed object, or None when nothing parses
    """
    if not content:
        return None

    candidates = [content.strip()]

    json_block = re.search(r'```json\s*(.+?)\s*```', content, re.DOTALL)
    if json_block:
        candidates.append(json_block.group(1))

    code_block = re.search(r'```\s*(.+?)\s*```', content, re.DOTALL)
    if code_block:
        candidates.append(code_block.group(1))

    for pattern in (r'\{.+\}', r'\[.+\]'):
        match = re.search(pattern, content, re.DOTALL)
        if match:
            candidates.append(match.group(0))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue

    logger.debug(f"No JSON found in content: {content[:200]}")
    return None
