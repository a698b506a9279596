import json
import logging
import os
from typing import Dict

from pydantic import TypeAdapter, ValidationError

from pageproxy.vars import WORD_REPLACEMENTS_FILE

logger = logging.getLogger("uvicorn.error")

_REPLACEMENTS_ADAPTER = TypeAdapter(Dict[str, str])


def load_replacements(path: str = WORD_REPLACEMENTS_FILE) -> Dict[str, str]:
    """
    Load the word -> word mapping. A missing file, invalid JSON or anything
    other than an object of strings yields an empty mapping.
    """
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"[Rewrite] Could not read word replacements {path}: {e}")
        return {}
    try:
        return _REPLACEMENTS_ADAPTER.validate_python(raw)
    except ValidationError as e:
        logger.warning(
            f"[Rewrite] Ignoring word replacements {path}: {e.error_count()} invalid entries"
        )
        return {}
