"""Parse the model's combined batch response into per-place dish lists."""

import json
import re
from typing import Any, Iterable, Optional

import structlog
from pydantic import ValidationError

from biteboard.core.exceptions import BatchParseError
from biteboard.models.schemas import Dish

logger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers (```json, ```) and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def _coerce_dishes(place_id: str, value: Any) -> Optional[list[Dish]]:
    """Validate one place's dish array. Invalid items are dropped.

    An empty array is a real answer and comes back as []. A non-empty
    array with no valid dish in it comes back as None.
    """
    if not isinstance(value, list):
        logger.warning(
            "batch_result_not_a_list",
            place_id=place_id,
            value_type=type(value).__name__,
        )
        return None

    dishes = []
    for item in value:
        try:
            dishes.append(Dish.model_validate(item))
        except ValidationError as e:
            logger.debug("batch_dish_invalid", place_id=place_id, error=str(e))

    if value and not dishes:
        return None
    return dishes


def parse_batch_response(text: str, place_ids: Iterable[str]) -> dict[str, Optional[list[Dish]]]:
    """Parse model output for the places that were in the prompt.

    Args:
        text: Raw model response text.
        place_ids: Places included in the prompt.

    Returns:
        place_id -> dishes, or None when the model gave nothing usable for
        that place. Keys for places not in place_ids are ignored.

    Raises:
        BatchParseError: When the text is not a JSON object after fence stripping.
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise BatchParseError(f"Model response is not valid JSON: {e.msg}", raw_text=text) from e

    if not isinstance(parsed, dict):
        raise BatchParseError(
            f"Model response is a JSON {type(parsed).__name__}, expected an object",
            raw_text=text,
        )

    results: dict[str, Optional[list[Dish]]] = {}
    for place_id in place_ids:
        value = parsed.get(place_id)
        results[place_id] = None if value is None else _coerce_dishes(place_id, value)
    return results
