"""
Batch Prompt Builder.

Packs the review text of several cafes into one request so a single model
call covers the whole batch. The model answers with one JSON object keyed
by place id.
"""

from typing import Mapping, Sequence

# =============================================================================
# System Prompt
# =============================================================================

SYSTEM_PROMPT = """You analyze customer reviews of cafes and coffee shops to find the dishes
and drinks people recommend.

RULES:
- For EACH cafe, identify the top 3-5 recommended dishes or drinks.
- Only include items that reviewers actually mention positively.
- "mentions" is your estimate of how many reviews praise the item (integer, 0 or more).
- "description" is a short phrase (under 12 words) describing the item.
- Use the cafe IDs exactly as given as the keys of the result.
- If a cafe's reviews mention no specific dishes or drinks, omit that cafe.

Return a JSON OBJECT where the keys are the cafe IDs and the values are arrays of dishes:
{
  "PLACE_ID_1": [
    { "dish_name": "Latte", "mentions": 10, "description": "Creamy and smooth" }
  ]
}

Return ONLY the JSON object. No markdown, no explanation."""


def build_batch_prompt(place_ids: Sequence[str], reviews: Mapping[str, str]) -> str:
    """Build the user message for one batch.

    Places without review text are left out. Input order is kept and each
    place appears at most once.

    Args:
        place_ids: Places in the batch, in request order.
        reviews: place_id -> concatenated review text.

    Returns:
        Prompt text, or "" when no place has reviews.
    """
    sections = []
    seen = set()
    for place_id in place_ids:
        if place_id in seen:
            continue
        seen.add(place_id)
        text = reviews.get(place_id)
        if not text:
            continue
        sections.append(f"--- Cafe ID: {place_id} ---\nReviews:\n{text.strip()}")

    if not sections:
        return ""

    header = (
        "Analyze the reviews for the following cafes. For EACH cafe, identify the "
        "top 3-5 recommended dishes/drinks and count positive mentions.\n\n"
        "Cafes to analyze:"
    )
    return header + "\n\n" + "\n\n".join(sections)
