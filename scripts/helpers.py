import re
import json

_FENCE = re.compile(r'```(?:json)?\s*([\[{][\s\S]*?[\]}])\s*```')


def extract_clean_json(raw: str | dict) -> dict:
    """
    Pull the first JSON object out of an LLM reply.

    Accepts a bare object or one wrapped in a ```json fence. Raises
    ValueError when nothing decodes to a JSON object.
    """
    if isinstance(raw, dict):
        return raw
    text = (raw or "").strip()
    match = _FENCE.search(text)
    if match:
        text = match.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("response JSON is not an object")
    return data
