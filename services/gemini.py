# services/gemini.py
import functools
import logging

from google import genai
from google.genai import types

from config import settings

_LOG = logging.getLogger(__name__)


# ───────────── Client (lazy) ─────────────
@functools.lru_cache(maxsize=1)
def _client() -> genai.Client:
    if not settings.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY not set in environment")
    return genai.Client(api_key=settings.gemini_api_key)


# ───────────── Generation (async) ─────────────
async def generate(
    prompt: str,
    *,
    system: str | None = None,
    model: str | None = None,
    temperature: float = 0.7,
    max_output_tokens: int = 2000,
    json_mode: bool = False,
) -> str:
    """Run a chat completion and return the LLM’s text response."""
    config = types.GenerateContentConfig(
        system_instruction=system,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type="application/json" if json_mode else None,
    )
    try:
        resp = await _client().aio.models.generate_content(
            model=model or settings.planner_model,
            contents=[prompt],
            config=config,
        )
    except Exception as e:
        _LOG.error("Gemini generation failed: %s", e)
        raise
    return resp.text or ""
