"""
Completion client — Anthropic with an API key.

complete(prompt) is the single entry point used by the interview simulator.
Every request carries the fixed career-assistant preamble, a caller-side
timeout and no automatic retries; a failed call raises CompletionError and
the caller decides what to do. Without a key, a stub reply is returned.
"""

import anthropic

from career_chat.config import settings

CAREER_PREAMBLE = (
    "Você é um assistente de carreira especializado em tecnologia. "
    "Ajude desenvolvedores com currículos, entrevistas técnicas e planejamento de carreira. "
    "Responda sempre em português do Brasil, de forma clara, objetiva e encorajadora."
)


class CompletionError(Exception):
    """The completion service could not produce a reply."""


# ─────────────────────────────────────────────────────────────────────────────
# Anthropic
# ─────────────────────────────────────────────────────────────────────────────

def _client() -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(
        api_key=settings.ANTHROPIC_API_KEY,
        timeout=settings.AI_TIMEOUT_SECONDS,
        max_retries=0,
    )


async def _anthropic_chat(system: str, messages: list[dict], max_tokens: int, temperature: float) -> str:
    try:
        response = await _client().messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
        )
    except anthropic.APITimeoutError as e:
        raise CompletionError(f"A IA demorou demais para responder ({settings.AI_TIMEOUT_SECONDS:.0f}s).") from e
    except anthropic.APIError as e:
        raise CompletionError(f"Anthropic error: {e}") from e

    text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
    if not text.strip():
        raise CompletionError("A IA retornou uma resposta vazia.")
    return text


# ─────────────────────────────────────────────────────────────────────────────
# Status helpers
# ─────────────────────────────────────────────────────────────────────────────

def _anthropic_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


def ai_provider_name() -> str:
    if _anthropic_configured():
        return f"Anthropic ({settings.ANTHROPIC_MODEL})"
    return "none"


async def ai_health_check() -> dict:
    """Live connectivity test — called by /api/health/ai."""
    provider = ai_provider_name()
    if provider == "none":
        return {
            "provider": "none",
            "status": "unconfigured",
            "message": "Set ANTHROPIC_API_KEY in backend/.env.",
        }

    try:
        reply = await chat(
            system="You are a test assistant.",
            messages=[{"role": "user", "content": "Reply with exactly: OK"}],
            max_tokens=10,
            temperature=0.0,
        )
        return {"provider": provider, "status": "ok", "test_reply": reply.strip()}
    except CompletionError as e:
        return {"provider": provider, "status": "error", "error": str(e)}


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

async def chat(
    system: str,
    messages: list[dict],
    max_tokens: int = 400,
    temperature: float = 0.7,
) -> str:
    if _anthropic_configured():
        return await _anthropic_chat(system, messages, max_tokens, temperature)

    return (
        "[AI not configured] Set ANTHROPIC_API_KEY in backend/.env "
        "and restart the backend, then open /api/health/ai."
    )


async def complete(prompt: str) -> str:
    """One-shot completion with the career-assistant preamble."""
    return await chat(
        system=CAREER_PREAMBLE,
        messages=[{"role": "user", "content": prompt}],
        max_tokens=settings.AI_MAX_TOKENS,
        temperature=settings.AI_TEMPERATURE,
    )
