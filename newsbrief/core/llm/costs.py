"""Approximate LLM cost accounting for briefing runs."""

from decimal import Decimal

# Approximate cost per 1K tokens by model (USD): (input, output).
_COST_PER_1K: dict[str, tuple[float, float]] = {
    "gpt-4o-mini": (0.00015, 0.0006),
    "gpt-4o": (0.0025, 0.01),
    "gpt-4.1-mini": (0.0004, 0.0016),
    "claude-haiku-4-5": (0.0008, 0.004),
    "claude-sonnet-4-6": (0.003, 0.015),
    "gemini-2.5-flash": (0.0003, 0.0025),
}


def estimate_cost(model: str, tokens_in: int, tokens_out: int) -> Decimal:
    """Estimate USD cost from token counts."""
    rates = _COST_PER_1K.get(model, (0.001, 0.005))
    cost = (tokens_in / 1000) * rates[0] + (tokens_out / 1000) * rates[1]
    return Decimal(str(round(cost, 6)))
