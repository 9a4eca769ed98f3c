from ..core.config import settings
from ..models.invoice import TokenUsage


def calculate_cost(input_tokens: int, output_tokens: int) -> float:
    return (
        (input_tokens / 1000) * settings.token_price_input_per_1k
        + (output_tokens / 1000) * settings.token_price_output_per_1k
    )


def calculate_token_usage(input_tokens: int, output_tokens: int) -> TokenUsage:
    """Build a TokenUsage from provider-reported token counts"""
    return TokenUsage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        estimated_cost=calculate_cost(input_tokens, output_tokens),
    )


def summarize_token_stats(stats: dict) -> dict:
    """Round storage averages into the token-stats response shape"""
    total_invoices = int(stats.get("total_invoices") or 0)
    avg_cost = float(stats.get("avg_cost") or 0)
    return {
        "average_input_tokens": round(float(stats.get("avg_input_tokens") or 0)),
        "average_output_tokens": round(float(stats.get("avg_output_tokens") or 0)),
        "average_total_tokens": round(float(stats.get("avg_total_tokens") or 0)),
        "average_cost": f"{avg_cost:.4f}",
        "total_invoices": total_invoices,
        "total_cost": f"{avg_cost * total_invoices:.4f}",
    }
