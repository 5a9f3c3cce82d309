"""
Pricing calculations.

Handles cost computations for catalog models from reported token usage.
"""

from dataclasses import dataclass
from decimal import Decimal

from .catalog import ModelDescriptor
from .token_counter import TokenUsage


def calculate_cost(input_tokens: int, output_tokens: int, model: ModelDescriptor) -> Decimal:
    """Calculate the cost of one invocation.

    Cost is linear in total tokens: (input + output) / 1000 * price per 1K.
    No rounding is applied; callers format for display.

    Args:
        input_tokens: Prompt tokens reported by the provider
        output_tokens: Completion tokens reported by the provider
        model: Catalog entry carrying the price

    Returns:
        Exact cost as a Decimal

    Raises:
        ValueError: If a token count is negative
    """
    if input_tokens < 0 or output_tokens < 0:
        raise ValueError("token counts must be >= 0")

    total_tokens = Decimal(input_tokens) + Decimal(output_tokens)
    return (total_tokens / Decimal("1000")) * model.cost_per_1k_tokens


@dataclass(frozen=True)
class UsageRecord:
    """Token usage of one invocation together with its derived cost."""
    input_tokens: int
    output_tokens: int
    total_cost: Decimal

    @classmethod
    def from_usage(cls, usage: TokenUsage, model: ModelDescriptor) -> "UsageRecord":
        """Build a record whose cost is computed from the usage."""
        return cls(
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_cost=calculate_cost(usage.input_tokens, usage.output_tokens, model),
        )

    def to_dict(self) -> dict:
        """Wire representation used by the gateway response."""
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_cost": float(self.total_cost),
        }
