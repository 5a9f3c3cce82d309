"""
Token counting and usage tracking.

Holds the token counts reported back by upstream providers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by a provider for one invocation.
    
    Contains exact token counts as reported, never estimated locally.
    """
    input_tokens: int
    output_tokens: int
    
    def __post_init__(self):
        """Validate token counts are non-negative."""
        if self.input_tokens < 0:
            raise ValueError("input_tokens must be >= 0")
        if self.output_tokens < 0:
            raise ValueError("output_tokens must be >= 0")
    
    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input_tokens + self.output_tokens
