"""
Model catalog.

Static registry of the language models the gateway can dispatch to.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple


class Provider(Enum):
    """Upstream vendors a catalog entry can belong to."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    QWEN = "qwen"
    HUGGINGFACE = "huggingface"


@dataclass(frozen=True)
class ModelDescriptor:
    """One callable backend model and its list price."""
    id: str
    name: str
    provider: Provider
    cost_per_1k_tokens: Decimal  # Combined input+output price per 1K tokens
    max_tokens: int
    strengths: Tuple[str, ...] = ()
    best_for: Tuple[str, ...] = ()
    supports_images: bool = False
    supports_code: bool = False

    def __post_init__(self):
        """Validate identifier, price and token limit."""
        if not self.id or not self.id.strip():
            raise ValueError("model id is required and cannot be empty")
        if self.cost_per_1k_tokens < 0:
            raise ValueError(f"cost_per_1k_tokens for {self.id} must be >= 0")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens for {self.id} must be > 0")

    def to_dict(self) -> dict:
        """JSON-friendly representation."""
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider.value,
            "costPer1kTokens": float(self.cost_per_1k_tokens),
            "strengths": list(self.strengths),
            "bestFor": list(self.best_for),
            "maxTokens": self.max_tokens,
            "supportsImages": self.supports_images,
            "supportsCode": self.supports_code,
        }


@dataclass(frozen=True)
class ModelCatalog:
    """Immutable, ordered set of model descriptors with unique ids."""
    models: Tuple[ModelDescriptor, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence but always store a tuple
        object.__setattr__(self, "models", tuple(self.models))
        seen = set()
        for model in self.models:
            if model.id in seen:
                raise ValueError(f"Duplicate model id in catalog: {model.id}")
            seen.add(model.id)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self.models)

    def __len__(self) -> int:
        return len(self.models)

    def get(self, model_id: str) -> Optional[ModelDescriptor]:
        """Look up a model by id, returning None when it is not listed."""
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def require(self, model_id: str) -> ModelDescriptor:
        """Look up a model by id.

        Args:
            model_id: Model identifier

        Returns:
            The matching ModelDescriptor

        Raises:
            ValueError: If model is not in the catalog
        """
        model = self.get(model_id)
        if model is None:
            raise ValueError(f"Unsupported model: {model_id}")
        return model

    def ids(self) -> List[str]:
        """Model ids in catalog order."""
        return [model.id for model in self.models]


def build_catalog(models: Sequence[ModelDescriptor]) -> ModelCatalog:
    """Create a catalog from any sequence of descriptors."""
    return ModelCatalog(tuple(models))


# Fixed catalog - prices are provider list prices per 1K tokens
DEFAULT_CATALOG = build_catalog([
    ModelDescriptor(
        id="claude-3-5-sonnet-20241022",
        name="Claude 3.5 Sonnet",
        provider=Provider.ANTHROPIC,
        cost_per_1k_tokens=Decimal("0.003"),
        max_tokens=200000,
        strengths=("Reasoning", "Code", "Analysis", "Safety"),
        best_for=("Complex reasoning", "Code generation", "Educational content"),
        supports_images=True,
        supports_code=True,
    ),
    ModelDescriptor(
        id="claude-3-haiku-20240307",
        name="Claude 3 Haiku",
        provider=Provider.ANTHROPIC,
        cost_per_1k_tokens=Decimal("0.00025"),
        max_tokens=200000,
        strengths=("Speed", "Efficiency", "Basic tasks"),
        best_for=("Quick responses", "Simple analysis", "Cost-sensitive applications"),
        supports_images=True,
        supports_code=True,
    ),
    ModelDescriptor(
        id="qwen2.5-72b-instruct",
        name="Qwen2.5 72B Instruct",
        provider=Provider.QWEN,
        cost_per_1k_tokens=Decimal("0.0008"),
        max_tokens=32768,
        strengths=("Multilingual", "Cost-effective", "Reasoning", "Code"),
        best_for=("Budget-conscious projects", "Multilingual content", "General tasks"),
        supports_code=True,
    ),
    ModelDescriptor(
        id="qwen2.5-32b-instruct",
        name="Qwen2.5 32B Instruct",
        provider=Provider.QWEN,
        cost_per_1k_tokens=Decimal("0.0004"),
        max_tokens=32768,
        strengths=("Very cost-effective", "Good reasoning", "Fast"),
        best_for=("High-volume applications", "Educational exercises", "Prototyping"),
        supports_code=True,
    ),
    ModelDescriptor(
        id="qwen2.5-14b-instruct",
        name="Qwen2.5 14B Instruct",
        provider=Provider.QWEN,
        cost_per_1k_tokens=Decimal("0.0002"),
        max_tokens=32768,
        strengths=("Ultra cost-effective", "Decent performance", "Very fast"),
        best_for=("Learning exercises", "Simple tasks", "Experimentation"),
        supports_code=True,
    ),
    ModelDescriptor(
        id="gpt-4o",
        name="GPT-4o",
        provider=Provider.OPENAI,
        cost_per_1k_tokens=Decimal("0.005"),
        max_tokens=128000,
        strengths=("Multimodal", "Reasoning", "Creativity"),
        best_for=("Complex tasks", "Creative writing", "Image analysis"),
        supports_images=True,
        supports_code=True,
    ),
    ModelDescriptor(
        id="gpt-4o-mini",
        name="GPT-4o Mini",
        provider=Provider.OPENAI,
        cost_per_1k_tokens=Decimal("0.00015"),
        max_tokens=128000,
        strengths=("Cost-effective", "Fast", "Good reasoning"),
        best_for=("Simple tasks", "High-volume applications", "Learning"),
        supports_images=True,
        supports_code=True,
    ),
])
