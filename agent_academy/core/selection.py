"""
Model comparison and recommendation.

Orders catalog entries by a criterion and picks a model for a use case and
budget from a fixed decision table.
"""

from enum import Enum
from typing import Dict, Iterable, List, Tuple, Union

from .catalog import DEFAULT_CATALOG, ModelCatalog, ModelDescriptor


class ComparisonCriterion(Enum):
    """Orderings supported by compare_models."""
    COST = "cost"
    PERFORMANCE = "performance"
    SPEED = "speed"


class UseCase(Enum):
    EDUCATION = "education"
    PROTOTYPING = "prototyping"
    PRODUCTION = "production"
    EXPERIMENTATION = "experimentation"


class Budget(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CatalogConfigurationError(Exception):
    """Raised when the recommendation table references ids missing from the catalog."""
    def __init__(self, missing_ids: List[str]):
        super().__init__(
            "Recommendation table references models missing from catalog: "
            + ", ".join(missing_ids)
        )
        self.missing_ids = missing_ids


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        valid = [member.value for member in enum_cls]
        raise ValueError(f"{enum_cls.__name__} must be one of: {valid}")


def compare_models(
    models: Iterable[ModelDescriptor],
    criterion: Union[ComparisonCriterion, str]
) -> List[ModelDescriptor]:
    """Return a new list of models ordered by price.

    Price is the only signal: ascending for cost and speed (smaller models are
    cheaper and generally faster), descending for performance (a higher price
    is treated as higher capability). Ties keep their input order.

    Args:
        models: Models to order; never modified
        criterion: ComparisonCriterion or its string value

    Returns:
        New ordered list

    Raises:
        ValueError: If criterion is unknown
    """
    criterion = _coerce(ComparisonCriterion, criterion)
    descending = criterion == ComparisonCriterion.PERFORMANCE
    return sorted(models, key=lambda m: m.cost_per_1k_tokens, reverse=descending)


# (budget, use_case) -> model id
RECOMMENDATION_TABLE: Dict[Tuple[Budget, UseCase], str] = {
    (Budget.LOW, UseCase.EDUCATION): "qwen2.5-14b-instruct",
    (Budget.LOW, UseCase.EXPERIMENTATION): "qwen2.5-14b-instruct",
    (Budget.LOW, UseCase.PROTOTYPING): "qwen2.5-32b-instruct",
    (Budget.LOW, UseCase.PRODUCTION): "qwen2.5-32b-instruct",
    (Budget.MEDIUM, UseCase.EDUCATION): "qwen2.5-72b-instruct",
    (Budget.MEDIUM, UseCase.EXPERIMENTATION): "gpt-4o-mini",
    (Budget.MEDIUM, UseCase.PROTOTYPING): "gpt-4o-mini",
    (Budget.MEDIUM, UseCase.PRODUCTION): "gpt-4o-mini",
    (Budget.HIGH, UseCase.EDUCATION): "gpt-4o",
    (Budget.HIGH, UseCase.EXPERIMENTATION): "gpt-4o",
    (Budget.HIGH, UseCase.PROTOTYPING): "gpt-4o",
    (Budget.HIGH, UseCase.PRODUCTION): "claude-3-5-sonnet-20241022",
}


class ModelRecommender:
    """Resolves the recommendation table against a catalog.

    Every cell is resolved at construction, so a catalog missing a referenced
    id fails here rather than when a recommendation is requested.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        table: Dict[Tuple[Budget, UseCase], str] = RECOMMENDATION_TABLE
    ):
        """Initialize the recommender.

        Args:
            catalog: Catalog that must contain every id in the table
            table: Decision table covering every (budget, use case) pair

        Raises:
            ValueError: If the table does not cover every pair
            CatalogConfigurationError: If the table references unknown ids
        """
        uncovered = [
            (budget.value, use_case.value)
            for budget in Budget
            for use_case in UseCase
            if (budget, use_case) not in table
        ]
        if uncovered:
            raise ValueError(f"Recommendation table does not cover: {uncovered}")

        missing = sorted({model_id for model_id in table.values() if catalog.get(model_id) is None})
        if missing:
            raise CatalogConfigurationError(missing)

        self._resolved: Dict[Tuple[Budget, UseCase], ModelDescriptor] = {
            key: catalog.get(model_id) for key, model_id in table.items()
        }

    def recommend(
        self,
        use_case: Union[UseCase, str],
        budget: Union[Budget, str]
    ) -> ModelDescriptor:
        """Pick the model for a use case and budget.

        Raises:
            ValueError: If use_case or budget is not a known value
        """
        use_case = _coerce(UseCase, use_case)
        budget = _coerce(Budget, budget)
        return self._resolved[(budget, use_case)]


DEFAULT_RECOMMENDER = ModelRecommender(DEFAULT_CATALOG)


def recommend_model(use_case: Union[UseCase, str], budget: Union[Budget, str]) -> ModelDescriptor:
    """Recommend a model from the default catalog."""
    return DEFAULT_RECOMMENDER.recommend(use_case, budget)
