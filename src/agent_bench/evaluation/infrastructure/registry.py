"""EvaluatorRegistry — maps an evaluator type to its factory."""

from collections.abc import Callable

from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.evaluation.domain.evaluator import Evaluator
from agent_bench.evaluation.infrastructure.errors import EvaluatorTypeNotSupportedError
from agent_bench.evaluation.infrastructure.expected_diff import ExpectedDiffEvaluator
from agent_bench.evaluation.infrastructure.git_diff import GitDiffEvaluator

type EvaluatorFactory = Callable[[EvaluatorConfig], Evaluator]


class EvaluatorRegistry:
    """Name-keyed evaluator factories, populated once at startup.

    Satisfies the EvaluatorProvider protocol structurally.
    """

    def __init__(self, factories: dict[str, EvaluatorFactory] | None = None) -> None:
        self._factories: dict[str, EvaluatorFactory] = dict(factories or {})

    def register(self, evaluator_type: str, factory: EvaluatorFactory) -> None:
        self._factories[evaluator_type] = factory

    def types(self) -> list[str]:
        return sorted(self._factories)

    def create(self, config: EvaluatorConfig) -> Evaluator:
        """Build the evaluator registered under ``config.registry_key``.

        Raises:
            EvaluatorTypeNotSupportedError: if nothing is registered for it.
        """
        factory = self._factories.get(config.registry_key)
        if factory is None:
            raise EvaluatorTypeNotSupportedError(
                evaluator_type=config.registry_key, known_types=self.types()
            )
        return factory(config)


def create_default_evaluator_registry() -> EvaluatorRegistry:
    return EvaluatorRegistry(
        factories={
            GitDiffEvaluator.evaluator_type: GitDiffEvaluator,
            ExpectedDiffEvaluator.evaluator_type: ExpectedDiffEvaluator,
        }
    )
