"""Factory for building the answer provider cascade from configuration.

Provider names in `Settings.answer_providers` are resolved through a
ProviderRegistry into an ordered cascade that always ends with the rule tier.
"""

import logging
from collections.abc import Iterator, Sequence

from services.assistant.base import AnswerProvider
from services.assistant.groq_provider import GroqAnswerProvider
from services.assistant.ollama_provider import OllamaAnswerProvider
from services.assistant.openai_provider import OpenAIAnswerProvider
from services.assistant.rules_provider import RuleAnswerProvider
from services.shared.config import Settings

logger = logging.getLogger(__name__)

RULES = "rules"

DEFAULT_PROVIDERS: dict[str, type[AnswerProvider]] = {
    "openai": OpenAIAnswerProvider,
    "groq": GroqAnswerProvider,
    "ollama": OllamaAnswerProvider,
    RULES: RuleAnswerProvider,
}


class ProviderRegistry:
    """Answer tiers keyed by the names used in `Settings.answer_providers`.

    Each registry owns its own mapping, so registering a tier in one registry
    never leaks into another.
    """

    def __init__(self, providers: dict[str, type[AnswerProvider]] | None = None) -> None:
        self._providers = dict(DEFAULT_PROVIDERS if providers is None else providers)
        self._providers.setdefault(RULES, RuleAnswerProvider)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def register(self, name: str, provider_class: type[AnswerProvider]) -> None:
        """Add or replace a tier."""
        self._providers[name] = provider_class
        logger.info(f"Registered answer provider: {name}")

    def resolve(self, names: Sequence[str]) -> list[str]:
        """Turn configured names into the cascade order.

        Duplicates keep their first position. The rule tier always answers, so
        it is appended when missing and anything configured after it is dropped.

        Raises:
            ValueError: If a name is not registered
        """
        unknown = [name for name in names if name not in self._providers]
        if unknown:
            raise ValueError(
                f"Unknown answer provider: '{unknown[0]}'. "
                f"Available providers: {', '.join(self._providers)}"
            )

        order = list(dict.fromkeys(names))
        if RULES not in order:
            return [*order, RULES]

        unreachable = order[order.index(RULES) + 1 :]
        if unreachable:
            logger.warning(f"Ignoring providers after '{RULES}': {', '.join(unreachable)}")
        return order[: order.index(RULES) + 1]

    def build(self, names: Sequence[str], settings: Settings) -> list[AnswerProvider]:
        """Instantiate the resolved cascade."""
        return [self._providers[name](settings) for name in self.resolve(names)]


def create_answer_providers(
    settings: Settings, registry: ProviderRegistry | None = None
) -> list[AnswerProvider]:
    """Build the ordered provider cascade from settings.answer_providers.

    Args:
        settings: Application settings with answer_providers field
        registry: Tier lookup, the built-in tiers when omitted

    Returns:
        Provider instances in cascade order, ending with the rule tier

    Raises:
        ValueError: If a configured provider is unknown
    """
    if registry is None:
        registry = ProviderRegistry()
    providers = registry.build(settings.answer_providers, settings)
    logger.info(f"Answer cascade: {' -> '.join(p.provider_name for p in providers)}")
    return providers
