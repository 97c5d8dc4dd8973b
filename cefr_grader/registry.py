"""
Model registry.

Maps internal model keys to their display name, provider and the
provider-qualified identifier routed by the AI gateway. The registry is
read-only after import and is handed to the gateway client at construction.
"""

from types import MappingProxyType
from typing import Mapping

from cefr_grader.models import ModelConfig


class UnknownModelError(KeyError):
    """Raised when a model key is not in the registry."""

    def __init__(self, model_key: str):
        self.model_key = model_key
        super().__init__(f"Unknown model key: '{model_key}'")


def _entry(key: str, name: str, provider: str, gateway_id: str) -> tuple[str, ModelConfig]:
    return key, ModelConfig(key=key, name=name, provider=provider, gateway_id=gateway_id)


MODEL_REGISTRY: Mapping[str, ModelConfig] = MappingProxyType(
    dict(
        [
            _entry("gpt-4o", "GPT-4o", "OpenAI", "openai/gpt-4o"),
            _entry("gpt-4o-mini", "GPT-4o Mini", "OpenAI", "openai/gpt-4o-mini"),
            _entry(
                "claude-3-5-sonnet-20241022",
                "Claude 3.5 Sonnet",
                "Anthropic",
                "anthropic/claude-3-5-sonnet-20241022",
            ),
            _entry(
                "claude-3-haiku-20240307",
                "Claude 3 Haiku",
                "Anthropic",
                "anthropic/claude-3-haiku-20240307",
            ),
        ]
    )
)

DEFAULT_MODEL_KEY = "claude-3-5-sonnet-20241022"


class ModelRegistry:
    """Read-only view over a mapping of model keys to configurations."""

    def __init__(self, models: Mapping[str, ModelConfig] | None = None):
        self._models = MappingProxyType(dict(models if models is not None else MODEL_REGISTRY))

    def resolve(self, model_key: str) -> ModelConfig:
        """
        Look up a model by key.

        Raises:
            UnknownModelError: If the key is not registered.
        """
        try:
            return self._models[model_key]
        except KeyError:
            raise UnknownModelError(model_key) from None

    def __contains__(self, model_key: object) -> bool:
        return model_key in self._models

    def list_models(self) -> list[ModelConfig]:
        """All registered models, in registration order."""
        return list(self._models.values())
