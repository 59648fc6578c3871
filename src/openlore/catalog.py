"""Curated model catalog offered by the composer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelOption:
    id: str
    label: str
    description: str | None = None
    provider: str | None = None


CURATED_MODELS: list[ModelOption] = [
    ModelOption("openai/gpt-4o", "GPT-4o", "Most capable OpenAI model", "OpenAI"),
    ModelOption(
        "thedrummer/cydonia-24b-v4.1", "Cydonia 24B v4.1", "Creative writing", "TheDrummer"
    ),
    ModelOption("openai/gpt-4o-mini", "GPT-4o Mini", "Fast and affordable", "OpenAI"),
    ModelOption(
        "openai/gpt-4-turbo", "GPT-4 Turbo", "Previous generation flagship", "OpenAI"
    ),
    ModelOption(
        "anthropic/claude-3.5-sonnet", "Claude 3.5 Sonnet", "Best for complex tasks", "Anthropic"
    ),
    ModelOption(
        "anthropic/claude-3-opus", "Claude 3 Opus", "Most capable Claude model", "Anthropic"
    ),
    ModelOption(
        "anthropic/claude-3-haiku", "Claude 3 Haiku", "Fast and efficient", "Anthropic"
    ),
    ModelOption("google/gemini-pro-1.5", "Gemini 1.5 Pro", "Large context window", "Google"),
    ModelOption(
        "google/gemini-flash-1.5", "Gemini 1.5 Flash", "Fast multimodal model", "Google"
    ),
    ModelOption(
        "meta-llama/llama-3.1-405b-instruct", "Llama 3.1 405B", "Largest open model", "Meta"
    ),
    ModelOption(
        "meta-llama/llama-3.1-70b-instruct", "Llama 3.1 70B", "Balanced performance", "Meta"
    ),
    ModelOption("mistralai/mistral-large", "Mistral Large", "Flagship Mistral model", "Mistral"),
    ModelOption(
        "mistralai/mistral-medium",
        "Mistral Medium",
        "Good balance of speed and quality",
        "Mistral",
    ),
]

DEFAULT_MODEL = "openai/gpt-4o-mini"


def get_model_by_id(model_id: str) -> ModelOption | None:
    return next((m for m in CURATED_MODELS if m.id == model_id), None)


def get_models_by_provider() -> dict[str, list[ModelOption]]:
    """Group the catalog by provider, keeping catalog order."""
    grouped: dict[str, list[ModelOption]] = {}
    for model in CURATED_MODELS:
        grouped.setdefault(model.provider or "Other", []).append(model)
    return grouped
