"""LiteLLM client wrapper: completions with usage, batched embeddings, API key validation.

All LLM + embedding calls route through this module. Each completion returns
its text together with the token usage reported for that call; aggregation is
left to the caller (see rag.usage). Retries are off by default: a failed call
fails the run.
"""

from __future__ import annotations

import os

import litellm

from searchlight.models import Completion, TokenUsage

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "google": "GOOGLE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return  # No key required (e.g. ollama) or unknown provider

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    temperature: float = 0.2,
    max_tokens: int | None = None,
    num_retries: int = 0,
) -> Completion:
    """Call litellm.completion() once and return its text and token usage.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens (provider default if None).
        num_retries: Retries on transient errors.

    Returns:
        Completion with the first choice's content and the reported usage.
        Usage fields the provider omits count as 0.
    """
    kwargs: dict = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "num_retries": num_retries,
    }
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    response = litellm.completion(**kwargs)
    text = response.choices[0].message.content or ""
    usage = TokenUsage.from_response(getattr(response, "usage", None))
    return Completion(text=text, usage=usage)


def embed(
    model: str,
    texts: list[str],
    batch_size: int = 64,
    num_retries: int = 0,
) -> list[list[float]]:
    """Embed *texts* in batches. Returns one vector per text, in input order."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    vectors: list[list[float]] = []
    for start in range(0, len(texts), batch_size):
        batch = texts[start : start + batch_size]
        response = litellm.embedding(model=model, input=batch, num_retries=num_retries)
        data = sorted(response.data, key=_item_index)
        if len(data) != len(batch):
            raise RuntimeError(
                f"Embedding provider returned {len(data)} vectors for {len(batch)} inputs."
            )
        vectors.extend(_item_embedding(item) for item in data)
    return vectors


def _item_index(item) -> int:
    if isinstance(item, dict):
        return int(item.get("index", 0))
    return int(getattr(item, "index", 0))


def _item_embedding(item) -> list[float]:
    if isinstance(item, dict):
        return list(item["embedding"])
    return list(item.embedding)
