"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from searchlight.models import TokenUsage
from searchlight.rag.llm_client import complete, embed, provider_of, validate_api_key


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/gpt-4-1106-preview")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    validate_api_key("openai/gpt-4-1106-preview")  # should not raise


def test_validate_api_key_anthropic(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
        validate_api_key("anthropic/claude-3-5-sonnet-20241022")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/llama2")


def test_bare_model_name_is_openai():
    assert provider_of("gpt-4o") == "openai"
    assert provider_of("Anthropic/claude") == "anthropic"


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def _completion_response(content, usage=None):
    response = MagicMock()
    response.choices[0].message.content = content
    response.usage = usage
    return response


def test_complete_returns_text_and_usage():
    usage = SimpleNamespace(prompt_tokens=50, completion_tokens=20, total_tokens=70)
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response("Shibuya and Tokyo Tower.", usage),
    ):
        result = complete("openai/gpt-4o", [{"role": "user", "content": "Hi"}])

    assert result.text == "Shibuya and Tokyo Tower."
    assert result.usage == TokenUsage(50, 20, 70)


def test_complete_missing_usage_counts_as_zero():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response("ok", None),
    ):
        result = complete("openai/gpt-4o", [])
    assert result.usage == TokenUsage()


def test_complete_partial_usage_dict():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response("ok", {"prompt_tokens": 12}),
    ):
        result = complete("openai/gpt-4o", [])
    assert result.usage == TokenUsage(prompt_tokens=12)


def test_complete_returns_empty_string_on_none_content():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response(None),
    ):
        result = complete("openai/gpt-4o", [{"role": "user", "content": "Hi"}])
    assert result.text == ""


def test_complete_passes_params_to_litellm():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response("ok"),
    ) as mock_c:
        complete(
            "openai/gpt-4o-mini",
            [{"role": "user", "content": "test"}],
            max_tokens=512,
            temperature=0.5,
            num_retries=2,
        )

    call_kwargs = mock_c.call_args.kwargs
    assert call_kwargs["model"] == "openai/gpt-4o-mini"
    assert call_kwargs["max_tokens"] == 512
    assert call_kwargs["temperature"] == 0.5
    assert call_kwargs["num_retries"] == 2


def test_complete_omits_max_tokens_when_none():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        return_value=_completion_response("ok"),
    ) as mock_c:
        complete("openai/gpt-4o", [])
    assert "max_tokens" not in mock_c.call_args.kwargs
    assert mock_c.call_args.kwargs["temperature"] == 0.2


def test_complete_provider_error_propagates():
    with patch(
        "searchlight.rag.llm_client.litellm.completion",
        side_effect=RuntimeError("rate limited"),
    ):
        with pytest.raises(RuntimeError, match="rate limited"):
            complete("openai/gpt-4o", [])


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def _embedding_response(vectors, reverse=False):
    items = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    if reverse:
        items.reverse()
    response = MagicMock()
    response.data = items
    return response


def test_embed_returns_one_vector_per_text():
    with patch(
        "searchlight.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[0.1, 0.2], [0.3, 0.4]]),
    ) as mock_e:
        result = embed("openai/text-embedding-ada-002", ["a", "b"])

    assert result == [[0.1, 0.2], [0.3, 0.4]]
    assert mock_e.call_args.kwargs["input"] == ["a", "b"]
    assert mock_e.call_args.kwargs["model"] == "openai/text-embedding-ada-002"


def test_embed_restores_input_order():
    with patch(
        "searchlight.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[1.0], [2.0], [3.0]], reverse=True),
    ):
        result = embed("openai/text-embedding-ada-002", ["a", "b", "c"])
    assert result == [[1.0], [2.0], [3.0]]


def test_embed_accepts_object_items():
    response = MagicMock()
    response.data = [SimpleNamespace(index=0, embedding=[0.5, 0.5])]
    with patch("searchlight.rag.llm_client.litellm.embedding", return_value=response):
        assert embed("m", ["x"]) == [[0.5, 0.5]]


def test_embed_batches_requests():
    def fake_embedding(model, input, num_retries):
        return _embedding_response([[float(len(t))] for t in input])

    with patch(
        "searchlight.rag.llm_client.litellm.embedding", side_effect=fake_embedding
    ) as mock_e:
        result = embed("m", ["a", "bb", "ccc", "dddd", "eeeee"], batch_size=2)

    assert mock_e.call_count == 3
    assert [c.kwargs["input"] for c in mock_e.call_args_list] == [
        ["a", "bb"],
        ["ccc", "dddd"],
        ["eeeee"],
    ]
    assert result == [[1.0], [2.0], [3.0], [4.0], [5.0]]


def test_embed_empty_input_makes_no_call():
    with patch("searchlight.rag.llm_client.litellm.embedding") as mock_e:
        assert embed("m", []) == []
    mock_e.assert_not_called()


def test_embed_count_mismatch_raises():
    with patch(
        "searchlight.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[0.1]]),
    ):
        with pytest.raises(RuntimeError, match="1 vectors for 2 inputs"):
            embed("m", ["a", "b"])


def test_embed_invalid_batch_size():
    with pytest.raises(ValueError):
        embed("m", ["a"], batch_size=0)
