"""Unit tests for the InferenceClient wrapper."""

from unittest.mock import AsyncMock, patch

import ollama
import pytest

from agent_kernel.exceptions import InferenceError, InferenceOverloadedError
from agent_kernel.inference import InferenceClient, is_overload_error


def stream(*chunks):
    """Build an async iterator of Ollama chat chunks."""

    async def generator():
        for chunk in chunks:
            yield chunk

    return generator()


def text_chunks(text):
    return stream(
        {"message": {"role": "assistant", "content": text}, "done": False},
        {"message": {"role": "assistant", "content": ""}, "done": True},
    )


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("agent_kernel.inference.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def client(mock_ollama_async_client):
    return InferenceClient(
        host="http://localhost:11434",
        primary_model="big",
        fallback_model="small",
        embedding_model="embed",
        safety_model="guard",
    )


@pytest.mark.asyncio
async def test_check_connection_failure(client, mock_ollama_async_client):
    mock_ollama_async_client.list.side_effect = Exception("Connection refused")

    assert await client.check_connection() is False


def test_api_key_sets_authorization_header():
    with patch("agent_kernel.inference.client.ollama.AsyncClient") as mock_class:
        InferenceClient(
            host="https://ollama.com",
            primary_model="big",
            fallback_model="small",
            embedding_model="embed",
            api_key="secret",
        )

    mock_class.assert_called_once_with(
        host="https://ollama.com", headers={"Authorization": "Bearer secret"}
    )


@pytest.mark.parametrize(
    "error,expected",
    [
        (ollama.ResponseError("busy", 503), True),
        (ollama.ResponseError("slow down", 429), True),
        (ollama.ResponseError("model is overloaded"), True),
        (ollama.ResponseError("model not found", 404), False),
        (ValueError("bad input"), False),
    ],
)
def test_is_overload_error(error, expected):
    assert is_overload_error(error) is expected


@pytest.mark.asyncio
async def test_generate_returns_text_and_tool_calls(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = stream(
        {"message": {"content": "Let me check."}},
        {
            "message": {
                "content": "",
                "tool_calls": [
                    {"function": {"name": "search_memory", "arguments": {"query": "x"}}}
                ],
            },
            "done": True,
        },
    )

    result = await client.generate("CODING", [{"role": "user", "content": "hi"}], [])

    assert result.text == "Let me check."
    assert [c.name for c in result.tool_calls] == ["search_memory"]
    assert result.tool_calls[0].arguments == {"query": "x"}
    assert result.model == "big"


@pytest.mark.asyncio
async def test_overload_falls_back_exactly_once(client, mock_ollama_async_client):
    """Test that an overloaded primary triggers exactly one fallback call."""
    mock_ollama_async_client.chat.side_effect = [
        ollama.ResponseError("service unavailable", 503),
        text_chunks("from fallback"),
    ]

    result = await client.generate("PLANNER", [{"role": "user", "content": "x"}], [])

    assert result.text == "from fallback"
    assert result.model == "small"
    assert mock_ollama_async_client.chat.await_count == 2
    models = [call.kwargs["model"] for call in mock_ollama_async_client.chat.await_args_list]
    assert models == ["big", "small"]


@pytest.mark.asyncio
async def test_non_overload_error_is_not_retried(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.side_effect = ollama.ResponseError("not found", 404)

    with pytest.raises(InferenceError) as exc_info:
        await client.generate("PLANNER", [], [])

    assert not isinstance(exc_info.value, InferenceOverloadedError)
    assert exc_info.value.details == {"model": "big", "status_code": 404}
    assert isinstance(exc_info.value.__cause__, ollama.ResponseError)
    assert mock_ollama_async_client.chat.await_count == 1


@pytest.mark.asyncio
async def test_plan_with_missing_model_raises_inference_error(
    client, mock_ollama_async_client
):
    mock_ollama_async_client.chat.side_effect = ollama.ResponseError(
        "model 'big' not found", 404
    )

    with pytest.raises(InferenceError) as exc_info:
        await client.generate_plan("Track competitor prices")

    assert exc_info.value.details["status_code"] == 404


@pytest.mark.asyncio
async def test_unreachable_server_raises_inference_error(
    client, mock_ollama_async_client
):
    mock_ollama_async_client.chat.side_effect = ConnectionError(
        "Failed to connect to Ollama"
    )

    with pytest.raises(InferenceError) as exc_info:
        await client.generate_plan("x")

    assert "unreachable" in exc_info.value.message
    assert exc_info.value.details == {"model": "big", "status_code": None}
    assert mock_ollama_async_client.chat.await_count == 1


@pytest.mark.asyncio
async def test_fallback_failure_propagates(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.side_effect = [
        ollama.ResponseError("busy", 503),
        ollama.ResponseError("still busy", 503),
    ]

    with pytest.raises(InferenceOverloadedError):
        await client.generate("PLANNER", [], [])

    assert mock_ollama_async_client.chat.await_count == 2


@pytest.mark.asyncio
async def test_grounding_resolves_web_search_as_citations(
    client, mock_ollama_async_client
):
    """Test that web_search calls are resolved internally and become citations."""
    mock_ollama_async_client.chat.side_effect = [
        stream(
            {
                "message": {
                    "content": "",
                    "tool_calls": [
                        {"function": {"name": "web_search", "arguments": {"query": "q"}}}
                    ],
                },
                "done": True,
            }
        ),
        text_chunks("Grounded answer"),
    ]
    mock_ollama_async_client.web_search.return_value = {
        "results": [
            {"title": "Source A", "url": "https://a.example", "content": "alpha"},
        ]
    }

    result = await client.generate("AUTOMATION", [], [], enable_grounding=True)

    assert result.text == "Grounded answer"
    assert result.tool_calls == []
    assert [(c.title, c.uri) for c in result.citations] == [
        ("Source A", "https://a.example")
    ]
    mock_ollama_async_client.web_search.assert_awaited_once_with(
        query="q", max_results=3
    )


@pytest.mark.asyncio
async def test_embed_returns_first_vector(client, mock_ollama_async_client):
    mock_ollama_async_client.embed.return_value = {"embeddings": [[0.1, 0.2]]}

    assert await client.embed("hello") == [0.1, 0.2]
    mock_ollama_async_client.embed.assert_awaited_once_with(model="embed", input="hello")


@pytest.mark.asyncio
async def test_embed_without_vector_raises(client, mock_ollama_async_client):
    mock_ollama_async_client.embed.return_value = {"embeddings": []}

    with pytest.raises(InferenceError):
        await client.embed("hello")


@pytest.mark.asyncio
async def test_embed_error_raises_inference_error(client, mock_ollama_async_client):
    mock_ollama_async_client.embed.side_effect = ollama.ResponseError("not found", 404)

    with pytest.raises(InferenceError) as exc_info:
        await client.embed("hello")

    assert exc_info.value.details == {"model": "embed", "status_code": 404}


@pytest.mark.asyncio
async def test_safety_scan_parses_verdict(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = text_chunks(
        '{"safe": false, "reason": "destructive"}'
    )

    verdict = await client.safety_scan("rm -rf /")

    assert verdict.safe is False
    assert verdict.reason == "destructive"
    assert mock_ollama_async_client.chat.await_args.kwargs["model"] == "guard"


@pytest.mark.asyncio
async def test_safety_scan_malformed_verdict_raises(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = text_chunks("not json")

    with pytest.raises(InferenceError):
        await client.safety_scan("anything")


@pytest.mark.asyncio
async def test_generate_plan(client, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = text_chunks(
        '{"tasks": [{"title": "Fetch", "description": "Get prices", '
        '"assigned_role": "AUTOMATION", "priority": "HIGH"}]}'
    )

    plan = await client.generate_plan("Track prices")

    assert len(plan) == 1
    assert plan[0].assigned_role.value == "AUTOMATION"
    assert plan[0].priority == "HIGH"
