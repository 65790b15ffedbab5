"""Unit tests for the Ollama-backed ChatModel."""

import asyncio
from unittest.mock import MagicMock

import pytest

from toolhost_server.errors import ModelCallError
from toolhost_server.ollama import OllamaChatModel, convert_turns_to_ollama_format
from toolhost_server.orchestration import ModelRequest, TextBlock, ToolUseBlock
from toolhost_server.sessions import (
    AssistantText,
    ToolInvocation,
    ToolOutcome,
    ToolOutcomePayload,
    UserText,
)


def make_client(chunks=None, error=None, delay=0.0):
    """A stand-in OllamaClient whose chat_stream yields the given chunks."""
    client = MagicMock()
    client.calls = []

    async def chat_stream(**kwargs):
        client.calls.append(kwargs)
        if error is not None:
            raise error
        for chunk in chunks or []:
            if delay:
                await asyncio.sleep(delay)
            yield chunk

    client.chat_stream = chat_stream
    return client


def request(turns=None, tools=None):
    return ModelRequest(
        system="You have tools.",
        turns=turns or [UserText(text="hi")],
        tools=tools or [],
        max_tokens=128,
    )


def test_convert_turns_to_ollama_format():
    """Test the message shape of every turn type."""
    turns = [
        UserText(text="look up k"),
        AssistantText(text="Checking"),
        ToolInvocation(id="call_1", name="alpha_lookup", arguments={"key": "k"}),
        ToolOutcome(
            id="call_1",
            payload=ToolOutcomePayload.success([{"type": "text", "text": "alpha:k"}]),
        ),
    ]

    messages = convert_turns_to_ollama_format(turns)

    assert messages == [
        {"role": "user", "content": "look up k"},
        {"role": "assistant", "content": "Checking"},
        {
            "role": "assistant",
            "content": "",
            "tool_calls": [
                {"function": {"name": "alpha_lookup", "arguments": {"key": "k"}}}
            ],
        },
        {"role": "tool", "content": "alpha:k", "tool_name": "alpha_lookup"},
    ]


def test_convert_error_outcome_names_error_kind():
    """Test that a failed outcome tells the model what went wrong."""
    turns = [
        ToolInvocation(id="call_1", name="gamma_lookup"),
        ToolOutcome(
            id="call_1",
            payload=ToolOutcomePayload.failure("unknown_tool", "Unknown tool"),
        ),
    ]

    messages = convert_turns_to_ollama_format(turns)

    assert messages[1]["content"] == "Error (unknown_tool): Unknown tool"


@pytest.mark.asyncio
async def test_complete_collects_text_and_tool_calls():
    """Test that text comes first and tool calls keep their order."""
    client = make_client(
        [
            {"message": {"content": "Let me "}, "done": False},
            {
                "message": {
                    "content": "check.",
                    "tool_calls": [
                        {"function": {"name": "alpha_lookup", "arguments": {"key": "a"}}}
                    ],
                },
                "done": False,
            },
            {
                "message": {
                    "content": "",
                    "tool_calls": [
                        {"function": {"name": "beta_lookup", "arguments": '{"key": "b"}'}}
                    ],
                },
                "done": True,
                "model": "qwen3:8b",
                "eval_count": 12,
                "prompt_eval_count": 40,
            },
        ]
    )
    model = OllamaChatModel(client, model="qwen3:8b")

    response = await model.complete(request())

    assert response.blocks == [
        TextBlock(text="Let me check."),
        ToolUseBlock(name="alpha_lookup", arguments={"key": "a"}),
        ToolUseBlock(name="beta_lookup", arguments={"key": "b"}),
    ]
    assert response.eval_count == 12
    assert response.prompt_eval_count == 40


@pytest.mark.asyncio
async def test_complete_sends_system_tools_and_limit():
    """Test the request passed to the Ollama client."""
    client = make_client([{"message": {"content": "ok"}, "done": True}])
    tools = [{"type": "function", "function": {"name": "alpha_lookup"}}]
    model = OllamaChatModel(client, model="qwen3:8b")

    await model.complete(request(tools=tools))

    call = client.calls[0]
    assert call["model"] == "qwen3:8b"
    assert call["messages"][0] == {"role": "system", "content": "You have tools."}
    assert call["messages"][1] == {"role": "user", "content": "hi"}
    assert call["tools"] == tools
    assert call["options"] == {"num_predict": 128}


@pytest.mark.asyncio
async def test_complete_without_done_chunk_fails():
    """Test that a stream that stops early is a model error."""
    client = make_client([{"message": {"content": "partial"}, "done": False}])
    model = OllamaChatModel(client, model="qwen3:8b")

    with pytest.raises(ModelCallError, match="completion marker"):
        await model.complete(request())


@pytest.mark.asyncio
async def test_complete_wraps_client_errors():
    """Test that Ollama failures become ModelCallError."""
    client = make_client(error=ConnectionError("refused"))
    model = OllamaChatModel(client, model="qwen3:8b")

    with pytest.raises(ModelCallError, match="refused"):
        await model.complete(request())


@pytest.mark.asyncio
async def test_complete_times_out():
    """Test that a slow model is bounded by the timeout."""
    client = make_client(
        [{"message": {"content": "late"}, "done": True}], delay=1.0
    )
    model = OllamaChatModel(client, model="qwen3:8b", timeout=0.05)

    with pytest.raises(ModelCallError, match="did not answer"):
        await model.complete(request())


@pytest.mark.asyncio
async def test_malformed_tool_call_is_model_error():
    """Test that a tool call without a name is rejected."""
    client = make_client(
        [{"message": {"tool_calls": [{"function": {"arguments": {}}}]}, "done": True}]
    )
    model = OllamaChatModel(client, model="qwen3:8b")

    with pytest.raises(ModelCallError, match="without a name"):
        await model.complete(request())


@pytest.mark.asyncio
async def test_unparseable_arguments_are_model_error():
    """Test that tool arguments that are not JSON are rejected."""
    client = make_client(
        [
            {
                "message": {
                    "tool_calls": [
                        {"function": {"name": "alpha_lookup", "arguments": "{oops"}}
                    ]
                },
                "done": True,
            }
        ]
    )
    model = OllamaChatModel(client, model="qwen3:8b")

    with pytest.raises(ModelCallError, match="invalid arguments"):
        await model.complete(request())
