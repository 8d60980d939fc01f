"""Unit tests for OllamaLLM (generate, generate_structured)."""
from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel
from unittest.mock import AsyncMock, MagicMock, patch

from quiz_infra.llm.ollama import DEFAULT_STRUCTURED_TIMEOUT, OllamaLLM


class GreetingSchema(BaseModel):
    """Test schema: one greeting and a score."""
    message: str
    score: int


def mocked_chat(runnable):
    mock_chat = MagicMock()
    mock_chat.with_structured_output.return_value = runnable
    return mock_chat


@pytest.mark.unit
class TestOllamaLLMGenerateStructured:
    @pytest.mark.asyncio
    async def test_returns_schema_instance(self):
        expected = GreetingSchema(message="ok", score=0)
        mock_runnable = MagicMock()
        mock_runnable.ainvoke = AsyncMock(return_value=expected)
        mock_chat = mocked_chat(mock_runnable)

        with patch("quiz_infra.llm.ollama.ChatOllama", return_value=mock_chat):
            llm = OllamaLLM(model="test-model")
            result = await llm.generate_structured("Say hello.", GreetingSchema, timeout=10.0)

        assert result == expected
        mock_chat.with_structured_output.assert_called_once_with(GreetingSchema)
        mock_runnable.ainvoke.assert_called_once_with("Say hello.")

    @pytest.mark.asyncio
    async def test_uses_default_timeout(self):
        expected = GreetingSchema(message="OK", score=0)
        mock_runnable = MagicMock()
        mock_runnable.ainvoke = AsyncMock(return_value=expected)

        with patch("quiz_infra.llm.ollama.ChatOllama", return_value=mocked_chat(mock_runnable)):
            llm = OllamaLLM(model="test")
            result = await llm.generate_structured("prompt", GreetingSchema)

        assert result == expected
        assert DEFAULT_STRUCTURED_TIMEOUT > 0

    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self):
        async def slow(_prompt):
            await asyncio.sleep(1)

        mock_runnable = MagicMock()
        mock_runnable.ainvoke = slow

        with patch("quiz_infra.llm.ollama.ChatOllama", return_value=mocked_chat(mock_runnable)):
            llm = OllamaLLM(model="test")
            with pytest.raises(TimeoutError):
                await llm.generate_structured("prompt", GreetingSchema, timeout=0.01)

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        mock_runnable = MagicMock()
        mock_runnable.ainvoke = AsyncMock(side_effect=ConnectionError("ollama down"))

        with patch("quiz_infra.llm.ollama.ChatOllama", return_value=mocked_chat(mock_runnable)):
            llm = OllamaLLM(model="test")
            with pytest.raises(ConnectionError):
                await llm.generate_structured("prompt", GreetingSchema)
