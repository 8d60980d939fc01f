import asyncio
import logging
import time
from typing import Optional, Type, TypeVar

from langchain_ollama import ChatOllama
from pydantic import BaseModel

from quiz_infra.llm.base import LLM

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURED_TIMEOUT = 30.0


class OllamaLLM(LLM):
    def __init__(self, model: str, temperature: float = 0.3, base_url: str = "http://localhost:11434"):
        self.model = model
        # Structured calls wrap this per schema.
        self._chat_llm = ChatOllama(model=model, temperature=temperature, base_url=base_url)

    async def generate_structured(self, prompt: str, schema: Type[T], timeout: Optional[float] = None) -> T:
        """
        Run one prompt through LangChain's native structured output and return
        a validated schema instance.

        Raises TimeoutError when the model does not answer within timeout
        seconds (DEFAULT_STRUCTURED_TIMEOUT when omitted).
        """
        timeout_seconds = float(timeout if timeout is not None else DEFAULT_STRUCTURED_TIMEOUT)
        structured = self._chat_llm.with_structured_output(schema)

        start_time = time.time()
        logger.debug(f"LLM call starting: model={self.model} ~{len(prompt) // 4} input tokens")
        try:
            result = await asyncio.wait_for(structured.ainvoke(prompt), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            elapsed = time.time() - start_time
            logger.error(f"LLM call timed out after {elapsed:.2f}s (timeout: {timeout_seconds}s)")
            raise TimeoutError(f"LLM call timed out after {timeout_seconds}s") from None
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(f"LLM call failed after {elapsed:.2f}s: {e}")
            raise

        elapsed = time.time() - start_time
        logger.info(f"LLM call completed in {elapsed:.2f}s")
        if elapsed > 10:
            logger.warning(f"LLM call took {elapsed:.2f}s - consider a smaller model than {self.model}")
        return result
