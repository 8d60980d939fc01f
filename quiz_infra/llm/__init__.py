from quiz_infra.llm.base import LLM
from quiz_infra.llm.ollama import OllamaLLM

__all__ = ["LLM", "OllamaLLM"]
