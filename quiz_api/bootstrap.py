from functools import lru_cache

from quiz_api.config import settings
from quiz_api.services.question_bank import load_question_bank
from quiz_engine.editions import QuestionBank
from quiz_engine.grading import GradingOracle
from quiz_infra.grading.oracle import LLMGradingOracle
from quiz_infra.llm.ollama import OllamaLLM


@lru_cache(maxsize=1)
def build_question_bank() -> QuestionBank:
    return load_question_bank(settings.question_bank_dir)


@lru_cache(maxsize=1)
def build_grading_oracle() -> GradingOracle:
    llm = OllamaLLM(model=settings.ollama_model, base_url=settings.ollama_base_url)
    return LLMGradingOracle(llm, timeout=settings.grading_timeout_seconds)


def get_question_bank() -> QuestionBank:
    return build_question_bank()


def get_grading_oracle() -> GradingOracle:
    return build_grading_oracle()
