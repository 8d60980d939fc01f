from quiz_infra.grading.oracle import GradingResponse, LLMGradingOracle, normalize_grade

__all__ = ["GradingResponse", "LLMGradingOracle", "normalize_grade"]
