from typing import List

from pydantic import BaseModel


class ProgressResponse(BaseModel):
    edition: str
    total_questions: int
    total_asked: int
    total_correct: int
    total_incorrect: int
    incorrect_indices: List[int]
    percentage_correct: float
    focused_available: bool


class ResetProgressResponse(BaseModel):
    message: str
    edition: str
