"""
Loads the canonical question banks from JSON files.

Each edition lives in `edition_<id>.json` as an ordered list of
{"prompt", "accepted_answer"} objects. List order defines the canonical
indices that progress and saved sessions refer to, so existing entries must
never be reordered.

The bundled banks under quiz_api/data are partial samples (18 questions for
edition A, 25 for B) rather than the full official lists. Point
QUESTION_BANK_DIR at complete files for real use; short banks are logged at
startup.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

from pydantic import BaseModel, Field, TypeAdapter

from quiz_engine.editions import EDITIONS, QuestionBank
from quiz_engine.models import Question

logger = logging.getLogger(__name__)


class QuestionItem(BaseModel):
    prompt: str = Field(min_length=1)
    accepted_answer: str = Field(min_length=1)


QUESTION_LIST = TypeAdapter(List[QuestionItem])


def bank_path(directory: Union[str, Path], edition_id: str) -> Path:
    return Path(directory) / f"edition_{edition_id}.json"


def load_edition(path: Path) -> List[Question]:
    items = QUESTION_LIST.validate_json(path.read_text(encoding="utf-8"))
    return [Question(prompt=i.prompt.strip(), accepted_answer=i.accepted_answer.strip()) for i in items]


def load_question_bank(directory: Union[str, Path]) -> QuestionBank:
    banks: Dict[str, List[Question]] = {}
    for edition_id, edition in EDITIONS.items():
        path = bank_path(directory, edition_id)
        if not path.exists():
            logger.warning("no question bank for edition=%s at %s", edition_id, path)
            continue
        questions = load_edition(path)
        if len(questions) < edition.total:
            logger.warning(
                "edition=%s bank has %d question(s), fewer than the %d a session asks",
                edition_id, len(questions), edition.total,
            )
        banks[edition_id] = questions
        logger.info("loaded %d question(s) for edition=%s", len(questions), edition_id)
    return QuestionBank(banks)
