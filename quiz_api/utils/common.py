"""
Common utility functions used across multiple routes.
"""

from fastapi import HTTPException

from quiz_engine.editions import Edition, get_edition
from quiz_engine.errors import UnknownEdition
from quiz_engine.models import StudyMode, StyleMode


def parse_edition(edition: str) -> Edition:
    try:
        return get_edition(edition)
    except UnknownEdition as e:
        raise HTTPException(status_code=400, detail=str(e))

def parse_study_mode(value: str) -> StudyMode:
    try:
        return StudyMode((value or "").lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown study mode: {value!r}")

def parse_style_mode(value: str) -> StyleMode:
    try:
        return StyleMode((value or "").lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown mode: {value!r}")
