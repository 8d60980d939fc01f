"""Unit tests for common route helpers (request parameter parsing)."""
import pytest
from fastapi import HTTPException

from quiz_api.utils.common import parse_edition, parse_study_mode, parse_style_mode
from quiz_engine.models import StudyMode, StyleMode


@pytest.mark.unit
class TestParseEdition:
    def test_case_insensitive(self):
        assert parse_edition("b").id == "B"

    def test_unknown_is_bad_request(self):
        with pytest.raises(HTTPException) as excinfo:
            parse_edition("2030")
        assert excinfo.value.status_code == 400


@pytest.mark.unit
class TestParseModes:
    def test_study_mode(self):
        assert parse_study_mode("FOCUSED") is StudyMode.FOCUSED

    def test_style_mode(self):
        assert parse_style_mode("comedy") is StyleMode.COMEDY

    @pytest.mark.parametrize("parser", [parse_study_mode, parse_style_mode])
    def test_unknown_is_bad_request(self, parser):
        with pytest.raises(HTTPException) as excinfo:
            parser("sideways")
        assert excinfo.value.status_code == 400
