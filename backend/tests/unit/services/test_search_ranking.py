"""
Unit Tests for search scoring, type parsing and ranking
"""
from datetime import datetime

import pytest

from app.core.exceptions import ValidationError
from app.services.search_service import (
    score_match,
    parse_types,
    SEARCH_TYPES,
    SCORE_EXACT,
    SCORE_PREFIX,
    SCORE_TITLE,
    SCORE_BODY,
    _post_title,
    _rank,
)


class TestScoreMatch:

    def test_exact_title(self):
        assert score_match("Startup India Summit", "startup india summit") == SCORE_EXACT

    def test_title_prefix(self):
        assert score_match("startup", "Startup India Summit 2025") == SCORE_PREFIX

    def test_title_contains(self):
        assert score_match("india", "Startup India Summit 2025") == SCORE_TITLE

    def test_body_only(self):
        assert score_match("pragati", "Startup India Summit", ["Pragati Maidan, New Delhi"]) == SCORE_BODY

    def test_no_match(self):
        assert score_match("fintech", "Startup India Summit", ["Pragati Maidan", None]) == 0

    def test_blank_query(self):
        assert score_match("   ", "Anything") == 0

    def test_scores_are_ordered(self):
        assert SCORE_EXACT > SCORE_PREFIX > SCORE_TITLE > SCORE_BODY > 0


class TestParseTypes:

    def test_empty_means_all(self):
        assert parse_types(None) == list(SEARCH_TYPES)
        assert parse_types([]) == list(SEARCH_TYPES)

    def test_comma_separated_and_repeated(self):
        assert parse_types(["job,event", "Job", "pitch"]) == ["job", "event", "pitch"]

    def test_unknown_type(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_types(["job", "company"])
        assert exc_info.value.details["field"] == "types"


class TestRanking:

    def test_score_then_newest(self):
        hits = [
            {"id": "old-prefix", "score": SCORE_PREFIX, "date": datetime(2024, 1, 1)},
            {"id": "body", "score": SCORE_BODY, "date": datetime(2025, 1, 1)},
            {"id": "new-prefix", "score": SCORE_PREFIX, "date": datetime(2025, 3, 1)},
            {"id": "exact", "score": SCORE_EXACT, "date": None},
        ]

        assert [h["id"] for h in _rank(hits)] == ["exact", "new-prefix", "old-prefix", "body"]

    def test_post_title_uses_first_line(self):
        assert _post_title("Closed our seed round!\nThanks everyone") == "Closed our seed round!"

    def test_post_title_truncated(self):
        title = _post_title("x" * 200)
        assert len(title) == 60
        assert title.endswith("...")
