"""
Unit Tests for LIKE pattern escaping
"""
import pytest

from app.utils.text_search import like_pattern


@pytest.mark.parametrize("term,pattern", [
    ("  Fintech ", "%fintech%"),
    ("50%", "%50\\%%"),
    ("full_time", "%full\\_time%"),
    ("a\\b", "%a\\\\b%"),
])
def test_like_pattern(term, pattern):
    assert like_pattern(term) == pattern
