"""Tests for lexical scoring, excerpts and highlights (no network)."""

import pytest

from cheersearch.services.search.ranking import (
    determine_result_type,
    fuse_scores,
    generate_excerpt,
    generate_highlights,
    keyword_score,
    result_url,
    strip_markup,
)


def test_keyword_score_whole_query_match():
    assert keyword_score("A guide to Red Wine tasting", "red wine") == 1.0


def test_keyword_score_word_fraction():
    content = "Red grapes from Bordeaux"
    assert keyword_score(content, "red wine") == 0.5
    assert keyword_score(content, "white wine") == 0.0
    assert keyword_score(content, "bordeaux red") == 1.0


def test_keyword_score_single_char_words_use_whole_string_only():
    assert keyword_score("a b c", "a b") == 1.0
    assert keyword_score("a c b", "a b") == 0.0


def test_keyword_score_empty_query():
    assert keyword_score("anything", "   ") == 0.0


def test_fuse_scores_weights_and_bounds():
    assert fuse_scores(0.95, 1.0) == pytest.approx(0.965)
    assert fuse_scores(0.8, 0.0) == pytest.approx(0.56)
    assert fuse_scores(1.2, 1.0) == 1.0
    assert fuse_scores(-0.5, 0.0) == 0.0


def test_strip_markup():
    assert strip_markup("<p>Hello <b>wine</b></p>") == "Hello wine"
    assert strip_markup("plain text") == "plain text"
    assert strip_markup("") == ""


def test_excerpt_short_content_unchanged():
    assert generate_excerpt("Short text.", 150) == "Short text."
    assert generate_excerpt("", 150) == ""


def test_excerpt_strips_markup_first():
    assert generate_excerpt("<h1>Title</h1><p>Body.</p>", 150) == "TitleBody."


def test_excerpt_keeps_whole_sentences():
    content = "First sentence here. Second sentence here. Third sentence is the longest one."
    excerpt = generate_excerpt(content, 50)
    assert excerpt == "First sentence here. Second sentence here...."
    assert len(excerpt) <= 50


def test_excerpt_cjk_sentences():
    content = "葡萄酒是發酵的葡萄汁。" * 20
    excerpt = generate_excerpt(content, 30)
    assert excerpt.endswith("。...")
    assert len(excerpt) <= 33


def test_excerpt_long_first_sentence_is_cut():
    content = "word " * 100
    excerpt = generate_excerpt(content, 40)
    assert excerpt.endswith("...")
    assert len(excerpt) <= 43


@pytest.mark.parametrize("max_length", [10, 30, 80, 150])
def test_excerpt_never_exceeds_budget(max_length):
    content = (
        "Sake is brewed from polished rice. It is served warm or chilled! "
        "Is it wine? Not really. 清酒是米釀造的酒。溫飲或冷飲皆可！"
    ) * 5
    assert len(generate_excerpt(content, max_length)) <= max_length + 3


def test_excerpt_decimal_point_is_not_a_boundary():
    content = "Alcohol is 13.5 percent in this bottle. " + "More text follows here. " * 10
    excerpt = generate_excerpt(content, 60)
    assert excerpt == "Alcohol is 13.5 percent in this bottle...."


def test_highlights_collect_matches():
    content = "Red wine, RED grapes and red soil. Wine is red."
    highlights = generate_highlights(content, "red wine")
    assert highlights == ["Red", "RED", "red", "wine", "Wine"]


def test_highlights_capped_and_deduplicated():
    content = "aa AA Aa aA bb BB Bb bB cc"
    highlights = generate_highlights(content, "aa bb")
    assert len(highlights) == 5
    assert len(set(highlights)) == 5


def test_highlights_skip_single_chars_and_escape_regex():
    assert generate_highlights("a b c", "a b") == []
    assert generate_highlights("Is it 1+1?", "1+1") == ["1+1"]


def test_determine_result_type():
    assert determine_result_type({"course_id": "c1"}) == "course"
    assert determine_result_type({"wine_id": "w1"}) == "wine"
    assert determine_result_type({"type": "wine"}) == "wine"
    assert determine_result_type({"category": "faq"}) == "faq"
    assert determine_result_type({"type": "game"}) == "game"
    assert determine_result_type({}) == "article"


def test_result_url():
    assert result_url({"course_id": "wine-101"}) == "/learn/wine-101"
    assert result_url({"wine_id": "w9"}) == "/wines/w9"
    assert result_url({"article_id": "a3"}) == "/articles/a3"
    assert result_url({}) is None
