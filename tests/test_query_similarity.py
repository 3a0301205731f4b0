import pytest

from app.services.query_similarity import trigram_similarity, trigrams


def test_trigrams_pad_each_word():
    assert trigrams("Pepe") == {"  p", " pe", "pep", "epe", "pe "}


def test_identical_queries_score_one():
    assert trigram_similarity("pepe coin", "pepe coin") == 1.0


def test_similarity_is_case_insensitive():
    assert trigram_similarity("PEPE Coin", "pepe coin") == 1.0


def test_plural_query_is_similar():
    # 9 shared trigrams out of 12 distinct ones.
    assert trigram_similarity("pepe coin", "pepe coins") == pytest.approx(0.75)


def test_unrelated_queries_score_zero():
    assert trigram_similarity("pepe coin", "wrapped ether") == 0.0


def test_empty_query_scores_zero():
    assert trigram_similarity("", "pepe") == 0.0
    assert trigram_similarity("!!", "pepe") == 0.0
