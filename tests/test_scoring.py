# tests/test_scoring.py
"""
Tests for heuristic flags, class weights and the score side-table.
"""

import pytest
from bs4 import BeautifulSoup

from services.extractor.scoring import (
    ATTEMPT_FLAGS,
    CandidateList,
    HeuristicFlags,
    ScoreTable,
    get_class_weight,
)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_attempts_relax_one_heuristic_at_a_time():
    assert [
        (f.strip_unlikely, f.weight_classes, f.clean_conditionally) for f in ATTEMPT_FLAGS
    ] == [
        (True, True, True),
        (False, True, True),
        (False, False, True),
        (False, False, False),
    ]


def test_flags_are_immutable():
    flags = HeuristicFlags()
    with pytest.raises(AttributeError):
        flags.strip_unlikely = False


def test_describe():
    assert HeuristicFlags().describe() == "strip_unlikely+weight_classes+clean_conditionally"
    assert HeuristicFlags(False, False, False).describe() == "none"


# ----------------------------------------------------------------------
# Class weight
# ----------------------------------------------------------------------
def test_class_weight():
    soup = _soup(
        '<div id="a" class="post"></div>'
        '<div id="b" class="comment"></div>'
        '<div id="sidebar" class="entry"></div>'
    )
    flags = HeuristicFlags()
    assert get_class_weight(soup.find(id="a"), flags) == 25
    assert get_class_weight(soup.find(id="b"), flags) == -25
    # positive class, negative id
    assert get_class_weight(soup.find(id="sidebar"), flags) == 0


def test_class_weight_is_zero_without_weighting():
    soup = _soup('<div class="post"></div>')
    assert get_class_weight(soup.div, HeuristicFlags(False, False, True)) == 0


# ----------------------------------------------------------------------
# ScoreTable / CandidateList
# ----------------------------------------------------------------------
def test_initialize_only_once():
    soup = _soup('<div class="post"></div>')
    scores = ScoreTable(HeuristicFlags())
    scores.initialize(soup.div)
    assert scores.score(soup.div) == 30

    scores.set(soup.div, 100)
    scores.initialize(soup.div)
    assert scores.score(soup.div) == 100


def test_tag_base_scores():
    soup = _soup("<blockquote></blockquote><li></li><h2></h2><p></p>")
    scores = ScoreTable(HeuristicFlags())
    for name, expected in [("blockquote", 3), ("li", -3), ("h2", -5), ("p", 0)]:
        node = soup.find(name)
        scores.initialize(node)
        assert scores.score(node) == expected


def test_identical_markup_gets_separate_scores():
    soup = _soup("<p>same</p><p>same</p>")
    first, second = soup.find_all("p")
    scores = ScoreTable(HeuristicFlags())
    scores.initialize(first)
    assert first in scores
    assert second not in scores
    assert scores.get(second) is None


def test_candidate_list_keeps_best_n_in_order():
    soup = _soup("<div></div><div></div><div></div><div></div>")
    nodes = soup.find_all("div")
    scores = ScoreTable(HeuristicFlags())
    for node, value in zip(nodes, [10, 30, 20, 5]):
        scores.set(node, value)

    top = CandidateList(2)
    for node in nodes:
        top.offer(node, scores)

    assert len(top) == 2
    assert top[0] is nodes[1]
    assert top[1] is nodes[2]
