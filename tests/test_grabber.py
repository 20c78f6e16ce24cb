# tests/test_grabber.py
"""
Tests for ``ArticleGrabber``: the node walk, candidate scoring, top-candidate
refinement and sibling collection.
"""

import copy

from bs4 import BeautifulSoup

from models.extract_options import ExtractOptions
from services.extractor import dom
from services.extractor.grabber import ArticleGrabber
from services.extractor.scoring import CandidateList, HeuristicFlags, ScoreTable
from tests.conftest import PARAGRAPHS

NO_FLAGS = HeuristicFlags(False, False, False)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _grabber(soup: BeautifulSoup, options: ExtractOptions = None) -> ArticleGrabber:
    return ArticleGrabber(soup, options or ExtractOptions())


def _walk(html: str, flags: HeuristicFlags = None):
    flags = flags or HeuristicFlags()
    soup = _soup(html)
    elements, byline = _grabber(soup)._walk(soup.body, flags, ScoreTable(flags))
    return soup, elements, byline


def _candidates(scores: ScoreTable, *nodes) -> CandidateList:
    candidates = CandidateList(5)
    for node in nodes:
        candidates.offer(node, scores)
    return candidates


# ----------------------------------------------------------------------
# Walk: removals
# ----------------------------------------------------------------------
def test_unlikely_candidates_are_stripped_outside_tables_and_code():
    soup, _, _ = _walk(
        "<body>"
        '<div class="sidebar">Sidebar links</div>'
        '<div class="sidebar article">Article sidebar</div>'
        '<table><tr><td><div class="sidebar">Table cell sidebar</div></td></tr></table>'
        '<code><div class="sidebar">Code sample sidebar</div></code>'
        "</body>"
    )
    text = dom.inner_text(soup.body)
    assert "Sidebar links" not in text
    assert "Article sidebar" in text
    assert "Table cell sidebar" in text
    assert "Code sample sidebar" in text


def test_unlikely_candidates_stay_when_the_flag_is_off():
    soup, _, _ = _walk('<body><div class="sidebar">Sidebar links</div></body>', flags=NO_FLAGS)
    assert "Sidebar links" in dom.inner_text(soup.body)


def test_unlikely_roles_are_stripped():
    soup, _, _ = _walk(
        "<body>"
        '<div role="navigation">Site menu</div>'
        '<div role="complementary">Further reading</div>'
        '<div role="main">Main story</div>'
        "</body>"
    )
    text = dom.inner_text(soup.body)
    assert "Site menu" not in text
    assert "Further reading" not in text
    assert "Main story" in text


def test_modal_dialogs_go_even_without_unlikely_stripping():
    soup, _, _ = _walk(
        "<body>"
        '<div role="dialog" aria-modal="true">Subscribe now</div>'
        '<div role="dialog">Cookie notice</div>'
        "</body>",
        flags=NO_FLAGS,
    )
    text = dom.inner_text(soup.body)
    assert "Subscribe now" not in text
    assert "Cookie notice" in text


def test_byline_prefers_itemprop_name():
    soup, _, byline = _walk(
        '<body><div class="byline">By <span itemprop="name">Ann Writer</span> in Gardens</div>'
        f"<p>{PARAGRAPHS[0]}</p></body>"
    )
    assert byline == "Ann Writer"
    assert "in Gardens" not in dom.inner_text(soup.body)


# ----------------------------------------------------------------------
# Walk: div rewriting
# ----------------------------------------------------------------------
def test_phrasing_runs_are_wrapped_in_paragraphs():
    soup, elements, _ = _walk('<body><div id="d">Intro text <b>bold</b><p>Para</p>tail text</div></body>')

    div = soup.find(id="d")
    paragraphs = dom.element_children(div)
    assert [p.name for p in paragraphs] == ["p", "p", "p"]
    assert [dom.inner_text(p) for p in paragraphs] == ["Intro text bold", "Para", "tail text"]
    assert all(any(p is e for e in elements) for p in paragraphs)


def test_div_with_single_paragraph_is_unwrapped():
    soup, elements, _ = _walk(
        '<body><div id="d"><p>Only paragraph with <a href="#x">a</a> link.</p></div></body>'
    )
    assert soup.find("div") is None
    paragraph = dom.first_element_child(soup.body)
    assert paragraph.name == "p"
    assert any(paragraph is e for e in elements)


def test_link_heavy_single_paragraph_keeps_its_div():
    soup, _, _ = _walk('<body><div id="d"><p><a href="/x">All of this is link text</a></p></div></body>')
    assert soup.find(id="d").name == "div"


def test_div_without_block_children_becomes_paragraph():
    soup, elements, _ = _walk('<body><div id="d"><h4>Harvest notes</h4><h5>Spring edition</h5></div></body>')
    node = soup.find(id="d")
    assert node.name == "p"
    assert any(node is e for e in elements)


# ----------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------
def test_top_candidate_count_limits_the_shortlist():
    html = "<body>" + "".join(f"<div><p>{p}</p></div>" for p in PARAGRAPHS) + "</body>"

    soup = _soup(html)
    candidates = _grabber(soup, ExtractOptions(top_candidate_count=2))._score_elements(
        soup.find_all("p"), ScoreTable(HeuristicFlags())
    )
    assert len(candidates) == 2

    soup = _soup(html)
    scores = ScoreTable(HeuristicFlags())
    candidates = _grabber(soup)._score_elements(soup.find_all("p"), scores)
    # four divs plus <body>
    assert len(candidates) == 5
    assert scores.score(candidates[0]) >= scores.score(candidates[1])


def test_detached_body_root_is_scored():
    soup = _soup(f"<html><body><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></body></html>")
    root = copy.copy(soup.body)

    scores = ScoreTable(HeuristicFlags())
    candidates = _grabber(soup)._score_elements(root.find_all("p"), scores)
    assert len(candidates) == 1
    assert candidates[0] is root


def test_detached_html_root_is_not_scored():
    soup = _soup(f"<html><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></html>")
    root = copy.copy(soup.html)

    candidates = _grabber(soup)._score_elements(root.find_all("p"), ScoreTable(HeuristicFlags()))
    assert len(candidates) == 0


def test_head_is_left_out_when_walking_from_html():
    soup = _soup(
        "<html><head><title>Community plots</title></head>"
        f"<p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></html>"
    )
    attempt = _grabber(soup).grab()

    assert attempt.synthesized
    assert "Community plots" not in dom.inner_text(attempt.container)
    # only the working copy loses its <head>
    assert soup.head is not None


# ----------------------------------------------------------------------
# Top candidate
# ----------------------------------------------------------------------
def test_common_ancestor_of_close_candidates_is_promoted():
    soup = _soup(
        '<body><div id="wrap">'
        + "".join(f'<div id="{name}"><p>x</p></div>' for name in "abcd")
        + "</div></body>"
    )
    scores = ScoreTable(HeuristicFlags())
    for name, score in zip("abcd", (100, 90, 80, 80)):
        scores.set(soup.find(id=name), score)
    candidates = _candidates(scores, *(soup.find(id=name) for name in "abcd"))

    top, synthesized = _grabber(soup)._select_top_candidate(soup.body, candidates, scores)
    assert top is soup.find(id="wrap")
    assert not synthesized


def test_parent_scoring_better_than_the_last_step_is_adopted():
    soup = _soup(
        '<body><div id="outer"><div id="mid"><div id="inner"><p>a</p></div><p>b</p></div><p>c</p></div></body>'
    )
    scores = ScoreTable(HeuristicFlags())
    for name, score in (("inner", 10), ("mid", 8), ("outer", 9)):
        scores.set(soup.find(id=name), score)
    candidates = _candidates(scores, *(soup.find(id=name) for name in ("inner", "mid", "outer")))

    top, _ = _grabber(soup)._select_top_candidate(soup.body, candidates, scores)
    assert top is soup.find(id="outer")


def test_parent_climb_stops_below_a_third_of_the_score():
    soup = _soup(
        '<body><div id="outer"><div id="mid"><div id="inner"><p>a</p></div><p>b</p></div><p>c</p></div></body>'
    )
    scores = ScoreTable(HeuristicFlags())
    for name, score in (("inner", 10), ("mid", 2), ("outer", 9)):
        scores.set(soup.find(id=name), score)
    candidates = _candidates(scores, *(soup.find(id=name) for name in ("inner", "mid", "outer")))

    top, _ = _grabber(soup)._select_top_candidate(soup.body, candidates, scores)
    assert top is soup.find(id="inner")


def test_only_child_climbs_to_its_parent():
    soup = _soup('<body><div id="outer"><div id="only"><p>a</p><p>b</p></div></div><p>tail</p></body>')
    scores = ScoreTable(HeuristicFlags())
    scores.set(soup.find(id="only"), 10)

    top, _ = _grabber(soup)._select_top_candidate(soup.body, _candidates(scores, soup.find(id="only")), scores)
    assert top is soup.find(id="outer")
    assert top in scores


def test_winning_body_is_replaced_by_a_wrapper():
    soup = _soup("<body><h3>Heading</h3><p>one</p><p>two</p></body>")
    body = soup.body
    scores = ScoreTable(HeuristicFlags())
    scores.set(body, 50)

    top, synthesized = _grabber(soup)._select_top_candidate(body, _candidates(scores, body), scores)
    assert synthesized
    assert top.parent is body
    assert dom.element_children(body) == [top]
    assert [c.name for c in dom.element_children(top)] == ["h3", "p", "p"]


# ----------------------------------------------------------------------
# Siblings
# ----------------------------------------------------------------------
def test_sibling_with_matching_class_gets_a_bonus():
    soup = _soup(
        '<body><div id="top" class="story">Lead</div>'
        '<div id="same" class="story">More</div>'
        '<div id="other">Other</div></body>'
    )
    top = soup.find(id="top")
    scores = ScoreTable(HeuristicFlags())
    scores.set(top, 100)
    scores.set(soup.find(id="same"), 10)
    scores.set(soup.find(id="other"), 10)

    container = _grabber(soup)._collect_siblings(top, scores)
    assert [c["id"] for c in dom.element_children(container)] == ["top", "same"]


def test_paragraph_siblings_by_length_links_and_punctuation():
    soup = _soup(
        '<body><div id="top">Lead</div>'
        f'<p id="long">{PARAGRAPHS[0]}</p>'
        '<p id="short">Short and final.</p>'
        '<p id="fragment">Short fragment</p>'
        f'<p id="linky"><a href="/more">{PARAGRAPHS[1]}</a></p>'
        "</body>"
    )
    top = soup.find(id="top")
    scores = ScoreTable(HeuristicFlags())
    scores.set(top, 100)

    container = _grabber(soup)._collect_siblings(top, scores)
    children = dom.element_children(container)
    assert [c["id"] for c in children] == ["top", "long", "short"]
    assert [c.name for c in children] == ["div", "p", "p"]


def test_appended_siblings_are_retagged_to_div_unless_exempt():
    soup = _soup(
        '<body><div id="top" class="story">Lead</div>'
        '<h2 id="heading">Heading</h2>'
        '<section id="sec">Section</section>'
        '<ul id="list"><li>Item</li></ul>'
        "</body>"
    )
    top = soup.find(id="top")
    scores = ScoreTable(HeuristicFlags())
    scores.set(top, 100)
    scores.set(soup.find(id="heading"), 30)
    scores.set(soup.find(id="sec"), 30)

    container = _grabber(soup)._collect_siblings(top, scores)
    children = dom.element_children(container)
    assert [(c.name, c["id"]) for c in children] == [("div", "top"), ("div", "heading"), ("section", "sec")]
    assert scores.get(children[1]) == 30
