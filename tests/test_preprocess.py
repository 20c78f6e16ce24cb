# tests/test_preprocess.py
"""
Tests for the one-off document clean-up in ``services.extractor.preprocess``.
"""

from bs4 import BeautifulSoup

from services.extractor import dom, preprocess


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


# ----------------------------------------------------------------------
# <br><br> runs
# ----------------------------------------------------------------------
def test_double_br_starts_a_paragraph():
    soup = _soup("<html><body><div>foo<br><br>bar<br>baz<br><br>qux</div></body></html>")
    preprocess.prepare(soup)

    div = soup.div
    assert [dom.inner_text(p) for p in div.find_all("p")] == ["barbaz", "qux"]
    # the lone <br> between "bar" and "baz" survives inside the first paragraph
    assert len(div.find_all("br")) == 1
    assert div.contents[0] == "foo"


def test_paragraph_created_inside_paragraph_turns_parent_into_div():
    soup = _soup("<html><body><p>intro<br><br>more text</p></body></html>")
    preprocess.prepare(soup)

    outer = soup.body.find(True)
    assert outer.name == "div"
    assert dom.inner_text(outer.p) == "more text"


def test_single_br_is_left_alone():
    soup = _soup("<html><body><div>one<br>two</div></body></html>")
    preprocess.prepare(soup)
    assert soup.find("p") is None
    assert len(soup.find_all("br")) == 1


# ----------------------------------------------------------------------
# <style> / <font>
# ----------------------------------------------------------------------
def test_prepare_removes_styles_and_renames_font():
    soup = _soup(
        "<html><head><style>p { color: red }</style></head>"
        '<body><font color="red">warning</font></body></html>'
    )
    preprocess.prepare(soup)

    assert soup.find("style") is None
    assert soup.find("font") is None
    span = soup.body.span
    assert span.get("color") == "red"
    assert span.get_text() == "warning"


# ----------------------------------------------------------------------
# <noscript> / <script>
# ----------------------------------------------------------------------
def test_noscript_image_replaces_placeholder():
    soup = _soup(
        "<html><body><p>"
        '<img src="placeholder.gif" class="lazy" alt="A cat">'
        '<noscript><img src="cat.jpg"></noscript>'
        "</p></body></html>"
    )
    preprocess.unwrap_noscript_images(soup)
    preprocess.remove_scripts(soup)

    images = soup.find_all("img")
    assert len(images) == 1
    assert images[0]["src"] == "cat.jpg"
    assert images[0]["alt"] == "A cat"
    assert images[0]["class"] == ["lazy"]
    assert soup.find("noscript") is None


def test_noscript_without_placeholder_is_kept_until_scripts_go():
    soup = _soup('<html><body><p>text</p><noscript><img src="pixel.gif"></noscript></body></html>')
    preprocess.unwrap_noscript_images(soup)
    assert soup.find("noscript") is not None


def test_remove_scripts():
    soup = _soup(
        "<html><head><script>var a = 1;</script></head>"
        "<body><p>text</p><script src='x.js'></script><noscript>enable js</noscript></body></html>"
    )
    preprocess.remove_scripts(soup)
    assert soup.find("script") is None
    assert soup.find("noscript") is None
    assert soup.p.get_text() == "text"
