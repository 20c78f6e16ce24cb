# services/extractor/patterns.py
"""
Precompiled regular expressions and tag-category tables.

Everything here is built once at import time; the heuristics only ever do
set membership or ``pattern.search`` against these objects.
"""

import re

# ----------------------------------------------------------------------
# Class / id heuristics
# ----------------------------------------------------------------------
UNLIKELY_CANDIDATES = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|"
    r"footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|"
    r"skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|pager|popup|"
    r"yom-remote",
    re.IGNORECASE,
)
OK_MAYBE_ITS_A_CANDIDATE = re.compile(
    r"and|article|body|column|content|main|mathjax|shadow", re.IGNORECASE
)
POSITIVE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)
NEGATIVE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|gdpr|"
    r"masthead|media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|"
    r"sponsor|shopping|tags|widget",
    re.IGNORECASE,
)
BYLINE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)
SHARE_ELEMENTS = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

# ----------------------------------------------------------------------
# Media
# ----------------------------------------------------------------------
VIDEOS = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq|bilibili|"
    r"live\.bilibili)\.com|(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
    re.IGNORECASE,
)
B64_DATA_URL = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)
IMAGE_EXTENSIONS = re.compile(r"\.(jpg|jpeg|png|webp|gif|bmp|svg)", re.IGNORECASE)
SRCSET_CANDIDATE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d", re.IGNORECASE)
SRCSET_URL = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")
URL_LIKE = re.compile(r"^https?://\S+$", re.IGNORECASE)

# ----------------------------------------------------------------------
# Text
# ----------------------------------------------------------------------
NORMALIZE = re.compile(r"\s{2,}")
WHITESPACE_RUN = re.compile(r"\s+")
TOKENIZE = re.compile(r"\W+")
HASH_URL = re.compile(r"^#.+")
# Commas as used in Latin, Sindhi, Chinese and various other scripts.
COMMAS = re.compile("[,،﹐︐︑⹁⸴⸲，]")
AD_WORDS = re.compile(
    r"^(ad(vertising|vertisement)?|pub(licité)?|werb(ung)?|广告|Реклама|Anuncio)$",
    re.IGNORECASE,
)
LOADING_WORDS = re.compile(
    r"^((loading|正在加载|Загрузка|chargement|cargando)(…|\.\.\.)?)$", re.IGNORECASE
)
INLINE_DISPLAY_NONE = re.compile(r"(?:^|;)\s*display\s*:\s*none\b", re.IGNORECASE)
INLINE_VISIBILITY_HIDDEN = re.compile(r"(?:^|;)\s*visibility\s*:\s*hidden\b", re.IGNORECASE)

# ----------------------------------------------------------------------
# Title cleanup
# ----------------------------------------------------------------------
TITLE_SEPARATOR = re.compile(r"\s[|\-–—\\/»]\s")
TITLE_SEPARATOR_CHARS = re.compile(r"[|\-–—\\/»:]")
WORDS = re.compile(r"\s+")

# ----------------------------------------------------------------------
# Metadata
# ----------------------------------------------------------------------
# See: https://schema.org/Article
JSON_LD_ARTICLE_TYPES = re.compile(
    r"^Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|"
    r"AskPublicNewsArticle|BackgroundNewsArticle|OpinionNewsArticle|ReportageNewsArticle|"
    r"ReviewNewsArticle|Report|SatiricalArticle|ScholarlyArticle|MedicalScholarlyArticle|"
    r"SocialMediaPosting|BlogPosting|LiveBlogPosting|DiscussionForumPosting|TechArticle|"
    r"APIReference$"
)
SCHEMA_DOT_ORG = re.compile(r"^https?://schema\.org/?$")
CDATA_WRAPPER = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")
META_PROPERTY = re.compile(
    r"\s*(og|twitter|article|dc|dcterm)\s*:\s*"
    r"(author|creator|description|published_time|title|site_name)\s*",
    re.IGNORECASE,
)
META_NAME = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(?:article|webpage))\s*[-.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name)\s*$",
    re.IGNORECASE,
)

# Attribute names a DOM would accept from setAttribute
VALID_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_:][\w:.\-]*$")

# ----------------------------------------------------------------------
# Tag categories
# ----------------------------------------------------------------------
TAGS_TO_SCORE = frozenset(["section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"])

HEADING_TAGS = frozenset(["h1", "h2", "h3", "h4", "h5", "h6"])

# Containers dropped during the walk when they hold nothing
EMPTY_CANDIDATE_TAGS = frozenset(["div", "section", "header"]) | HEADING_TAGS

DIV_TO_P_ELEMS = frozenset(
    ["blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"]
)

ALTER_TO_DIV_EXCEPTIONS = frozenset(["div", "article", "section", "p", "ol", "ul"])

PRESENTATIONAL_ATTRIBUTES = (
    "align", "background", "bgcolor", "border", "cellpadding",
    "cellspacing", "frame", "hspace", "rules", "style", "valign", "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS = frozenset(["table", "th", "td", "hr", "pre"])

PHRASING_ELEMS = frozenset([
    "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
    "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
    "mark", "math", "meter", "noscript", "object", "output", "progress",
    "q", "ruby", "samp", "script", "select", "small", "span", "strong",
    "sub", "sup", "textarea", "time", "var", "wbr",
])

# Phrasing only when every child is phrasing
CONDITIONAL_PHRASING_ELEMS = frozenset(["a", "del", "ins"])

UNLIKELY_ROLES = frozenset([
    "menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog",
])

EMBED_TAGS = frozenset(["object", "embed", "iframe"])

MEDIA_URI_TAGS = ["img", "picture", "figure", "video", "audio", "source"]

DATA_TABLE_DESCENDANTS = ["col", "colgroup", "tfoot", "thead", "th"]

# Descendants whose text feeds the text-density ratio of conditional cleaning
TEXTISH_TAGS = ["span", "li", "td", "p", "div", "blockquote", "a"]

FORM_CONTROL_TAGS = ("input", "textarea", "select", "button")

# Tag-based starting score of a freshly initialised candidate
TAG_BASE_SCORES = {
    "div": 5,
    "pre": 3, "td": 3, "blockquote": 3,
    "address": -3, "ol": -3, "ul": -3, "dl": -3, "dd": -3, "dt": -3, "li": -3, "form": -3,
    "h1": -5, "h2": -5, "h3": -5, "h4": -5, "h5": -5, "h6": -5, "th": -5,
}

PAGE_ID = "readability-page-1"
