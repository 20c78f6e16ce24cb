# tests/conftest.py
import pytest

from core.config import reset_settings_cache

# Four ~190 character paragraphs; together they clear the default 500 char threshold.
PARAGRAPHS = [
    "Urban gardeners across the city have started turning empty lots into shared plots, "
    "and the results are changing how neighbours meet, trade seedlings and think about "
    "the food they eat every week.",
    "Most of the plots began as weekend experiments, with a few raised beds built from "
    "salvaged timber, but several have grown into cooperatives that sell produce to local "
    "cafes and corner shops.",
    "City planners say the gardens also soak up storm water, cool the surrounding streets "
    "in summer and give older residents a reason to spend time outdoors with people they "
    "would not otherwise meet.",
    "Funding remains the biggest obstacle, since most groups rely on small grants and "
    "donated tools, yet organisers insist that the real measure of success is how many "
    "new gardeners join each spring.",
]


@pytest.fixture
def paragraphs():
    return list(PARAGRAPHS)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Every test starts (and ends) without cached settings."""
    reset_settings_cache()
    yield
    reset_settings_cache()
