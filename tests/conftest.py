import pytest


@pytest.fixture
def target() -> str:
    return "https://feeds.example/rss"
