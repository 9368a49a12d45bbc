from __future__ import annotations


class ScrapeError(Exception):
    """Base class for failures that end up in front of the user."""


class FetchExhausted(ScrapeError):
    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Failed to fetch {url} after {attempts} attempts")
        self.url = url
        self.attempts = attempts


class ParseFailure(ScrapeError):
    """A page could not be queried with the active selector profile."""


class NoProductsFound(ScrapeError):
    def __init__(self, platform: str) -> None:
        super().__init__(
            f"No product links found. Is this a standard {platform} site? "
            "Check the platform or the product link selector."
        )
        self.platform = platform


class UnknownPlatform(ScrapeError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown platform {self.key!r}"
