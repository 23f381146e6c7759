"""Keyword-based adult content labelling. Labels never change a safe/unsafe verdict."""

import re
from typing import FrozenSet, Iterable
from urllib.parse import urlsplit

TRUSTED_DOMAINS: FrozenSet[str] = frozenset(
    {
        "google.com",
        "youtube.com",
        "gmail.com",
    }
)

ADULT_KEYWORDS: FrozenSet[str] = frozenset(
    {
        "porn",
        "xxx",
        "adult",
        "sex",
        "fetish",
        "escort",
        "hentai",
        "erotic",
        "pornhub",
        "xnxx",
        "xvideos",
        "sexvideos",
        "nsfw",
        "camgirl",
        "cams",
    }
)

ADULT_LABEL = "adult"

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def _tokens(text: str) -> list:
    return [token for token in _TOKEN_SPLIT.split(text) if token]


def detect_adult_content(
    url: str,
    trusted_domains: Iterable[str] = TRUSTED_DOMAINS,
    keywords: FrozenSet[str] = ADULT_KEYWORDS,
) -> bool:
    """
    Conservative adult-content check on a URL.

    True for a ``.xxx`` TLD, or when a path or query token equals one of the
    keywords. Hosts on (or under) a trusted domain are never labelled, and
    unparseable URLs are not labelled either.
    """
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return False

    for trusted in trusted_domains:
        if host == trusted or host.endswith(f".{trusted}"):
            return False

    if host.rsplit(".", 1)[-1] == "xxx":
        return True

    path = (parts.path or "").lower()
    query = (parts.query or "").lower()
    return any(token in keywords for token in _tokens(path) + _tokens(query))
