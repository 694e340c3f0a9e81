"""
Tile sources: the ordered lists of people whose avatars end up in a sprite.

Each source returns SourceItem records in the order they should appear in the
sprite. Fetching avatar pixels is left to daisyui_assets.tiles.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

GITHUB_PER_PAGE = 100
GITHUB_CONTRIBUTORS_URL = "https://api.github.com/repos/{repo}/contributors"
OPENCOLLECTIVE_MEMBERS_URL = "https://opencollective.com/{collective}/members/all.json"
UNAVATAR_X_URL = "https://unavatar.io/x/{username}?fallback=false"

# unavatar.io rejects requests without a browser-like agent
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/94.0.4606.81 Safari/537.36"
)


class SourceError(Exception):
    """A tile source could not be read."""


@dataclass(frozen=True)
class SourceItem:
    identifier: str
    image_url: Optional[str]
    # Metadata records {"name", "image"} instead of the bare identifier
    report_image: bool = False
    headers: Optional[dict] = None


def _get_json(url: str, timeout: float, **kwargs) -> Any:
    try:
        response = requests.get(url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise SourceError(f"Failed to fetch {url}: {e}") from e
    if not response.ok:
        raise SourceError(f"Failed to fetch data: {response.status_code} {response.reason}")
    try:
        return response.json()
    except ValueError as e:
        raise SourceError(f"Invalid JSON from {url}: {e}") from e


def fetch_github_page(repo: str, page: int, token: Optional[str], timeout: float) -> List[dict]:
    logger.info("Fetching page %d...", page)
    headers = {"Authorization": f"token {token}"} if token else {}
    data = _get_json(
        GITHUB_CONTRIBUTORS_URL.format(repo=repo),
        timeout,
        params={"page": page, "per_page": GITHUB_PER_PAGE},
        headers=headers,
    )
    if not isinstance(data, list):
        raise SourceError(f"Unexpected GitHub response for page {page}: expected a list")
    return data


def github_contributors(repo: str, token: Optional[str] = None, timeout: float = 30.0) -> List[SourceItem]:
    """
    Collect every contributor of a GitHub repository across all pages.

    Paging stops at the first empty page or at a page shorter than
    GITHUB_PER_PAGE.
    """
    contributors: List[dict] = []
    page = 1
    while True:
        batch = fetch_github_page(repo, page, token, timeout)
        if not batch:
            break
        contributors.extend(batch)
        if len(batch) < GITHUB_PER_PAGE:
            logger.info("Page %d returned %d contributors (less than %d). Stopping.", page, len(batch), GITHUB_PER_PAGE)
            break
        logger.info("Page %d returned %d contributors. Fetching next page...", page, len(batch))
        page += 1

    logger.info("Total contributors found: %d", len(contributors))
    items = []
    for c in contributors:
        login = c.get("login") if isinstance(c, dict) else None
        if not login:
            raise SourceError(f"GitHub contributor without a login: {c!r}")
        items.append(SourceItem(identifier=login, image_url=c.get("avatar_url") or None))
    return items


def opencollective_members(collective: str, timeout: float = 30.0) -> List[SourceItem]:
    data = _get_json(OPENCOLLECTIVE_MEMBERS_URL.format(collective=collective), timeout)
    if not isinstance(data, list):
        raise SourceError("Unexpected Open Collective response: expected a list")
    logger.info("Total members found: %d", len(data))
    items = []
    for m in data:
        if not isinstance(m, dict):
            raise SourceError(f"Unexpected Open Collective member: {m!r}")
        items.append(SourceItem(identifier=m.get("name") or "", image_url=m.get("image") or None, report_image=True))
    return items


def read_testimonials(path: Path) -> List[dict]:
    logger.info("Reading testimonials from %s", path)
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SourceError(f"Failed to read testimonials file: {e}") from e
    if not isinstance(data, dict):
        raise SourceError("Failed to read testimonials file: top level must be an object")
    tweets = data.get("tweets") or []
    if not isinstance(tweets, list):
        raise SourceError("Failed to read testimonials file: tweets must be a list")
    return tweets


def avatars_from_testimonials(path: Path) -> List[SourceItem]:
    items = []
    for tweet in read_testimonials(path):
        username = tweet.get("username") if isinstance(tweet, dict) else None
        if not username:
            raise SourceError(f"Testimonial without a username: {tweet!r}")
        items.append(SourceItem(
            identifier=username,
            image_url=UNAVATAR_X_URL.format(username=quote(username, safe="")),
            headers={"User-Agent": BROWSER_USER_AGENT},
        ))
    return items


def load_items(config) -> List[SourceItem]:
    """Dispatch to the source configured for config.target."""
    source = config.target.source
    if source == "github":
        return github_contributors(config.repo, config.github_token, config.timeout)
    if source == "opencollective":
        return opencollective_members(config.collective, config.timeout)
    if source == "testimonials":
        return avatars_from_testimonials(config.testimonials_file)
    raise ValueError(f"Unknown source: {source}")
