# =============================================================================
# core/knowledge.py  —  Wikivoyage knowledge cache, ranking & tips
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Grounds the agent's prose in real reference text.
#
#     fetch_or_cache(city)   cached article, or fetch → segment → persist
#     rank(article, query)   keyword-scored top sections
#     travel_tips(article)   first matching section per tip category
#
# CACHE:
#   One JSON file per city under the cache dir, keyed by the lower-cased city
#   name with whitespace replaced by "_".  By default an entry never expires;
#   set a TTL to refetch older entries.  Two first-time fetches of the same
#   city may race; both write the same document through a temp file +
#   os.replace, so the last writer wins with a complete file.
#
# RANKING (deterministic, same input → same ordered output):
#   keywords  = query words longer than 3 characters
#   score     = 10 × occurrences of each keyword in lower(title + body)
#             + 20 if the title contains a travel header (see, eat, ...)
#   keep      = all sections for an empty query, else score > 0 only
#   result    = top 5 by score (stable), bodies cut to 500 chars
# =============================================================================

import json
import logging
import os
import re
import tempfile
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from core.config import Settings
from core.models import ArticleSection, KnowledgeArticle, RankedSection

logger = logging.getLogger(__name__)

SOURCE_PREFIX = "Wikivoyage"

TOP_SECTIONS = 5
SECTION_EXCERPT_CHARS = 500
TIP_EXCERPT_CHARS = 300
FALLBACK_OVERVIEW_CHARS = 1500

KEYWORD_WEIGHT = 10
TITLE_BOOST = 20
RELEVANT_TITLES = ("see", "do", "eat", "drink", "sleep", "safety", "get around", "understand", "stay safe")

TIP_CATEGORIES: dict[str, tuple[str, ...]] = {
    "safety": ("safety", "stay safe", "cope"),
    "etiquette": ("respect", "etiquette", "customs"),
    "practical": ("get around", "understand", "talk"),
    "climate": ("climate", "weather"),
}

_SINGLE_CAPITALIZED_WORD = re.compile(r"^[A-Z][a-z]+$")


class KnowledgeSource(Protocol):
    async def fetch_article(self, city: str) -> Optional[dict[str, str]]: ...


# -----------------------------------------------------------------------------
# Wikivoyage collaborator
# -----------------------------------------------------------------------------
class WikivoyageSource:
    """Plain-text article extracts from the Wikivoyage MediaWiki API."""

    def __init__(self, settings: Settings):
        self.api_url = settings.wikivoyage_api
        self.timeout = settings.http_timeout_sec
        self.headers = {"User-Agent": settings.http_user_agent, "Accept": "application/json"}

    async def fetch_article(self, city: str) -> Optional[dict[str, str]]:
        """Return {title, url, raw_text}, or None when there is no such page."""
        params = {
            "action": "query",
            "format": "json",
            "titles": city,
            "prop": "extracts|info",
            "explaintext": 1,
            "exsectionformat": "plain",
            "inprop": "url",
        }
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            resp = await client.get(self.api_url, params=params)
            resp.raise_for_status()
            pages = resp.json()["query"]["pages"]

        if not pages:
            return None
        page_id, page = next(iter(pages.items()))
        if page_id == "-1" or "missing" in page:
            return None
        return {
            "title": page.get("title", city),
            "url": page.get("fullurl") or f"https://en.wikivoyage.org/wiki/{quote(city)}",
            "raw_text": page.get("extract") or "",
        }


# -----------------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------------
def cache_key(city: str) -> str:
    return re.sub(r"\s", "_", city.lower())


def _is_header(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("==") or bool(_SINGLE_CAPITALIZED_WORD.match(stripped))


def parse_sections(text: str) -> list[ArticleSection]:
    """Split plain article text into titled sections.

    A line starting with "==" or consisting of one capitalised word opens a
    new section; every other line is appended to the current body.  Sections
    whose body is blank are dropped.
    """
    sections: list[ArticleSection] = []
    current = ArticleSection(title="Overview", content="")

    for line in text.split("\n"):
        if _is_header(line):
            if current.content.strip():
                sections.append(current)
            current = ArticleSection(title=line.replace("=", "").strip(), content="")
        else:
            current.content += line + "\n"

    if current.content.strip():
        sections.append(current)

    if not sections:
        sections.append(ArticleSection(title="Overview", content=text[:FALLBACK_OVERVIEW_CHARS]))
    return sections


def _excerpt(content: str, limit: int) -> str:
    return content[:limit].strip() + ("..." if len(content) > limit else "")


def _score(section: ArticleSection, keywords: list[str]) -> int:
    text = f"{section.title} {section.content}".lower()
    score = sum(text.count(keyword) * KEYWORD_WEIGHT for keyword in keywords)
    title = section.title.lower()
    if any(header in title for header in RELEVANT_TITLES):
        score += TITLE_BOOST
    return score


def rank(article: KnowledgeArticle, query: str = "") -> list[RankedSection]:
    """Top sections of `article` for `query`, best first."""
    keywords = [w for w in query.lower().split() if len(w) > 3]
    empty_query = not query.strip()

    scored = [(section, _score(section, keywords)) for section in article.sections]
    scored = [(s, score) for s, score in scored if empty_query or score > 0]
    scored.sort(key=lambda pair: pair[1], reverse=True)

    return [
        RankedSection(
            title=section.title,
            content=_excerpt(section.content, SECTION_EXCERPT_CHARS),
            source=f"{SOURCE_PREFIX}: {article.title}",
            url=article.url,
            relevance=score,
        )
        for section, score in scored[:TOP_SECTIONS]
    ]


def _first_matching(sections: list[ArticleSection], keywords: tuple[str, ...]) -> Optional[str]:
    for section in sections:
        title = section.title.lower()
        if any(kw in title for kw in keywords):
            return _excerpt(section.content, TIP_EXCERPT_CHARS)
    return None


def extract_tips(article: Optional[KnowledgeArticle]) -> dict[str, Optional[str]]:
    """Safety / etiquette / practical / climate excerpts.  First match wins."""
    if article is None:
        tips: dict[str, Optional[str]] = {category: None for category in TIP_CATEGORIES}
        tips.update(source=None, url=None)
        return tips

    tips = {
        category: _first_matching(article.sections, keywords)
        for category, keywords in TIP_CATEGORIES.items()
    }
    tips.update(source=f"{SOURCE_PREFIX}: {article.title}", url=article.url)
    return tips


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------
class KnowledgeCache:
    """Fetch-or-cache store of parsed articles."""

    def __init__(self, source: KnowledgeSource, cache_dir: str | os.PathLike, ttl_sec: Optional[float] = None):
        self.source = source
        self.cache_dir = Path(cache_dir)
        self.ttl_sec = ttl_sec

    @classmethod
    def from_settings(cls, settings: Settings) -> "KnowledgeCache":
        return cls(WikivoyageSource(settings), settings.knowledge_cache_dir, settings.knowledge_cache_ttl_sec)

    def _path(self, city: str) -> Path:
        return self.cache_dir / f"{cache_key(city)}.json"

    def _is_stale(self, article: KnowledgeArticle) -> bool:
        if self.ttl_sec is None:
            return False
        try:
            fetched = datetime.fromisoformat(article.fetched_at)
        except ValueError:
            return True
        if fetched.tzinfo is None:
            fetched = fetched.replace(tzinfo=timezone.utc)
        age = (datetime.now(timezone.utc) - fetched).total_seconds()
        return age > self.ttl_sec

    def _read(self, city: str) -> Optional[KnowledgeArticle]:
        path = self._path(city)
        try:
            with path.open("r", encoding="utf-8") as fh:
                return KnowledgeArticle.from_dict(json.load(fh))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", path, e)
            return None

    def _write(self, article: KnowledgeArticle) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(article.to_dict(), fh, indent=2)
            os.replace(tmp, self._path(article.city))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def fetch_or_cache(self, city: str) -> Optional[KnowledgeArticle]:
        """Cached article for `city`, fetching and persisting it on a miss.

        Returns None when the source has no article or the fetch failed.
        """
        cached = self._read(city)
        if cached is not None and not self._is_stale(cached):
            logger.debug("Loaded %s from cache", city)
            return cached

        try:
            raw = await self.source.fetch_article(city)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("Error fetching Wikivoyage for %s: %s", city, e)
            return None
        if raw is None:
            logger.info("No Wikivoyage article found for %s", city)
            return None

        article = KnowledgeArticle(
            city=city,
            title=raw["title"],
            url=raw["url"],
            sections=parse_sections(raw.get("raw_text", "")),
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            self._write(article)
        except OSError as e:
            logger.warning("Could not cache %s: %s", city, e)
        logger.info("Fetched and cached %s from Wikivoyage", city)
        return article

    async def search(self, city: str, query: str = "") -> list[dict[str, Any]]:
        """Ranked sections for the knowledge tool, as JSON-ready dicts."""
        article = await self.fetch_or_cache(city)
        if article is None:
            return []
        return [asdict(section) for section in rank(article, query)]

    async def travel_tips(self, city: str) -> dict[str, Optional[str]]:
        return extract_tips(await self.fetch_or_cache(city))
