"""
arXiv Feed Module

This module fetches candidate papers from arXiv. Two sources are supported:

- the export API, queried for papers submitted within a time window and read
  page by page; results are cached per day as JSON
- the per-category RSS feeds of the latest announcements
"""

import hashlib
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import requests
import xml.etree.ElementTree as ET
from pydantic import ValidationError

from .models import Paper

_LOG = logging.getLogger(__name__)

ARXIV_RSS_URL = "https://rss.arxiv.org/rss/{category}"
ARXIV_API_URL = "https://export.arxiv.org/api/query"

DEFAULT_CATEGORIES = [
    "astro-ph", "cond-mat", "cs", "econ", "eess", "gr-qc", "hep-ex", "hep-lat",
    "hep-ph", "hep-th", "math", "math-ph", "nlin", "nucl-ex", "nucl-th",
    "physics", "q-bio", "q-fin", "quant-ph", "stat",
]

DEFAULT_QUERY = (
    "cat:cs.* OR cat:econ.* OR cat:eess.* OR cat:math.* OR cat:astro-ph.* OR "
    "cat:cond-mat.* OR cat:gr-qc OR cat:hep-ex OR cat:hep-lat OR cat:hep-ph OR "
    "cat:hep-th OR cat:math-ph OR cat:nlin.* OR cat:nucl-ex OR cat:nucl-th OR "
    "cat:physics.* OR cat:quant-ph OR cat:q-bio.* OR cat:q-fin.* OR cat:stat.*"
)
DEFAULT_WINDOW = timedelta(days=4)
API_PAGE_SIZE = 500

# submittedDate is compared on the US Eastern clock
SUBMISSION_CLOCK_OFFSET = timedelta(hours=5)

_ATOM = "{http://www.w3.org/2005/Atom}"
_DC_CREATOR = "{http://purl.org/dc/elements/1.1/}creator"
_ABSTRACT_RE = re.compile(r"Abstract:\s*(.*)", re.DOTALL)
_ARXIV_ID_RE = re.compile(r"arxiv\.org/abs/([^\s?#]+)")
_VERSION_RE = re.compile(r"v\d+$")


def fetch_rss(url: str, timeout: float = 10.0) -> str:
    """
    Download the RSS feed XML from the given URL.

    Raises:
        requests.exceptions.RequestException: On network errors
    """
    _LOG.debug(f"Fetching RSS feed from {url}")
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.text


def _text(item: ET.Element, tag: str) -> str:
    el = item.find(tag)
    return el.text.strip() if el is not None and el.text else ""


def _abstract(description: str) -> str:
    # arXiv prefixes descriptions with "arXiv:<id> Announce Type: new"
    match = _ABSTRACT_RE.search(description)
    return (match.group(1) if match else description).strip()


def _paper_id(link: str, guid: str) -> str:
    match = _ARXIV_ID_RE.search(link)
    if match:
        return match.group(1)
    return guid or link


def parse_papers(xml_content: str) -> List[Paper]:
    """
    Parse RSS XML content into papers.

    Items without a title or an identifier are skipped.
    """
    root = ET.fromstring(xml_content)
    papers = []
    for item in root.findall("./channel/item"):
        title = " ".join(_text(item, "title").split())
        link = _text(item, "link")
        paper_id = _paper_id(link, _text(item, "guid"))
        if not title or not paper_id:
            continue

        creators = _text(item, _DC_CREATOR)
        papers.append(Paper(
            id=paper_id,
            title=title,
            link=link,
            summary=_abstract(_text(item, "description")),
            authors=[name.strip() for name in creators.split(", ") if name.strip()],
            published=_text(item, "pubDate") or None,
        ))

    _LOG.debug(f"Found {len(papers)} papers in RSS feed")
    return papers


def fetch_category_papers(categories: Iterable[str] = DEFAULT_CATEGORIES, timeout: float = 20.0) -> List[Paper]:
    """
    Fetch and parse the feed of every category, deduplicated by paper id.

    A category whose feed cannot be fetched or parsed is logged and skipped.
    """
    papers: dict = {}
    for category in categories:
        url = ARXIV_RSS_URL.format(category=category)
        try:
            category_papers = parse_papers(fetch_rss(url, timeout))
        except (requests.exceptions.RequestException, ET.ParseError) as exc:
            _LOG.warning("Skipping category %s: %s", category, exc)
            continue
        for paper in category_papers:
            papers.setdefault(paper.id, paper)
        _LOG.info("Fetched %d papers from %s", len(category_papers), category)

    return list(papers.values())


# ---------------------------------------------------------------------------
# Export API
# ---------------------------------------------------------------------------


def submitted_date_range(window: timedelta = DEFAULT_WINDOW, now: Optional[datetime] = None) -> str:
    """``submittedDate`` range covering the ``window`` that ends at ``now``.

    Bounds are whole days in arXiv's ``YYYYMMDDHHMM`` format.
    """
    end = (now or datetime.now(timezone.utc)) - SUBMISSION_CLOCK_OFFSET
    start = end - window
    return f"[{start:%Y%m%d}0000 TO {end:%Y%m%d}0000]"


def build_search_query(query: str, window: timedelta = DEFAULT_WINDOW, now: Optional[datetime] = None) -> str:
    return f"({query}) AND submittedDate:{submitted_date_range(window, now)}"


def parse_atom_papers(xml_content: str) -> List[Paper]:
    """
    Parse an export API Atom response into papers.

    Ids drop the version suffix so they match the RSS ids. Error entries and
    entries without a title are skipped.
    """
    root = ET.fromstring(xml_content)
    papers = []
    for entry in root.findall(f"{_ATOM}entry"):
        entry_id = _text(entry, f"{_ATOM}id")
        if "/api/errors" in entry_id:
            _LOG.warning("arXiv API error: %s", _text(entry, f"{_ATOM}summary"))
            continue
        title = " ".join(_text(entry, f"{_ATOM}title").split())
        if not title or not entry_id:
            continue

        link = entry_id
        for link_el in entry.findall(f"{_ATOM}link"):
            if link_el.get("rel") == "alternate" and link_el.get("href"):
                link = link_el.get("href")
                break

        papers.append(Paper(
            id=_VERSION_RE.sub("", _paper_id(entry_id, entry_id)),
            title=title,
            link=link,
            summary=" ".join(_text(entry, f"{_ATOM}summary").split()),
            authors=[
                _text(author, f"{_ATOM}name")
                for author in entry.findall(f"{_ATOM}author")
                if _text(author, f"{_ATOM}name")
            ],
            published=_text(entry, f"{_ATOM}published") or None,
        ))

    _LOG.debug(f"Found {len(papers)} papers in API response")
    return papers


def fetch_api_page(search_query: str, start: int, page_size: int = API_PAGE_SIZE, timeout: float = 20.0) -> str:
    """
    Download one page of export API results.

    Raises:
        requests.exceptions.RequestException: On network errors
    """
    _LOG.debug(f"Fetching arXiv API page at offset {start}")
    resp = requests.get(
        ARXIV_API_URL,
        params={"search_query": search_query, "start": start, "max_results": page_size},
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.text


def fetch_api_papers(
    query: str = DEFAULT_QUERY,
    window: timedelta = DEFAULT_WINDOW,
    timeout: float = 20.0,
    page_size: int = API_PAGE_SIZE,
    now: Optional[datetime] = None,
) -> List[Paper]:
    """
    Fetch every paper matching ``query`` submitted within ``window``.

    Pages are requested until one comes back empty. Papers are deduplicated
    by id in the order first seen.

    Raises:
        requests.exceptions.RequestException: On network errors
        ET.ParseError: On XML parsing errors
    """
    search_query = build_search_query(query, window, now)
    papers: dict = {}
    start = 0
    while True:
        page = parse_atom_papers(fetch_api_page(search_query, start, page_size, timeout))
        if not page:
            break
        start += len(page)
        for paper in page:
            papers.setdefault(paper.id, paper)
        _LOG.info("Fetched %d papers from the arXiv API (%d so far)", len(page), len(papers))

    return list(papers.values())


def cache_path(
    cache_dir: Path,
    query: str = DEFAULT_QUERY,
    window: timedelta = DEFAULT_WINDOW,
    now: Optional[datetime] = None,
) -> Path:
    """Cache file of one day's results: ``<YYYYMMDD>-<window ms>-<query hash>.json``."""
    day = (now or datetime.now(timezone.utc)) - SUBMISSION_CLOCK_OFFSET
    window_ms = int(window.total_seconds() * 1000)
    digest = hashlib.sha1(query.encode("utf-8")).hexdigest()[:8]
    return Path(cache_dir) / f"{day:%Y%m%d}-{window_ms}-{digest}.json"


def _read_cache(path: Path) -> Optional[List[Paper]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [Paper.model_validate(item) for item in data]
    except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
        _LOG.warning("Ignoring unreadable cache %s: %s", path, e)
        return None


def fetch_papers_cached(
    cache_dir: Path,
    query: str = DEFAULT_QUERY,
    window: timedelta = DEFAULT_WINDOW,
    timeout: float = 20.0,
    now: Optional[datetime] = None,
) -> List[Paper]:
    """
    Like :func:`fetch_api_papers`, reading and writing a per-day JSON cache.

    An unreadable cache file is refetched and overwritten. Empty results are
    not cached.
    """
    path = cache_path(cache_dir, query, window, now)
    if path.exists():
        papers = _read_cache(path)
        if papers is not None:
            _LOG.info("Loaded %d papers from cache %s", len(papers), path)
            return papers

    papers = fetch_api_papers(query, window, timeout=timeout, now=now)
    if papers:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps([paper.model_dump() for paper in papers], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        _LOG.info("Cached %d papers to %s", len(papers), path)
    return papers
