#!/usr/bin/env python3
"""
preference_tuner.py – Rank arXiv papers for a user and tune the user's profile

COMMANDS:
- train: show papers one at a time, ask whether you like them, and adapt the
  saved preference profile after every answer
- rank:  score today's papers against the saved profile and print the best

ARCHITECTURE:
- arXiv API (cached per day) or RSS → LLM metadata extraction → embeddings → facet scoring → ranking
- profiles are stored per user as JSON (values and weights only)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import xml.etree.ElementTree as ET
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import requests

from config_manager import (
    get_embedding_config,
    get_feed_config,
    get_feedback_config,
    get_llm_config,
    get_paths_config,
    get_scoring_config,
    get_session_config,
    get_translation_config,
)
from preference_service import (
    EmbeddingProvider,
    Feedback,
    FeedbackSession,
    LLMProvider,
    PaperTranslator,
    fetch_api_papers,
    fetch_category_papers,
    fetch_papers_cached,
    load_profile,
    profile_path,
    save_profile,
    setup_logging,
    stop_logging,
)
from preference_service.models import EmbeddedPaper, PreferenceProfile, ScoredPaper
from preference_service.recommendations import PreferenceEngine, ProfileUpdater, build_default_engine

__version__ = "0.1.0"

_LOG = logging.getLogger("preference_tuner")

_ANSWERS = {
    "1": Feedback.LIKE,
    "y": Feedback.LIKE,
    "2": Feedback.DISLIKE,
    "n": Feedback.DISLIKE,
    "": Feedback.NEUTRAL,
    "0": Feedback.NEUTRAL,
}


# ---------------------------------------------------------------------------
# Terminal interaction
# ---------------------------------------------------------------------------


def ask_terminal(paper: EmbeddedPaper) -> Feedback:
    """Show one paper on stdout and read the user's preference from stdin."""
    print("=" * 30)
    print("What is your preference for this paper?")
    print(f"Title: {paper.paper.translated_title or paper.paper.title}")
    print((paper.paper.translated_summary or paper.paper.summary).replace("\n", " "))
    print("=" * 30)
    while True:
        answer = input("[1] I like this paper  [0/Enter] I don't care  [2] I don't like this paper: ")
        feedback = _ANSWERS.get(answer.strip().lower())
        if feedback is not None:
            return feedback
        print("Please answer 1, 0 or 2.")


def print_ranking(papers: List[ScoredPaper]) -> None:
    for rank, item in enumerate(papers, 1):
        print(f"{rank:>3}. {item.scores.final:.4f}  {item.paper.title}")
        print(f"     {item.paper.link}")


def _result_record(item: ScoredPaper) -> dict:
    return {
        **item.paper.model_dump(),
        "topic": item.facets.topic,
        "tags": item.facets.tags,
        "target": item.facets.target,
        "type": item.facets.type.value if item.facets.type else None,
        "scores": item.scores.model_dump(by_alias=True),
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _build_llm(args: argparse.Namespace) -> LLMProvider:
    llm_config = get_llm_config()
    return LLMProvider(
        api_key=args.api_key or llm_config.api_key or None,
        base_url=args.base_url or llm_config.base_url or None,
        provider=args.provider or llm_config.provider,
        model=args.model or llm_config.model or None,
        timeout=llm_config.timeout,
        max_retries=llm_config.max_retries,
    )


def _build_engine(args: argparse.Namespace, llm: LLMProvider) -> PreferenceEngine:
    embedding_config = get_embedding_config()
    session_config = get_session_config()

    embeddings = EmbeddingProvider(
        api_key=embedding_config.api_key or None,
        base_url=embedding_config.base_url or None,
        provider=embedding_config.provider,
        model=embedding_config.model or None,
    )
    return build_default_engine(
        llm,
        embeddings,
        scoring_config=get_scoring_config(),
        chunk_size=embedding_config.chunk_size,
        max_workers=session_config.max_workers,
    )


def _build_translator(args: argparse.Namespace, llm: LLMProvider) -> Optional[PaperTranslator]:
    language = args.language if args.language is not None else get_translation_config().language
    if not language.strip():
        return None
    _LOG.info("🌐  Translating questions to %s", language)
    return PaperTranslator(llm, language, max_workers=get_session_config().max_workers)


def _train(
    args: argparse.Namespace,
    engine: PreferenceEngine,
    papers,
    path: Path,
    translator: Optional[PaperTranslator] = None,
) -> None:
    session_config = get_session_config()
    session = FeedbackSession(
        engine, ProfileUpdater(get_feedback_config()), ask_terminal, translator=translator
    )

    profile = None if args.reset else load_profile(path)
    if profile is None or profile.is_empty():
        _LOG.info("🎲  Asking about %d random papers", session_config.random_questions)
        profile = session.ask_random(profile, papers, session_config.random_questions).profile
        save_profile(profile, path)

    _LOG.info("📈  Asking about %d top-ranked papers", session_config.sorted_questions)
    result = session.ask_sorted(profile, papers, session_config.sorted_questions)
    save_profile(result.profile, path)
    _LOG.info("✅  %d answers recorded, profile saved to %s", result.answered, path)


def _rank(args: argparse.Namespace, engine: PreferenceEngine, papers, path: Path) -> None:
    profile = load_profile(path)
    if profile is None:
        _LOG.warning("No profile at %s – run `train` first; ranking with an empty profile.", path)
        profile = PreferenceProfile.empty()

    ranked = engine.recommend(profile, papers)
    print_ranking(ranked[:args.top])

    if args.output:
        args.output.write_text(
            json.dumps([_result_record(item) for item in ranked], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        _LOG.info("Wrote %d results to %s", len(ranked), args.output)


def _fetch_papers(args: argparse.Namespace):
    feed_config = get_feed_config()
    source = args.source or feed_config.source

    if source == "rss":
        _LOG.info("🔗  Fetching arXiv RSS feeds…")
        return fetch_category_papers(args.categories or feed_config.categories, timeout=feed_config.timeout)

    query = args.query or feed_config.query
    days = args.days or feed_config.window_days
    window = timedelta(days=days)
    _LOG.info("🔗  Querying arXiv for papers of the last %g days…", days)
    try:
        if args.no_cache:
            return fetch_api_papers(query, window, timeout=feed_config.timeout)
        return fetch_papers_cached(Path(feed_config.cache_dir), query, window, timeout=feed_config.timeout)
    except (requests.exceptions.RequestException, ET.ParseError) as e:
        _LOG.error("arXiv query failed: %s", e)
        return []


# ---------------------------------------------------------------------------
# CLI parsing
# ---------------------------------------------------------------------------


def _parse_args(argv: List[str] | None = None) -> argparse.Namespace:  # noqa: D401
    p = argparse.ArgumentParser(
        description="Rank arXiv papers against a learned preference profile and tune the profile from your feedback.",
        epilog="""
Examples:
  Tune your profile on the last four days of submissions, questions in Japanese:
    %(prog)s train --user alice --days 4 --language Japanese

  Tune on today's RSS announcements of two categories:
    %(prog)s train --user alice --source rss --categories cs stat

  Print the ten best papers and save every score:
    %(prog)s rank --user alice --top 10 --output result.json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("command", choices=["train", "rank"], help="What to do")
    p.add_argument("--user", default="default", help="Profile owner (default: default)")
    p.add_argument(
        "--provider",
        choices=["deepseek", "ollama", "openai"],
        help="LLM provider for metadata extraction (default: from config)",
    )
    p.add_argument("--api-key", dest="api_key", help="API key for the selected provider")
    p.add_argument("--base-url", dest="base_url", help="Base URL for the selected provider")
    p.add_argument("--model", help="Model name for the selected provider")
    p.add_argument("--source", choices=["api", "rss"], help="Where to fetch papers from (default: from config)")
    p.add_argument("--query", help="arXiv API search query (default: from config)")
    p.add_argument("--days", type=float, help="Submission window of the API query in days")
    p.add_argument("--no-cache", dest="no_cache", action="store_true", help="Ignore the daily API cache")
    p.add_argument("--categories", nargs="+", help="arXiv categories of the RSS source (default: from config)")
    p.add_argument("--language", help="Translate questions to this language (empty string disables)")
    p.add_argument("--top", type=int, default=10, help="Papers to print when ranking")
    p.add_argument("--output", type=Path, help="Write ranked results as JSON")
    p.add_argument("--reset", action="store_true", help="Start training from an empty profile")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: List[str] | None = None) -> None:  # noqa: D401
    args = _parse_args(argv)
    setup_logging(args.debug)
    _LOG.info("🚀  preference_tuner %s", __version__)

    try:
        path = profile_path(args.user, Path(get_paths_config().user_data_dir))

        papers = _fetch_papers(args)
        if not papers:
            _LOG.error("No papers fetched – nothing to do.")
            sys.exit(1)

        llm = _build_llm(args)
        engine = _build_engine(args, llm)
        if args.command == "train":
            _train(args, engine, papers, path, _build_translator(args, llm))
        else:
            _rank(args, engine, papers, path)
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
