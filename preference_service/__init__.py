# Preference service package for semantic paper ranking and profile adaptation

from .llm_utils import (
    LLMProvider,
    EmbeddingProvider,
    clean_ollama_response,
    extract_json_from_response,
)
from .embedding_resolver import EmbeddingResolver, dedupe
from .metadata_extractor import PaperMetadataExtractor, build_profile_hints
from .arxiv_feed import (
    fetch_rss,
    parse_papers,
    fetch_category_papers,
    parse_atom_papers,
    fetch_api_papers,
    fetch_papers_cached,
)
from .translator import PaperTranslator
from .profile_store import (
    profile_path,
    save_profile,
    load_profile,
)
from .feedback_session import (
    Feedback,
    FeedbackEvent,
    FeedbackSession,
    SessionResult,
)
from .logging_config import (
    setup_logging,
    stop_logging,
    get_logger,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "LLMProvider",
    "EmbeddingProvider",
    "clean_ollama_response",
    "extract_json_from_response",
    "EmbeddingResolver",
    "dedupe",
    "PaperMetadataExtractor",
    "build_profile_hints",
    "fetch_rss",
    "parse_papers",
    "fetch_category_papers",
    "parse_atom_papers",
    "fetch_api_papers",
    "fetch_papers_cached",
    "PaperTranslator",
    "profile_path",
    "save_profile",
    "load_profile",
    "Feedback",
    "FeedbackEvent",
    "FeedbackSession",
    "SessionResult",
    "setup_logging",
    "stop_logging",
    "get_logger",
    "ThreadSafeLoggingConfig",
]
