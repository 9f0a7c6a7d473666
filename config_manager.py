"""
Configuration management for the paper preference tuner.
Handles loading, validating, and providing access to scoring, feedback and
provider settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from preference_service.arxiv_feed import DEFAULT_QUERY
from preference_service.recommendations.tuning import (
    FeedbackConfig,
    ScoringConfig,
    config_from_mapping,
)

FEED_SOURCES = ("api", "rss")


@dataclass(frozen=True)
class LLMConfig:
    """LLM configuration settings."""
    provider: str
    api_key: str
    base_url: str
    model: str
    timeout: int
    max_retries: int


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider settings."""
    provider: str
    api_key: str
    base_url: str
    model: str
    chunk_size: int = 100

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True)
class FeedConfig:
    """arXiv feed settings.

    ``source`` is "api" (time-windowed export API query, cached per day under
    ``cache_dir``) or "rss" (latest announcements of ``categories``).
    """
    source: str = "api"
    query: str = DEFAULT_QUERY
    window_days: float = 4.0
    cache_dir: str = "cache"
    categories: list[str] = field(default_factory=list)
    timeout: float = 20.0

    def __post_init__(self) -> None:
        if self.source not in FEED_SOURCES:
            raise ValueError(f"source must be one of {FEED_SOURCES}, got {self.source!r}")
        if self.window_days <= 0:
            raise ValueError(f"window_days must be positive, got {self.window_days}")


@dataclass(frozen=True)
class TranslationConfig:
    """Language papers are translated to before questions; empty disables it."""
    language: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.language.strip())


@dataclass(frozen=True)
class PathsConfig:
    """Path configuration settings."""
    user_data_dir: str


@dataclass(frozen=True)
class SessionConfig:
    """Interactive session settings."""
    random_questions: int
    sorted_questions: int
    max_workers: int

    def __post_init__(self) -> None:
        if self.random_questions < 0 or self.sorted_questions < 0:
            raise ValueError("Question counts must be >= 0")
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "preference_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self._merge_config(json.load(f))
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "llm": {
                "provider": "deepseek",
                "api_key": "",
                "base_url": "",
                "model": "",
                "timeout": 120,
                "max_retries": 2
            },
            "embedding": {
                "provider": "openai",
                "api_key": "",
                "base_url": "",
                "model": "text-embedding-3-small",
                "chunk_size": 100
            },
            "scoring": {
                "topic_weight": 4.0,
                "target_weight": 2.0,
                "tag_weight": 3.0,
                "not_interest_weight": 2.0,
                "interest_threshold": 0.35,
                "not_interest_threshold": 0.6,
                "sigmoid_k": 0.5,
                "alpha": 0.6
            },
            "feedback": {
                "match_threshold": 0.8,
                "related_threshold": 0.6,
                "match_weight": 1.5,
                "related_weight": 1.2,
                "append_weight": 1.0,
                "square_related_multiplier": False,
                "append_on_related": False
            },
            "feed": {
                "source": "api",
                "query": DEFAULT_QUERY,
                "window_days": 4.0,
                "cache_dir": "cache",
                "categories": ["cs"],
                "timeout": 20.0
            },
            "translation": {
                "language": ""
            },
            "paths": {
                "user_data_dir": "user_data"
            },
            "session": {
                "random_questions": 5,
                "sorted_questions": 5,
                "max_workers": 4
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # LLM settings
        if os.getenv("LLM_PROVIDER"):
            self._config["llm"]["provider"] = os.getenv("LLM_PROVIDER")

        provider = self._config["llm"]["provider"].lower()
        if provider == "deepseek" and os.getenv("DEEPSEEK_API_KEY"):
            self._config["llm"]["api_key"] = os.getenv("DEEPSEEK_API_KEY")
        elif provider == "openai" and os.getenv("OPENAI_API_KEY"):
            self._config["llm"]["api_key"] = os.getenv("OPENAI_API_KEY")

        if os.getenv("OPENAI_API_BASE"):
            self._config["llm"]["base_url"] = os.getenv("OPENAI_API_BASE")

        if os.getenv("LLM_MODEL"):
            self._config["llm"]["model"] = os.getenv("LLM_MODEL")

        # Embedding settings
        if os.getenv("EMBEDDING_PROVIDER"):
            self._config["embedding"]["provider"] = os.getenv("EMBEDDING_PROVIDER")

        if os.getenv("OPENAI_API_KEY"):
            self._config["embedding"]["api_key"] = os.getenv("OPENAI_API_KEY")

        if os.getenv("EMBEDDING_BASE_URL"):
            self._config["embedding"]["base_url"] = os.getenv("EMBEDDING_BASE_URL")

        if os.getenv("EMBEDDING_MODEL"):
            self._config["embedding"]["model"] = os.getenv("EMBEDDING_MODEL")

        if os.getenv("EMBEDDING_CHUNK_SIZE"):
            self._config["embedding"]["chunk_size"] = int(os.getenv("EMBEDDING_CHUNK_SIZE"))

        # Scoring settings
        if os.getenv("SCORING_SIGMOID_K"):
            self._config["scoring"]["sigmoid_k"] = float(os.getenv("SCORING_SIGMOID_K"))

        # Session settings
        if os.getenv("MAX_WORKERS"):
            self._config["session"]["max_workers"] = int(os.getenv("MAX_WORKERS"))

        # Feed settings
        if os.getenv("FEED_SOURCE"):
            self._config["feed"]["source"] = os.getenv("FEED_SOURCE")

        if os.getenv("ARXIV_QUERY"):
            self._config["feed"]["query"] = os.getenv("ARXIV_QUERY")

        if os.getenv("FEED_WINDOW_DAYS"):
            self._config["feed"]["window_days"] = float(os.getenv("FEED_WINDOW_DAYS"))

        if os.getenv("FEED_CACHE_DIR"):
            self._config["feed"]["cache_dir"] = os.getenv("FEED_CACHE_DIR")

        if os.getenv("TRANSLATION_LANGUAGE"):
            self._config["translation"]["language"] = os.getenv("TRANSLATION_LANGUAGE")

        if os.getenv("USER_DATA_DIR"):
            self._config["paths"]["user_data_dir"] = os.getenv("USER_DATA_DIR")

    def get_llm_config(self) -> LLMConfig:
        """Get LLM configuration."""
        llm_config = self._config["llm"]
        return LLMConfig(
            provider=llm_config["provider"],
            api_key=llm_config["api_key"],
            base_url=llm_config["base_url"],
            model=llm_config["model"],
            timeout=llm_config["timeout"],
            max_retries=llm_config["max_retries"]
        )

    def get_embedding_config(self) -> EmbeddingConfig:
        """Get embedding provider configuration."""
        emb_config = self._config["embedding"]
        return EmbeddingConfig(
            provider=emb_config["provider"],
            api_key=emb_config["api_key"],
            base_url=emb_config["base_url"],
            model=emb_config["model"],
            chunk_size=emb_config["chunk_size"]
        )

    def get_scoring_config(self) -> ScoringConfig:
        """Get facet scoring weights and thresholds."""
        return config_from_mapping(ScoringConfig, self._config["scoring"])

    def get_feedback_config(self) -> FeedbackConfig:
        """Get feedback reinforcement settings."""
        return config_from_mapping(FeedbackConfig, self._config["feedback"])

    def get_feed_config(self) -> FeedConfig:
        """Get arXiv feed configuration."""
        feed_config = self._config["feed"]
        return FeedConfig(
            source=feed_config["source"],
            query=feed_config["query"],
            window_days=feed_config["window_days"],
            cache_dir=feed_config["cache_dir"],
            categories=list(feed_config["categories"]),
            timeout=feed_config["timeout"]
        )

    def get_translation_config(self) -> TranslationConfig:
        """Get paper translation configuration."""
        return TranslationConfig(language=self._config["translation"]["language"])

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        return PathsConfig(user_data_dir=self._config["paths"]["user_data_dir"])

    def get_session_config(self) -> SessionConfig:
        """Get interactive session configuration."""
        session_config = self._config["session"]
        return SessionConfig(
            random_questions=session_config["random_questions"],
            sorted_questions=session_config["sorted_questions"],
            max_workers=session_config["max_workers"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_llm_config() -> LLMConfig:
    """Get LLM configuration."""
    return config_manager.get_llm_config()


def get_embedding_config() -> EmbeddingConfig:
    """Get embedding provider configuration."""
    return config_manager.get_embedding_config()


def get_scoring_config() -> ScoringConfig:
    """Get facet scoring configuration."""
    return config_manager.get_scoring_config()


def get_feedback_config() -> FeedbackConfig:
    """Get feedback reinforcement configuration."""
    return config_manager.get_feedback_config()


def get_feed_config() -> FeedConfig:
    """Get arXiv feed configuration."""
    return config_manager.get_feed_config()


def get_translation_config() -> TranslationConfig:
    """Get paper translation configuration."""
    return config_manager.get_translation_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def get_session_config() -> SessionConfig:
    """Get interactive session configuration."""
    return config_manager.get_session_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
