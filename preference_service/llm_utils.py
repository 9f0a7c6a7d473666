"""
llm_utils.py - LLM and embedding provider management

This module builds LangChain chat models (DeepSeek, Ollama, OpenAI-compatible)
for metadata extraction and LangChain embedding models (OpenAI-compatible,
Ollama) for facet embeddings.
"""

import logging
import os
import re
from typing import List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_deepseek import ChatDeepSeek
from langchain_deepseek.chat_models import DEFAULT_API_BASE as DEEPSEEK_DEFAULT_API_BASE
from langchain_ollama import OllamaEmbeddings, OllamaLLM
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

_LOG = logging.getLogger("llm_utils")

# Default configuration
DEFAULT_LLM_PROVIDER = "deepseek"  # "deepseek", "ollama", or "openai"
DEFAULT_EMBEDDING_PROVIDER = "openai"  # "openai" or "ollama"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen3:8b"
DEFAULT_OLLAMA_EMBEDDING_MODEL = "nomic-embed-text"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
MODEL_NAME = "deepseek-chat"


class LLMProvider:
    """LLM provider configuration and management."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider: str = DEFAULT_LLM_PROVIDER,
        model: str = None,
        timeout: int = 120,
        max_retries: int = 2,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.provider = provider.lower()
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self._llm = None

        self._configure_provider()

    def _configure_provider(self):
        """Fill in provider-specific defaults from the environment."""
        if self.provider == "ollama":
            self.base_url = self.base_url or os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL)
            self.model = self.model or os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL)
        elif self.provider == "openai":
            self.api_key = self.api_key or os.getenv("OPENAI_API_KEY")
            self.base_url = self.base_url or os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
            self.model = self.model or os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        elif self.provider == "deepseek":
            self.api_key = self.api_key or os.getenv("DEEPSEEK_API_KEY")
            self.model = self.model or MODEL_NAME
        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

    def get_llm(self):
        """Get the configured LLM instance, built once per provider object."""
        if self._llm is not None:
            return self._llm

        if self.provider == "ollama":
            _LOG.debug("Using Ollama provider: %s at %s", self.model, self.base_url)
            self._llm = OllamaLLM(model=self.model, base_url=self.base_url, timeout=self.timeout)
        elif self.provider == "openai":
            if not self.api_key:
                raise ValueError(
                    "OpenAI API key required. Set OPENAI_API_KEY environment variable or pass api_key"
                )
            _LOG.debug("Using OpenAI-compatible provider: %s at %s", self.model, self.base_url)
            self._llm = ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                temperature=0,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        else:
            if not self.api_key:
                raise ValueError(
                    "DeepSeek API key required. Set DEEPSEEK_API_KEY environment variable or pass api_key"
                )
            _LOG.debug("Using DeepSeek provider: %s", self.model)
            self._llm = ChatDeepSeek(
                model=self.model,
                temperature=0,
                timeout=self.timeout,
                max_retries=self.max_retries,
                api_key=self.api_key,
                api_base=self.base_url or DEEPSEEK_DEFAULT_API_BASE,
            )
        return self._llm

    def invoke(self, messages: List[BaseMessage]) -> AIMessage:
        """Invoke the LLM; Ollama answers are converted to an AIMessage."""
        llm = self.get_llm()

        if self.provider != "ollama":
            return llm.invoke(messages)

        if len(messages) == 1:
            prompt = messages[0].content
        else:
            prompt = "\n\n".join(
                f"{'User' if isinstance(m, HumanMessage) else 'Assistant'}: {m.content}"
                for m in messages
            )
        response = llm.invoke(prompt)
        return AIMessage(content=clean_ollama_response(response))


class EmbeddingProvider:
    """Embedding model configuration and management.

    ``get_embeddings()`` returns a LangChain ``Embeddings`` object; only its
    ``embed_documents`` method is used.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider: str = DEFAULT_EMBEDDING_PROVIDER,
        model: str = None,
        max_retries: int = 2,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.provider = provider.lower()
        self.model = model
        self.max_retries = max_retries
        self._embeddings = None

        if self.provider == "ollama":
            self.base_url = self.base_url or os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL)
            self.model = self.model or DEFAULT_OLLAMA_EMBEDDING_MODEL
        elif self.provider == "openai":
            self.api_key = self.api_key or os.getenv("OPENAI_API_KEY")
            self.base_url = self.base_url or os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
            self.model = self.model or DEFAULT_OPENAI_EMBEDDING_MODEL
        else:
            raise ValueError(f"Unsupported embedding provider: {self.provider}")

    def get_embeddings(self):
        if self._embeddings is not None:
            return self._embeddings

        if self.provider == "ollama":
            _LOG.debug("Using Ollama embeddings: %s at %s", self.model, self.base_url)
            self._embeddings = OllamaEmbeddings(model=self.model, base_url=self.base_url)
        else:
            if not self.api_key:
                raise ValueError(
                    "OpenAI API key required for embeddings. Set OPENAI_API_KEY environment variable or pass api_key"
                )
            _LOG.debug("Using OpenAI-compatible embeddings: %s at %s", self.model, self.base_url)
            self._embeddings = OpenAIEmbeddings(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                max_retries=self.max_retries,
            )
        return self._embeddings


def clean_ollama_response(content: str) -> str:
    """Clean Ollama response by removing <think> tags."""
    return re.sub(r"<think>.*?</think>", "", content, flags=re.DOTALL)


def extract_json_from_response(content: str, provider: str = DEFAULT_LLM_PROVIDER) -> str:
    """Extract JSON content from LLM response, handling different provider formats."""
    raw = content.strip()

    if provider.lower() == "ollama":
        raw = clean_ollama_response(raw)

    # Strip fenced code blocks if present, e.g., ```json ... ``` or ``` ... ```
    fenced_match = re.search(r"```(?:json|\w+)?\s*([\s\S]*?)\s*```", raw, re.IGNORECASE)
    if fenced_match:
        raw = fenced_match.group(1).strip()

    return raw
