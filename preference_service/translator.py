"""
Paper Translator Module

Translates paper titles and abstracts into the reader's language with an LLM
so feedback questions can be shown in that language. A failed translation is
logged and the paper is shown in English.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Sequence

from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate
from tqdm import tqdm

from .llm_utils import LLMProvider
from .models import Paper

logger = logging.getLogger(__name__)

PROMPT_PATH = Path(__file__).parent / "prompts" / "translate.md"


class PaperTranslator:
    """Fill ``translated_title`` and ``translated_summary`` of papers."""

    def __init__(
        self,
        llm: LLMProvider,
        language: str,
        max_workers: int = 4,
        prompt_path: Path = PROMPT_PATH,
    ):
        if not language.strip():
            raise ValueError("A target language is required.")
        self.llm = llm
        self.language = language.strip()
        self.max_workers = max(1, max_workers)
        self.template = PromptTemplate.from_file(prompt_path, encoding="utf-8")

    def translate_text(self, text: str) -> str:
        """Translated ``text``; empty input is returned unchanged.

        Raises:
            ValueError: if the model returns an empty answer
        """
        if not text.strip():
            return text
        prompt = self.template.format(language=self.language, text=text)
        resp = self.llm.invoke([HumanMessage(content=prompt)])
        translated = (resp.content or "").strip()
        if not translated:
            raise ValueError("empty translation")
        return translated

    def translate(self, paper: Paper) -> Paper:
        """Copy of ``paper`` with its translations, or ``paper`` itself on failure."""
        if paper.translated_title is not None:
            return paper
        try:
            update = {
                "translated_title": self.translate_text(paper.title),
                "translated_summary": self.translate_text(paper.summary.replace("\n", " ")),
            }
        except Exception as e:
            logger.warning("Translation to %s failed for %s: %s", self.language, paper.id, e)
            return paper
        return paper.model_copy(update=update)

    def translate_many(self, papers: Sequence[Paper]) -> List[Paper]:
        """Translate a batch concurrently, preserving order."""
        if not papers:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            translated = list(
                tqdm(
                    executor.map(self.translate, papers),
                    total=len(papers),
                    desc="Translating",
                )
            )
        done = sum(1 for paper in translated if paper.translated_title is not None)
        logger.info("Translated %d of %d papers to %s", done, len(papers), self.language)
        return translated
