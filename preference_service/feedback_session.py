"""
Feedback sessions.

Show papers to a user one at a time and fold each like / dislike into the
profile before the next question. The question itself is asked through an
injected callable, so the same flow serves a terminal prompt or a test. With
a translator, papers are translated just before they are shown.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .models import EmbeddedPaper, Paper, PreferenceProfile
from .recommendations.engine import PreferenceEngine
from .recommendations.ranker import rank_papers, top_fraction
from .recommendations.updater import ProfileUpdater
from .translator import PaperTranslator

logger = logging.getLogger(__name__)

# Share of the ranked pool a sorted question is drawn from
SORTED_POOL_FRACTION = 0.25


class Feedback(str, Enum):
    """A user's answer to "what do you think of this paper?"."""
    LIKE = "like"
    NEUTRAL = "neutral"
    DISLIKE = "dislike"


@dataclass(slots=True)
class FeedbackEvent:
    """One answered question."""

    paper_id: str
    feedback: Feedback
    score: Optional[float] = None


@dataclass(slots=True)
class SessionResult:
    profile: PreferenceProfile
    events: List[FeedbackEvent] = field(default_factory=list)

    @property
    def answered(self) -> int:
        return sum(1 for e in self.events if e.feedback is not Feedback.NEUTRAL)


AskFn = Callable[[EmbeddedPaper], Feedback]


class FeedbackSession:
    """Question loop that adapts a profile from user answers."""

    def __init__(
        self,
        engine: PreferenceEngine,
        updater: ProfileUpdater,
        ask: AskFn,
        rng: Optional[random.Random] = None,
        translator: Optional[PaperTranslator] = None,
    ):
        self.engine = engine
        self.updater = updater
        self.ask = ask
        self.rng = rng or random.Random()
        self.translator = translator

    def _translated(self, papers: List[EmbeddedPaper]) -> List[EmbeddedPaper]:
        """The papers as shown to the user, with translations when enabled."""
        if self.translator is None or not papers:
            return papers
        translated = self.translator.translate_many([p.paper for p in papers])
        return [p.model_copy(update={"paper": t}) for p, t in zip(papers, translated)]

    def _prepare(
        self,
        profile: Optional[PreferenceProfile],
        papers: Sequence[Paper],
    ) -> Tuple[PreferenceProfile, List[EmbeddedPaper]]:
        profile = profile or PreferenceProfile.empty()
        metadata = self.engine.extract(papers, profile)
        embedded = self.engine.embed_papers(metadata)
        return self.engine.embed_profile(profile), embedded

    def _record(
        self,
        profile: PreferenceProfile,
        paper: EmbeddedPaper,
        feedback: Feedback,
        score: Optional[float] = None,
    ) -> FeedbackEvent:
        if feedback is not Feedback.NEUTRAL:
            self.updater.apply_feedback(profile, paper.embedded, interested=feedback is Feedback.LIKE)
        logger.info("Feedback %s for %s", feedback.value, paper.paper.id)
        return FeedbackEvent(paper_id=paper.paper.id, feedback=feedback, score=score)

    def ask_random(
        self,
        profile: Optional[PreferenceProfile],
        papers: Sequence[Paper],
        count: int,
    ) -> SessionResult:
        """Ask about ``count`` randomly chosen papers.

        Useful to seed an empty profile, where ranking carries no signal yet.
        """
        chosen = self.rng.sample(list(papers), min(count, len(papers)))
        working, embedded = self._prepare(profile, chosen)

        result = SessionResult(profile=working)
        for paper in self._translated(embedded):
            result.events.append(self._record(working, paper, self.ask(paper)))
        return result

    def ask_sorted(
        self,
        profile: PreferenceProfile,
        papers: Sequence[Paper],
        count: int,
    ) -> SessionResult:
        """Ask ``count`` questions drawn from the best-ranked quarter of the pool.

        The pool is re-scored after every answer, so each answer shapes the
        next question. A paper is asked about at most once.
        """
        working, pool = self._prepare(profile, papers)

        result = SessionResult(profile=working)
        for _ in range(count):
            if not pool:
                break
            ranked = rank_papers(self.engine.score_embedded(working, pool))
            candidates = top_fraction(ranked, SORTED_POOL_FRACTION)
            if not candidates:
                break

            pick = self.rng.choice(candidates)
            paper = next(p for p in pool if p.paper.id == pick.paper.id)
            pool = [p for p in pool if p is not paper]

            shown = self._translated([paper])[0]
            result.events.append(self._record(working, paper, self.ask(shown), pick.scores.final))
        return result
