# app/services/priority_service.py
import asyncio
import logging
from typing import Callable, Dict, List, NamedTuple, Optional

from rapidfuzz import fuzz

from app.config import CLASSIFICATION_TIMEOUT_SECONDS
from app.errors import ClassificationError
from app.models.request import Priority
from app.services.catalog import DISEASE_CATALOG, KEYWORD_BAGS, DiseaseCatalog, normalize

logger = logging.getLogger(__name__)

# Any symmetric string similarity returning a score in [0, 1]
SimilarityScorer = Callable[[str, str], float]

# Evaluation order doubles as the tie-break: ambiguous input leans towards caution
PRIORITY_ORDER = (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)

SEVERITY_TEXT = {
    Priority.CRITICAL: "critical",
    Priority.HIGH: "serious",
    Priority.MEDIUM: "moderate",
    Priority.LOW: "mild",
}

KNOWN_DISEASE_TEMPLATE = "Patient reported with {disease}. Requires immediate medical attention based on condition."
ASSESSED_TEMPLATE = (
    "Patient reported with {disease}. Initial assessment indicates {severity} condition requiring medical attention."
)
FALLBACK_TEMPLATE = "Patient reported with {disease}"


def ratio_similarity(a: str, b: str) -> float:
    """Normalized Indel similarity (2 * LCS / total length) from rapidfuzz."""
    return fuzz.ratio(a, b) / 100.0


def fallback_description(disease) -> str:
    return FALLBACK_TEMPLATE.format(disease=disease)


class Assessment(NamedTuple):
    priority: Priority
    description: str


class PriorityClassifier:
    """
    Maps free-text disease input to a priority and a short summary.

    Catalog entries are authoritative. Anything else is scored against the
    per-priority keyword bags and the best-matching level wins.
    """

    def __init__(
        self,
        catalog: DiseaseCatalog = DISEASE_CATALOG,
        keyword_bags: Optional[Dict[Priority, List[str]]] = None,
        scorer: SimilarityScorer = ratio_similarity,
    ):
        self.catalog = catalog
        self.keyword_bags = KEYWORD_BAGS if keyword_bags is None else keyword_bags
        self.scorer = scorer

    def scores(self, disease: str) -> Dict[Priority, float]:
        """Best exemplar similarity per level. Raises on empty or missing bags."""
        text = normalize(disease)
        result = {}
        for level in PRIORITY_ORDER:
            phrases = self.keyword_bags[level]
            best = max(self.scorer(text, normalize(p)) for p in phrases)
            if not 0.0 <= best <= 1.0:
                raise ClassificationError(detail=f"scorer returned {best!r} for level {level.value}")
            result[level] = best
        return result

    def classify(self, disease: str) -> Priority:
        try:
            known = self.catalog.lookup(disease)
            if known:
                logger.debug(f"Known disease '{known.english}' -> {known.priority.value}")
                return known.priority

            scores = self.scores(disease)
            best_level, best_score = None, -1.0
            for level in PRIORITY_ORDER:
                # strict '>' keeps the earlier (more severe) level on ties
                if scores[level] > best_score:
                    best_level, best_score = level, scores[level]
            logger.debug(f"Similarity scores for '{disease}': {scores} -> {best_level.value}")
            return best_level
        except Exception as e:
            logger.warning(f"⚠️ Priority classification failed for {disease!r}, defaulting to medium: {e}")
            return Priority.MEDIUM

    def describe(self, disease: str) -> str:
        try:
            if self.catalog.lookup(disease):
                return KNOWN_DISEASE_TEMPLATE.format(disease=disease)
            priority = self.classify(disease)
            severity = SEVERITY_TEXT.get(priority, "moderate")
            return ASSESSED_TEMPLATE.format(disease=disease, severity=severity)
        except Exception as e:
            logger.warning(f"⚠️ Description generation failed for {disease!r}: {e}")
            return fallback_description(disease)


default_classifier = PriorityClassifier()


def classify(disease: str) -> Priority:
    return default_classifier.classify(disease)


def describe(disease: str) -> str:
    return default_classifier.describe(disease)


async def _bounded(func, disease, timeout: float):
    return await asyncio.wait_for(asyncio.to_thread(func, disease), timeout=timeout)


async def assess(
    disease: str,
    classifier: Optional[PriorityClassifier] = None,
    timeout: float = CLASSIFICATION_TIMEOUT_SECONDS,
) -> Assessment:
    """
    Run classification and description side by side and join the results.

    Each half is bounded by ``timeout`` and falls back on its own, so a slow
    or broken classifier never blocks request creation.
    """
    classifier = classifier or default_classifier
    priority, description = await asyncio.gather(
        _bounded(classifier.classify, disease, timeout),
        _bounded(classifier.describe, disease, timeout),
        return_exceptions=True,
    )

    if isinstance(priority, BaseException):
        logger.error(f"❌ Priority classification aborted for {disease!r}: {priority!r}")
        priority = Priority.MEDIUM
    else:
        try:
            priority = Priority(priority)
        except ValueError:
            logger.error(f"❌ Classifier produced unknown priority {priority!r}, using medium")
            priority = Priority.MEDIUM

    if isinstance(description, BaseException) or not isinstance(description, str):
        logger.error(f"❌ Description generation aborted for {disease!r}: {description!r}")
        description = fallback_description(disease)

    return Assessment(priority=priority, description=description)
