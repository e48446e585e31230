# tests/test_priority_service.py
import asyncio
import time

import pytest

from app.models.request import Priority
from app.services.catalog import DISEASE_CATALOG, KEYWORD_BAGS
from app.services.priority_service import (
    PRIORITY_ORDER,
    PriorityClassifier,
    assess,
    classify,
    default_classifier,
    describe,
)


@pytest.mark.parametrize("entry", DISEASE_CATALOG.entries, ids=lambda e: e.english)
def test_catalog_entries_keep_their_priority_in_any_casing(entry):
    assert classify(entry.english) == entry.priority
    assert classify(entry.english.upper()) == entry.priority
    assert classify(f"  {entry.english.lower()}  ") == entry.priority


def test_catalog_beats_keyword_bags():
    # "heart attack" is a critical exemplar but the catalog says high
    assert classify("Heart Attack") == Priority.HIGH
    assert classify("stroke") == Priority.HIGH


@pytest.mark.parametrize("text", ["", "   ", "x", "!!!", "💥💥", "a" * 5000, "XYZ-unknown-condition"])
def test_classify_always_returns_a_priority(text):
    assert classify(text) in set(Priority)


def test_classify_non_string_falls_back_to_medium():
    assert classify(None) == Priority.MEDIUM


@pytest.mark.parametrize("exemplar", ["severe bleeding", "Not Breathing", "chest pain", "unconscious"])
def test_critical_exemplar_outside_catalog_is_critical(exemplar):
    assert exemplar not in DISEASE_CATALOG
    assert classify(exemplar) == Priority.CRITICAL


def test_exact_tie_prefers_more_severe_level():
    # "pain" is equally close to "chest pain" (critical) and "minor pain" (low)
    scores = default_classifier.scores("pain")
    assert scores[Priority.CRITICAL] == scores[Priority.LOW]
    assert scores[Priority.CRITICAL] > scores[Priority.HIGH]
    assert scores[Priority.CRITICAL] > scores[Priority.MEDIUM]
    assert classify("pain") == Priority.CRITICAL


def test_tie_order_with_injected_scorer():
    def scorer(a, b):
        return 0.8 if b in {"fracture", "fever"} else 0.1

    classifier = PriorityClassifier(scorer=scorer)
    assert classifier.classify("something vague") == Priority.HIGH

    flat = PriorityClassifier(scorer=lambda a, b: 0.0)
    assert flat.classify("something vague") == Priority.CRITICAL

    bottom = PriorityClassifier(scorer=lambda a, b: 0.5 if b in {"cough", "vomiting"} else 0.0)
    assert bottom.classify("something vague") == Priority.MEDIUM


def test_crafted_fuzz_string_lands_in_expected_bag():
    scores = default_classifier.scores("feverish")
    assert max(scores, key=scores.get) == Priority.MEDIUM
    assert classify("feverish") == Priority.MEDIUM


def test_unknown_condition_follows_best_score():
    scores = default_classifier.scores("XYZ-unknown-condition")
    expected = max(PRIORITY_ORDER, key=lambda level: scores[level])
    assert classify("XYZ-unknown-condition") == expected


def test_empty_keyword_bag_falls_back_to_medium():
    bags = dict(KEYWORD_BAGS)
    bags[Priority.HIGH] = []
    classifier = PriorityClassifier(keyword_bags=bags)
    assert classifier.classify("severe bleeding") == Priority.MEDIUM
    # catalog lookups never touch the bags
    assert classifier.classify("Common Cold") == Priority.LOW


def test_broken_scorer_falls_back_to_medium():
    def boom(a, b):
        raise RuntimeError("scorer exploded")

    assert PriorityClassifier(scorer=boom).classify("feverish") == Priority.MEDIUM
    assert PriorityClassifier(scorer=lambda a, b: 2.5).classify("feverish") == Priority.MEDIUM


def test_describe_known_disease():
    assert describe("Common Cold") == (
        "Patient reported with Common Cold. Requires immediate medical attention based on condition."
    )


@pytest.mark.parametrize(
    "disease, severity",
    [
        ("severe bleeding", "critical"),
        ("difficulty breathing", "serious"),
        ("feverish", "moderate"),
        ("sore throat", "mild"),
    ],
)
def test_describe_uses_priority_severity(disease, severity):
    assert describe(disease) == (
        f"Patient reported with {disease}. Initial assessment indicates {severity} condition requiring medical attention."
    )


def test_describe_falls_back_when_lookup_fails():
    class BrokenCatalog:
        def lookup(self, disease):
            raise RuntimeError("catalog unavailable")

    classifier = PriorityClassifier(catalog=BrokenCatalog())
    assert classifier.describe("Gout") == "Patient reported with Gout"
    assert classifier.classify("Gout") == Priority.MEDIUM


def test_assess_joins_priority_and_description():
    result = asyncio.run(assess("Common Cold"))
    assert result.priority == Priority.LOW
    assert "Common Cold" in result.description


def test_assess_recovers_each_side_independently():
    class NoDescription(PriorityClassifier):
        def describe(self, disease):
            raise RuntimeError("template engine down")

    result = asyncio.run(assess("sore throat", classifier=NoDescription()))
    assert result.priority == Priority.LOW
    assert result.description == "Patient reported with sore throat"


def test_assess_times_out_slow_classifier():
    class Slow(PriorityClassifier):
        def classify(self, disease):
            time.sleep(0.3)
            return Priority.CRITICAL

    result = asyncio.run(assess("chest pain", classifier=Slow(), timeout=0.05))
    assert result.priority == Priority.MEDIUM
    assert result.description == "Patient reported with chest pain"


def test_assess_coerces_unknown_priority():
    class Weird(PriorityClassifier):
        def classify(self, disease):
            return "urgent"

    result = asyncio.run(assess("rash", classifier=Weird()))
    assert result.priority == Priority.MEDIUM
