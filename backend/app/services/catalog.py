# app/services/catalog.py
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from app.models.request import Priority

logger = logging.getLogger(__name__)

# -------------------------------
# Static reference data
# Files: app/data/diseases.json, app/data/priority_keywords.json
# -------------------------------
DATA_DIR = Path(__file__).parent.parent / "data"
DISEASES_JSON_PATH = DATA_DIR / "diseases.json"
KEYWORDS_JSON_PATH = DATA_DIR / "priority_keywords.json"


@dataclass(frozen=True)
class KnownDisease:
    english: str
    localized: str
    priority: Priority


def normalize(text: str) -> str:
    return text.strip().lower()


def _load_json(path: Path):
    if not path.exists():
        raise RuntimeError(
            f"❌ Critical: reference data not found at {path}.\n"
            "Did you include 'app/data/' in your build?\n"
            "This is required for request triage to function."
        )
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"❌ Invalid JSON in {path}: {e}")


def load_disease_catalog(path: Path = DISEASES_JSON_PATH) -> List[KnownDisease]:
    data = _load_json(path)
    catalog = [
        KnownDisease(english=d["english"], localized=d.get("localized", ""), priority=Priority(d["priority"]))
        for d in data
    ]
    logger.info(f"✅ Loaded {len(catalog)} known diseases")
    return catalog


def load_keyword_bags(path: Path = KEYWORDS_JSON_PATH) -> Dict[Priority, List[str]]:
    data = _load_json(path)
    return {Priority(level): list(phrases) for level, phrases in data.items()}


class DiseaseCatalog:
    """Case-insensitive exact-match index over the known disease list."""

    def __init__(self, entries: List[KnownDisease]):
        self.entries = list(entries)
        self._by_name = {normalize(e.english): e for e in self.entries}

    def lookup(self, disease: str) -> Optional[KnownDisease]:
        return self._by_name.get(normalize(disease))

    def __contains__(self, disease: str) -> bool:
        return self.lookup(disease) is not None

    def __len__(self):
        return len(self.entries)


DISEASE_CATALOG = DiseaseCatalog(load_disease_catalog())
KEYWORD_BAGS = load_keyword_bags()
