# app/validate_catalog.py
import json
import sys
from pathlib import Path
from typing import List

DATA_DIR = Path(__file__).parent / "data"
PRIORITIES = {"low", "medium", "high", "critical"}


def _load(file_path: Path):
    if not file_path.exists():
        return None, [f"{file_path} not found!"]
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f), []
    except json.JSONDecodeError as e:
        return None, [f"Invalid JSON in {file_path}: {e}"]


def check_diseases(data) -> List[str]:
    errors = []
    if not isinstance(data, list):
        return ["diseases.json must contain a list"]

    required_keys = {"english", "localized", "priority"}
    seen = set()
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            errors.append(f"Disease {i}: must be an object")
            continue
        missing = required_keys - entry.keys()
        if missing:
            errors.append(f"Disease {i}: missing keys {sorted(missing)}")
        if entry.get("priority") not in PRIORITIES:
            errors.append(f"Disease {i}: invalid priority {entry.get('priority')!r}")
        name = str(entry.get("english", "")).strip().lower()
        if not name:
            errors.append(f"Disease {i}: empty english name")
        elif name in seen:
            errors.append(f"Disease {i}: duplicate name {entry['english']!r}")
        seen.add(name)
    return errors


def check_keywords(data) -> List[str]:
    errors = []
    if not isinstance(data, dict):
        return ["priority_keywords.json must contain an object"]

    missing = PRIORITIES - data.keys()
    if missing:
        errors.append(f"Keyword bags missing levels {sorted(missing)}")
    for level, phrases in data.items():
        if level not in PRIORITIES:
            errors.append(f"Unknown priority level {level!r}")
        if not isinstance(phrases, list) or not phrases:
            errors.append(f"Level {level!r}: must be a non-empty list of phrases")
        elif not all(isinstance(p, str) and p.strip() for p in phrases):
            errors.append(f"Level {level!r}: phrases must be non-empty strings")
    return errors


def validate_catalog_files(data_dir: Path = DATA_DIR) -> List[str]:
    errors = []
    diseases, load_errors = _load(data_dir / "diseases.json")
    errors += load_errors
    if diseases is not None:
        errors += check_diseases(diseases)

    keywords, load_errors = _load(data_dir / "priority_keywords.json")
    errors += load_errors
    if keywords is not None:
        errors += check_keywords(keywords)
    return errors


if __name__ == "__main__":
    print(f"🔍 Validating reference data in {DATA_DIR}...")
    problems = validate_catalog_files()
    if problems:
        for err in problems:
            print(f"❌ {err}")
        sys.exit(1)
    print("✅ Disease catalog and keyword bags validated successfully.")
