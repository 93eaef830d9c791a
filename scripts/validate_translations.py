#!/usr/bin/env python3
"""Check that every message catalogue covers the keys the backend looks up."""

from __future__ import annotations

import argparse
import json
import re
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
TRANSLATIONS_DIR = REPO_ROOT / "src" / "templetax" / "translations"
BACKEND_DIR = REPO_ROOT / "src" / "templetax" / "backend"
BASE_LOCALE = "en"

# Literal keys passed to a translator, e.g. translator("errors.not_found").
KEY_PATTERN = re.compile(r"translator\(\s*[\"']([a-z0-9_.]+)[\"']\s*\)")
STATUS_PREFIX = "status."


class ValidationError(Exception):
    """Raised when a catalogue cannot be read."""


def load_catalogues() -> dict[str, dict[str, str]]:
    catalogues: dict[str, dict[str, str]] = {}
    if not TRANSLATIONS_DIR.is_dir():
        raise ValidationError(f"Missing translations directory: {TRANSLATIONS_DIR}")

    for path in sorted(TRANSLATIONS_DIR.glob("*.json")):
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        messages = payload.get("messages") if isinstance(payload, dict) else None
        if not isinstance(messages, dict):
            raise ValidationError(f"{path.name} must define a 'messages' mapping")
        catalogues[path.stem] = {str(key): str(value) for key, value in messages.items()}
    return catalogues


def referenced_keys() -> set[str]:
    """Collect literal translator keys plus one key per breakdown status."""

    keys: set[str] = set()
    for path in BACKEND_DIR.rglob("*.py"):
        keys.update(KEY_PATTERN.findall(path.read_text(encoding="utf-8")))

    sys.path.insert(0, str(REPO_ROOT / "src"))
    from templetax.backend.app.models import BreakdownStatus

    keys.update(f"{STATUS_PREFIX}{status.value}" for status in BreakdownStatus)
    return keys


def find_issues(catalogues: dict[str, dict[str, str]], keys: set[str]) -> list[str]:
    issues: list[str] = []
    base = catalogues.get(BASE_LOCALE)
    if base is None:
        return [f"base locale '{BASE_LOCALE}' catalogue is missing"]

    for key in sorted(keys - base.keys()):
        issues.append(f"[{BASE_LOCALE}] missing key referenced by the backend: {key}")

    for locale, messages in sorted(catalogues.items()):
        unknown = sorted(messages.keys() - base.keys())
        for key in unknown:
            issues.append(f"[{locale}] key not present in the base catalogue: {key}")
        empty = sorted(key for key, value in messages.items() if not value.strip())
        for key in empty:
            issues.append(f"[{locale}] empty message: {key}")
    return issues


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--report-missing",
        action="store_true",
        help="Also list base keys that non-base locales fall back on",
    )
    args = parser.parse_args(argv)

    try:
        catalogues = load_catalogues()
    except ValidationError as error:
        print(error)
        return 1

    issues = find_issues(catalogues, referenced_keys())
    if args.report_missing:
        base = catalogues.get(BASE_LOCALE, {})
        for locale, messages in sorted(catalogues.items()):
            for key in sorted(base.keys() - messages.keys()):
                print(f"[{locale}] falls back to {BASE_LOCALE} for: {key}")

    for issue in issues:
        print(issue)
    return 1 if issues else 0


if __name__ == "__main__":
    raise SystemExit(main())
