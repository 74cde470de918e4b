"""
Loads the vocabulary catalog: an ordered list of (word, meaning) entries.

Entries are identified only by their position, so the order in the source file
is kept. Malformed entries are dropped, which shifts later positions; stored
progress for a catalog whose length changed is discarded on load.
"""

import json
import logging
from importlib.resources import files
from pathlib import Path
from typing import Any, List, Tuple, Union

import yaml
from pydantic import ValidationError

from .exceptions import CatalogError
from .models import CatalogEntry

logger = logging.getLogger(__name__)

BUNDLED_CATALOG = "voca.json"


def _parse_text(text: str, source: Union[str, Path]) -> Any:
    suffix = Path(str(source)).suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CatalogError(source, f"Invalid YAML syntax: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogError(source, f"Invalid JSON: {e}") from e


def parse_entries(
    raw_entries: Any, source: Union[str, Path] = "<catalog>"
) -> Tuple[List[CatalogEntry], List[str]]:
    """
    Validate raw entries into CatalogEntry objects.

    Returns:
        (entries, problems) where `problems` describes every dropped entry.

    Raises:
        CatalogError: If `raw_entries` is not a list.
    """
    if not isinstance(raw_entries, list):
        raise CatalogError(
            source, "Top level of a catalog must be a list of entries."
        )

    entries: List[CatalogEntry] = []
    problems: List[str] = []
    for idx, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            problems.append(f"Entry at index {idx} is not a mapping.")
            continue
        try:
            entries.append(
                CatalogEntry(word=raw.get("word"), meaning=raw.get("meaning"))
            )
        except ValidationError as e:
            error_details = e.errors()[0]
            field = ".".join(map(str, error_details["loc"]))
            problems.append(
                f"Entry at index {idx}: field '{field}': {error_details['msg']}"
            )
    return entries, problems


def _load_from_text(text: str, source: Union[str, Path]) -> List[CatalogEntry]:
    entries, problems = parse_entries(_parse_text(text, source), source)
    for problem in problems:
        logger.warning(f"Dropped catalog entry from {source}: {problem}")
    logger.info(f"Loaded {len(entries)} catalog entries from {source}")
    return entries


def load_catalog(path: Union[str, Path]) -> List[CatalogEntry]:
    """
    Load a catalog from a JSON or YAML file.

    Raises:
        CatalogError: If the file is missing, unreadable, not valid JSON/YAML,
            or its top level is not a list.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CatalogError(path, "File not found.") from None
    except OSError as e:
        raise CatalogError(path, f"Could not read file: {e}") from e
    return _load_from_text(text, path)


def load_bundled_catalog() -> List[CatalogEntry]:
    """Load the catalog that ships inside the package."""
    resource = files("vocacore.data").joinpath(BUNDLED_CATALOG)
    return _load_from_text(resource.read_text(encoding="utf-8"), BUNDLED_CATALOG)
