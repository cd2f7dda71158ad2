"""Default settings loader."""

from pathlib import Path
from typing import Any

import yaml


def load_defaults() -> dict[str, Any]:
    """
    Load the packaged default settings from defaults.yaml.

    Returns
    -------
    dict[str, Any]
        Default settings keyed by setting name

    """
    path = Path(__file__).parent / "defaults.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_category_suffixes() -> list[str]:
    """
    Get the product-type suffixes stripped from category names to obtain game names.

    Returns
    -------
    list[str]
        Suffix words in match order

    """
    return list(load_defaults().get("category_suffixes", []))
