"""
Insurance category normalization.

Catalog entries, scans and collaborator settings spell categories in
several ways (LAMal, santé, Vie, 3e pilier...). Rate selection and
reconciliation only distinguish health, life and everything else.
"""

from typing import Optional

HEALTH = "health"
LIFE = "life"
OTHER = "other"

_HEALTH_ALIASES = {
    "health", "sante", "santé", "maladie", "lamal", "lca", "kvg", "vvg",
    "assurance maladie", "complementaire", "complémentaire",
}
_LIFE_ALIASES = {
    "life", "vie", "assurance vie", "3a", "3b", "pilier 3a", "pilier 3b",
    "3e pilier", "3ème pilier", "prevoyance", "prévoyance",
}


def normalize_category(value: Optional[str]) -> str:
    """
    Map a free-text category to health, life or a lower-cased label.

    Examples:
        "LAMal" -> "health"
        "3e pilier" -> "life"
        "RC ménage" -> "rc ménage"
        None -> "other"
    """
    if not value:
        return OTHER
    key = value.strip().lower()
    if not key:
        return OTHER
    if key in _HEALTH_ALIASES:
        return HEALTH
    if key in _LIFE_ALIASES:
        return LIFE
    return key


def is_health_or_life(value: Optional[str]) -> bool:
    return normalize_category(value) in (HEALTH, LIFE)
