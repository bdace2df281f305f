"""Normalise a model's extraction output into the candidate field schema.

The model response is a hint, not ground truth: nothing here raises. Every
field the schema expects comes back as a string, with the "-" sentinel
standing in for anything missing, blank, placeholder or non-scalar.
"""
import re
import unicodedata
from typing import Any, Dict, Optional

from ..models.candidate import UNSET, EXTRACTED_FIELDS, LANGUAGE_FIELD, LANGUAGE_KEYS

# labels the prompt asks the model to fill, in field order
FIELD_LABELS = dict(zip(EXTRACTED_FIELDS, (
    "Nom",
    "Prénom",
    "Date de naissance",
    "Adress Actuel",
    "Post Actuel",
    "Société",
    "Date d'embauche",
    "Salaire net Actuel",
    "Votre dernier diplome",
)))
LANGUAGE_LABEL = "Votre niveau de l'anglais technique"
LANGUAGE_LABELS = dict(zip(LANGUAGE_KEYS, ("Lu", "Ecrit", "Parlé")))

LEVELS = ("Faible", "Moyen", "Bien")
PLACEHOLDER = "string"

_TOKEN_SPLIT = re.compile(r"[\s,;/|+&]+")


def _fold(s: str) -> str:
    s = unicodedata.normalize("NFKD", s)
    return "".join(c for c in s if not unicodedata.combining(c)).casefold().strip()


_LEVELS_FOLDED = {_fold(level): level for level in LEVELS}


def _lookup(mapping: Any, label: str) -> Any:
    """Fetch ``label`` from ``mapping``, tolerating case and accent drift in keys."""
    if not isinstance(mapping, dict):
        return None
    if label in mapping:
        return mapping[label]
    wanted = _fold(label)
    for k, v in mapping.items():
        if isinstance(k, str) and _fold(k) == wanted:
            return v
    return None


def clean_value(value: Any) -> str:
    if isinstance(value, bool) or value is None:
        return UNSET
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return UNSET
    s = value.strip()
    if not s or s == PLACEHOLDER:
        return UNSET
    return s


def resolve_level(value: Any) -> str:
    """Exactly one recognised level -> that level; zero or several -> "-".

    Accepts what models actually return for a grid row: a single word, a
    list of marked levels, or a string like "Moyen, Bien". Any token that is
    not a level (e.g. a bare "X" or "oui") makes the row ambiguous.
    """
    if isinstance(value, (list, tuple)):
        tokens = []
        for item in value:
            if not isinstance(item, str):
                return UNSET
            tokens.extend(_TOKEN_SPLIT.split(item))
    elif isinstance(value, str):
        tokens = _TOKEN_SPLIT.split(value)
    else:
        return UNSET

    found = []
    for t in tokens:
        t = t.strip(".:;!\"'()[]")
        if not t or t == UNSET:
            continue
        level = _LEVELS_FOLDED.get(_fold(t))
        if level is None:
            return UNSET
        found.append(level)
    if len(found) != 1:
        return UNSET
    return found[0]


def normalize_language(grid: Any) -> Dict[str, str]:
    return {key: resolve_level(_lookup(grid, label)) for key, label in LANGUAGE_LABELS.items()}


def normalize_fields(extracted: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Map a raw model dict (French labels) to candidate fields with defaults."""
    out = {field: clean_value(_lookup(extracted, label)) for field, label in FIELD_LABELS.items()}
    out[LANGUAGE_FIELD] = normalize_language(_lookup(extracted, LANGUAGE_LABEL))
    return out


def normalize_candidate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Same defaults for data arriving in field names (manual edits on save)."""
    out = {field: clean_value(fields.get(field)) for field in EXTRACTED_FIELDS}
    grid = fields.get(LANGUAGE_FIELD)
    out[LANGUAGE_FIELD] = {
        key: resolve_level(grid.get(key)) if isinstance(grid, dict) else UNSET
        for key in LANGUAGE_KEYS
    }
    return out
