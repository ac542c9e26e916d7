"""Name and slug text helpers.

All comparison in castmatch goes through ``normalize``: case-fold,
decompose accents, then keep only ASCII letters and digits, so
"T. Krishna", "t-krishna" and "T Krishna" all reduce to "tkrishna".
"""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")

# Placeholder some imports write into empty credit fields
EMPTY_CREDIT = "N/A"


def normalize(text: str | None) -> str:
    """Reduce a name or slug to lowercase ASCII letters and digits.

    Accented Latin letters fold to their base letter ("Rāmā" -> "rama").
    Scripts without an ASCII decomposition (e.g. Telugu) are dropped.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.lower())


def split_credits(value: str | None) -> list[str]:
    """Split a comma-joined credit field into trimmed, non-empty names."""
    if not value or value.strip() == EMPTY_CREDIT:
        return []
    return [name.strip() for name in value.split(",") if name.strip() and name.strip() != EMPTY_CREDIT]


def name_words(text: str | None) -> list[str]:
    """Lowercased whitespace-delimited words of a name."""
    if not text:
        return []
    return text.lower().split()


def slug_parts(slug: str) -> list[str]:
    """Significant slug parts: hyphen-separated, lowercased, longer than two characters."""
    return [part for part in slug.lower().split("-") if len(part) > 2]


def search_term(person_name: str) -> str:
    """Loose refetch term for a canonical name: its last word.

    "Akkineni Nagarjuna" -> "Nagarjuna", which catches "Nagarjuna Akkineni"
    and "Nani, Nagarjuna" as well; the matcher filters precisely afterwards.
    """
    words = _WHITESPACE.split(person_name.strip())
    return words[-1] if words and words[-1] else person_name


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so they match literally (with ESCAPE '\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def slug_search_pattern(slug: str) -> str:
    """SQL LIKE pattern for sampling records whose credits may contain the slug.

    "s-v-krishna-reddy" -> "%s%v%krishna%reddy%". Wildcards inside the slug
    are escaped, so "100%-love" only matches a literal "100%".
    """
    parts = [escape_like(p) for p in slug.lower().split("-") if p]
    if not parts:
        return "%"
    return "%" + "%".join(parts) + "%"


def slugify(name: str) -> str:
    """URL slug for a person name ("S. V. Krishna Reddy" -> "s-v-krishna-reddy")."""
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", stripped).strip("-")
