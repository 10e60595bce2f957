"""
Normalisation des marques / Brand canonicalisation.
Les alias connus pointent vers une marque canonique, sinon casse titre.
"""

import string

# Alias -> marque canonique (clés en minuscules) / Alias -> canonical brand (lower-case keys)
BRAND_ALIASES: dict[str, str] = {
    "shell": "Shell",
    "coles express": "Shell",
    "reddy express": "Shell",
    "ampol": "Ampol",
    "ampol foodary": "Ampol",
    "eg ampol": "Ampol",
    "caltex": "Ampol",
}


def _title_case(value: str) -> str:
    return string.capwords(value.lower())


def canonical_brand(brand: str | None, aliases: dict[str, str] = BRAND_ALIASES) -> str | None:
    """Marque canonique / Canonical brand name."""
    if brand is None or not brand.strip():
        return None
    trimmed = brand.strip()
    mapped = aliases.get(trimmed.lower())
    if mapped:
        return mapped
    return _title_case(trimmed)


def display_brand(brand: str | None, aliases: dict[str, str] = BRAND_ALIASES) -> str | None:
    """Libellé affiché : "Shell (Coles Express)" si alias / Display label, "Shell (Coles Express)" for aliases."""
    canonical = canonical_brand(brand, aliases)
    if brand is None or not brand.strip():
        return canonical
    trimmed = brand.strip()
    if not canonical:
        return trimmed
    if canonical.lower() == trimmed.lower():
        return canonical
    return f"{canonical} ({trimmed})"


def normalize_brand_filters(brands: list[str] | None) -> list[str]:
    """Filtres de marque -> canoniques distinctes triées / Brand filters -> sorted distinct canonicals."""
    if not brands:
        return []
    seen: dict[str, str] = {}
    for brand in brands:
        canonical = canonical_brand(brand)
        if canonical and canonical.lower() not in seen:
            seen[canonical.lower()] = canonical
    return sorted(seen.values(), key=str.lower)
