"""
Normalisation des adresses / Address normalisation.

Récupère suburb/état/postcode depuis l'adresse libre quand les champs
structurés manquent. Heuristique : un champ introuvable reste None.
Recovers suburb/state/postcode from the free-text address when the
structured fields are missing. Best effort: an unresolved field stays None.
"""

import re
import string
from collections.abc import Callable
from dataclasses import dataclass, field

DEFAULT_STATE_CODES = ("ACT", "NSW", "VIC", "QLD", "SA", "WA", "TAS", "NT")

DEFAULT_ROAD_TOKENS = frozenset({
    "RD", "ROAD", "ST", "STREET", "AVE", "AVENUE", "HWY", "HIGHWAY",
    "DR", "DRIVE", "LN", "LANE", "WAY", "BLVD", "BOULEVARD", "CT", "COURT",
    "CCT", "CRES", "CRESCENT", "PL", "PLACE", "PKWY", "PARKWAY", "TER", "TERRACE",
    "ESP", "ESPLANADE", "MTWY", "MOTORWAY",
})


@dataclass(frozen=True)
class AddressVocabulary:
    """Vocabulaire régional immuable / Immutable regional vocabulary."""
    state_codes: tuple[str, ...] = DEFAULT_STATE_CODES
    road_tokens: frozenset[str] = DEFAULT_ROAD_TOKENS
    postcode_digits: int = 4
    _patterns: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        states = "|".join(re.escape(s) for s in self.state_codes)
        digits = self.postcode_digits
        self._patterns.update({
            "state_postcode": re.compile(
                rf"\b(?P<state>{states})\s+(?P<postcode>\d{{{digits}}})\b", re.IGNORECASE
            ),
            "state": re.compile(rf"\b({states})\b", re.IGNORECASE),
            "postcode": re.compile(rf"\b\d{{{digits}}}\b"),
        })

    @property
    def state_postcode_re(self) -> re.Pattern:
        return self._patterns["state_postcode"]

    @property
    def state_re(self) -> re.Pattern:
        return self._patterns["state"]

    @property
    def postcode_re(self) -> re.Pattern:
        return self._patterns["postcode"]


@dataclass(frozen=True)
class AddressParts:
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None

    def merge(self, other: "AddressParts") -> "AddressParts":
        """Premier non-null gagne par champ / First non-null wins per field."""
        return AddressParts(
            suburb=self.suburb or other.suburb,
            state=self.state or other.state,
            postcode=self.postcode or other.postcode,
        )

    @property
    def complete(self) -> bool:
        return bool(self.suburb and self.state and self.postcode)


@dataclass(frozen=True)
class Extraction:
    parts: AddressParts
    # Reste de l'adresse après retrait du fragment reconnu / Tail left after removing the match
    remaining: str


Extractor = Callable[[str, AddressParts, AddressVocabulary], Extraction | None]

_DIGITS_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s{2,}")


def normalize_suburb(value: str) -> str:
    return string.capwords(value.strip().lower())


def normalize_state(value: str) -> str:
    return value.strip().upper()


def normalize_postcode(value: str) -> str:
    return value.strip()


def address_tail(address: str) -> str:
    """Dernier segment non vide séparé par virgule / Last non-empty comma-delimited segment."""
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if not parts:
        return address
    return parts[-1]


def extract_state_postcode(tail: str, resolved: AddressParts, vocab: AddressVocabulary) -> Extraction | None:
    match = vocab.state_postcode_re.search(tail)
    if not match:
        return None
    return Extraction(
        parts=AddressParts(
            state=normalize_state(match.group("state")),
            postcode=normalize_postcode(match.group("postcode")),
        ),
        remaining=tail[:match.start()],
    )


def extract_state(tail: str, resolved: AddressParts, vocab: AddressVocabulary) -> Extraction | None:
    if resolved.state:
        return None
    match = vocab.state_re.search(tail)
    if not match:
        return None
    return Extraction(AddressParts(state=normalize_state(match.group(0))), tail[:match.start()])


def extract_postcode(tail: str, resolved: AddressParts, vocab: AddressVocabulary) -> Extraction | None:
    if resolved.postcode:
        return None
    match = vocab.postcode_re.search(tail)
    if not match:
        return None
    return Extraction(AddressParts(postcode=normalize_postcode(match.group(0))), tail[:match.start()])


def extract_suburb_tokens(tail: str, resolved: AddressParts, vocab: AddressVocabulary) -> Extraction | None:
    """Remonter les mots depuis la fin jusqu'à un numéro ou un type de voie /
    Walk tokens back from the end until a number or road-type token."""
    if resolved.suburb or not tail.strip():
        return None

    suburb_tokens: list[str] = []
    for raw_token in reversed(tail.split()):
        token = raw_token.strip().rstrip(".,")
        if not token:
            continue
        upper = token.upper()
        if any(ch.isdigit() for ch in upper) or upper in vocab.road_tokens:
            break
        suburb_tokens.append(token)

    if not suburb_tokens:
        return None
    suburb_tokens.reverse()
    return Extraction(AddressParts(suburb=normalize_suburb(" ".join(suburb_tokens))), tail)


def extract_suburb_remainder(tail: str, resolved: AddressParts, vocab: AddressVocabulary) -> Extraction | None:
    """Dernier recours : reste sans codes d'état ni chiffres / Last resort: tail without state codes or digits."""
    if resolved.suburb:
        return None
    cleaned = vocab.state_re.sub("", tail)
    cleaned = _DIGITS_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip(" ,.")
    if not cleaned:
        return None
    return Extraction(AddressParts(suburb=normalize_suburb(cleaned)), tail)


DEFAULT_EXTRACTORS: tuple[Extractor, ...] = (
    extract_state_postcode,
    extract_state,
    extract_postcode,
    extract_suburb_tokens,
    extract_suburb_remainder,
)


class AddressNormalizer:
    """Chaîne d'extracteurs composés de gauche à droite / Extractor chain composed left to right."""

    def __init__(
        self,
        vocabulary: AddressVocabulary | None = None,
        extractors: tuple[Extractor, ...] = DEFAULT_EXTRACTORS,
    ):
        self.vocabulary = vocabulary or AddressVocabulary()
        self.extractors = extractors

    def resolve(
        self,
        raw_suburb: str | None,
        raw_state: str | None,
        raw_postcode: str | None,
        raw_address: str | None,
    ) -> AddressParts:
        # Les champs structurés non vides gagnent / Non-blank structured fields win
        resolved = AddressParts(
            suburb=normalize_suburb(raw_suburb) if raw_suburb and raw_suburb.strip() else None,
            state=normalize_state(raw_state) if raw_state and raw_state.strip() else None,
            postcode=normalize_postcode(raw_postcode) if raw_postcode and raw_postcode.strip() else None,
        )
        if resolved.complete or not raw_address or not raw_address.strip():
            return resolved

        tail = address_tail(raw_address)
        for extractor in self.extractors:
            if not tail.strip():
                break
            extraction = extractor(tail, resolved, self.vocabulary)
            if extraction is None:
                continue
            resolved = resolved.merge(extraction.parts)
            tail = extraction.remaining
        return resolved
