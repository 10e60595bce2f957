"""Tests normalisation des adresses / Address normaliser tests."""

from fuel_finder.services.address_normalizer import (
    AddressNormalizer,
    AddressParts,
    AddressVocabulary,
    address_tail,
    extract_suburb_remainder,
)


def test_fallback_from_address():
    parts = AddressNormalizer().resolve("", " ", None, "12 Main St, Kingsford NSW 2032")
    assert parts == AddressParts(suburb="Kingsford", state="NSW", postcode="2032")


def test_structured_fields_win():
    parts = AddressNormalizer().resolve("KINGSFORD", " nsw ", "2032 ", "1 Other Rd, Randwick NSW 2031")
    assert parts == AddressParts(suburb="Kingsford", state="NSW", postcode="2032")


def test_missing_fields_only_are_filled():
    parts = AddressNormalizer().resolve("Kensington", None, None, "5 Anzac Pde, Kingsford NSW 2032")
    assert parts.suburb == "Kensington"
    assert parts.state == "NSW"
    assert parts.postcode == "2032"


def test_suburb_stops_at_road_token():
    parts = AddressNormalizer().resolve(None, None, None, "100 Parramatta Road Homebush West NSW 2140")
    assert parts.suburb == "Homebush West"
    assert parts.postcode == "2140"


def test_state_without_postcode():
    parts = AddressNormalizer().resolve(None, None, None, "5 King St, NEWTOWN nsw")
    assert parts == AddressParts(suburb="Newtown", state="NSW", postcode=None)


def test_remainder_extractor():
    normalizer = AddressNormalizer(extractors=(extract_suburb_remainder,))
    assert normalizer.resolve(None, None, None, "Bankstown 2200").suburb == "Bankstown"


def test_malformed_input_never_raises():
    normalizer = AddressNormalizer()
    assert normalizer.resolve(None, None, None, ",,,") == AddressParts()
    assert normalizer.resolve(None, None, None, "   ") == AddressParts()
    assert normalizer.resolve(None, None, None, None) == AddressParts()
    assert normalizer.resolve(None, None, None, "NSW 2000") == AddressParts(state="NSW", postcode="2000")


def test_custom_vocabulary():
    vocab = AddressVocabulary(state_codes=("ACT",), road_tokens=frozenset({"RD"}))
    parts = AddressNormalizer(vocabulary=vocab).resolve(None, None, None, "9 Canberra Rd Fyshwick ACT 2609")
    assert parts == AddressParts(suburb="Fyshwick", state="ACT", postcode="2609")


def test_address_tail():
    assert address_tail("12 Main St, Kingsford NSW 2032") == "Kingsford NSW 2032"
    assert address_tail("Kingsford") == "Kingsford"
    assert address_tail(", ,") == ", ,"
