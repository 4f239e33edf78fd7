"""Tests for the response normalizer."""
import json
import logging
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from clarify.models import (
    ErrorResponse, FallbackResponse, Origin, PrimaryResponse,
)
from clarify.normalizer import extract_json_array, normalize
from clarify.errors import ParseError

from fakes import lt_match


def test_primary_match_maps_one_to_one():
    body = {"matches": [lt_match(0, 5, "Did you mean 'They're'?", ["They're", "There"],
                                 rule_id="CONFUSION_RULE", category="Possible Typo",
                                 short_message="Confused word")]}
    errors = normalize(PrimaryResponse(body=json.dumps(body)))
    assert len(errors) == 1
    e = errors[0]
    assert (e.offset, e.length) == (0, 5)
    assert e.message == "Did you mean 'They're'?"
    assert e.short_message == "Confused word"
    assert e.replacements == ("They're", "There")
    assert e.rule_id == "CONFUSION_RULE"
    assert e.category == "Possible Typo"
    assert e.rule_description == "CONFUSION_RULE rule"
    assert e.origin is Origin.PRIMARY


def test_primary_short_message_defaults_to_message():
    body = {"matches": [lt_match(3, 2, "Use 'an'", ["an"])]}
    (e,) = normalize(PrimaryResponse(body=body))
    assert e.short_message == "Use 'an'"


def test_primary_replacements_truncated_to_three_in_order():
    body = {"matches": [lt_match(0, 4, "x", ["a", "b", "c", "d", "e"])]}
    (e,) = normalize(PrimaryResponse(body=body))
    assert e.replacements == ("a", "b", "c")


def test_primary_skips_malformed_matches():
    body = {"matches": [
        lt_match(0, 4, "ok"),
        {"offset": "1", "length": 2, "message": "bad offset"},
        {"offset": 2, "length": 0, "message": "empty span"},
        "not a match",
        lt_match(6, 3, "also ok"),
    ]}
    errors = normalize(PrimaryResponse(body=body))
    assert [e.message for e in errors] == ["ok", "also ok"]


def test_primary_malformed_body_is_empty_and_reported(caplog):
    with caplog.at_level(logging.WARNING, logger="clarify.normalizer"):
        assert normalize(PrimaryResponse(body="<html>502</html>")) == ()
        assert normalize(PrimaryResponse(body={"no": "matches"})) == ()
    assert "Parse failure" in caplog.text


def test_fallback_extracts_array_from_prose():
    text = (
        "Sure! Here are the problems:\n```json\n"
        '[{"offset": 0, "length": 5, "message": "Wrong word", "replacements": ["They\'re"]}]'
        "\n```\nLet me know if you need more."
    )
    (e,) = normalize(FallbackResponse(provider="gemini", text=text))
    assert (e.offset, e.length) == (0, 5)
    assert e.replacements == ("They're",)
    assert e.rule_id == "AI_GRAMMAR"
    assert e.category == "Grammar (AI)"
    assert e.short_message == "Wrong word"
    assert e.origin is Origin.FALLBACK


def test_fallback_discards_entries_missing_fields():
    entries = [
        {"offset": 0, "length": 3, "message": "keep", "replacements": ["x"]},
        {"length": 3, "message": "no offset", "replacements": ["x"]},
        {"offset": 0, "message": "no length", "replacements": ["x"]},
        {"offset": 0, "length": 3, "replacements": ["x"]},
        {"offset": 0, "length": 3, "message": "no replacements"},
    ]
    errors = normalize(FallbackResponse(provider="openai", text=json.dumps(entries)))
    assert [e.message for e in errors] == ["keep"]


def test_fallback_wraps_scalar_replacement():
    text = '[{"offset": 4, "length": 2, "message": "m", "replacements": "is"}]'
    (e,) = normalize(FallbackResponse(provider="gemini", text=text))
    assert e.replacements == ("is",)


def test_fallback_truncates_replacements():
    text = '[{"offset": 0, "length": 1, "message": "m", "replacements": ["1","2","3","4"]}]'
    (e,) = normalize(FallbackResponse(provider="gemini", text=text))
    assert e.replacements == ("1", "2", "3")


def test_fallback_without_array_is_empty():
    assert normalize(FallbackResponse(provider="gemini", text="The text looks fine to me.")) == ()
    assert normalize(FallbackResponse(provider="gemini", text='{"errors": []}')) == ()
    assert normalize(FallbackResponse(provider="gemini", text="[not json")) == ()


def test_error_response_is_empty():
    assert normalize(ErrorResponse(provider="languagetool", reason="HTTP 500")) == ()


def test_unknown_response_type_does_not_raise():
    assert normalize({"matches": []}) == ()


def test_extract_skips_unparseable_brackets_and_strings():
    text = 'Note [see below]: [{"offset": 0, "length": 1, "message": "a ] b", "replacements": []}]'
    value = extract_json_array(text)
    assert value[0]["message"] == "a ] b"


def test_extract_raises_parse_error_when_missing():
    try:
        extract_json_array("nothing here")
    except ParseError:
        pass
    else:
        raise AssertionError("expected ParseError")


def test_primary_utf16_offsets_mapped_to_text_indices():
    text = "😀 Their going to be late. 👍 Me and him"
    # LanguageTool counts each emoji as two units
    body = {"matches": [lt_match(3, 5, "x", ["They're"]), lt_match(30, 2, "y", ["I"])]}
    first, second = normalize(PrimaryResponse(body=body), text)
    assert text[first.offset:first.end] == "Their"
    assert text[second.offset:second.end] == "Me"
    assert (first.offset, first.length) == (2, 5)


def test_primary_span_splitting_surrogate_pair_is_skipped():
    text = "😀 Their going"
    body = {"matches": [lt_match(1, 3, "splits emoji"), lt_match(3, 5, "ok")]}
    errors = normalize(PrimaryResponse(body=body), text)
    assert [e.message for e in errors] == ["ok"]


def test_primary_span_past_text_is_skipped():
    body = {"matches": [lt_match(10, 5, "too far")]}
    assert normalize(PrimaryResponse(body=body), "Short text") == ()


def test_primary_string_replacements_are_ignored():
    match = lt_match(0, 2, "x")
    match["replacements"] = "is"
    (e,) = normalize(PrimaryResponse(body={"matches": [match]}))
    assert e.replacements == ()
