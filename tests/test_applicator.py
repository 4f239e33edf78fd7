"""Tests for splicing accepted corrections into live text."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from clarify.applicator import CorrectionApplicator, splice
from clarify.errors import OutOfRangeSplice
from clarify.models import GrammarError, Origin
from clarify.overlay import OverlayRenderer
from clarify.registry import ElementRegistry

from fakes import FakeLayer, FakeSurface

TEXT = "Their going to be late."


def make(text=TEXT):
    registry = ElementRegistry()
    layer = FakeLayer()
    renderer = OverlayRenderer(layer, registry)
    edits = []
    applicator = CorrectionApplicator(registry, renderer, edits.append)
    surface = FakeSurface(text)
    element = registry.attach(surface)
    return applicator, renderer, layer, surface, element, edits


def test_splice_round_trip():
    assert splice(TEXT, 0, 5, "They're") == "They're going to be late."
    assert splice("abc", 3, 0, "d") == "abcd"
    assert splice("abc", 0, 3, "") == ""


def test_splice_out_of_range():
    with pytest.raises(OutOfRangeSplice):
        splice("short", 3, 5, "x")
    with pytest.raises(OutOfRangeSplice):
        splice("short", -1, 1, "x")


def test_apply_writes_text_and_places_caret():
    applicator, _, _, surface, element, edits = make()
    surface.caret = 2
    assert applicator.apply(element.id, 0, 5, "They're")
    assert surface.text == "They're going to be late."
    assert surface.caret == len("They're")
    assert surface.focused
    assert edits == [element.id]


def test_apply_uses_live_text_not_snapshot():
    applicator, _, _, surface, element, _ = make()
    surface.type(" Sorry!")  # user kept typing after the check
    assert applicator.apply(element.id, 0, 5, "They're")
    assert surface.text == "They're going to be late. Sorry!"


def test_apply_clears_annotations():
    applicator, renderer, layer, surface, element, _ = make()
    error = GrammarError(0, 5, "m", "m", ("They're",), "R", "Grammar", Origin.PRIMARY)
    renderer.render(element.id, [error])
    applicator.apply(element.id, 0, 5, "They're")
    assert element.id not in layer.regions
    assert element.current_errors == ()


def test_apply_aborts_when_span_drifted():
    applicator, _, _, surface, element, edits = make()
    surface.text = "Late."  # user deleted most of the text
    assert not applicator.apply(element.id, 6, 5, "going")
    assert surface.text == "Late."
    assert edits == []


def test_apply_on_detached_element_is_noop():
    applicator, _, _, surface, element, edits = make()
    assert not applicator.apply("missing-id", 0, 1, "x")
    assert surface.text == TEXT
    assert edits == []
