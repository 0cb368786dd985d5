"""Tests for the Namespace model."""

import pytest

from metis_ops.core.errors import InvalidConfigError
from metis_ops.namespaces.namespace import Namespace

EDM = Namespace(
    "edm",
    "http://www.europeana.eu/schemas/edm/",
    {"agent": "Agent", "place": "Place", "timeSpan": "TimeSpan", "timespan": "TimeSpan"},
)


def test_values_are_stripped():
    namespace = Namespace(" dc ", " http://purl.org/dc/elements/1.1/ ")
    assert namespace.prefix == "dc"
    assert namespace.uri == "http://purl.org/dc/elements/1.1/"


@pytest.mark.parametrize("prefix, uri", [("", "http://a/"), ("  ", "http://a/"), ("a", "")])
def test_blank_values_rejected(prefix, uri):
    with pytest.raises(InvalidConfigError):
        Namespace(prefix, uri)


@pytest.mark.parametrize(
    "tag, expected",
    [("agent", "Agent"), ("timespan", "TimeSpan"), ("timeSpan", "TimeSpan"), ("isShownBy", "isShownBy")],
)
def test_capitalize_tag_name(tag, expected):
    assert EDM.capitalize_tag_name(tag) == expected


def test_qualify():
    assert EDM.qualify("place") == "edm:Place"
    assert EDM.qualify("place", "/") == "edm/Place"


def test_equality_ignores_capitalizations():
    plain = Namespace("edm", "http://www.europeana.eu/schemas/edm/")
    assert plain == EDM
    assert hash(plain) == hash(EDM)
    assert plain != Namespace("edm", "http://other/")


def test_capitalizations_are_read_only():
    with pytest.raises(TypeError):
        EDM.capitalizations["concept"] = "Concept"
