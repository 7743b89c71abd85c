"""Tests for the textual configuration protocol."""

import pytest

from nlp_feature_harness.errors import ConfigurationError
from nlp_feature_harness.serialization import (
    ConfigReader,
    deserialize_list,
    escape_value,
    parse_call,
    serialize_block,
    serialize_list,
    split_top_level,
    unescape_value,
)


def test_escape_round_trip_with_special_characters():
    value = "a,b (c)\\d\nnext"
    assert unescape_value(escape_value(value)) == value
    assert "," not in escape_value(value).replace("\\,", "")


def test_split_top_level_respects_parentheses_and_escapes():
    text = "a=1, b=F(x=1, y=2), c=d\\,e"
    assert split_top_level(text) == ["a=1", "b=F(x=1, y=2)", "c=d\\,e"]
    assert split_top_level("") == []


def test_split_top_level_rejects_unbalanced():
    with pytest.raises(ConfigurationError):
        split_top_level("a=(1")


def test_parse_call():
    name, arguments = parse_call("DependencyPath(minFeatureOccurrence=2, useRelationTypes=false)")
    assert name == "DependencyPath"
    assert arguments == ["minFeatureOccurrence=2", "useRelationTypes=false"]

    name, arguments = parse_call("Accuracy()")
    assert name == "Accuracy"
    assert arguments == []


def test_list_round_trip():
    values = ["0.1", "a,b", "(x)"]
    text = serialize_list(values)
    assert text.startswith("(") and text.endswith(")")
    assert deserialize_list(text) == values
    assert deserialize_list("C(0.1, 1, 10)") == ["0.1", "1", "10"]


def test_reader_skips_comments_and_reads_blocks():
    text = "\n".join(
        [
            "# experiment",
            "",
            "crossValidationFolds=5",
            "feature_f=Conjunction(featureReferences=a/b)",
            "{",
            "\t0=x//p",
            "\t1=y\\,z",
            "}",
            "model=MajorityLabel()",
        ]
    )
    reader = ConfigReader(text)

    first = reader.read_assignment()
    assert (first.label, first.value, first.line) == ("crossValidationFolds", "5", 3)
    assert reader.read_block() is None

    second = reader.read_assignment()
    assert second.label == "feature_f"
    assert second.line == 4
    block = reader.read_block()
    assert [(e.key, e.value, e.line) for e in block] == [("0", "x//p", 6), ("1", "y,z", 7)]

    third = reader.read_assignment()
    assert third.label == "model"
    assert reader.read_assignment() is None


def test_reader_reports_unterminated_block_line():
    reader = ConfigReader("feature=X()\n{\n0=a\n")
    reader.read_assignment()
    with pytest.raises(ConfigurationError) as excinfo:
        reader.read_block()
    assert excinfo.value.line == 2


def test_reader_rejects_stray_block():
    reader = ConfigReader("{\n0=a\n}")
    with pytest.raises(ConfigurationError) as excinfo:
        reader.read_assignment()
    assert excinfo.value.line == 1


def test_serialize_block_is_read_back():
    text = "feature=X()\n" + serialize_block([("0", "a(b)"), ("1", "c")])
    reader = ConfigReader(text)
    reader.read_assignment()
    assert [(e.key, e.value) for e in reader.read_block()] == [("0", "a(b)"), ("1", "c")]
