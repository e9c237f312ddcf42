"""Command-options tests."""

import pytest

from flowquery import compile_query
from flowquery._errors import (
    InvalidFieldError,
    InvalidFilterClauseError,
    InvalidVerbError,
    InvalidVersionError,
    NonNumericFieldError,
)
from flowquery.builder import WithAggregations, WithFilter, WithGroupBy, WithLimit, WithVerb, WithVersion
from flowquery.command import build_command_options, parse_fields
from flowquery.verbs import Verb

from tests.conftest import V2, V5


class TestParseFields:
    @pytest.mark.parametrize(
        "args, expected",
        [
            (["bytes"], ["bytes"]),
            (["bytes,", "packets"], ["bytes", "packets"]),
            (["bytes, packets"], ["bytes", "packets"]),
            (["bytes,packets,duration"], ["bytes", "packets", "duration"]),
            ([], []),
        ],
    )
    def test_parse(self, args, expected):
        assert parse_fields(args) == expected


class TestBuildCommandOptions:
    def test_option_order(self, schema):
        options = build_command_options(schema, ["count"], by="srcaddr", filter_text="srcport = 22")
        assert [type(option) for option in options] == [
            WithVersion, WithLimit, WithVerb, WithGroupBy, WithFilter,
        ]

    def test_defaults(self, schema):
        options = build_command_options(schema, ["count"])
        assert options[0] == WithVersion(2)
        assert options[1] == WithLimit(20)

    def test_aggregation_fields(self, schema):
        options = build_command_options(schema, ["sum", "bytes,packets"])
        assert options[2] == WithVerb(Verb.SUM)
        assert isinstance(options[3], WithAggregations)
        assert [agg.field for agg in options[3].aggregations] == ["bytes", "packets"]

    def test_missing_verb(self, schema):
        with pytest.raises(InvalidVerbError, match="verb is required"):
            build_command_options(schema, [])

    def test_unknown_verb(self, schema):
        with pytest.raises(InvalidVerbError, match="unknown verb: tally"):
            build_command_options(schema, ["tally"])

    def test_bad_filter(self, schema):
        with pytest.raises(InvalidFilterClauseError):
            build_command_options(schema, ["count"], filter_text="srcport")


class TestCompileQuery:
    def test_count(self, schema):
        assert compile_query(schema, ["count"]) == (
            f"{V2} | stats count(*) as flows | sort flows desc | limit 20"
        )

    def test_sum_grouped_and_filtered(self, schema):
        query = compile_query(
            schema, ["sum", "bytes"], by="srcaddr", filter_text="dstport = 443", limit=10
        )
        assert query == (
            f"{V2} | filter dstport = 443 | stats sum(bytes) as bytes_sum by srcaddr "
            "| sort bytes_sum desc | limit 10"
        )

    def test_count_field(self, schema):
        assert compile_query(schema, ["COUNT", "srcaddr"]).endswith(
            "| stats count(srcaddr) as srcaddr_count | sort srcaddr_count desc | limit 20"
        )

    def test_raw_fields(self, schema):
        assert compile_query(schema, ["raw", "srcaddr,", "dstaddr"]) == (
            f"{V2} | display srcaddr, dstaddr | limit 20"
        )

    def test_raw_without_fields(self, schema):
        assert compile_query(schema, ["raw"]) == f"{V2} | limit 20"

    def test_computed_field_everywhere(self, schema):
        query = compile_query(schema, ["max", "duration"], filter_text="duration > 60")
        assert query == (
            f"{V2} | filter (end - start) > 60 | stats max(end - start) as duration_max "
            "| sort duration_max desc | limit 20"
        )

    def test_version_and_group_by_list(self, schema):
        query = compile_query(schema, ["count"], version=5, by="vpc_id, subnet_id")
        assert query == f"{V5} | stats count(*) as flows by vpc_id, subnet_id | sort flows desc | limit 20"

    def test_cidr_and_protocol_filter(self, schema):
        query = compile_query(
            schema,
            ["sum", "bytes"],
            filter_text="srcaddr = 10.0.0.0/8 and protocol = tcp",
        )
        assert "| filter isIpv4InSubnet(srcaddr, '10.0.0.0/8') and protocol = 6 |" in query

    def test_non_numeric_aggregation(self, schema):
        with pytest.raises(NonNumericFieldError, match="srcaddr"):
            compile_query(schema, ["sum", "srcaddr"])

    def test_field_needs_newer_version(self, schema):
        with pytest.raises(InvalidFieldError, match="vpc_id"):
            compile_query(schema, ["count"], by="vpc_id")

    def test_invalid_version(self, schema):
        with pytest.raises(InvalidVersionError):
            compile_query(schema, ["count"], version=4)
