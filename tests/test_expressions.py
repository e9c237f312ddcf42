"""Expression rendering tests."""

import dataclasses

import pytest

from flowquery._errors import UnsupportedExpressionError
from flowquery.expressions import (
    And,
    Eq,
    Gt,
    Gte,
    IsIpv4InSubnet,
    Like,
    Lt,
    Lte,
    Neq,
    Not,
    NotLike,
    Or,
    format_field,
    is_computed_field,
    quote,
    render,
)


class TestComparisons:
    @pytest.mark.parametrize(
        "expr, expected",
        [
            (Eq("action", "ACCEPT"), "action = 'ACCEPT'"),
            (Neq("action", "REJECT"), "action != 'REJECT'"),
            (Gt("bytes", 1000), "bytes > 1000"),
            (Lt("packets", 5), "packets < 5"),
            (Gte("bytes", 1.5), "bytes >= 1.5"),
            (Lte("dstport", 1024), "dstport <= 1024"),
        ],
    )
    def test_render(self, expr, expected):
        assert render(expr) == expected

    def test_str_matches_render(self):
        expr = Eq("dstport", 443)
        assert str(expr) == render(expr) == "dstport = 443"

    def test_computed_field_is_parenthesized(self):
        assert render(Gt("end - start", 60)) == "(end - start) > 60"

    def test_numeric_string_stays_quoted(self):
        assert render(Eq("protocol", "6")) == "protocol = '6'"


class TestPatternsAndSubnets:
    def test_like(self):
        assert render(Like("srcaddr", "10.0")) == "srcaddr like '10.0'"

    def test_not_like(self):
        assert render(NotLike("srcaddr", "10.0")) == "srcaddr not like '10.0'"

    def test_like_never_parenthesizes_field(self):
        assert render(Like("end - start", "1")) == "end - start like '1'"

    def test_subnet(self):
        assert render(IsIpv4InSubnet("srcaddr", "10.0.0.0/24")) == (
            "isIpv4InSubnet(srcaddr, '10.0.0.0/24')"
        )

    def test_negated_subnet(self):
        expr = Not(IsIpv4InSubnet("dstaddr", "192.168.0.0/16"))
        assert render(expr) == "not isIpv4InSubnet(dstaddr, '192.168.0.0/16')"


class TestBooleanCombinators:
    def test_and_is_not_parenthesized(self):
        expr = And((Eq("action", "ACCEPT"), Eq("protocol", 6)))
        assert render(expr) == "action = 'ACCEPT' and protocol = 6"

    def test_or_is_parenthesized(self):
        expr = Or((Eq("action", "ACCEPT"), Eq("action", "REJECT")))
        assert render(expr) == "(action = 'ACCEPT' or action = 'REJECT')"

    def test_single_child_or_is_parenthesized(self):
        assert render(Or((Eq("action", "ACCEPT"),))) == "(action = 'ACCEPT')"

    def test_single_child_and_is_bare(self):
        assert render(And((Eq("action", "ACCEPT"),))) == "action = 'ACCEPT'"

    def test_empty_combinators_render_empty(self):
        assert render(And(())) == ""
        assert render(Or(())) == ""

    def test_or_nested_in_and(self):
        expr = And((
            Eq("action", "ACCEPT"),
            Or((Eq("protocol", "6"), Eq("protocol", "17"))),
        ))
        assert render(expr) == "action = 'ACCEPT' and (protocol = '6' or protocol = '17')"

    def test_not_of_or(self):
        expr = Not(Or((Eq("srcport", 22), Eq("srcport", 3389))))
        assert render(expr) == "not (srcport = 22 or srcport = 3389)"

    def test_children_list_becomes_tuple(self):
        expr = And([Eq("a", "1"), Eq("b", "2")])
        assert expr.children == (Eq("a", "1"), Eq("b", "2"))


class TestQuote:
    def test_int_unquoted(self):
        assert quote(443) == "443"

    def test_float_unquoted(self):
        assert quote(0.25) == "0.25"

    @pytest.mark.parametrize("value, expected", [(1000.0, "1000"), (-2.0, "-2"), (0.0, "0")])
    def test_integral_float_has_no_fraction(self, value, expected):
        assert quote(value) == expected

    def test_huge_float_keeps_exponent(self):
        assert quote(1e300) == "1e+300"

    def test_string_quoted(self):
        assert quote("ACCEPT") == "'ACCEPT'"

    def test_single_quote_escaped(self):
        assert quote("it's") == "'it\\'s'"

    def test_bool_is_quoted(self):
        assert quote(True) == "'True'"


class TestFormatField:
    @pytest.mark.parametrize("field", ["end - start", "bytes/packets", "a*b", "a+b", "(x)"])
    def test_computed(self, field):
        assert is_computed_field(field)
        assert format_field(field) == f"({field})"

    def test_plain_name(self):
        assert not is_computed_field("log_status")
        assert format_field("log_status") == "log_status"


class TestImmutability:
    def test_nodes_are_frozen(self):
        expr = Eq("action", "ACCEPT")
        with pytest.raises(dataclasses.FrozenInstanceError):
            expr.field = "other"

    def test_equal_trees_compare_equal(self):
        left = Or((Eq("dstport", 80), Eq("dstport", 443)))
        right = Or((Eq("dstport", 80), Eq("dstport", 443)))
        assert left == right

    def test_rendering_is_stable(self):
        expr = And((Like("srcaddr", "10.0"), Not(IsIpv4InSubnet("dstaddr", "10.1.0.0/16"))))
        assert render(expr) == render(expr)


class TestUnsupported:
    def test_non_node_raises(self):
        with pytest.raises(UnsupportedExpressionError):
            render("srcaddr = 10.0.0.1")

    def test_non_node_child_raises(self):
        with pytest.raises(UnsupportedExpressionError):
            render(And((Eq("a", "1"), object())))
