import pytest

from shapegrammar.language.errors import (
    DuplicateDefinition, GrammarSyntaxError, UndefinedVariable, UnknownProperty, UnknownRule, UnreachableCase,
)
from shapegrammar.language.expression import (
    Binary, BinaryOperator, ExpressionOrRange, Number, PropertyAccess, Variable,
)
from shapegrammar.language.grammar import Primitive, PrimitiveMethod, RuleMethod
from shapegrammar.language.parser import parse_program
from shapegrammar.language.properties import PropertyKey

PASCAL = "let hue 40\npascal\nrul pascal\ntriangle v0.5\npascal h ?hue p 0.5 ym0.5"


def first_value(program):
    return parse_program(program).top_level[0].assignments[0].value


class TestInvocations:
    def test_single_primitive(self):
        grammar = parse_program("circle v0.5")
        (invocation,) = grammar.top_level
        assert invocation.method == PrimitiveMethod(Primitive.CIRCLE)
        assert invocation.assignments[0].key is PropertyKey.V
        assert invocation.assignments[0].value == ExpressionOrRange(Number(0.5))

    def test_leading_m_is_minus(self):
        assert first_value("circle xm0.3") == ExpressionOrRange(Number(-0.3))
        assert first_value("circle x M.5") == ExpressionOrRange(Number(-0.5))

    def test_several_invocations_on_one_line(self):
        grammar = parse_program("circle circle p 0.5 square")
        assert [inv.method for inv in grammar.top_level] == [
            PrimitiveMethod(Primitive.CIRCLE), PrimitiveMethod(Primitive.CIRCLE), PrimitiveMethod(Primitive.SQUARE),
        ]
        assert len(grammar.top_level[1].assignments) == 1

    def test_properties_stay_on_their_line(self):
        with pytest.raises(GrammarSyntaxError) as excinfo:
            parse_program("circle\np 0.5")
        assert excinfo.value.line == 2

    def test_unknown_property_key(self):
        with pytest.raises(UnknownProperty) as excinfo:
            parse_program("circle q 0.5")
        assert excinfo.value.name == "q"

    def test_unknown_property_access(self):
        with pytest.raises(UnknownProperty):
            parse_program("circle p (@z)")


class TestValues:
    def test_kept_range(self):
        assert first_value("circle p 0.5..1") == ExpressionOrRange(Number(0.5), Number(1.0), False)

    def test_random_range(self):
        assert first_value("circle x m1...1") == ExpressionOrRange(Number(-1.0), Number(1.0), True)

    def test_expression_is_folded(self):
        assert first_value("circle p (1 + 2 * 3)") == ExpressionOrRange(Number(7.0))

    @pytest.mark.parametrize("source, expected", [
        ("(2 mul 3)", 6.0),
        ("(2 and 0)", 0.0),
        ("(2 && 3)", 1.0),
        ("(1 + 2 < 4)", 1.0),
        ("(0 or 1 == 1)", 1.0),
        ("(-2 - -3)", 1.0),
        ("(abs -4)", 4.0),
        ("((1 + 1) * 2)", 4.0),
    ])
    def test_operator_precedence(self, source, expected):
        assert first_value(f"circle a {source}") == ExpressionOrRange(Number(expected))

    def test_expression_may_span_lines(self):
        assert first_value("circle p (1 +\n 2)") == ExpressionOrRange(Number(3.0))

    def test_property_access_in_rule(self):
        grammar = parse_program("a\nrul a\ncircle p (@p * 0.5)")
        value = grammar.rules["a"].cases[0].invocations[0].assignments[0].value
        assert value.first == Binary(PropertyAccess(PropertyKey.P), BinaryOperator.MUL, Number(0.5))

    def test_variable_reference(self):
        grammar = parse_program("let k 2\ncircle p ?K")
        assert grammar.top_level[0].assignments[0].value.first == Variable("K")


class TestStatements:
    def test_pascal_program(self):
        grammar = parse_program(PASCAL)
        assert grammar.constants == {"hue": 40.0}
        assert grammar.top_level[0].method == RuleMethod("pascal")
        (case,) = grammar.rules["pascal"].cases
        assert case.probability is None
        assert [len(inv.assignments) for inv in case.invocations] == [1, 3]

    def test_let_evaluates_against_earlier_constants(self):
        grammar = parse_program("let a 2\nlet b (?a * 3)\ncircle p ?b")
        assert grammar.constants == {"a": 2.0, "b": 6.0}

    def test_conditional_cases(self):
        grammar = parse_program("a\nrul a 0.5\ncircle\nrule A\nsquare")
        cases = grammar.rules["a"].cases
        assert cases[0].probability == Number(0.5)
        assert cases[1].probability is None

    def test_end_closes_the_case(self):
        grammar = parse_program("rul a\ncircle\nEND\nsquare")
        assert [inv.method for inv in grammar.top_level] == [PrimitiveMethod(Primitive.SQUARE)]
        assert len(grammar.rules["a"].cases[0].invocations) == 1

    def test_let_closes_the_case(self):
        grammar = parse_program("rul a\ncircle\nlet k 1\nsquare p ?k")
        assert len(grammar.top_level) == 1


class TestErrors:
    def test_unreachable_case(self):
        with pytest.raises(UnreachableCase):
            parse_program("a\nrul a\ncircle\nrul a\nsquare")

    def test_unknown_rule(self):
        with pytest.raises(UnknownRule) as excinfo:
            parse_program("circle\nnowhere p 0.5")
        assert excinfo.value.name == "nowhere"

    def test_undefined_variable(self):
        with pytest.raises(UndefinedVariable) as excinfo:
            parse_program("square h ?missing")
        assert excinfo.value.name == "missing"

    def test_undefined_variable_in_probability(self):
        with pytest.raises(UndefinedVariable):
            parse_program("a\nrul a ?chance\ncircle")

    def test_duplicate_constant(self):
        with pytest.raises(DuplicateDefinition):
            parse_program("let a 1\nlet A 2\ncircle")

    def test_rule_named_after_primitive(self):
        with pytest.raises(DuplicateDefinition):
            parse_program("rul circle\nsquare")

    @pytest.mark.parametrize("program, line", [
        ("circle p (1 + 2", 1),
        ("circle\nsquare p (1 +", 2),
        ("circle\n\nlet 5", 3),
        ("circle\n$square", 2),
    ])
    def test_syntax_error_reports_line(self, program, line):
        with pytest.raises(GrammarSyntaxError) as excinfo:
            parse_program(program)
        assert excinfo.value.line == line
        assert f"line {line}" in str(excinfo.value)
