# shapegrammar/language/parser.py
"""
Text parser for the shape grammar language.

A program is a sequence of statements:

    let NAME VALUE           define a constant, evaluated once while parsing
    rul NAME [PROBABILITY]   open a (possibly conditional) case of rule NAME
    end                      close the current rule case
    NAME [KEY VALUE]*        invoke a primitive or a rule

Invocations following a `rul` header belong to that case until `end`, the
next `rul`/`let`, or the end of the program. An invocation's properties must
stay on its line, but several invocations may share one line. Keys are the
single letters p l w c x y r h s v a d and may be glued to their value
(`ym0.5`). A leading `m` on a number is a minus sign, so `xm0.3` sets x to
-0.3.

Values are literals, `?name` constants, `@key` property reads from the parent
node, or parenthesised infix expressions such as `(?hue + @h * 2)`. Two atoms
joined by `..` form an interval, joined by `...` a random pick within it.

Examples:
    >>> grammar = parse_program("let hue 40\\npascal\\nrul pascal\\ntriangle v0.5\\npascal h ?hue p 0.5 ym0.5")
    >>> sorted(grammar.rules), grammar.constants
    (['pascal'], {'hue': 40.0})
"""
import re
from typing import Optional

from .errors import GrammarSyntaxError
from .expression import (
    Binary, BinaryOperator, Expression, ExpressionOrRange, Number, PropertyAccess,
    Unary, UnaryOperator, Variable,
)
from .grammar import Assignment, Grammar, GrammarBuilder, Invocation, RuleCase, method_for_name
from .interval import max_value
from .properties import NodeProperties, PropertyKey

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"[mM]?(?:\d+(?:\.\d+)?|\.\d+)")
_VALUE_START = re.compile(r"[mM]?\.?\d|[?@(]")
_SYMBOL_OPERATORS = ("&&", "||", "==", "!=", "<=", ">=", "+", "-", "*", "/", "<", ">")
_RULE_KEYWORDS = ("rul", "rule")
_INLINE_BLANKS = " \t\r"


def _parse_number(token: str) -> float:
    if token[0] in "mM":
        return -float(token[1:])
    return float(token)


class _Scanner:
    """Cursor over the program text with line-aware whitespace handling."""
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def advance(self, count: int = 1) -> None:
        self.pos += count

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_blank(self, newlines: bool = True) -> None:
        blanks = _INLINE_BLANKS + ("\n" if newlines else "")
        while self.pos < len(self.text) and self.text[self.pos] in blanks:
            self.pos += 1

    def match(self, pattern: re.Pattern) -> Optional[str]:
        found = pattern.match(self.text, self.pos)
        if found is None:
            return None
        self.pos = found.end()
        return found.group()

    def value_starts_at(self, index: int) -> bool:
        while index < len(self.text) and self.text[index] in _INLINE_BLANKS:
            index += 1
        return _VALUE_START.match(self.text, index) is not None

    def error(self, message: str) -> GrammarSyntaxError:
        line = self.text.count("\n", 0, self.pos) + 1
        column = self.pos - (self.text.rfind("\n", 0, self.pos) + 1) + 1
        fragment = self.text[self.pos:self.pos + 10]
        return GrammarSyntaxError(f"{message} near '{fragment}'", line, column, fragment)


class _Parser:
    def __init__(self, text: str):
        self.scanner = _Scanner(text)
        self.builder = GrammarBuilder()
        self.open_case: Optional[RuleCase] = None

    def parse(self) -> Grammar:
        s = self.scanner
        while True:
            s.skip_blank()
            if s.at_end():
                break
            word = s.match(_IDENTIFIER)
            if word is None:
                raise s.error("Expected a statement")
            keyword = word.lower()
            if keyword == "let":
                self.open_case = None
                self._parse_let()
            elif keyword in _RULE_KEYWORDS:
                self._parse_rule_header()
            elif keyword == "end":
                self.open_case = None
            else:
                invocation = self._parse_invocation(word)
                if self.open_case is not None:
                    self.open_case.invocations.append(invocation)
                else:
                    self.builder.add_invocation(invocation)
        return self.builder.build()

    # --- Statements ---
    def _identifier(self, what: str) -> str:
        self.scanner.skip_blank(newlines=False)
        name = self.scanner.match(_IDENTIFIER)
        if name is None:
            raise self.scanner.error(f"Expected {what}")
        return name

    def _parse_let(self) -> None:
        name = self._identifier("a constant name")
        self.scanner.skip_blank(newlines=False)
        expression = self._parse_atom()
        value = expression.evaluate(self.builder.constants, NodeProperties.initial())
        self.builder.define_constant(name, float(max_value(value)))

    def _parse_rule_header(self) -> None:
        s = self.scanner
        name = self._identifier("a rule name")
        probability = None
        s.skip_blank(newlines=False)
        if s.value_starts_at(s.pos):
            probability = self._parse_atom()
        case = RuleCase(probability)
        self.builder.add_rule_case(name, case)
        self.open_case = case

    def _parse_invocation(self, name: str) -> Invocation:
        s = self.scanner
        assignments = []
        while True:
            s.skip_blank(newlines=False)
            letter = s.peek()
            if not letter.isalpha() or not s.value_starts_at(s.pos + 1):
                break
            key = PropertyKey.from_name(letter)
            s.advance()
            s.skip_blank(newlines=False)
            assignments.append(Assignment(key, self._parse_value()))
        return Invocation(method_for_name(name), tuple(assignments))

    # --- Values and expressions ---
    def _parse_value(self) -> ExpressionOrRange:
        s = self.scanner
        first = self._parse_atom()
        for separator, is_random in (("...", True), ("..", False)):
            if s.startswith(separator):
                s.advance(len(separator))
                return ExpressionOrRange(first, self._parse_atom(), is_random)
        return ExpressionOrRange(first)

    def _parse_atom(self) -> Expression:
        s = self.scanner
        char = s.peek()
        if char == "(":
            s.advance()
            expression = self._parse_expression(1)
            s.skip_blank()
            if s.peek() != ")":
                raise s.error("Missing ')'")
            s.advance()
            return expression
        if char == "?":
            s.advance()
            name = s.match(_IDENTIFIER)
            if name is None:
                raise s.error("Expected a variable name after '?'")
            return Variable(name)
        if char == "@":
            s.advance()
            name = s.match(_IDENTIFIER)
            if name is None:
                raise s.error("Expected a property name after '@'")
            return PropertyAccess(PropertyKey.from_name(name))
        number = s.match(_NUMBER)
        if number is None:
            raise s.error("Expected a value")
        return Number(_parse_number(number))

    def _parse_expression(self, min_precedence: int) -> Expression:
        """Precedence climbing over the infix operators inside parentheses."""
        s = self.scanner
        left = self._parse_unary()
        while True:
            s.skip_blank()
            start = s.pos
            operator = self._take_binary_operator()
            if operator is None or operator.precedence < min_precedence:
                s.pos = start
                return left
            right = self._parse_expression(operator.precedence + 1)
            left = Binary(left, operator, right).fold()

    def _parse_unary(self) -> Expression:
        s = self.scanner
        s.skip_blank()
        if s.peek() == "-":
            s.advance()
            return Unary(UnaryOperator.NEGATE, self._parse_unary()).fold()
        start = s.pos
        word = s.match(_IDENTIFIER)
        if word is not None:
            operator = UnaryOperator.from_token(word)
            if operator is not None:
                return Unary(operator, self._parse_unary()).fold()
            s.pos = start
        return self._parse_atom()

    def _take_binary_operator(self) -> Optional[BinaryOperator]:
        s = self.scanner
        for symbol in _SYMBOL_OPERATORS:
            if s.startswith(symbol):
                s.advance(len(symbol))
                return BinaryOperator.from_token(symbol)
        word = s.match(_IDENTIFIER)
        if word is None:
            return None
        return BinaryOperator.from_token(word)


def parse_program(program_string: str) -> Grammar:
    """
    Parses and validates a complete program.

    Args:
        program_string: Program text.

    Returns:
        The validated Grammar.

    Raises:
        GrammarError: GrammarSyntaxError for unreadable text, or the first of
            UndefinedVariable, UnknownRule, DuplicateDefinition,
            UnreachableCase and UnknownProperty found.

    Examples:
        >>> parse_program("circle v0.5").top_level[0].method
        PrimitiveMethod(primitive=<Primitive.CIRCLE: 'circle'>)
    """
    return _Parser(program_string).parse()
