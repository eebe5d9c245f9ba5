# shapegrammar/language/expression.py
"""
Expressions used on the right-hand side of property assignments.

An expression is an immutable tree of Number, Variable, PropertyAccess,
Unary and Binary nodes. It evaluates against the grammar's constant table
(variables, case-insensitive) and the absolute properties of the node whose
children are being built (property accesses). Evaluation results are floats
or Intervals.

A binary operator with an interval operand is evaluated on the four corner
combinations of the operand bounds, in the order (left start, left end) x
(right start, right end), and the result spans their minimum and maximum.
The bounds are not tight (x * x over [-1, 2] gives [-2, 4]); culling and
rendering depend on these exact bounds.

ExpressionOrRange wraps either a single expression or a `first..second`
range, which evaluates to an Interval or, for a random range, to one float
sampled at evaluation time.
"""
import abc
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional

import numpy as np

from .errors import UndefinedVariable
from .interval import Interval, Value, bounds, max_value, min_value, random_value
from .properties import NodeProperties, PropertyKey


## --- Operators ---
class UnaryOperator(Enum):
    NEGATE = "-"
    ABS = "abs"
    SIGN = "sig"

    @classmethod
    def from_token(cls, token: str) -> Optional["UnaryOperator"]:
        return _UNARY_TOKENS.get(token.lower())

    def apply(self, value: float) -> float:
        if self is UnaryOperator.NEGATE:
            return -value
        if self is UnaryOperator.ABS:
            return abs(value)
        return float(np.sign(value))


_UNARY_TOKENS = {
    "-": UnaryOperator.NEGATE, "sub": UnaryOperator.NEGATE,
    "abs": UnaryOperator.ABS, "sig": UnaryOperator.SIGN,
}


def _truth(flag: bool) -> float:
    return 1.0 if flag else 0.0


def _divide(left: float, right: float) -> float:
    # IEEE semantics: x/0 is +-inf and 0/0 is nan rather than an exception
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(left) / np.float64(right))


class BinaryOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    AND = "&&"
    OR = "||"
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LEQ = "<="
    GEQ = ">="

    @classmethod
    def from_token(cls, token: str) -> Optional["BinaryOperator"]:
        return _BINARY_TOKENS.get(token.lower())

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]

    def apply(self, left: float, right: float) -> float:
        return _BINARY_IMPLEMENTATIONS[self](left, right)

    def apply_value(self, left: Value, right: Value) -> Value:
        """Applies the operator, widening to an Interval over the corner results."""
        if not isinstance(left, Interval) and not isinstance(right, Interval):
            return self.apply(left, right)
        corners = [self.apply(l, r) for l in bounds(left) for r in bounds(right)]
        return Interval(min(corners), max(corners))


_BINARY_IMPLEMENTATIONS = {
    BinaryOperator.ADD: lambda l, r: l + r,
    BinaryOperator.SUB: lambda l, r: l - r,
    BinaryOperator.MUL: lambda l, r: l * r,
    BinaryOperator.DIV: _divide,
    BinaryOperator.AND: lambda l, r: _truth(l != 0.0 and r != 0.0),
    BinaryOperator.OR: lambda l, r: _truth(l != 0.0 or r != 0.0),
    BinaryOperator.EQ: lambda l, r: _truth(l == r),
    BinaryOperator.NEQ: lambda l, r: _truth(l != r),
    BinaryOperator.LT: lambda l, r: _truth(l < r),
    BinaryOperator.GT: lambda l, r: _truth(l > r),
    BinaryOperator.LEQ: lambda l, r: _truth(l <= r),
    BinaryOperator.GEQ: lambda l, r: _truth(l >= r),
}

_BINARY_TOKENS = {op.value: op for op in BinaryOperator}
_BINARY_TOKENS.update({
    "add": BinaryOperator.ADD, "sub": BinaryOperator.SUB,
    "mul": BinaryOperator.MUL, "div": BinaryOperator.DIV,
    "and": BinaryOperator.AND, "or": BinaryOperator.OR,
    "eq": BinaryOperator.EQ, "neq": BinaryOperator.NEQ,
    "lt": BinaryOperator.LT, "gt": BinaryOperator.GT,
    "leq": BinaryOperator.LEQ, "geq": BinaryOperator.GEQ,
})

_PRECEDENCE = {
    BinaryOperator.OR: 1,
    BinaryOperator.AND: 2,
    BinaryOperator.EQ: 3, BinaryOperator.NEQ: 3,
    BinaryOperator.LT: 3, BinaryOperator.GT: 3,
    BinaryOperator.LEQ: 3, BinaryOperator.GEQ: 3,
    BinaryOperator.ADD: 4, BinaryOperator.SUB: 4,
    BinaryOperator.MUL: 5, BinaryOperator.DIV: 5,
}


## --- Expression tree ---
class Expression(abc.ABC):
    """Base class of the expression tree."""

    @abc.abstractmethod
    def evaluate(self, constants: Mapping[str, float], context: NodeProperties) -> Value:
        raise NotImplementedError

    def fold(self) -> "Expression":
        """Returns an equivalent tree with literal-only subtrees collapsed."""
        return self

    def variables(self) -> Iterator[str]:
        return iter(())


@dataclass(frozen=True)
class Number(Expression):
    value: float

    def evaluate(self, constants, context):
        return self.value


@dataclass(frozen=True)
class Variable(Expression):
    name: str

    def evaluate(self, constants, context):
        try:
            return constants[self.name.lower()]
        except KeyError:
            raise UndefinedVariable(self.name) from None

    def variables(self):
        yield self.name


@dataclass(frozen=True)
class PropertyAccess(Expression):
    key: PropertyKey

    def evaluate(self, constants, context):
        return context.get(self.key)


@dataclass(frozen=True)
class Unary(Expression):
    operator: UnaryOperator
    operand: Expression

    def evaluate(self, constants, context):
        value = self.operand.evaluate(constants, context)
        if isinstance(value, Interval):
            return value.map(self.operator.apply)
        return self.operator.apply(value)

    def fold(self):
        operand = self.operand.fold()
        if isinstance(operand, Number):
            return Number(self.operator.apply(operand.value))
        return Unary(self.operator, operand)

    def variables(self):
        return self.operand.variables()


@dataclass(frozen=True)
class Binary(Expression):
    left: Expression
    operator: BinaryOperator
    right: Expression

    def evaluate(self, constants, context):
        left = self.left.evaluate(constants, context)
        right = self.right.evaluate(constants, context)
        return self.operator.apply_value(left, right)

    def fold(self):
        left, right = self.left.fold(), self.right.fold()
        if isinstance(left, Number) and isinstance(right, Number):
            return Number(self.operator.apply(left.value, right.value))
        return Binary(left, self.operator, right)

    def variables(self):
        yield from self.left.variables()
        yield from self.right.variables()


## --- Assignment values ---
@dataclass(frozen=True)
class ExpressionOrRange:
    """
    The value of one property assignment.

    Attributes:
        first (Expression): The expression, or the lower end of a range.
        second (Expression | None): Upper end of a range; None for a plain expression.
        is_random (bool): A random range collapses to one sampled float.

    Examples:
        >>> ExpressionOrRange(Number(0.0), Number(2.0)).evaluate({}, NodeProperties.initial(), None)
        Interval(start=0.0, end=2.0)
    """
    first: Expression
    second: Optional[Expression] = None
    is_random: bool = False

    @property
    def is_range(self) -> bool:
        return self.second is not None

    def evaluate(self, constants: Mapping[str, float], context: NodeProperties,
                 rng: Optional[np.random.Generator]) -> Value:
        if self.second is None:
            return self.first.evaluate(constants, context)
        start = min_value(self.first.evaluate(constants, context))
        end = max_value(self.second.evaluate(constants, context))
        if self.is_random:
            return random_value(Interval(start, end), rng)
        return Interval(start, end)

    def variables(self) -> Iterator[str]:
        yield from self.first.variables()
        if self.second is not None:
            yield from self.second.variables()
