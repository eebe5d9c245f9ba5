# shapegrammar/language/grammar.py
"""
The grammar data model: constants, user rules and top-level invocations.

A Grammar is produced by GrammarBuilder, which rejects duplicate definitions
and unreachable rule cases while statements are added, and validates every
cross reference (rule names, constant names) when build() is called. Once a
Grammar exists, expanding it cannot fail on a user error.

Examples:
    >>> builder = GrammarBuilder()
    >>> builder.define_constant("hue", 40.0)
    >>> builder.add_invocation(Invocation(PrimitiveMethod(Primitive.CIRCLE)))
    >>> grammar = builder.build()
    >>> len(grammar.top_level), grammar.constants["hue"]
    (1, 40.0)
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

import numpy as np

from .errors import DuplicateDefinition, GrammarError, UndefinedVariable, UnknownRule, UnreachableCase
from .expression import Expression, ExpressionOrRange
from .interval import max_value, min_value
from .properties import NodeProperties, PropertyKey, PropertyType


## --- Primitives ---
class Primitive(Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    RIGHT_TRIANGLE = "rtriangle"
    TRIANGLE = "triangle"
    PENTAGON = "pentagon"
    HEXAGON = "hexagon"
    HEPTAGON = "heptagon"
    OCTAGON = "octagon"
    NONAGON = "nonagon"
    DECAGON = "decagon"
    UNDECAGON = "undecagon"
    DODECAGON = "dodecagon"

    @classmethod
    def from_name(cls, name: str) -> Optional["Primitive"]:
        try:
            return cls(name.lower())
        except ValueError:
            return None

    @property
    def sides(self) -> Optional[int]:
        """Number of sides of a regular polygon, None for the other shapes."""
        return _POLYGON_SIDES.get(self)


_POLYGON_SIDES = {
    Primitive.TRIANGLE: 3, Primitive.PENTAGON: 5, Primitive.HEXAGON: 6,
    Primitive.HEPTAGON: 7, Primitive.OCTAGON: 8, Primitive.NONAGON: 9,
    Primitive.DECAGON: 10, Primitive.UNDECAGON: 11, Primitive.DODECAGON: 12,
}


## --- Invocations ---
@dataclass(frozen=True)
class RootMethod:
    """The synthetic invocation standing for the whole document."""
    pass


@dataclass(frozen=True)
class PrimitiveMethod:
    primitive: Primitive


@dataclass(frozen=True)
class RuleMethod:
    name: str


Method = Union[RootMethod, PrimitiveMethod, RuleMethod]


def method_for_name(name: str) -> Method:
    """Primitive names win; every other name refers to a user rule."""
    primitive = Primitive.from_name(name)
    if primitive is not None:
        return PrimitiveMethod(primitive)
    return RuleMethod(name.lower())


@dataclass(frozen=True)
class Assignment:
    key: PropertyKey
    value: ExpressionOrRange


@dataclass(frozen=True)
class Invocation:
    method: Method
    assignments: Tuple[Assignment, ...] = ()

    def relative_properties(self, constants: Mapping[str, float], context: NodeProperties,
                            rng: np.random.Generator) -> NodeProperties:
        return NodeProperties.from_assignments(self.assignments, constants, context, rng)


ROOT_INVOCATION = Invocation(RootMethod())


## --- Rules ---
@dataclass
class RuleCase:
    probability: Optional[Expression] = None
    invocations: List[Invocation] = field(default_factory=list)

    def should_enter(self, constants: Mapping[str, float], context: NodeProperties,
                     rng: np.random.Generator) -> bool:
        """
        Decides whether this case fires.

        A case without probability always fires. Otherwise the probability's
        upper bound at or above 1 always fires, a lower bound at or below 0
        never does, and anything in between is one Bernoulli trial with the
        upper bound as its success probability.
        """
        if self.probability is None:
            return True
        value = self.probability.evaluate(constants, context)
        if max_value(value) >= 1.0:
            return True
        if min_value(value) <= 0.0:
            return False
        return bool(rng.random() < max_value(value))


@dataclass
class UserRule:
    name: str
    cases: List[RuleCase] = field(default_factory=list)

    def add_case(self, case: RuleCase) -> None:
        if any(existing.probability is None for existing in self.cases):
            raise UnreachableCase(self.name)
        self.cases.append(case)

    def select_case(self, constants: Mapping[str, float], context: NodeProperties,
                    rng: np.random.Generator) -> Optional[RuleCase]:
        """Returns the first case whose gate passes, or None."""
        for case in self.cases:
            if case.should_enter(constants, context, rng):
                return case
        return None


## --- Grammar ---
@dataclass
class Grammar:
    constants: Dict[str, float] = field(default_factory=dict)
    rules: Dict[str, UserRule] = field(default_factory=dict)
    top_level: List[Invocation] = field(default_factory=list)

    def iter_invocations(self) -> Iterator[Invocation]:
        """Yields every invocation: top level first, then rule bodies in order."""
        yield from self.top_level
        for rule in self.rules.values():
            for case in rule.cases:
                yield from case.invocations

    def validate(self) -> List[GrammarError]:
        """
        Collects every unresolved reference in the grammar.

        Returns:
            List of UnknownRule and UndefinedVariable errors, in the order the
            offending references appear. Empty for a valid grammar.
        """
        errors: List[GrammarError] = []
        seen = set()

        def report(error):
            marker = (type(error), error.name)
            if marker not in seen:
                seen.add(marker)
                errors.append(error)

        def check_variables(names):
            for name in names:
                if name.lower() not in self.constants:
                    report(UndefinedVariable(name))

        for invocation in self.iter_invocations():
            if isinstance(invocation.method, RuleMethod) and invocation.method.name not in self.rules:
                report(UnknownRule(invocation.method.name))
            for assignment in invocation.assignments:
                check_variables(assignment.value.variables())
        for rule in self.rules.values():
            for case in rule.cases:
                if case.probability is not None:
                    check_variables(case.probability.variables())
        return errors

    def variables(self) -> Dict[str, Optional[PropertyType]]:
        """
        Maps each referenced constant to the type of property it feeds.

        Rule probabilities count as unit-interval properties. A constant used
        for properties of different types maps to None.

        Examples:
            >>> from shapegrammar.language.parser import parse_program
            >>> parse_program("let hue 40\\ncircle h ?hue").variables()
            {'hue': <PropertyType.DEGREES: (0.0, 360.0, 5.0)>}
        """
        usages: Dict[str, set] = {}
        for invocation in self.iter_invocations():
            for assignment in invocation.assignments:
                for name in assignment.value.variables():
                    usages.setdefault(name.lower(), set()).add(assignment.key.property_type)
        for rule in self.rules.values():
            for case in rule.cases:
                if case.probability is not None:
                    for name in case.probability.variables():
                        usages.setdefault(name.lower(), set()).add(PropertyType.UNIT_INTERVAL)
        return {
            name: next(iter(types)) if len(types) == 1 else None
            for name, types in sorted(usages.items())
        }

    def override_constants(self, overrides: Mapping[str, float]) -> None:
        for name, value in overrides.items():
            self.constants[name.lower()] = float(value)


class GrammarBuilder:
    """Accumulates statements in program order and produces a validated Grammar."""
    def __init__(self):
        self.constants: Dict[str, float] = {}
        self.rules: Dict[str, UserRule] = {}
        self.top_level: List[Invocation] = []

    def define_constant(self, name: str, value: float) -> None:
        key = name.lower()
        if key in self.constants:
            raise DuplicateDefinition(name)
        self.constants[key] = value

    def add_rule_case(self, name: str, case: RuleCase) -> None:
        key = name.lower()
        if Primitive.from_name(key) is not None:
            raise DuplicateDefinition(name)
        rule = self.rules.get(key)
        if rule is None:
            self.rules[key] = UserRule(name, [case])
        else:
            rule.add_case(case)

    def add_invocation(self, invocation: Invocation) -> None:
        self.top_level.append(invocation)

    def build(self) -> Grammar:
        grammar = Grammar(dict(self.constants), dict(self.rules), list(self.top_level))
        errors = grammar.validate()
        if errors:
            raise errors[0]
        return grammar
