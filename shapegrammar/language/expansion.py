# shapegrammar/language/expansion.py
"""
Node expansion: growing a grammar into a tree of absolute properties.

The tree is grown in passes. A pass visits every node in pre-order: a node
that is already expanded hands the pass on to its children, a node that is
not yet expanded instantiates its candidate children (none for primitives,
the invocations of the first firing case for rules), composes their absolute
properties, discards the candidates the settings cull and becomes expanded
with the survivors. Children attached during a pass are first visited in the
next pass. The driver repeats passes until one adds nothing or the node
budget is spent.

Randomness is derived from a single numpy SeedSequence. Each rule
instantiation spawns two child sequences, in visitation order: the first
seeds the generator that gates the rule's cases, the second the generator
used for its children's property values. Neither stream is seeded from the
other's output, so the number of draws one of them consumes never shifts the
other.
"""
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from .errors import ExpansionError, GrammarError
from .grammar import ROOT_INVOCATION, Grammar, Invocation, PrimitiveMethod, RootMethod, RuleMethod
from .interval import max_abs, max_value, min_value
from .properties import NodeProperties

logger = logging.getLogger(__name__)

# Half-width of the visible canvas plus margin; nodes further out are culled.
CANVAS_EXTENT = 1.5


@dataclass(frozen=True)
class ExpandSettings:
    """
    Budget and cull thresholds for an expansion.

    Attributes:
        max_nodes (int): Hard cap on the number of nodes attached to the tree.
        max_depth (int): Nodes deeper than this are culled.
        min_a (float): Nodes whose alpha cannot reach this are culled.
        min_p (float): Nodes whose width or length cannot reach this are culled.
    """
    max_nodes: int = 1000
    max_depth: int = 20
    min_a: float = 0.001
    min_p: float = 0.001

    def should_cull(self, properties: NodeProperties) -> bool:
        """
        Decides whether a candidate is certainly invisible, off canvas or too deep.

        Every test uses the bound most favourable to keeping the node, so a
        node is only culled when no resolution of its intervals would show it.
        """
        p_max = max_value(properties.p)
        p_min = min_value(properties.p)
        return (
            max_value(properties.a) < self.min_a
            or properties.d > self.max_depth
            or p_max * max_value(properties.w) < self.min_p
            or p_max * max_value(properties.l) < self.min_p
            or max_abs(properties.x) - p_min > CANVAS_EXTENT
            or max_abs(properties.y) - p_min > CANVAS_EXTENT
        )


@dataclass
class ExpandStatistics:
    new_nodes: int = 0
    nodes_culled: int = 0
    passes: int = 0

    def __add__(self, other: "ExpandStatistics") -> "ExpandStatistics":
        return ExpandStatistics(
            self.new_nodes + other.new_nodes,
            self.nodes_culled + other.nodes_culled,
            self.passes + other.passes,
        )


class Node:
    """
    One element of the generative tree.

    `children` is None until the node has been expanded and a (possibly
    empty) list afterwards. A node is expanded at most once and is never
    removed from the tree.
    """
    def __init__(self, invocation: Invocation, properties: NodeProperties,
                 children: Optional[List["Node"]] = None):
        self.invocation = invocation
        self.properties = properties
        self.children = children

    @property
    def is_expanded(self) -> bool:
        return self.children is not None

    def iter_nodes(self) -> Iterator["Node"]:
        """Yields this node and its descendants depth-first, parents first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def __repr__(self):
        state = "unexpanded" if self.children is None else f"{len(self.children)} children"
        return f"Node({self.invocation.method}, d={self.properties.d}, {state})"


@dataclass
class ExpansionResult:
    root: Node
    statistics: ExpandStatistics


class Expander:
    """Runs the expansion of one grammar with one seed."""
    def __init__(self, grammar: Grammar, settings: Optional[ExpandSettings] = None, seed: int = 0):
        self.grammar = grammar
        self.settings = settings or ExpandSettings()
        self.seed_sequence = np.random.SeedSequence(seed)
        self.attached = 0

    def _spawn_rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed_sequence.spawn(1)[0])

    @property
    def remaining(self) -> int:
        return self.settings.max_nodes - self.attached

    def expand(self) -> ExpansionResult:
        """Plants the top-level invocations and runs passes until the tree stops growing."""
        root = Node(ROOT_INVOCATION, NodeProperties.initial())
        totals = ExpandStatistics()
        totals += self._attach(root, self._plant(root))
        while self.remaining > 0:
            changes = self.expand_once(root)
            totals += changes
            logger.debug("pass %d: %d new nodes, %d culled", totals.passes,
                         changes.new_nodes, changes.nodes_culled)
            if changes.new_nodes == 0:
                break
        logger.debug("expansion finished with %d nodes after %d passes",
                     totals.new_nodes, totals.passes)
        return ExpansionResult(root, totals)

    def expand_once(self, root: Node) -> ExpandStatistics:
        """Runs one pass over the tree below `root`."""
        stats = ExpandStatistics(passes=1)
        stack = [root]
        while stack and self.remaining > 0:
            node = stack.pop()
            if node.is_expanded:
                stack.extend(reversed(node.children))
            else:
                stats += self._attach(node, self._instantiate(node))
        return stats

    def _attach(self, node: Node, candidates: List[Node]) -> ExpandStatistics:
        stats = ExpandStatistics()
        kept = []
        for candidate in candidates:
            if self.settings.should_cull(candidate.properties):
                stats.nodes_culled += 1
            elif self.remaining > 0:
                kept.append(candidate)
                self.attached += 1
                stats.new_nodes += 1
            else:
                break
        node.children = kept
        return stats

    def _plant(self, root: Node) -> List[Node]:
        rng = self._spawn_rng()
        return [self._make_child(root, invocation, rng) for invocation in self.grammar.top_level]

    def _instantiate(self, node: Node) -> List[Node]:
        method = node.invocation.method
        if isinstance(method, (PrimitiveMethod, RootMethod)):
            return []
        if not isinstance(method, RuleMethod):
            raise ExpansionError(f"Unexpected invocation method {method!r}")
        rule = self.grammar.rules.get(method.name)
        if rule is None:
            raise ExpansionError(f"Rule '{method.name}' vanished after validation")
        gate_sequence, child_sequence = self.seed_sequence.spawn(2)
        gate_rng = np.random.default_rng(gate_sequence)
        child_rng = np.random.default_rng(child_sequence)
        try:
            case = rule.select_case(self.grammar.constants, node.properties, gate_rng)
        except GrammarError as exc:
            raise ExpansionError(f"Gating rule '{method.name}' failed: {exc}") from exc
        if case is None:
            return []
        return [self._make_child(node, invocation, child_rng) for invocation in case.invocations]

    def _make_child(self, parent: Node, invocation: Invocation, rng: np.random.Generator) -> Node:
        try:
            relative = invocation.relative_properties(self.grammar.constants, parent.properties, rng)
        except GrammarError as exc:
            raise ExpansionError(f"Evaluating {invocation.method} failed: {exc}") from exc
        return Node(invocation, parent.properties.compose(relative))


def expand(grammar: Grammar, settings: Optional[ExpandSettings] = None, seed: int = 0) -> ExpansionResult:
    """
    Expands a validated grammar into a tree.

    Args:
        grammar: A Grammar produced by parse_program or GrammarBuilder.build.
        settings: Budget and cull thresholds; defaults to ExpandSettings().
        seed: Seed of the run; equal inputs give identical trees.

    Returns:
        ExpansionResult holding the root node and the accumulated statistics.

    Examples:
        >>> from shapegrammar.language.parser import parse_program
        >>> result = expand(parse_program("circle v0.5"))
        >>> result.root.count(), result.statistics.new_nodes
        (2, 1)
    """
    return Expander(grammar, settings, seed).expand()
