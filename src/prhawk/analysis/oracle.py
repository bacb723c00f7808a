"""Complexity oracles - score source text for structural complexity.

The pipeline only depends on the `ComplexityOracle` interface. The default
implementation walks a tree-sitter AST and derives a maintainability index
from cyclomatic complexity, Halstead volume and source lines.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

from prhawk.analysis.models import ComplexityMetrics
from prhawk.config import AnalysisConfig
from prhawk.exceptions import OracleError, UnsupportedLanguageError

logger = logging.getLogger(__name__)

# extension -> (grammar module, language function)
_TS_GRAMMARS = {
    "js": ("tree_sitter_javascript", "language"),
    "jsx": ("tree_sitter_javascript", "language"),
    "ts": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

# Nodes that add a branch to the control flow graph
_DECISION_NODE_TYPES = {
    "if_statement",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "switch_case",
    "catch_clause",
    "ternary_expression",
}
_LOGICAL_OPERATORS = {"&&", "||", "??"}

# Leaves that count as Halstead operands rather than operators
_OPERAND_NODE_TYPES = {
    "identifier",
    "property_identifier",
    "shorthand_property_identifier",
    "type_identifier",
    "number",
    "string_fragment",
    "regex_pattern",
    "true",
    "false",
    "null",
    "undefined",
    "this",
}

_MI_CEILING = 171.0


class ComplexityOracle(ABC):
    """Scores one file's text at one revision."""

    @abstractmethod
    def score(
        self,
        text: str,
        extension: str,
        is_typescript: bool,
        flow: bool = False,
    ) -> ComplexityMetrics:
        """Return complexity metrics for `text`.

        Raises:
            OracleError: If the text cannot be scored.
        """
        ...


class TreeSitterOracle(ComplexityOracle):
    """Maintainability-index oracle over tree-sitter JavaScript/TypeScript ASTs."""

    def __init__(self) -> None:
        self._languages: dict[str, object] = {}

    def score(
        self,
        text: str,
        extension: str,
        is_typescript: bool,
        flow: bool = False,
    ) -> ComplexityMetrics:
        if flow:
            raise OracleError("Flow type annotations are not supported")

        parser = self._get_parser(extension)
        try:
            tree = parser.parse(text.encode("utf-8"))
        except Exception as e:
            raise OracleError(f"tree-sitter failed to parse .{extension} source: {e}") from e

        root = tree.root_node
        if root.has_error:
            logger.warning("Scoring .%s source with syntax errors", extension)

        counts = _NodeCounts()
        counts.walk(root)

        total_lines = len(text.splitlines())
        sloc = sum(1 for line in text.splitlines() if line.strip())
        cyclomatic = 1 + counts.decisions
        volume = counts.halstead_volume()
        maintainability = _maintainability_index(volume, cyclomatic, sloc)

        return ComplexityMetrics(
            total_lines=total_lines,
            dependencies=counts.dependencies,
            score=round(maintainability * 100 / _MI_CEILING, 4),
            cyclomatic=cyclomatic,
            halstead_volume=round(volume, 4),
            maintainability=round(maintainability, 4),
        )

    def _get_parser(self, extension: str):
        """Create a tree-sitter parser for an extension.

        Languages are cached and shared; parsers are not thread-safe, so each
        call gets its own.
        """
        from tree_sitter import Parser

        return Parser(self._get_language(extension))

    def _get_language(self, extension: str):
        language = self._languages.get(extension)
        if language is not None:
            return language

        grammar = _TS_GRAMMARS.get(extension)
        if grammar is None:
            raise UnsupportedLanguageError(extension)

        from tree_sitter import Language

        module_name, func_name = grammar
        try:
            module = __import__(module_name)
        except ImportError as e:
            raise UnsupportedLanguageError(extension) from e

        language = Language(getattr(module, func_name)())
        self._languages[extension] = language
        return language


class _NodeCounts:
    """Counters accumulated over a single AST walk."""

    def __init__(self) -> None:
        self.decisions = 0
        self.dependencies = 0
        self.operators: dict[str, int] = {}
        self.operands: dict[str, int] = {}

    def walk(self, root) -> None:
        # Iterative to survive deeply nested sources
        stack = [root]
        while stack:
            node = stack.pop()
            self._visit(node)
            stack.extend(node.children)

    def _visit(self, node) -> None:
        node_type = node.type

        if node_type in _DECISION_NODE_TYPES:
            self.decisions += 1
        elif node_type == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in _LOGICAL_OPERATORS:
                self.decisions += 1

        if node_type == "import_statement":
            self.dependencies += 1
        elif node_type == "export_statement" and node.child_by_field_name("source"):
            self.dependencies += 1
        elif node_type == "call_expression":
            func = node.child_by_field_name("function")
            if func is not None and func.type == "identifier" and func.text == b"require":
                self.dependencies += 1

        if node.child_count == 0 and node_type != "comment":
            if node_type in _OPERAND_NODE_TYPES:
                key = node.text.decode("utf-8", errors="replace")
                self.operands[key] = self.operands.get(key, 0) + 1
            elif not node.is_named:
                self.operators[node_type] = self.operators.get(node_type, 0) + 1

    def halstead_volume(self) -> float:
        vocabulary = len(self.operators) + len(self.operands)
        length = sum(self.operators.values()) + sum(self.operands.values())
        if vocabulary < 2:
            return float(length)
        return length * math.log2(vocabulary)


def _maintainability_index(volume: float, cyclomatic: int, sloc: int) -> float:
    """Classic maintainability index, clamped to [0, 171]."""
    index = (
        _MI_CEILING
        - 5.2 * math.log(max(volume, 1.0))
        - 0.23 * cyclomatic
        - 16.2 * math.log(max(sloc, 1))
    )
    return min(max(index, 0.0), _MI_CEILING)


def create_oracle(config: AnalysisConfig | None = None) -> ComplexityOracle:
    """Create a complexity oracle from configuration.

    Raises:
        ValueError: If the oracle name is unknown.
    """
    name = (config or AnalysisConfig()).oracle.lower()
    if name in ("tree-sitter", "treesitter"):
        return TreeSitterOracle()
    raise ValueError(
        f"Unknown complexity oracle: '{name}'. Supported oracles: tree-sitter"
    )
