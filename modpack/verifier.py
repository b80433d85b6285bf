"""Tree-sitter powered syntax checks for module scripts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from .aio import gather_or_cancel
from .config import KNOWN_RULES, VerifierConfig
from .logging import get_logger
from .models import Diagnostic, ErrorSink

JAVASCRIPT = Language(tree_sitter_javascript.language())

_MAX_TOKEN_LENGTH = 20


@dataclass
class Finding:
    """Checker finding in 1-based coordinates of the checked text."""

    line: int
    column: int
    message: str


class ScriptChecker:
    """Parses JavaScript text and reports syntax errors and forbidden statements."""

    def __init__(self, rules: Sequence[str] = KNOWN_RULES) -> None:
        unknown = set(rules) - set(KNOWN_RULES)
        if unknown:
            raise ValueError(f"Unknown checker rules: {', '.join(sorted(unknown))}")
        self.rules = frozenset(rules)
        self._parser = Parser(JAVASCRIPT)

    def check(self, text: str) -> List[Finding]:
        source_bytes = text.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        findings: List[Finding] = []
        stack: List[Node] = [tree.root_node]
        while stack:
            node = stack.pop()
            finding = self._inspect(node, source_bytes)
            if finding is not None:
                findings.append(finding)
                if node.type == "ERROR":
                    # Nested errors repeat the outer one.
                    continue
            stack.extend(reversed(node.children))
        findings.sort(key=lambda item: (item.line, item.column))
        return findings

    def _inspect(self, node: Node, source_bytes: bytes) -> Optional[Finding]:
        if "syntax" in self.rules:
            if node.type == "ERROR":
                token = _first_token(node, source_bytes)
                return _finding(node, f"Unexpected '{token}'.")
            if node.is_missing:
                return _finding(node, f"Expected '{node.type}'.")
        if "debugger" in self.rules and node.type == "debugger_statement":
            return _finding(node, "Forbidden 'debugger' statement.")
        if "with" in self.rules and node.type == "with_statement":
            return _finding(node, "Don't use 'with'.")
        return None


def _finding(node: Node, message: str) -> Finding:
    row, column = node.start_point
    return Finding(line=row + 1, column=column + 1, message=message)


def _first_token(node: Node, source_bytes: bytes) -> str:
    leaf = node
    while leaf.children:
        leaf = leaf.children[0]
    text = source_bytes[leaf.start_byte : leaf.end_byte].decode("utf-8", errors="replace")
    text = text.strip() or source_bytes[node.start_byte : node.end_byte].decode(
        "utf-8", errors="replace"
    ).strip()
    if len(text) > _MAX_TOKEN_LENGTH:
        text = text[: _MAX_TOKEN_LENGTH - 3] + "..."
    return text or "(end)"


class AssetVerifier:
    """Checks script assets as expressions and reports through an error sink.

    Every file is wrapped in a one-line prefix so that a bare expression at
    the top of a script is valid, and reported lines are shifted back by one
    so they point into the file itself.
    """

    def __init__(self, config: VerifierConfig | None = None) -> None:
        self.config = config or VerifierConfig()
        self.checker = ScriptChecker(self.config.rules)
        self.logger = get_logger("verifier")

    def wrap(self, source: str) -> str:
        return f"{self.config.prefix}\n{source}\n;"

    def check_source(self, path: str, source: str) -> List[Diagnostic]:
        """Return diagnostics for ``source`` as if it were read from ``path``."""
        return [
            Diagnostic(
                path=path,
                line=finding.line - 1,
                column=finding.column,
                message=finding.message,
            )
            for finding in self.checker.check(self.wrap(source))
        ]

    async def verify(self, error_sink: Optional[ErrorSink], path: Path) -> None:
        """Report the diagnostics of one file; a no-op without an error sink."""
        if error_sink is None or not self.config.enabled:
            return
        raw = await asyncio.to_thread(Path(path).read_bytes)
        try:
            diagnostics = self.check_source(str(path), raw.decode("utf-8"))
        except Exception as exc:  # checker failures stay local to this file
            self.logger.warning("Verification of %s failed: %s", path, exc)
            diagnostics = [
                Diagnostic(path=str(path), line=0, column=0, message=f"Unable to verify file: {exc}")
            ]
        for diagnostic in diagnostics:
            error_sink(diagnostic.location, diagnostic.message)
        if diagnostics:
            self.logger.debug("%s: %d diagnostic(s)", path, len(diagnostics))

    async def verify_many(self, error_sink: Optional[ErrorSink], paths: Iterable[Path]) -> None:
        if error_sink is None or not self.config.enabled:
            return
        await gather_or_cancel(*(self.verify(error_sink, path) for path in paths))


__all__ = ["AssetVerifier", "Finding", "JAVASCRIPT", "ScriptChecker"]
