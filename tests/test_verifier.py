"""Tests for the tree-sitter script verifier."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Tuple

import pytest

from modpack.config import VerifierConfig
from modpack.models import Diagnostic, DiagnosticCollector
from modpack.verifier import AssetVerifier, ScriptChecker


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_valid_expression_has_no_diagnostics() -> None:
    verifier = AssetVerifier()
    source = "({\n  name: 'shop',\n  run: function (x) { return x * 2; }\n})\n"
    assert verifier.check_source("shop/_Config.js", source) == []


def test_bare_function_expression_is_accepted() -> None:
    verifier = AssetVerifier()
    assert verifier.check_source("_Boot.js", "function () {\n  return 1;\n}\n") == []


def test_wrap_injects_prefix_line() -> None:
    verifier = AssetVerifier()
    assert verifier.wrap("({})") == "void\n({})\n;"


def test_reported_line_excludes_injected_prefix() -> None:
    verifier = AssetVerifier()
    source = "(function () {\n  debugger;\n})\n"

    diagnostics = verifier.check_source("Class/Cart.js", source)

    # The checker sees the statement on its third line; the file has it on the second.
    assert diagnostics == [
        Diagnostic(
            path="Class/Cart.js",
            line=2,
            column=3,
            message="Forbidden 'debugger' statement.",
        )
    ]
    assert diagnostics[0].location == "Class/Cart.js:2:3"


def test_with_statement_is_reported() -> None:
    verifier = AssetVerifier()
    source = "(function (o) {\n  with (o) {\n    x();\n  }\n})\n"

    diagnostics = verifier.check_source("a.js", source)

    assert [(d.line, d.column, d.message) for d in diagnostics] == [
        (2, 3, "Don't use 'with'.")
    ]


def test_syntax_error_on_first_file_line() -> None:
    verifier = AssetVerifier()

    diagnostics = verifier.check_source("bad.js", "({ a: 1 }))")

    assert diagnostics
    assert diagnostics[0].line == 1
    assert diagnostics[0].message.startswith(("Unexpected", "Expected"))


def test_rules_can_be_disabled() -> None:
    verifier = AssetVerifier(VerifierConfig(rules=["syntax"]))
    source = "(function () {\n  debugger;\n})\n"
    assert verifier.check_source("a.js", source) == []


def test_unknown_checker_rule_is_rejected() -> None:
    with pytest.raises(ValueError, match="eval"):
        ScriptChecker(["syntax", "eval"])


def test_verify_reports_through_sink(tmp_path: Path) -> None:
    path = _write(tmp_path / "Class" / "Cart.js", "(function () {\n  debugger;\n})\n")
    calls: List[Tuple[str, str]] = []

    asyncio.run(AssetVerifier().verify(lambda loc, msg: calls.append((loc, msg)), path))

    assert calls == [(f"{path}:2:3", "Forbidden 'debugger' statement.")]


def test_verify_without_sink_skips_reading(tmp_path: Path) -> None:
    # Absent sink means no verification at all, not even a file read.
    asyncio.run(AssetVerifier().verify(None, tmp_path / "missing.js"))


def test_verify_with_disabled_config_is_noop(tmp_path: Path) -> None:
    collector = DiagnosticCollector()
    verifier = AssetVerifier(VerifierConfig(enabled=False))
    asyncio.run(verifier.verify(collector, tmp_path / "missing.js"))
    assert collector.diagnostics == []


def test_verify_propagates_filesystem_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        asyncio.run(AssetVerifier().verify(DiagnosticCollector(), tmp_path / "missing.js"))


def test_undecodable_file_is_reported_not_raised(tmp_path: Path) -> None:
    path = tmp_path / "binary.js"
    path.write_bytes(b"\xff\xfe\x00(")
    collector = DiagnosticCollector()

    asyncio.run(AssetVerifier().verify(collector, path))

    assert len(collector.diagnostics) == 1
    assert collector.diagnostics[0].message.startswith("Unable to verify file")


def test_checker_failure_does_not_stop_siblings(tmp_path: Path, monkeypatch) -> None:
    broken = _write(tmp_path / "broken.js", "({})\n")
    flagged = _write(tmp_path / "flagged.js", "(function () {\n  debugger;\n})\n")
    verifier = AssetVerifier()
    original = verifier.check_source

    def _check(path: str, source: str):
        if path.endswith("broken.js"):
            raise RuntimeError("checker crashed")
        return original(path, source)

    monkeypatch.setattr(verifier, "check_source", _check)
    collector = DiagnosticCollector()

    asyncio.run(verifier.verify_many(collector, [broken, flagged]))

    messages = {Path(d.path).name: d.message for d in collector.diagnostics}
    assert messages["broken.js"] == "Unable to verify file: checker crashed"
    assert messages["flagged.js"] == "Forbidden 'debugger' statement."
