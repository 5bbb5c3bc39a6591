"""
deploycheck — unit tests for the diagnostic reporter

File: tests/unit/diagnostics/test_reporter.py

Purpose
- Pin the plain rendering of diagnostics against their source documents.

What this test file should cover
- Header, location line, source line, underline and label, help.
- Several labels on one line, zero-width and multi-line spans, label without span.
- Grouping of labels per document in order of first appearance.
"""

from __future__ import annotations

import pytest

from deploycheck.diagnostics import (
    DiagnosticError,
    DiagnosticLabel,
    render_diagnostic,
    render_diagnostic_text,
)
from deploycheck.document import ParseError
from deploycheck.spans import SourceSpan
from deploycheck.validation import (
    DuplicateSpecKeyError,
    NamespaceViolationError,
    PatternMismatchError,
    load,
)


def _capture(spec_text: str, config_text: str) -> DiagnosticError:
    with pytest.raises(DiagnosticError) as excinfo:
        load(("deploy.spec.toml", spec_text), ("deploy.toml", config_text))
    return excinfo.value


def test_renders_single_label_with_source_line() -> None:
    error = _capture('artifact = "a"\nsecrets = ["S"]\n', 'id = "x"\nenv = { S = "v" }\n')
    assert isinstance(error, NamespaceViolationError)

    assert render_diagnostic(error) == (
        "error[deploycheck::config::secret_as_env]: secret defined as env\n"
        " --> deploy.toml:2:9\n"
        "  |\n"
        '2 | env = { S = "v" }\n'
        "  |         ^ defined as env here"
    )


def test_renders_two_labels_on_one_line_once() -> None:
    error = _capture('artifact = "a"\nenv = ["A", "A"]\n', 'id = "x"\n')
    assert isinstance(error, DuplicateSpecKeyError)

    assert render_diagnostic(error) == (
        "error[deploycheck::spec::duplicate_key]: duplicate environment variable in spec\n"
        " --> deploy.spec.toml:2:8\n"
        "  |\n"
        '2 | env = ["A", "A"]\n'
        "  |        ^^^ previous definition\n"
        "  |             ^^^ redefined here"
    )


def test_renders_help_last() -> None:
    error = _capture(
        'artifact = "a"\nenv = [{ key = "PORT", regex = "^[0-9]+$" }]\n',
        'id = "x"\nenv = { PORT = "abc" }\n',
    )
    assert isinstance(error, PatternMismatchError)

    rendered = render_diagnostic(error)
    assert rendered.splitlines()[-1] == "  = help: regex: ^[0-9]+$"
    assert "  |         ^^^^ defined here" in rendered


def test_zero_width_span_gets_single_caret() -> None:
    error = ParseError(document_name="d.toml", document_text="a = \n", reason="invalid value", span=SourceSpan.point(4))

    assert render_diagnostic(error) == (
        "error[deploycheck::document::parse]: cannot parse document: invalid value\n"
        " --> d.toml:1:5\n"
        "  |\n"
        "1 | a = \n"
        "  |     ^ error occurred here"
    )


def test_label_without_span_renders_document_name_only() -> None:
    error = ParseError(document_name="deploy.toml", document_text="", reason="missing field `id`")

    assert render_diagnostic(error) == (
        "error[deploycheck::document::parse]: cannot parse document: missing field `id`\n"
        " --> deploy.toml"
    )


def test_multi_line_span_is_underlined_to_end_of_first_line() -> None:
    error = DiagnosticError(
        "msg",
        labels=(DiagnosticLabel("d", "abc\ndef\n", SourceSpan(1, 6), "here"),),
    )

    assert render_diagnostic(error) == (
        "error[deploycheck::diagnostic]: msg\n"
        " --> d:1:2\n"
        "  |\n"
        "1 | abc\n"
        "  |  ^^ here"
    )


def test_labels_are_grouped_per_document_in_order_of_appearance() -> None:
    error = DiagnosticError(
        "cross",
        labels=(
            DiagnosticLabel("config.toml", "k = 1\n", SourceSpan(0, 1), "second doc"),
            DiagnosticLabel("spec.toml", "x\ny\nz\nw\nv\nu\nt\ns\nr\nq\nkey\n", SourceSpan(20, 23), "first doc"),
        ),
        help="fix one of them",
    )

    lines = render_diagnostic(error).splitlines()
    assert lines[0] == "error[deploycheck::diagnostic]: cross"
    assert lines[1] == "  --> config.toml:1:1"
    assert lines[3] == " 1 | k = 1"
    assert lines[5] == "  --> spec.toml:11:1"
    assert lines[7] == "11 | key"
    assert lines[8] == "   | ^^^ first doc"
    assert lines[-1] == "   = help: fix one of them"


def test_styled_rendering_matches_plain_text() -> None:
    error = _capture('artifact = "a"\nenv = ["A", "A"]\n', 'id = "x"\n')

    text = render_diagnostic_text(error)
    assert text.plain == render_diagnostic(error)
    assert text.spans
