"""Unit tests for loading a spec/config pair from files."""

from __future__ import annotations

from pathlib import Path

import pytest

from deploycheck.document import ParseError
from deploycheck.model.config import MysqlMetadata, unwrap_as_metadata
from deploycheck.spans import SourceSpan
from deploycheck.validation import (
    DocumentReadError,
    NamespaceViolationError,
    UndefinedRequirementError,
    load,
    load_from_file,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_load_from_file_returns_normalized_models(tmp_path: Path) -> None:
    spec_path = _write(tmp_path / "deploy.spec.toml", 'artifact = "dist"\nenv = ["A"]\n')
    config_path = _write(
        tmp_path / "deploy.toml", 'id = "x"\nenv = { A = "1" }\nmysql.main = "mysql://db"\n'
    )

    spec, config = load_from_file(spec_path, config_path)

    assert spec.artifact == "dist"
    assert unwrap_as_metadata(config.mysql[0]) == MysqlMetadata(url="mysql://db")


def test_diagnostics_name_documents_by_resolved_path(tmp_path: Path) -> None:
    spec_path = _write(tmp_path / "a" / "spec.toml", 'artifact = "a"\nsecrets = ["S"]\n')
    config_path = _write(tmp_path / "b" / "config.toml", 'id = "x"\nenv = { S = "v" }\n')

    with pytest.raises(NamespaceViolationError) as excinfo:
        load_from_file(spec_path, config_path)

    label = excinfo.value.primary_label
    assert label is not None
    assert label.document_name == str(config_path.resolve())


def test_parse_errors_carry_the_file_name(tmp_path: Path) -> None:
    spec_path = _write(tmp_path / "spec.toml", "artifact = \n")
    config_path = _write(tmp_path / "config.toml", 'id = "x"\n')

    with pytest.raises(ParseError) as excinfo:
        load_from_file(spec_path, config_path)
    assert excinfo.value.document_name == str(spec_path.resolve())


def test_missing_file_raises_document_read_error(tmp_path: Path) -> None:
    config_path = _write(tmp_path / "config.toml", 'id = "x"\n')

    with pytest.raises(DocumentReadError, match="cannot resolve spec path"):
        load_from_file(tmp_path / "nope.toml", config_path)


def test_non_utf8_file_raises_document_read_error(tmp_path: Path) -> None:
    spec_path = tmp_path / "spec.toml"
    spec_path.write_bytes(b'artifact = "\xff"\n')
    config_path = _write(tmp_path / "config.toml", 'id = "x"\n')

    with pytest.raises(DocumentReadError, match="cannot read spec"):
        load_from_file(spec_path, config_path)


def test_crlf_file_spans_index_the_file_as_stored(tmp_path: Path) -> None:
    spec_bytes = b'artifact = "a"\r\nenv = ["A"]\r\n'
    spec_path = tmp_path / "spec.toml"
    spec_path.write_bytes(spec_bytes)
    config_path = _write(tmp_path / "config.toml", 'id = "x"\n')

    with pytest.raises(UndefinedRequirementError) as excinfo:
        load_from_file(spec_path, config_path)

    span = excinfo.value.span
    assert span == SourceSpan(23, 26)
    assert span.byte_range(spec_bytes.decode("utf-8")) == (23, 26)
    assert spec_bytes[23:26] == b'"A"'


def test_bare_carriage_return_in_file_is_a_parse_error(tmp_path: Path) -> None:
    spec_text = 'artifact = "a"\r# c\n'
    spec_path = tmp_path / "spec.toml"
    spec_path.write_bytes(spec_text.encode("utf-8"))
    config_path = _write(tmp_path / "config.toml", 'id = "x"\n')

    with pytest.raises(ParseError):
        load_from_file(spec_path, config_path)
    with pytest.raises(ParseError):
        load(("spec.toml", spec_text), ("config.toml", 'id = "x"\n'))
