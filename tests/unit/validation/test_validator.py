"""
deploycheck — unit tests for the cross-document validator

File: tests/unit/validation/test_validator.py

Purpose
- Validate each check, the fixed check order and the diagnostics they raise.

What this test file should cover
- Duplicate keys with the earlier-offset tie-break, in spec and in config.
- Required coverage, regex compilation and matching, secret/env exclusivity.
- Cross-namespace asymmetry: env requirements may be satisfied from secrets.
- Check order when several rules are violated at once.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from deploycheck.document import parse_document
from deploycheck.model.config import normalize, project_config
from deploycheck.model.spec import AppSpec, PlainRequirement, project_spec
from deploycheck.spans import SourceSpan
from deploycheck.validation import (
    VALIDATION_CHECKS,
    DuplicateConfigKeyError,
    DuplicateSpecKeyError,
    InvalidPatternError,
    NamespaceViolationError,
    PatternMismatchError,
    UndefinedRequirementError,
    load,
    validate,
)
from deploycheck.validation.validator import (
    ConfigDocument,
    SpecDocument,
    check_config_duplicates,
    check_requirements_satisfied,
    check_secrets_not_in_env,
    check_spec_duplicates,
)

SPEC_NAME = "deploy.spec.toml"
CONFIG_NAME = "deploy.toml"


def _load(spec_text: str, config_text: str) -> None:
    load((SPEC_NAME, spec_text), (CONFIG_NAME, config_text))


def _documents(spec_text: str, config_text: str) -> tuple[SpecDocument, ConfigDocument]:
    spec = project_spec(parse_document(SPEC_NAME, spec_text), SPEC_NAME, spec_text)
    config = normalize(
        project_config(parse_document(CONFIG_NAME, config_text), CONFIG_NAME, config_text)
    )
    return SpecDocument(SPEC_NAME, spec_text, spec), ConfigDocument(CONFIG_NAME, config_text, config)


def test_optional_requirements_may_be_absent() -> None:
    spec, config = load(
        (SPEC_NAME, 'artifact = "a"\nenv = ["A", { key = "B", optional = true }]\n'),
        (CONFIG_NAME, 'id = "x"\nenv = { A = "1" }\n'),
    )
    assert [entry.to_requirement().key for entry in spec.env] == ["A", "B"]
    assert config.id == "x"


def test_duplicate_spec_key_across_lists_reports_earlier_offset_first() -> None:
    spec_text = 'artifact = "a"\nsecrets = ["A"]\nenv = ["A"]\n'
    with pytest.raises(DuplicateSpecKeyError) as excinfo:
        _load(spec_text, 'id = "x"\n')

    error = excinfo.value
    previous = error.label_for("previous definition")
    redefined = error.label_for("redefined here")
    assert previous is not None and redefined is not None
    assert previous.span == error.previous
    assert error.previous.start < error.redefinition.start
    # env is scanned first, but the secrets entry comes first in the text.
    assert error.previous.slice(spec_text) == '"A"'
    assert error.previous.start == spec_text.index('"A"')
    assert error.redefinition.start == spec_text.rindex('"A"')
    assert error.message == "duplicate environment variable in spec"
    assert error.code == "deploycheck::spec::duplicate_key"


def test_duplicate_tie_break_on_synthetic_spans() -> None:
    spec = AppSpec(
        env=(PlainRequirement("A", SourceSpan(40, 44)),),
        secrets=(PlainRequirement("A", SourceSpan(10, 14)),),
        artifact="a",
    )
    text = " " * 50
    spec_doc = SpecDocument(SPEC_NAME, text, spec)
    _, config_doc = _documents('artifact = "a"\n', 'id = "x"\n')

    with pytest.raises(DuplicateSpecKeyError) as excinfo:
        check_spec_duplicates(spec_doc, config_doc)
    assert excinfo.value.previous == SourceSpan(10, 14)
    assert excinfo.value.redefinition == SourceSpan(40, 44)


def test_duplicate_config_key_across_env_and_secrets() -> None:
    config_text = 'id = "x"\n[env]\nK = "1"\n[secrets]\nK = "2"\n'
    with pytest.raises(DuplicateConfigKeyError) as excinfo:
        _load('artifact = "a"\n', config_text)

    error = excinfo.value
    assert error.previous.slice(config_text) == "K"
    assert error.previous.start == config_text.index("K")
    assert error.redefinition.start == config_text.rindex("K")
    assert error.message == "duplicate environment variable in config"


def test_missing_required_key_points_at_spec_entry() -> None:
    spec_text = 'artifact = "a"\nenv = ["A", "MISSING"]\n'
    with pytest.raises(UndefinedRequirementError) as excinfo:
        _load(spec_text, 'id = "x"\nenv = { A = "1" }\n')

    error = excinfo.value
    assert error.key == "MISSING"
    assert error.span.slice(spec_text) == '"MISSING"'
    label = error.primary_label
    assert label is not None
    assert label.document_name == SPEC_NAME
    assert label.label == "specified here"


def test_env_requirement_is_satisfied_from_secrets() -> None:
    _load('artifact = "a"\nenv = ["A"]\n', 'id = "x"\nsecrets = { A = "1" }\n')


@pytest.mark.parametrize(("value", "ok"), [("8080", True), ("abc", False), ("80a", False)])
def test_regex_is_enforced(value: str, ok: bool) -> None:
    spec_text = 'artifact = "a"\nenv = [{ key = "PORT", regex = "^[0-9]+$" }]\n'
    config_text = f'id = "x"\nenv = {{ PORT = "{value}" }}\n'
    if ok:
        _load(spec_text, config_text)
        return

    with pytest.raises(PatternMismatchError) as excinfo:
        _load(spec_text, config_text)
    error = excinfo.value
    assert error.help == "regex: ^[0-9]+$"
    assert error.span.slice(config_text) == "PORT"
    assert error.labels[0].document_name == CONFIG_NAME
    assert error.labels[0].label == "defined here"


def test_regex_match_is_unanchored_search() -> None:
    _load(
        'artifact = "a"\nenv = [{ key = "URL", regex = "example" }]\n',
        'id = "x"\nenv = { URL = "https://example.com" }\n',
    )


def test_regex_is_checked_against_secret_values() -> None:
    spec_text = 'artifact = "a"\nsecrets = [{ key = "S", regex = "^s-" }]\n'
    with pytest.raises(PatternMismatchError):
        _load(spec_text, 'id = "x"\nsecrets = { S = "nope" }\n')


def test_invalid_regex_is_reported_before_comparison() -> None:
    spec_text = 'artifact = "a"\nenv = [{ key = "A", regex = "(" }]\n'
    with pytest.raises(InvalidPatternError) as excinfo:
        _load(spec_text, 'id = "x"\nenv = { A = "anything" }\n')

    error = excinfo.value
    assert error.span.slice(spec_text) == '{ key = "A", regex = "(" }'
    assert error.message == "invalid regex for environment variable"


def test_invalid_regex_on_absent_optional_key_is_still_reported() -> None:
    spec_text = 'artifact = "a"\nenv = [{ key = "A", regex = "[", optional = true }]\n'
    with pytest.raises(InvalidPatternError):
        _load(spec_text, 'id = "x"\n')


def test_end_anchor_does_not_match_before_trailing_newline() -> None:
    spec_text = 'artifact = "a"\nenv = [{ key = "PORT", regex = "^[0-9]+$" }]\n'
    config_text = 'id = "x"\nenv = { PORT = "8080\\n" }\n'

    with pytest.raises(PatternMismatchError) as excinfo:
        _load(spec_text, config_text)
    assert excinfo.value.span.slice(config_text) == "PORT"


@pytest.mark.parametrize("pattern", ['"(?<=a)b"', '"(?=a)a"', "'(a)\\1'"])
def test_lookaround_and_backreferences_are_invalid_patterns(pattern: str) -> None:
    spec_text = f'artifact = "a"\nenv = [{{ key = "A", regex = {pattern} }}]\n'

    with pytest.raises(InvalidPatternError) as excinfo:
        _load(spec_text, 'id = "x"\nenv = { A = "ab" }\n')
    assert excinfo.value.message == "invalid regex for environment variable"


def test_secret_supplied_as_env_is_rejected() -> None:
    config_text = 'id = "x"\nenv = { S = "v" }\n'
    with pytest.raises(NamespaceViolationError) as excinfo:
        _load('artifact = "a"\nsecrets = [{ key = "S" }]\n', config_text)

    error = excinfo.value
    assert error.span.slice(config_text) == "S"
    assert error.labels[0].label == "defined as env here"
    assert error.message == "secret defined as env"


def test_checks_run_in_fixed_order() -> None:
    assert VALIDATION_CHECKS == (
        check_spec_duplicates,
        check_config_duplicates,
        check_requirements_satisfied,
        check_secrets_not_in_env,
    )


@pytest.mark.parametrize(
    ("spec_text", "config_text", "expected"),
    [
        # Spec duplicate wins over config duplicate and missing keys.
        (
            'artifact = "a"\nenv = ["A", "A", "MISSING"]\n',
            'id = "x"\nenv = { K = "1" }\nsecrets = { K = "2" }\n',
            DuplicateSpecKeyError,
        ),
        # Config duplicate wins over missing keys.
        (
            'artifact = "a"\nenv = ["MISSING"]\n',
            'id = "x"\nenv = { K = "1" }\nsecrets = { K = "2" }\n',
            DuplicateConfigKeyError,
        ),
        # Missing key wins over secret-in-env.
        (
            'artifact = "a"\nenv = ["MISSING"]\nsecrets = ["S"]\n',
            'id = "x"\nenv = { S = "v" }\n',
            UndefinedRequirementError,
        ),
        # Pattern mismatch on the secret wins over secret-in-env.
        (
            'artifact = "a"\nsecrets = [{ key = "S", regex = "^[0-9]+$" }]\n',
            'id = "x"\nenv = { S = "v" }\n',
            PatternMismatchError,
        ),
    ],
)
def test_first_violation_in_check_order_is_reported(
    spec_text: str, config_text: str, expected: type[Exception]
) -> None:
    with pytest.raises(expected):
        _load(spec_text, config_text)


def test_validate_returns_result_instead_of_raising() -> None:
    spec_doc, config_doc = _documents('artifact = "a"\nenv = ["A"]\n', 'id = "x"\n')
    result = validate(spec_doc, config_doc)

    assert not result.is_valid
    assert isinstance(result.diagnostic, UndefinedRequirementError)

    spec_doc, config_doc = _documents('artifact = "a"\nenv = ["A"]\n', 'id = "x"\nenv = { A = "1" }\n')
    assert validate(spec_doc, config_doc).is_valid


def test_individual_checks_ignore_unrelated_violations() -> None:
    spec_doc, config_doc = _documents('artifact = "a"\nsecrets = ["S"]\n', 'id = "x"\nenv = { S = "v" }\n')
    check_spec_duplicates(spec_doc, config_doc)
    check_config_duplicates(spec_doc, config_doc)
    check_requirements_satisfied(spec_doc, config_doc)
    with pytest.raises(NamespaceViolationError):
        check_secrets_not_in_env(spec_doc, config_doc)


_NAMES = st.from_regex(r"[A-Z][A-Z0-9_]{0,6}", fullmatch=True)


@settings(max_examples=40, deadline=None)
@given(st.lists(_NAMES, min_size=1, max_size=5, unique=True), st.booleans())
def test_shorthand_and_structured_entries_validate_identically(names: list[str], drop_last: bool) -> None:
    supplied = names[:-1] if drop_last else names
    config_text = 'id = "x"\n[env]\n' + "".join(f'{name} = "v"\n' for name in supplied)
    plain_spec = 'artifact = "a"\nenv = [' + ", ".join(f'"{name}"' for name in names) + "]\n"
    structured_spec = (
        'artifact = "a"\nenv = [' + ", ".join(f'{{ key = "{name}" }}' for name in names) + "]\n"
    )

    outcomes = []
    for spec_text in (plain_spec, structured_spec):
        spec_doc, config_doc = _documents(spec_text, config_text)
        result = validate(spec_doc, config_doc)
        diagnostic = result.diagnostic
        outcomes.append(
            None if diagnostic is None else (type(diagnostic), getattr(diagnostic, "key", None))
        )

    assert outcomes[0] == outcomes[1]
    assert (outcomes[0] is None) is (not drop_last)
