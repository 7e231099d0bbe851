"""Tests for workerbundle.globs."""

from __future__ import annotations

import pytest

from workerbundle.errors import GlobError
from workerbundle.globs import TypeMatcherBuilder, compile_glob


def test_bare_glob_matches_file_name_at_any_depth() -> None:
    glob = compile_glob("*.js")

    assert glob.matches("bar.js")
    assert glob.matches("foo/deep/bar.js")
    assert not glob.matches("bar.mjs")
    assert not glob.matches("bar.js.map")


def test_glob_with_slash_matches_relative_path() -> None:
    glob = compile_glob("vendor/*.js")

    assert glob.matches("vendor/lib.js")
    assert not glob.matches("lib.js")
    assert not glob.matches("vendor/nested/lib.js")


def test_double_star_spans_directories() -> None:
    glob = compile_glob("assets/**/*.txt")

    assert glob.matches("assets/a.txt")
    assert glob.matches("assets/x/y/a.txt")
    assert not glob.matches("other/a.txt")


def test_classes_and_alternates() -> None:
    assert compile_glob("data[0-9].bin").matches("data7.bin")
    assert not compile_glob("data[!0-9].bin").matches("data7.bin")
    assert compile_glob("*.{js,cjs}").matches("index.cjs")
    assert not compile_glob("*.{js,cjs}").matches("index.mjs")
    assert compile_glob("file?.txt").matches("file1.txt")


def test_escaped_characters_match_literally() -> None:
    glob = compile_glob(r"\*.txt")

    assert glob.matches("*.txt")
    assert not glob.matches("notes.txt")


@pytest.mark.parametrize(
    ("pattern", "reason"),
    [
        ("*.[jt", "unclosed character class"),
        ("*.{js,cjs", "unclosed alternate group"),
        ("*.{js,{c,m}js}", "nested alternate groups"),
        ("*.js}", "unopened alternate group"),
        ("[z-a].txt", "invalid range"),
        ("trailing\\", "dangling"),
        ("", "glob is empty"),
        ("!", "glob is empty"),
    ],
)
def test_invalid_globs_name_the_pattern(pattern: str, reason: str) -> None:
    with pytest.raises(GlobError) as excinfo:
        compile_glob(pattern)

    assert excinfo.value.glob == pattern
    assert reason in excinfo.value.reason
    assert str(excinfo.value).startswith(
        f'encountered error while parsing the glob "{pattern}": '
    )


def test_non_string_glob_uses_generic_message() -> None:
    with pytest.raises(GlobError) as excinfo:
        compile_glob(42)  # type: ignore[arg-type]

    assert excinfo.value.glob is None
    assert str(excinfo.value).startswith("encountered error while parsing globs: ")


def test_negated_glob_excludes_within_its_group() -> None:
    builder = TypeMatcherBuilder()
    builder.add("Text", "*.txt")
    builder.add("Text", "!LICENSE.txt")
    matcher = builder.build()

    assert matcher.is_whitelisted("notes.txt")
    assert not matcher.is_whitelisted("LICENSE.txt")
    assert not matcher.is_whitelisted("docs/LICENSE.txt")


def test_matcher_reports_first_selecting_group() -> None:
    builder = TypeMatcherBuilder()
    builder.add_type("CompiledWasm")
    builder.add("ESModule", "*.mjs")
    builder.add("Text", "*.txt")
    builder.add("Text", "!skip.txt")
    matcher = builder.build()

    assert matcher.names == ("CompiledWasm", "ESModule", "Text")
    assert matcher.matched("index.mjs") == "ESModule"
    assert matcher.matched("a.txt") == "Text"
    assert matcher.matched("skip.txt") is None
    assert matcher.matched("main.wasm") is None
