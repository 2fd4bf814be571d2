"""Tests for Ant-style pattern matching and parameter splitting."""

from __future__ import annotations

import os

import pytest

from ossinventory.engines.folder_scanner.patterns import (
    PatternMatcher,
    compile_pattern,
    match_any,
    split_parameters,
    split_parameters_map,
)

_CASE_SENSITIVE = os.path.normcase("A") == "A"


class TestSplitParameters:
    def test_none_and_empty(self):
        assert split_parameters(None) == []
        assert split_parameters("") == []
        assert split_parameters("  ,\n ") == []

    def test_mixed_separators(self):
        assert split_parameters("**/*.jar, **/*.war\n**/*.ear  lib/*.so") == [
            "**/*.jar",
            "**/*.war",
            "**/*.ear",
            "lib/*.so",
        ]

    def test_order_preserved(self):
        assert split_parameters("c b a") == ["c", "b", "a"]

    def test_map(self):
        assert split_parameters_map("core=tok1, web=tok2") == {"core": "tok1", "web": "tok2"}

    def test_map_drops_malformed(self):
        assert split_parameters_map("ok=1 bare a=b=c =x y=") == {"ok": "1"}


class TestCompilePattern:
    def test_double_star_matches_root(self):
        rx = compile_pattern("**/*.jar")
        assert rx.fullmatch("lib.jar")
        assert rx.fullmatch("a/b/lib.jar")
        assert not rx.fullmatch("lib.jarx")

    def test_dot_is_literal(self):
        assert not compile_pattern("**/*.jar").fullmatch("libxjar")

    def test_question_mark_single_char(self):
        rx = compile_pattern("a?.txt")
        assert rx.fullmatch("ab.txt")
        assert not rx.fullmatch("abc.txt")
        assert not rx.fullmatch("a.txt")

    def test_single_star_crosses_directories(self):
        # a single star translates to ".*", so it also spans separators
        assert compile_pattern("lib/*.jar").fullmatch("lib/sub/x.jar")

    def test_compound_extension(self):
        assert compile_pattern("**/*.tar.gz").fullmatch("dist/app.tar.gz")
        assert not compile_pattern("**/*.tar").fullmatch("dist/app.tar.gz")

    def test_backslash_pattern_normalized(self):
        assert compile_pattern("lib\\*.dll").fullmatch("lib/native.dll")

    @pytest.mark.skipif(not _CASE_SENSITIVE, reason="filesystem folds case")
    def test_case_sensitive_on_posix(self):
        assert not compile_pattern("**/*.jar").fullmatch("LIB.JAR")

    def test_match_any(self):
        assert match_any("core-api", ["web", "core*"])
        assert not match_any("core-api", ["web", "api"])
        assert not match_any("anything", [])


class TestPatternMatcher:
    def test_empty_includes_match_everything(self):
        assert PatternMatcher([]).matches("any/file.txt")

    def test_includes(self):
        m = PatternMatcher(["**/*.jar"])
        assert m.matches("lib/a.jar")
        assert not m.matches("lib/a.txt")

    def test_excludes_win(self):
        m = PatternMatcher(["**/*.jar"], ["**/test/**"])
        assert m.matches("main/a.jar")
        assert not m.matches("test/a.jar")
        assert not m.matches("src/test/a.jar")

    def test_exclude_without_include(self):
        m = PatternMatcher([], ["**/*.tmp"])
        assert m.matches("a.txt")
        assert not m.matches("build/x.tmp")

    def test_windows_separators(self):
        assert PatternMatcher(["lib/**"]).matches("lib\\a.jar")

    def test_leading_slash_ignored(self):
        assert PatternMatcher(["lib/*.jar"]).matches("/lib/a.jar")
