import pytest

from globwatch.errors import ConfigurationError
from globwatch.matcher import DEFAULT_INCLUDE_PATTERNS, PathMatcher


@pytest.fixture
def web_matcher():
    return PathMatcher(["**/*.css", "**/*.js"], ["**/vendor/**"])


@pytest.mark.parametrize("path, expected", [
    ("src/app.js", True),
    ("style.css", True),
    ("vendor/lib.js", False),
    ("src/vendor/lib.js", False),
    ("src/app.txt", False),
])
def test_include_and_exclude(web_matcher, path, expected):
    assert web_matcher.test(path) is expected


def test_defaults():
    matcher = PathMatcher()
    assert [p.pattern for p in matcher.include] == list(DEFAULT_INCLUDE_PATTERNS)
    assert matcher.exclude == ()
    assert matcher.test("notes.txt")
    assert matcher.test("deep/down/notes.txt")
    assert not matcher.test("Makefile")


def test_empty_include_falls_back_to_default():
    assert PathMatcher([], None).test("a/b.c")


@pytest.mark.parametrize("path", ["", None])
def test_empty_path_never_matches(path):
    assert PathMatcher(["**"]).test(path) is False


def test_single_star_stays_in_segment():
    matcher = PathMatcher(["src/*.py"])
    assert matcher.test("src/main.py")
    assert not matcher.test("src/pkg/main.py")
    assert not matcher.test("main.py")


def test_globstar_matches_zero_or_more_directories():
    matcher = PathMatcher(["src/**/test_*.py"])
    assert matcher.test("src/test_a.py")
    assert matcher.test("src/x/y/test_a.py")
    assert not matcher.test("lib/test_a.py")


def test_question_mark_and_classes():
    matcher = PathMatcher(["log?.[0-9]", "data/[!x]*.csv"])
    assert matcher.test("log1.7")
    assert not matcher.test("log12.7")
    assert not matcher.test("log1.a")
    assert matcher.test("data/a.csv")
    assert not matcher.test("data/x.csv")


def test_backslashes_are_normalized():
    matcher = PathMatcher(["src/**/*.js"])
    assert matcher.test("src\\lib\\app.js")
    assert matcher.test("./src/app.js")


def test_case_sensitivity():
    sensitive = PathMatcher(["**/*.TXT"], ["**/SKIP/**"])
    assert not sensitive.test("notes.txt")
    assert sensitive.test("skip/NOTES.TXT")

    insensitive = PathMatcher(["**/*.TXT"], ["**/SKIP/**"], ignore_case=True)
    assert insensitive.test("notes.txt")
    assert not insensitive.test("skip/NOTES.TXT")


def test_dot_entries_need_explicit_pattern():
    matcher = PathMatcher(["**/*.*"])
    assert not matcher.test(".hidden.txt")
    assert not matcher.test(".git/config.lock")
    assert PathMatcher([".*"]).test(".hidden.txt")
    assert PathMatcher(["**/.git/*"]).test("repo/.git/HEAD")


def test_exclude_wins_over_include():
    matcher = PathMatcher(["**/*.js"], ["**/*.min.js"])
    assert matcher.test("app.js")
    assert not matcher.test("app.min.js")


@pytest.mark.parametrize("pattern", ["", "   ", "src/[abc.js"])
def test_invalid_patterns_are_rejected(pattern):
    with pytest.raises(ConfigurationError):
        PathMatcher([pattern])


def test_literal_bracket_in_class_is_valid():
    assert PathMatcher(["[]]x"]).test("]x")
