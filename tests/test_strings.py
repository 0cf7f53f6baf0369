"""Tests for strings.py — edit distance, tokenizer, truncation."""

from histminer.strings import levenshtein, tokenize, truncate


class TestLevenshtein:
    def test_identical(self):
        assert levenshtein("git status", "git status") == 0

    def test_classic_example(self):
        assert levenshtein("kitten", "sitting") == 3

    def test_empty_strings(self):
        assert levenshtein("", "") == 0
        assert levenshtein("", "abc") == 3
        assert levenshtein("abc", "") == 3

    def test_transposition_costs_two(self):
        assert levenshtein("gti", "git") == 2

    def test_symmetric(self):
        assert levenshtein("docker ps", "docker ps -a") == levenshtein("docker ps -a", "docker ps")
        assert levenshtein("docker ps", "docker ps -a") == 3

    def test_single_edits(self):
        assert levenshtein("push", "pull") == 2
        assert levenshtein("test", "tests") == 1
        assert levenshtein("make", "mike") == 1

    def test_cutoff_caps_distant_strings(self):
        assert levenshtein("kitten", "sitting", max_distance=1) == 2
        assert levenshtein("git status", "docker compose up -d", max_distance=3) == 4

    def test_cutoff_keeps_close_distances(self):
        assert levenshtein("kitten", "sitting", max_distance=3) == 3
        assert levenshtein("npm test", "npm tests", max_distance=2) == 1
        assert levenshtein("git status", "git status", max_distance=0) == 0


class TestTokenize:
    def test_splits_on_spaces(self):
        assert tokenize("git status") == ["git", "status"]

    def test_lowercases(self):
        assert tokenize("Docker Compose UP") == ["docker", "compose", "up"]

    def test_splits_on_dashes_and_dots(self):
        assert tokenize("docker-compose up -d") == ["docker", "compose", "up", "d"]
        assert tokenize("file.tar.gz") == ["file", "tar", "gz"]

    def test_splits_on_paths_and_assignments(self):
        assert tokenize("/usr/local/bin") == ["usr", "local", "bin"]
        assert tokenize("FOO=bar") == ["foo", "bar"]

    def test_splits_on_shell_operators(self):
        assert tokenize("cat file | grep pattern") == ["cat", "file", "grep", "pattern"]
        assert tokenize("git add . && git commit") == ["git", "add", "git", "commit"]
        assert tokenize("cd /tmp; ls") == ["cd", "tmp", "ls"]

    def test_strips_quotes_and_brackets(self):
        assert tokenize('echo "hello world"') == ["echo", "hello", "world"]
        assert tokenize("echo `date`") == ["echo", "date"]
        assert tokenize("echo ${HOME}") == ["echo", "$", "home"]
        assert tokenize("test[0]") == ["test", "0"]
        assert tokenize("echo foo > out.txt") == ["echo", "foo", "out", "txt"]

    def test_at_sign_is_not_a_separator(self):
        assert tokenize("user@host:path") == ["user@host", "path"]

    def test_blank_and_punctuation_only(self):
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize("---...") == []


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("git status", 20) == "git status"

    def test_long_text_gets_ellipsis(self):
        result = truncate("a" * 30, 10)
        assert len(result) == 10
        assert result.endswith("…")
