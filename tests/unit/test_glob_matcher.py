"""
Unit tests for glob pattern compilation.

Tests alternation, bare names, single- and multi-segment wildcards,
character classes, and error reporting for malformed patterns.
"""

import pytest

from resource_finder.errors import PatternError
from resource_finder.tools.glob_matcher import compile_glob, matches, split_alternatives, translate


class TestCompileGlob:
    """Test cases for compile_glob and GlobSet.matches."""

    def test_double_star_bridges_depths(self):
        """Test that ** absorbs zero or more directory levels."""
        glob_set = compile_glob("deploy/Kubernetes/**/*")

        assert glob_set.matches("deploy/Kubernetes/service.yaml")
        assert glob_set.matches("deploy/Kubernetes/base/deployment.yaml")
        assert glob_set.matches("deploy/Kubernetes/overlays/prod/patch.yaml")
        assert not glob_set.matches("deploy/Kubernetes")
        assert not glob_set.matches("deploy/Docker/Dockerfile")
        assert not glob_set.matches("other/deploy/Kubernetes/service.yaml")

    def test_prefix_glob_matches_at_any_depth(self):
        """Test that a leading **/ matches resources at depth 1 and deeper."""
        glob_set = compile_glob("**/searchProject*test.ts")

        assert glob_set.matches("searchProject.test.ts")
        assert glob_set.matches("a/b/searchProject_tool.test.ts")
        assert not glob_set.matches("search.test.ts")
        assert not glob_set.matches("a/b/search.test.ts")
        assert not glob_set.matches("mysearchProject.test.ts")

    def test_adjacent_double_star_segments(self):
        """Test that each ** independently absorbs zero or more segments."""
        glob_set = compile_glob("**/searchProject*/**/*.test.ts")

        # minimal nesting: both ** absorb nothing
        assert glob_set.matches("searchProject.tool/tool.test.ts")
        # maximal nesting on both sides
        assert glob_set.matches("src/llms/tools/searchProject.tool/tests/unit/deep/tool.test.ts")
        assert not glob_set.matches("src/searchProject.tool.test.ts")
        assert not glob_set.matches("src/other.tool/tool.test.ts")

    def test_bare_name_matches_final_segment_at_any_depth(self):
        """Test bare names match by final segment only."""
        glob_set = compile_glob("README.md")

        assert glob_set.matches("README.md")
        assert glob_set.matches("docs/guide/README.md")
        assert not glob_set.matches("README.md.bak")
        assert not glob_set.matches("docs/OLD_README.md")

    def test_wildcard_without_slash_matches_any_depth(self):
        """Test that *.txt matches text files anywhere."""
        glob_set = compile_glob("*.txt")

        assert glob_set.matches("a.txt")
        assert glob_set.matches("sub/dir/b.txt")
        assert not glob_set.matches("a.txt/inner.md")
        assert not glob_set.matches("a.md")

    def test_single_star_does_not_cross_separator(self):
        """Test that * stays within one segment when the pattern has a slash."""
        glob_set = compile_glob("src/*.py")

        assert glob_set.matches("src/main.py")
        assert not glob_set.matches("src/pkg/main.py")

    def test_alternatives(self):
        """Test |-separated alternatives."""
        glob_set = compile_glob("*.ts|*.js|Makefile")

        assert len(glob_set) == 3
        assert glob_set.matches("src/app.ts")
        assert glob_set.matches("lib/app.js")
        assert glob_set.matches("build/Makefile")
        assert not glob_set.matches("src/app.py")

    def test_escaped_pipe_is_literal(self):
        """Test that \\| does not split alternatives."""
        assert split_alternatives(r"a\|b|c") == ["a|b", "c"]
        glob_set = compile_glob(r"a\|b")
        assert glob_set.matches("a|b")
        assert not glob_set.matches("a")

    def test_trailing_slash_matches_subtree(self):
        """Test that dir/ matches everything beneath the directory."""
        glob_set = compile_glob("docs/")

        assert glob_set.matches("docs/a.md")
        assert glob_set.matches("docs/deep/b.md")
        assert not glob_set.matches("docsx/a.md")

    def test_regex_metacharacters_are_literal(self):
        """Test that regex metacharacters in literal text are escaped."""
        glob_set = compile_glob("file(1)+.txt")

        assert glob_set.matches("file(1)+.txt")
        assert not glob_set.matches("file1.txt")
        assert not glob_set.matches("file(1)+xtxt")

    def test_question_mark_and_classes(self):
        """Test ? and character classes."""
        assert compile_glob("test?.txt").matches("test1.txt")
        assert not compile_glob("test?.txt").matches("test12.txt")
        assert compile_glob("[abc].md").matches("b.md")
        assert not compile_glob("[abc].md").matches("d.md")
        assert compile_glob("[!abc].md").matches("d.md")
        assert not compile_glob("[!abc].md").matches("a.md")

    def test_braces(self):
        """Test {a,b} alternation inside a segment."""
        glob_set = compile_glob("src/*.{ts,tsx}")

        assert glob_set.matches("src/app.ts")
        assert glob_set.matches("src/app.tsx")
        assert not glob_set.matches("src/app.js")

    def test_escaped_wildcards_are_literal(self):
        """Test that backslash escapes match wildcard characters literally."""
        star = compile_glob(r"a\*b.txt")
        brackets = compile_glob(r"file\[1\].txt")
        question = compile_glob(r"docs/why\?.md")
        brace = compile_glob(r"\{x\}.json")

        assert star.matches("a*b.txt")
        assert not star.matches("axyzb.txt")
        assert brackets.matches("file[1].txt")
        assert brackets.matches("nested/file[1].txt")
        assert not brackets.matches("file1.txt")
        assert question.matches("docs/why?.md")
        assert not question.matches("docs/whyx.md")
        assert brace.matches("{x}.json")

    def test_paths_are_normalized(self):
        """Test that ./ prefixes and backslashes are normalized."""
        glob_set = compile_glob("./src/*.py")

        assert glob_set.matches("src/main.py")
        assert glob_set.matches("./src/main.py")
        assert glob_set.matches("src\\main.py")

    def test_deterministic(self):
        """Test that matching depends only on pattern and path."""
        paths = ["a/b/c.txt", "c.txt", "x/y.md"]
        first = [compile_glob("**/*.txt").matches(p) for p in paths]
        second = [compile_glob("**/*.txt").matches(p) for p in reversed(paths)]
        assert first == list(reversed(second))

    def test_anchored_slash_free_pattern(self):
        """Test anchored compilation matches only at the root."""
        glob_set = compile_glob("build", anchored=True)

        assert glob_set.matches("build")
        assert not glob_set.matches("src/build")

    def test_module_level_matches(self):
        """Test the module-level matches helper."""
        assert matches(None, "anything/at/all")
        assert matches(compile_glob("*.py"), "a/b.py")


class TestGlobErrors:
    """Test cases for malformed patterns."""

    def test_empty_alternative(self):
        """Test that an empty alternative raises PatternError."""
        with pytest.raises(PatternError) as exc_info:
            compile_glob("*.ts||*.js")
        assert "empty alternative" in str(exc_info.value)

    def test_empty_pattern(self):
        """Test that an empty pattern raises PatternError."""
        with pytest.raises(PatternError):
            compile_glob("")

    def test_unterminated_class(self):
        """Test that an unterminated character class names the alternative."""
        with pytest.raises(PatternError) as exc_info:
            compile_glob("*.md|src/[abc.ts")

        assert exc_info.value.pattern == "src/[abc.ts"
        assert "unterminated character class" in exc_info.value.reason

    def test_translate_produces_anchored_source(self):
        """Test the translated regex for a simple pattern."""
        assert translate("src/*.py") == r"src/[^/]*\.py"
