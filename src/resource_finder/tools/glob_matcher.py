"""
Glob pattern compilation for resource paths.

Patterns use shell-style wildcards with ``|`` separating alternatives:

    *        any run of characters within one path segment
    ?        a single character within one path segment
    [abc]    a character class (``[!abc]`` negates)
    {a,b}    either ``a`` or ``b``
    **       zero or more whole segments when it is a segment of its own

An alternative without a ``/`` matches the final segment of a path at any
depth, so ``README.md`` and ``*.txt`` find resources anywhere below the root.
An alternative ending in ``/`` matches everything beneath that directory.
"""

import re
import logging
from typing import List, Optional, Union
from pathlib import PurePath

from ..errors import PatternError


logger = logging.getLogger(__name__)

_ANY_SEGMENTS = '(?:[^/]+/)*'


def _strip_root_prefix(text: str) -> str:
    while text.startswith('./'):
        text = text[2:]
    return text.lstrip('/')


def normalize_path(path: Union[str, PurePath]) -> str:
    """
    Normalize a relative path for matching.

    Args:
        path: Relative path using either separator

    Returns:
        POSIX path without a leading ``./`` or ``/``
    """
    return _strip_root_prefix(str(path).replace('\\', '/'))


def split_alternatives(pattern: str) -> List[str]:
    """
    Split a pattern on unescaped ``|``.

    ``\\|`` yields a literal pipe in the alternative. Other escapes are
    left in place for the segment translator.
    """
    alternatives = []
    current = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == '\\' and i + 1 < len(pattern):
            if pattern[i + 1] == '|':
                current.append('|')
            else:
                current.append(pattern[i:i + 2])
            i += 2
            continue
        if char == '|':
            alternatives.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1
    alternatives.append(''.join(current))
    return alternatives


def _translate_segment(segment: str, alternative: str) -> str:
    """Translate a single path segment (no ``/``) to a regex fragment."""
    parts = []
    i = 0
    n = len(segment)
    while i < n:
        char = segment[i]
        if char == '\\':
            if i + 1 < n:
                parts.append(re.escape(segment[i + 1]))
                i += 2
            else:
                parts.append(re.escape(char))
                i += 1
        elif char == '*':
            if i + 1 < n and segment[i + 1] == '*':
                # glued ** spans directories
                while i < n and segment[i] == '*':
                    i += 1
                parts.append('.*')
                continue
            parts.append('[^/]*')
            i += 1
        elif char == '?':
            parts.append('[^/]')
            i += 1
        elif char == '[':
            end = i + 1
            if end < n and segment[end] in '!^':
                end += 1
            if end < n and segment[end] == ']':
                end += 1
            while end < n and segment[end] != ']':
                end += 1
            if end >= n:
                raise PatternError(alternative, "unterminated character class")
            body = segment[i + 1:end]
            if body.startswith('!'):
                body = '^' + body[1:]
            body = body.replace('\\', '\\\\')
            parts.append(f'(?!/)[{body}]')
            i = end + 1
        elif char == '{':
            end = segment.find('}', i)
            if end == -1:
                parts.append(re.escape(char))
                i += 1
                continue
            options = segment[i + 1:end].split(',')
            translated = [_translate_segment(option, alternative) for option in options]
            parts.append('(?:' + '|'.join(translated) + ')')
            i = end + 1
        else:
            parts.append(re.escape(char))
            i += 1
    return ''.join(parts)


def translate(alternative: str, anchored: bool = False) -> str:
    """
    Translate one glob alternative into an anchored regex source.

    Args:
        alternative: A single alternative (no unescaped ``|``)
        anchored: Match a slash-free alternative at the root only instead of
            at any depth

    Returns:
        Regex source suitable for ``re.fullmatch``

    Raises:
        PatternError: If the alternative is empty or malformed
    """
    if not alternative.strip():
        raise PatternError(alternative, "empty alternative")

    # backslashes in a pattern are escapes, not separators
    body = _strip_root_prefix(alternative)
    if not body:
        raise PatternError(alternative, "empty alternative")

    if body.endswith('/'):
        body = body + '**'
    if '/' not in body and not anchored:
        body = '**/' + body

    segments = body.split('/')
    last = len(segments) - 1
    regex = []
    for index, segment in enumerate(segments):
        if segment == '**':
            regex.append('.*' if index == last else _ANY_SEGMENTS)
            continue
        if not segment:
            # collapse repeated separators
            continue
        regex.append(_translate_segment(segment, alternative))
        if index != last:
            regex.append('/')
    return ''.join(regex)


class GlobSet:
    """
    Ordered set of compiled glob alternatives.

    A path matches the set when it matches any alternative.
    """

    def __init__(self, pattern: str, alternatives: List[str], regexes: List['re.Pattern']):
        self.pattern = pattern
        self.alternatives = alternatives
        self._regexes = regexes

    def matches(self, relative_path: Union[str, PurePath]) -> bool:
        """
        Check whether a relative path matches any alternative.

        Args:
            relative_path: Path relative to the search root

        Returns:
            True if any alternative matches the whole path
        """
        path = normalize_path(relative_path)
        for regex in self._regexes:
            if regex.fullmatch(path):
                return True
        return False

    def __len__(self) -> int:
        return len(self._regexes)

    def __repr__(self) -> str:
        return f"GlobSet({self.pattern!r})"


def compile_glob(pattern: str, anchored: bool = False) -> GlobSet:
    """
    Compile a ``|``-separated glob pattern.

    Args:
        pattern: Glob pattern string
        anchored: Match slash-free alternatives at the root only

    Returns:
        Compiled GlobSet

    Raises:
        PatternError: If any alternative is empty or cannot be compiled
    """
    if pattern is None:
        raise PatternError("", "empty alternative")

    alternatives = split_alternatives(pattern)
    regexes = []
    for alternative in alternatives:
        source = translate(alternative, anchored)
        try:
            regexes.append(re.compile(source, re.DOTALL))
        except re.error as e:
            raise PatternError(alternative, str(e))
        logger.debug(f"Compiled glob '{alternative}' -> {source}")

    return GlobSet(pattern, alternatives, regexes)


def matches(glob_set: Optional[GlobSet], relative_path: Union[str, PurePath]) -> bool:
    """Match a path against a compiled GlobSet; a missing set matches everything."""
    if glob_set is None:
        return True
    return glob_set.matches(relative_path)
