"""
Filesystem walker for the Resource Finder.

This module traverses a data source root depth-first in lexical order,
applying gitignore-style ignore rules, and yields a descriptor for every
visited entry. Traversal order is deterministic, which lets listings resume
after a continuation key and lets searches return reproducible results.
"""

import os
import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..errors import NotFoundError, PatternError
from ..models.config import FinderConfig
from ..models.search_results import ResourceDescriptor, ResourceKind
from .glob_matcher import GlobSet, compile_glob


logger = logging.getLogger(__name__)

FILE_URI_TEMPLATE = 'file:./{path}'


def path_key(relative_path: str) -> Tuple[str, ...]:
    """Sort key matching the walker's depth-first lexical order."""
    if not relative_path:
        return ()
    return tuple(relative_path.split('/'))


def file_uri(relative_path: str) -> str:
    return FILE_URI_TEMPLATE.replace('{path}', relative_path)


@dataclass
class WalkEntry:
    """A visited filesystem entry."""

    path: Path
    descriptor: ResourceDescriptor
    depth: int

    @property
    def relative_path(self) -> str:
        return self.descriptor.relative_path

    @property
    def is_directory(self) -> bool:
        return self.descriptor.is_directory


class IgnoreRules:
    """
    Gitignore-style ignore rules.

    Built-in names are always skipped. Other rules are evaluated in order and
    the last matching rule wins, so a later ``!pattern`` re-includes a path.
    A trailing ``/`` restricts a rule to directories, and a leading ``/``
    anchors a slash-free rule to the root.
    """

    BUILTIN_IGNORES = ('.git', '.bb', '.trash')
    IGNORE_FILES = ('.gitignore', 'tags.ignore', '.bb/ignore', '.bb/tags.ignore')

    def __init__(self, patterns: Optional[List[str]] = None):
        self._rules: List[Dict[str, Union[GlobSet, bool, str]]] = []
        for pattern in patterns or []:
            self.add(pattern)

    @classmethod
    def from_root(cls, root: Union[str, Path], extra: Optional[List[str]] = None) -> 'IgnoreRules':
        """
        Build rules from the ignore files found at a root plus extra patterns.

        Args:
            root: Data source root directory
            extra: Additional patterns (from configuration)

        Returns:
            IgnoreRules instance
        """
        root = Path(root)
        patterns: List[str] = []
        for name in cls.IGNORE_FILES:
            ignore_file = root / name
            if not ignore_file.is_file():
                continue
            try:
                with open(ignore_file, 'r', encoding='utf-8', errors='replace') as f:
                    patterns.extend(f.read().splitlines())
                logger.debug(f"Loaded ignore rules from {ignore_file}")
            except OSError as e:
                logger.warning(f"Could not read ignore file {ignore_file}: {e}")
        patterns.extend(extra or [])
        return cls(patterns)

    def add(self, pattern: str) -> None:
        """Add one gitignore-style rule; blank lines and comments are skipped."""
        line = pattern.strip()
        if not line or line.startswith('#'):
            return

        negated = line.startswith('!')
        if negated:
            line = line[1:]
        directory_only = line.endswith('/')
        line = line.rstrip('/')
        anchored = line.startswith('/')
        line = line.lstrip('/')
        if not line:
            return

        try:
            glob_set = compile_glob(line, anchored=anchored)
        except PatternError as e:
            logger.warning(f"Skipping invalid ignore pattern '{pattern}': {e.message}")
            return

        self._rules.append({
            'pattern': pattern,
            'glob': glob_set,
            'negated': negated,
            'directory_only': directory_only,
        })

    def is_ignored(self, relative_path: str, is_directory: bool = False) -> bool:
        """
        Check whether a relative path is ignored.

        Args:
            relative_path: POSIX path relative to the root
            is_directory: Whether the path is a directory

        Returns:
            True if the path should be skipped
        """
        if any(segment in self.BUILTIN_IGNORES for segment in relative_path.split('/')):
            return True

        ignored = False
        for rule in self._rules:
            if rule['directory_only'] and not is_directory:
                continue
            if rule['glob'].matches(relative_path):
                ignored = not rule['negated']
        return ignored

    def __len__(self) -> int:
        return len(self._rules)


class FSWalker:
    """
    Depth-first, lexically ordered walker over a single root.

    Directories are yielded before their contents. Symbolic links are
    reported but never followed into.
    """

    def __init__(self, root: Union[str, Path], config: Optional[FinderConfig] = None,
                 ignore_rules: Optional[IgnoreRules] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the filesystem walker.

        Args:
            root: Root directory of the data source
            config: Configuration providing ignore patterns and limits
            ignore_rules: Prebuilt ignore rules (read from the root when omitted)
            logger: Logger to report through (module logger when omitted)

        Raises:
            NotFoundError: If the root does not exist or is not a directory
        """
        self.config = config or FinderConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.root = Path(root).expanduser().resolve()
        if not self.root.exists():
            raise NotFoundError(str(root), "data source root does not exist")
        if not self.root.is_dir():
            raise NotFoundError(str(root), "data source root is not a directory")

        if ignore_rules is None:
            ignore_rules = IgnoreRules.from_root(self.root, self.config.ignore)
        self.ignore_rules = ignore_rules
        self.errors: List[str] = []
        self._stats = {
            'entries_visited': 0,
            'directories_traversed': 0,
            'entries_ignored': 0,
            'errors': 0,
            'limit_reached': 0,
        }

    def resolve(self, relative_path: str = "") -> Path:
        """
        Resolve a path below the root.

        Raises:
            NotFoundError: If the path escapes the root or does not exist
        """
        target = (self.root / relative_path).resolve() if relative_path else self.root
        if target != self.root and self.root not in target.parents:
            raise NotFoundError(relative_path, "path escapes the data source root")
        if not target.exists():
            raise NotFoundError(relative_path, "path does not exist")
        return target

    def walk(self, start: str = "", depth: Optional[int] = None, after: Optional[str] = None,
             should_stop: Optional[Callable[[], bool]] = None) -> Iterator[WalkEntry]:
        """
        Walk the tree below ``start``.

        Args:
            start: Directory relative to the root where the walk begins
            depth: Levels to descend; 1 yields only immediate children, None is unbounded
            after: Continuation key; only entries ordered after this relative path are yielded
            should_stop: Optional callable polled between entries

        Yields:
            WalkEntry objects in depth-first lexical order

        Raises:
            NotFoundError: If ``start`` is missing or not a directory
        """
        start_path = self.resolve(start)
        if not start_path.is_dir():
            raise NotFoundError(start, "not a directory")

        start_rel = start_path.relative_to(self.root).as_posix()
        if start_rel == '.':
            start_rel = ''
        after_key = path_key(after) if after else None

        self.logger.debug(f"Walking {start_path} (depth={depth}, after={after})")
        yield from self._walk_directory(start_path, start_rel, 1, depth, after_key, should_stop)

    def _walk_directory(self, dir_path: Path, dir_rel: str, level: int, depth: Optional[int],
                        after_key: Optional[Tuple[str, ...]],
                        should_stop: Optional[Callable[[], bool]]) -> Iterator[WalkEntry]:
        self._stats['directories_traversed'] += 1
        try:
            with os.scandir(dir_path) as iterator:
                entries = sorted(iterator, key=lambda e: e.name)
        except OSError as e:
            self._record_error(f"Error reading directory {dir_rel or '.'}: {e}")
            return

        for entry in entries:
            if should_stop is not None and should_stop():
                return
            if self._stats['entries_visited'] >= self.config.limits.max_files:
                if not self._stats['limit_reached']:
                    self.logger.warning(f"Reached maximum file limit: {self.config.limits.max_files}")
                    self._stats['limit_reached'] = 1
                return

            rel = f"{dir_rel}/{entry.name}" if dir_rel else entry.name
            is_dir = self._is_real_directory(entry)

            if self.ignore_rules.is_ignored(rel, is_dir):
                self._stats['entries_ignored'] += 1
                self.logger.debug(f"Ignoring {rel}")
                continue

            key = path_key(rel)
            emit = True
            descend = is_dir and (depth is None or level < depth)
            if after_key is not None and key <= after_key:
                emit = False
                # Only descend when the continuation key lies inside this subtree
                descend = descend and after_key[:len(key)] == key

            if emit:
                descriptor = self._describe(entry, rel)
                if descriptor is None:
                    continue
                self._stats['entries_visited'] += 1
                yield WalkEntry(path=Path(entry.path), descriptor=descriptor, depth=level)

            if descend:
                yield from self._walk_directory(Path(entry.path), rel, level + 1, depth, after_key, should_stop)

    def _is_real_directory(self, entry: os.DirEntry) -> bool:
        try:
            return entry.is_dir(follow_symlinks=False)
        except OSError:
            return False

    def _describe(self, entry: os.DirEntry, rel: str) -> Optional[ResourceDescriptor]:
        """
        Build a descriptor for a directory entry.

        Returns:
            ResourceDescriptor, or None if the entry could not be stat'ed
        """
        try:
            if entry.is_dir():
                kind = ResourceKind.DIRECTORY
            elif entry.is_file():
                kind = ResourceKind.FILE
            else:
                kind = ResourceKind.OTHER

            follow = kind != ResourceKind.OTHER
            stat_result = entry.stat(follow_symlinks=follow)
        except OSError as e:
            self._record_error(f"Error reading {rel}: {e}")
            return None

        mime_type = None
        size = None
        if kind == ResourceKind.FILE:
            mime_type, _ = mimetypes.guess_type(entry.name)
            size = stat_result.st_size

        extra = None
        if entry.is_symlink():
            extra = {'symlink': True}

        return ResourceDescriptor(
            uri=file_uri(rel),
            display_name=entry.name,
            relative_path=rel,
            kind=kind,
            mime_type=mime_type,
            size_bytes=size,
            last_modified=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
            provider_extra=extra,
        )

    def _record_error(self, message: str) -> None:
        self.logger.warning(message)
        self.errors.append(message)
        self._stats['errors'] += 1

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the walk.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters and recorded errors."""
        for key in self._stats:
            self._stats[key] = 0
        self.errors = []
