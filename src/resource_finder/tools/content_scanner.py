"""
Regex content scanning that is safe across read-buffer boundaries.

Small resources are read whole. Larger ones are streamed in chunks; each
chunk is appended to the tail of the previous window (one chunk plus the
overlap) and the regex is run over the combined text, so a match that
straddles two reads is seen intact.
"""

import re
import codecs
import logging
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

from ..errors import RegexError
from ..models.config import ScanConfig
from ..models.search_results import ContentMatch


logger = logging.getLogger(__name__)


def compile_content_pattern(pattern: str, case_sensitive: bool = False) -> 're.Pattern':
    """
    Compile a content pattern.

    Args:
        pattern: Regular expression source
        case_sensitive: Whether matching is case-sensitive

    Returns:
        Compiled regex

    Raises:
        RegexError: If the pattern is invalid; carries the engine message verbatim
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise RegexError(pattern, str(e))


def looks_binary(chunk: bytes) -> bool:
    """
    Check whether a leading sample of bytes looks binary.

    A NUL byte, or fewer than 70% printable characters, marks the content
    as binary.
    """
    if not chunk:
        return False
    if b'\x00' in chunk:
        return True
    printable_chars = sum(1 for byte in chunk if 32 <= byte <= 126 or byte in (9, 10, 13) or byte >= 128)
    return printable_chars / len(chunk) < 0.7


class BufferSafeContentScanner:
    """
    Presence test for a regex over a resource's bytes.

    Attributes:
        config: Buffer settings (chunk size, overlap, whole-file threshold)
    """

    def __init__(self, config: Optional[ScanConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or ScanConfig()
        self.logger = logger or logging.getLogger(__name__)

    def is_binary(self, handle: BinaryIO) -> bool:
        """
        Sniff the start of a handle for binary content.

        The handle is rewound when it is seekable.
        """
        sample = handle.read(self.config.binary_sniff_bytes)
        if handle.seekable():
            handle.seek(0)
        return looks_binary(sample)

    def scan(self, handle: BinaryIO, pattern: 're.Pattern',
             should_stop: Optional[Callable[[], bool]] = None) -> bool:
        """
        Test whether ``pattern`` occurs anywhere in the handle's content.

        Binary content never matches. Chunked scanning gives the same answer
        as scanning the whole content for any match up to ``config.chunk_size``
        characters wide whose lookahead reaches no more than half of
        ``config.overlap`` characters past its end.

        Args:
            handle: Binary file-like object positioned at the start
            pattern: Compiled content regex
            should_stop: Optional callable polled between chunks

        Returns:
            True if at least one match was found
        """
        threshold = self.config.whole_file_threshold
        head = handle.read(max(threshold + 1, self.config.binary_sniff_bytes))

        if looks_binary(head[:self.config.binary_sniff_bytes]):
            self.logger.debug("Skipping binary content")
            return False

        if len(head) <= threshold:
            text = head.decode('utf-8', errors='replace')
            return pattern.search(text) is not None

        return self._scan_chunked(head, handle, pattern, should_stop)

    def scan_text(self, text: str, pattern: 're.Pattern') -> bool:
        """Presence test over text already in memory."""
        return pattern.search(text) is not None

    def _iter_chunks(self, head: bytes, handle: BinaryIO) -> Iterator[Tuple[bytes, bool]]:
        """Yield (chunk, is_last) pairs, starting with the bytes already read."""
        size = self.config.chunk_size
        pending = [head[i:i + size] for i in range(0, len(head), size)]

        current = pending.pop(0) if pending else handle.read(size)
        while current:
            if pending:
                upcoming = pending.pop(0)
            else:
                upcoming = handle.read(size)
            yield current, not upcoming
            current = upcoming

    def _scan_chunked(self, head: bytes, handle: BinaryIO, pattern: 're.Pattern',
                      should_stop: Optional[Callable[[], bool]]) -> bool:
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        guard = self.config.overlap // 2
        retain = self.config.chunk_size + self.config.overlap
        max_carry = 2 * retain

        carry = ""
        start = 0
        windows = 0
        for chunk, is_last in self._iter_chunks(head, handle):
            if should_stop is not None and should_stop():
                self.logger.debug(f"Chunked scan stopped after {windows} windows")
                return False

            window = carry + decoder.decode(chunk, final=is_last)
            windows += 1

            match = pattern.search(window, start)
            # A match ending near the window end may depend on text in the next
            # chunk (greedy runs, $, lookahead); it is retested once more text
            # is available.
            if match is not None and (is_last or match.end() <= len(window) - guard - 1):
                return True

            # Keep one extra leading character so anchors and word
            # boundaries see real context at the start of the next window.
            carry_from = max(0, len(window) - retain - 1)
            if match is not None:
                # A deferred candidate is carried whole so it is retested intact.
                carry_from = max(min(carry_from, match.start() - 1), len(window) - max_carry - 1, 0)
            carry = window[carry_from:]
            start = 1 if (carry_from > 0 or start == 1) else 0

        return False


def find_matches(text: str, pattern: 're.Pattern', context_lines: int = 2,
                 max_matches: int = 5) -> List[ContentMatch]:
    """
    Locate matches in text with surrounding lines of context.

    Patterns whose source contains a newline are matched over the whole
    text; others are matched one line at a time.

    Args:
        text: Decoded resource content
        pattern: Compiled content regex
        context_lines: Lines of context before and after each match
        max_matches: Maximum matches to return

    Returns:
        Matches in document order with 1-based line numbers
    """
    lines = text.split('\n')
    found: List[ContentMatch] = []

    def build(line_index: int, start: Optional[int], end: Optional[int]) -> ContentMatch:
        line = lines[line_index]
        if end is not None:
            end = min(end, len(line))
        return ContentMatch(
            line_number=line_index + 1,
            content=line,
            context_before=lines[max(0, line_index - context_lines):line_index],
            context_after=lines[line_index + 1:line_index + 1 + context_lines],
            match_start=start,
            match_end=end,
        )

    if '\n' in pattern.pattern or '\\n' in pattern.pattern:
        for m in pattern.finditer(text):
            line_index = text.count('\n', 0, m.start())
            line_start = text.rfind('\n', 0, m.start()) + 1
            found.append(build(line_index, m.start() - line_start, m.end() - line_start))
            if len(found) >= max_matches:
                break
        return found

    for line_index, line in enumerate(lines):
        m = pattern.search(line)
        if m is None:
            continue
        found.append(build(line_index, m.start(), m.end()))
        if len(found) >= max_matches:
            break
    return found
