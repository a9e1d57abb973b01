"""
Size and modification-date filtering for resource descriptors.

Date bounds use UTC throughout. A date-only bound covers the whole UTC day:
``modified_after: 2024-03-01`` keeps resources modified at or after
2024-03-01T00:00:00Z, and ``modified_before: 2024-03-01`` keeps resources
modified before 2024-03-02T00:00:00Z. Bounds with a time component compare
exactly; naive times are taken as UTC.
"""

import re
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from ..models.search_criteria import SearchCriteria
from ..models.search_results import ResourceDescriptor


logger = logging.getLogger(__name__)

_DATE_ONLY_FORMATS = ['%Y-%m-%d', '%Y/%m/%d']
_DATETIME_FORMATS = ['%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y/%m/%d %H:%M:%S']

_RELATIVE_PATTERNS = [
    (r'^(\d+)\s*days?(?:\s+ago)?$', lambda n: timedelta(days=n)),
    (r'^(\d+)\s*weeks?(?:\s+ago)?$', lambda n: timedelta(weeks=n)),
    (r'^(\d+)\s*months?(?:\s+ago)?$', lambda n: timedelta(days=n * 30)),
    (r'^(\d+)\s*years?(?:\s+ago)?$', lambda n: timedelta(days=n * 365)),
]


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def parse_date_bound(value: Union[str, date, datetime], upper: bool = False,
                     now: Optional[datetime] = None) -> datetime:
    """
    Resolve a date filter value to a UTC comparison bound.

    Lower bounds are inclusive (``mtime >= bound``); upper bounds are
    compared exclusively (``mtime < bound``). For a date-only upper bound the
    result is midnight of the following day, which makes the named day
    inclusive; any other upper bound, relative values included, is moved one
    microsecond later so the named instant itself passes.

    Args:
        value: Date string (``YYYY-MM-DD``, ISO 8601, or relative such as
            ``"7 days"``), date, or datetime
        upper: Whether this is an upper (``modified_before``) bound
        now: Reference time for relative values (defaults to the current UTC time)

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        bound = to_utc(value)
        return bound + timedelta(microseconds=1) if upper else bound

    if isinstance(value, date):
        start = _day_start(value)
        return start + timedelta(days=1) if upper else start

    text = str(value).strip()
    lowered = text.lower()

    for pattern, delta in _RELATIVE_PATTERNS:
        match = re.match(pattern, lowered)
        if match:
            reference = to_utc(now) if now is not None else datetime.now(timezone.utc)
            return parse_date_bound(reference - delta(int(match.group(1))), upper=upper)

    for fmt in _DATE_ONLY_FORMATS:
        try:
            day = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        return parse_date_bound(day, upper=upper)

    for fmt in _DATETIME_FORMATS:
        try:
            moment = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parse_date_bound(moment, upper=upper)

    try:
        moment = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        raise ValueError(f"Invalid date: {text}")
    return parse_date_bound(moment, upper=upper)


class MetadataFilter:
    """
    Evaluates size and date predicates from SearchCriteria.

    Bounds are resolved once at construction so every descriptor is
    compared against the same instants.
    """

    def __init__(self, criteria: SearchCriteria, now: Optional[datetime] = None):
        self.criteria = criteria
        self.size_min = criteria.size_min
        self.size_max = criteria.size_max
        self.after = None
        self.before = None
        if criteria.modified_after is not None:
            self.after = parse_date_bound(criteria.modified_after, upper=False, now=now)
        if criteria.modified_before is not None:
            self.before = parse_date_bound(criteria.modified_before, upper=True, now=now)

    def is_active(self) -> bool:
        """Check if any size or date predicate is present."""
        return any(value is not None for value in (self.size_min, self.size_max, self.after, self.before))

    def passes(self, descriptor: ResourceDescriptor) -> bool:
        """
        Check a descriptor against all present predicates (ANDed).

        Args:
            descriptor: Resource to evaluate

        Returns:
            True if every present predicate holds
        """
        if not self._passes_size(descriptor):
            return False
        return self._passes_dates(descriptor)

    def _passes_size(self, descriptor: ResourceDescriptor) -> bool:
        if self.size_min is None and self.size_max is None:
            return True

        if descriptor.is_directory:
            extra = descriptor.provider_extra or {}
            if not extra.get('directory_size') or descriptor.size_bytes is None:
                return True

        size = descriptor.size_bytes
        if size is None:
            logger.debug(f"No size for {descriptor.relative_path}; failing size filter")
            return False
        if self.size_min is not None and size < self.size_min:
            return False
        if self.size_max is not None and size > self.size_max:
            return False
        return True

    def _passes_dates(self, descriptor: ResourceDescriptor) -> bool:
        if self.after is None and self.before is None:
            return True

        if descriptor.last_modified is None:
            return False

        modified = to_utc(descriptor.last_modified)
        if self.after is not None and modified < self.after:
            return False
        if self.before is not None and modified >= self.before:
            return False
        return True


def passes(descriptor: ResourceDescriptor, criteria: SearchCriteria) -> bool:
    """Convenience wrapper evaluating a single descriptor."""
    return MetadataFilter(criteria).passes(descriptor)
