"""
Filter field declarations for the Stats screen.

Defines the screen's codec registry, its default values and the validity
rules that gate data loading.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from filter_sync.codecs import DateCodec, FieldKind
from filter_sync.registry import CodecRegistry, FieldSpec

GRANULARITIES = ('day', 'week', 'month')
LEVELS = ('error', 'warning', 'info')

STATS_FIELDS = (
    FieldSpec('date_from', FieldKind.DATE, wire_key='dateFrom', required=True),
    FieldSpec('date_to', FieldKind.DATE, wire_key='dateTo', required=True),
    FieldSpec('compare_date_from', FieldKind.DATE, wire_key='compareDateFrom'),
    FieldSpec('compare_date_to', FieldKind.DATE, wire_key='compareDateTo'),
    FieldSpec('account_id', FieldKind.INTEGER, wire_key='accountId'),
    FieldSpec('need_to_fix', FieldKind.BOOLEAN, wire_key='needToFix'),
    FieldSpec('level', FieldKind.STRING_ARRAY, wire_key='level'),
    FieldSpec('granularity', FieldKind.ENUM, wire_key='granularity', values=GRANULARITIES, default='day'),
    FieldSpec('search', FieldKind.TEXT, wire_key='q'),
)

COMPARE_FIELDS = ('compare_date_from', 'compare_date_to')


def build_stats_registry() -> CodecRegistry:
    """Create the codec registry for the Stats screen."""
    return CodecRegistry(STATS_FIELDS)


def default_filters(today: Optional[date] = None, lookback_days: int = 14) -> Dict[str, Any]:
    """
    Default filter values at screen activation.

    Args:
        today: Reference day (defaults to the local current date)
        lookback_days: Length of the default range ending today

    Returns:
        Field name to default value
    """
    today = today or date.today()
    return {
        'date_from': today - timedelta(days=lookback_days),
        'date_to': today,
    }


def _range_errors(start: Any, end: Any, label: str, required: bool) -> List[str]:
    start = DateCodec.to_calendar_date(start)
    end = DateCodec.to_calendar_date(end)
    if start is None and end is None:
        return [f"{label} is required"] if required else []
    if start is None or end is None:
        return [f"{label} needs both a start and an end date"]
    if start > end:
        return [f"{label} starts after it ends"]
    return []


def validate_stats_filters(snapshot: Mapping[str, Any]) -> List[str]:
    """Return the reasons a snapshot cannot be loaded (empty when valid)."""
    errors = _range_errors(snapshot.get('date_from'), snapshot.get('date_to'), 'Date range', True)
    errors.extend(_range_errors(
        snapshot.get('compare_date_from'),
        snapshot.get('compare_date_to'),
        'Comparison range',
        False
    ))
    return errors


def is_valid_stats_filters(snapshot: Mapping[str, Any]) -> bool:
    return not validate_stats_filters(snapshot)


def comparison_range(date_from: date, date_to: date) -> Tuple[date, date]:
    """The period of equal length immediately preceding a range"""
    length = (date_to - date_from).days
    compare_to = date_from - timedelta(days=1)
    return compare_to - timedelta(days=length), compare_to


def toggle_compare(snapshot: Mapping[str, Any], enabled: bool) -> Dict[str, Any]:
    """
    Patch that switches comparison mode on or off.

    Turning it off clears both comparison dates so they drop out of the
    URL; turning it on seeds them with the preceding period.
    """
    if not enabled:
        return {name: None for name in COMPARE_FIELDS}

    if snapshot.get('compare_date_from') and snapshot.get('compare_date_to'):
        return {}

    date_from = DateCodec.to_calendar_date(snapshot.get('date_from'))
    date_to = DateCodec.to_calendar_date(snapshot.get('date_to'))
    if date_from is None or date_to is None or date_from > date_to:
        return {}

    compare_from, compare_to = comparison_range(date_from, date_to)
    return {'compare_date_from': compare_from, 'compare_date_to': compare_to}
