"""
Event data and aggregation for the Stats screen.

This module provides the screen's fetch collaborator: given a filter
snapshot it selects matching events and counts them per period, for the
main date range and, when set, for the comparison range.
"""

import logging
import os
from datetime import date, timedelta
from typing import Any, Dict, Mapping, Optional

import numpy as np
import pandas as pd

from core.exceptions import DataLoadError
from filter_sync.codecs import DateCodec

from .fields import LEVELS

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ['day', 'account_id', 'level', 'need_to_fix', 'message']

PERIOD_FREQUENCIES = {
    'day': 'D',
    'week': 'W-SUN',  # weeks start on Monday
    'month': 'M',
}

SAMPLE_MESSAGES = [
    'Timeout while calling upstream',
    'Retrying payment capture',
    'Cache miss for report',
    'Schema mismatch in import',
    'Scheduled export finished',
]


def generate_sample_events(end: Optional[date] = None, days: int = 120, seed: int = 7,
                           accounts: int = 5, per_day: int = 40) -> pd.DataFrame:
    """
    Generate a reproducible event table.

    Args:
        end: Last day covered (defaults to today)
        days: Number of days covered
        seed: Random seed
        accounts: Number of distinct account ids (1..accounts)
        per_day: Mean number of events per day

    Returns:
        DataFrame with EVENT_COLUMNS
    """
    end = end or date.today()
    rng = np.random.default_rng(seed)
    start = end - timedelta(days=days - 1)

    counts = rng.poisson(per_day, size=days)
    day_index = np.repeat(pd.date_range(start, periods=days, freq='D').values, counts)
    total = int(counts.sum())

    events = pd.DataFrame({
        'day': pd.to_datetime(day_index).normalize(),
        'account_id': rng.integers(1, accounts + 1, size=total),
        'level': rng.choice(list(LEVELS), size=total, p=[0.2, 0.3, 0.5]),
        'need_to_fix': rng.random(size=total) < 0.15,
        'message': rng.choice(SAMPLE_MESSAGES, size=total),
    })
    logger.debug(f"Generated {total} sample events from {start} to {end}")
    return events


def load_events(events_file: Optional[str] = None, **sample_kwargs: Any) -> pd.DataFrame:
    """
    Load the event table from CSV, or generate a sample when no file is set.

    Raises:
        DataLoadError: If the file cannot be read or lacks required columns
    """
    if not events_file:
        return generate_sample_events(**sample_kwargs)

    if not os.path.exists(events_file):
        raise DataLoadError("Events file not found", file_path=events_file, operation='read')

    try:
        events = pd.read_csv(events_file, parse_dates=['day'])
    except (ValueError, pd.errors.ParserError) as e:
        raise DataLoadError(f"Could not parse events file: {e}", file_path=events_file, operation='parse') from e

    missing = [column for column in EVENT_COLUMNS if column not in events.columns]
    if missing:
        raise DataLoadError(f"Events file is missing columns: {missing}", file_path=events_file, operation='validate')

    events['day'] = events['day'].dt.normalize()
    events['need_to_fix'] = events['need_to_fix'].astype(bool)
    logger.info(f"Loaded {len(events)} events from {events_file}")
    return events


def filter_events(events: pd.DataFrame, snapshot: Mapping[str, Any],
                  start: Optional[date], end: Optional[date]) -> pd.DataFrame:
    """Select the events matching a snapshot within [start, end]"""
    mask = pd.Series(True, index=events.index)

    if start is not None:
        mask &= events['day'] >= pd.Timestamp(start)
    if end is not None:
        mask &= events['day'] <= pd.Timestamp(end)

    account_id = snapshot.get('account_id')
    if account_id is not None:
        mask &= events['account_id'] == account_id

    need_to_fix = snapshot.get('need_to_fix')
    if need_to_fix is not None:
        mask &= events['need_to_fix'] == need_to_fix

    levels = snapshot.get('level')
    if levels:
        mask &= events['level'].isin(levels)

    search = snapshot.get('search')
    if search:
        mask &= events['message'].str.contains(search, case=False, regex=False)

    return events[mask]


def count_by_period(events: pd.DataFrame, granularity: str = 'day') -> pd.DataFrame:
    """
    Count events per period and level.

    Returns:
        DataFrame with a 'period' column, one column per level and 'total'
    """
    frequency = PERIOD_FREQUENCIES.get(granularity, 'D')
    if events.empty:
        return pd.DataFrame(columns=['period', *LEVELS, 'total'])

    periods = events['day'].dt.to_period(frequency).dt.start_time
    counts = (
        events.assign(period=periods)
        .groupby(['period', 'level'])
        .size()
        .unstack(fill_value=0)
        .reindex(columns=list(LEVELS), fill_value=0)
    )
    counts['total'] = counts.sum(axis=1)
    counts = counts.reset_index()
    counts['period'] = counts['period'].dt.strftime('%Y-%m-%d')
    return counts


class StatsLoader:
    """Fetch collaborator for the Stats screen."""

    def __init__(self, events: pd.DataFrame):
        self.events = events

    def __call__(self, snapshot: Mapping[str, Any]) -> Dict[str, Any]:
        granularity = snapshot.get('granularity') or 'day'
        start = DateCodec.to_calendar_date(snapshot.get('date_from'))
        end = DateCodec.to_calendar_date(snapshot.get('date_to'))

        current = filter_events(self.events, snapshot, start, end)
        payload = {
            'current': count_by_period(current, granularity),
            'total': int(len(current)),
            'comparison': None,
            'comparison_total': None,
        }

        compare_start = DateCodec.to_calendar_date(snapshot.get('compare_date_from'))
        compare_end = DateCodec.to_calendar_date(snapshot.get('compare_date_to'))
        if compare_start is not None and compare_end is not None:
            previous = filter_events(self.events, snapshot, compare_start, compare_end)
            payload['comparison'] = count_by_period(previous, granularity)
            payload['comparison_total'] = int(len(previous))

        logger.debug(f"Loaded stats: {payload['total']} events, comparison={payload['comparison_total']}")
        return payload
