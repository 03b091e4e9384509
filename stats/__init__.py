"""
Stats screen.

Event statistics filtered by a date range, an optional comparison range and
event attributes, with every filter mirrored in the page URL.
"""

from .fields import (
    GRANULARITIES,
    LEVELS,
    STATS_FIELDS,
    build_stats_registry,
    default_filters,
    validate_stats_filters,
    is_valid_stats_filters,
    comparison_range,
    toggle_compare
)
from .data import StatsLoader, load_events, generate_sample_events, count_by_period, filter_events
from .location import LocationWireSink

__all__ = [
    'GRANULARITIES',
    'LEVELS',
    'STATS_FIELDS',
    'build_stats_registry',
    'default_filters',
    'validate_stats_filters',
    'is_valid_stats_filters',
    'comparison_range',
    'toggle_compare',
    'StatsLoader',
    'load_events',
    'generate_sample_events',
    'count_by_period',
    'filter_events',
    'LocationWireSink',
]
