"""
Callbacks for the Stats page.

This module contains the callbacks responsible for:
- Synchronizing the filter widgets with the page location (both ways)
- Loading the statistics for the current filters

Dash only permits a circular dependency inside one callback, so the push
path (widgets -> location) and the pull path (location -> widgets) share
sync_filters_and_location(); ctx.triggered_id tells them apart.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import dash
import dash_bootstrap_components as dbc
from dash import Input, Output, State, html, no_update

from config_manager import get_config
from core.exceptions import CodecError, FetchFailure
from filter_sync.codecs import BooleanCodec, DateCodec
from filter_sync.diagnostics import LoggingDiagnosticsSink
from filter_sync.echo import EchoSuppressor
from filter_sync.fetch import fetch_with_retry
from filter_sync.projector import StateProjector, project_state
from filter_sync.reconciler import WireReconciler
from filter_sync.state import ChangeOrigin, FilterState, Snapshot

from .data import StatsLoader, load_events
from .fields import build_stats_registry, default_filters, toggle_compare, validate_stats_filters
from .layout import (
    ACCOUNT_ID,
    COMPARE_RANGE_ID,
    COMPARE_SWITCH_ID,
    DATE_RANGE_ID,
    ERROR_ID,
    GRANULARITY_ID,
    LEVEL_ID,
    LOCATION_ID,
    NEED_TO_FIX_ID,
    RESULTS_ID,
    SEARCH_ID,
    SUMMARY_ID,
    SYNC_STORE_ID,
)
from .location import LocationWireSink
from .models import make_sync_store, read_sync_store

logger = logging.getLogger(__name__)

_registry = build_stats_registry()
_loader: Optional[StatsLoader] = None
_registered_apps = set()

# Number of widget outputs produced by snapshot_to_widgets()
WIDGET_OUTPUT_COUNT = 11


def get_stats_loader() -> StatsLoader:
    """Get the page's data loader, reading the events only once."""
    global _loader
    if _loader is None:
        data_config = get_config().data
        events = load_events(
            data_config.events_file,
            days=data_config.sample_days,
            seed=data_config.sample_seed
        )
        _loader = StatsLoader(events)
    return _loader


def reset_stats_loader() -> None:
    global _loader
    _loader = None


# WIDGET CONVERSION
# Widgets hold display values (ISO strings, 'true'/'false'); the state holds typed values

def _picker_date(value: Optional[str]):
    if not value:
        return None
    try:
        return DateCodec().deserialize(value[:10])
    except CodecError:
        logger.warning(f"Ignoring unreadable date picker value: {value!r}")
        return None


def _picker_value(value) -> Optional[str]:
    day = DateCodec.to_calendar_date(value)
    return day.isoformat() if day else None


def widgets_to_snapshot(date_start, date_end, compare_on, compare_start, compare_end,
                        account_id, need_to_fix, levels, granularity, search) -> Snapshot:
    """Read the filter widgets into a state snapshot."""
    if isinstance(account_id, float) and account_id.is_integer():
        account_id = int(account_id)
    if not isinstance(account_id, int) or isinstance(account_id, bool):
        account_id = None

    try:
        need_to_fix = BooleanCodec().deserialize(need_to_fix) if need_to_fix else None
    except CodecError:
        need_to_fix = None

    return {
        'date_from': _picker_date(date_start),
        'date_to': _picker_date(date_end),
        'compare_date_from': _picker_date(compare_start) if compare_on else None,
        'compare_date_to': _picker_date(compare_end) if compare_on else None,
        'account_id': account_id,
        'need_to_fix': need_to_fix,
        'level': list(levels) if levels else None,
        'granularity': granularity or None,
        'search': search or None,
    }


def snapshot_to_widgets(snapshot: Snapshot) -> Tuple:
    """Render a state snapshot as widget values, in callback output order."""
    compare_on = bool(snapshot.get('compare_date_from') or snapshot.get('compare_date_to'))
    need_to_fix = snapshot.get('need_to_fix')
    return (
        _picker_value(snapshot.get('date_from')),
        _picker_value(snapshot.get('date_to')),
        compare_on,
        _picker_value(snapshot.get('compare_date_from')),
        _picker_value(snapshot.get('compare_date_to')),
        not compare_on,
        snapshot.get('account_id'),
        None if need_to_fix is None else BooleanCodec().serialize(need_to_fix),
        snapshot.get('level') or [],
        snapshot.get('granularity') or 'day',
        snapshot.get('search') or '',
    )


def initial_snapshot() -> Snapshot:
    config = get_config()
    state = FilterState(_registry, default_filters(lookback_days=config.ui.default_lookback_days))
    return state.snapshot()


# SYNC CALLBACK

def sync_filters_and_location(triggered_id, search, date_start, date_end, compare_on,
                              compare_start, compare_end, account_id, need_to_fix,
                              levels, granularity, text, store_data) -> Tuple:
    """
    Synchronize the filter widgets and the page location.

    Location changes (and the initial page load) are reconciled into the
    widgets unless they are the echo of our own last push. Widget changes
    are projected into a fresh search string that replaces the old one.

    Returns:
        (search, *widget values, store data)
    """
    config = get_config()
    store = read_sync_store(store_data)
    suppressor = EchoSuppressor.from_dict(store['suppressor'])
    sink = LocationWireSink(search, store['pushed_search'])
    diagnostics = LoggingDiagnosticsSink(logger)

    if triggered_id is None or triggered_id == LOCATION_ID:
        event = sink.incoming_event(suppressor)
        if suppressor.is_echo(event.tag):
            logger.debug(f"Dropping location echo of {event.tag}")
            return (no_update,) * (WIDGET_OUTPUT_COUNT + 2)

        base = initial_snapshot() if triggered_id is None else widgets_to_snapshot(
            date_start, date_end, compare_on, compare_start, compare_end,
            account_id, need_to_fix, levels, granularity, text
        )
        state = FilterState(_registry, base)
        WireReconciler(_registry, diagnostics).apply(event.record, state, suppressor)
        snapshot = state.snapshot()

        # The location changed externally, so our last push no longer shows
        new_store = make_sync_store(suppressor, None, project_state(_registry, snapshot))
        return (no_update, *snapshot_to_widgets(snapshot), new_store)

    snapshot = widgets_to_snapshot(
        date_start, date_end, compare_on, compare_start, compare_end,
        account_id, need_to_fix, levels, granularity, text
    )
    state = FilterState(_registry, snapshot)
    if triggered_id == COMPARE_SWITCH_ID:
        # Switching on seeds the comparison range from the main range
        state.update(toggle_compare(snapshot, bool(compare_on)), origin=ChangeOrigin.LOCAL)
        snapshot = state.snapshot()

    projector = StateProjector(
        _registry,
        sink,
        suppressor,
        diagnostics,
        preserve_foreign_keys=config.sync.preserve_foreign_keys
    )
    projector.push(snapshot)
    new_store = make_sync_store(suppressor, sink.pushed_search, project_state(_registry, snapshot))

    widgets: List[Any] = [no_update] * WIDGET_OUTPUT_COUNT
    if triggered_id == COMPARE_SWITCH_ID:
        widgets = list(snapshot_to_widgets(snapshot))
        if compare_on and not widgets[2]:
            # Nothing to seed from; leave the switch on for a manual range
            logger.info("Comparison enabled without a complete date range")
            widgets[2] = True
            widgets[5] = False
    return (sink.search, *widgets, new_store)


# DATA CALLBACK

def load_stats_for_filters(store_data) -> Tuple:
    """
    Load statistics for the filters recorded in the sync store.

    Returns:
        (summary, results, error message, error open)
    """
    if not store_data:
        return no_update, no_update, no_update, no_update

    store = read_sync_store(store_data)
    snapshot: Snapshot = {name: None for name in _registry.names}
    snapshot.update(WireReconciler(_registry).reconcile(store['filters']))

    errors = validate_stats_filters(snapshot)
    if errors:
        logger.info(f"Not loading stats for invalid filters: {errors}")
        return html.P("; ".join(errors), className="text-muted"), None, None, False

    config = get_config()
    try:
        payload, attempts = asyncio.run(fetch_with_retry(
            get_stats_loader(),
            snapshot,
            max_attempts=config.fetch.max_attempts,
            retry_delay=config.fetch.retry_delay_seconds
        ))
    except FetchFailure as e:
        logger.error(f"Stats loading failed: {e}")
        return None, None, f"Could not load statistics: {e.message}", True

    logger.debug(f"Stats loaded in {attempts} attempt(s)")
    return render_summary(payload), render_results(payload, config.ui.max_display_rows), None, False


def render_summary(payload: Dict[str, Any]):
    items = [html.Li(f"Events in period: {payload['total']}")]
    if payload.get('comparison_total') is not None:
        delta = payload['total'] - payload['comparison_total']
        items.append(html.Li(f"Events in comparison period: {payload['comparison_total']} ({delta:+d})"))
    return html.Ul(items)


def render_results(payload: Dict[str, Any], max_rows: int):
    current = payload['current']
    if current.empty:
        return html.P("No events match the current filters.", className="text-muted")

    children = [dbc.Table.from_dataframe(current.head(max_rows), striped=True, bordered=True, hover=True, size='sm')]
    comparison = payload.get('comparison')
    if comparison is not None and not comparison.empty:
        children.append(html.H5("Comparison period", className="mt-3"))
        children.append(dbc.Table.from_dataframe(comparison.head(max_rows), striped=True, bordered=True, hover=True, size='sm'))
    return html.Div(children)


def _sync_callback(search, date_start, date_end, compare_on, compare_start, compare_end,
                   account_id, need_to_fix, levels, granularity, text, store_data):
    ctx = dash.callback_context
    return sync_filters_and_location(
        ctx.triggered_id, search, date_start, date_end, compare_on, compare_start, compare_end,
        account_id, need_to_fix, levels, granularity, text, store_data
    )


def register_callbacks(app) -> bool:
    """
    Register the Stats page callbacks with a Dash app.

    Registering twice on the same app is a no-op.

    Returns:
        True if the callbacks were registered by this call
    """
    if not app:
        raise ValueError("Valid Dash app instance required for callback registration")
    if id(app) in _registered_apps:
        logger.debug("Stats callbacks already registered")
        return False

    app.callback(
        [
            Output(LOCATION_ID, 'search'),
            Output(DATE_RANGE_ID, 'start_date'),
            Output(DATE_RANGE_ID, 'end_date'),
            Output(COMPARE_SWITCH_ID, 'value'),
            Output(COMPARE_RANGE_ID, 'start_date'),
            Output(COMPARE_RANGE_ID, 'end_date'),
            Output(COMPARE_RANGE_ID, 'disabled'),
            Output(ACCOUNT_ID, 'value'),
            Output(NEED_TO_FIX_ID, 'value'),
            Output(LEVEL_ID, 'value'),
            Output(GRANULARITY_ID, 'value'),
            Output(SEARCH_ID, 'value'),
            Output(SYNC_STORE_ID, 'data'),
        ],
        [
            Input(LOCATION_ID, 'search'),
            Input(DATE_RANGE_ID, 'start_date'),
            Input(DATE_RANGE_ID, 'end_date'),
            Input(COMPARE_SWITCH_ID, 'value'),
            Input(COMPARE_RANGE_ID, 'start_date'),
            Input(COMPARE_RANGE_ID, 'end_date'),
            Input(ACCOUNT_ID, 'value'),
            Input(NEED_TO_FIX_ID, 'value'),
            Input(LEVEL_ID, 'value'),
            Input(GRANULARITY_ID, 'value'),
            Input(SEARCH_ID, 'value'),
        ],
        State(SYNC_STORE_ID, 'data')
    )(_sync_callback)

    app.callback(
        [
            Output(SUMMARY_ID, 'children'),
            Output(RESULTS_ID, 'children'),
            Output(ERROR_ID, 'children'),
            Output(ERROR_ID, 'is_open'),
        ],
        Input(SYNC_STORE_ID, 'data')
    )(load_stats_for_filters)

    _registered_apps.add(id(app))
    logger.info("Registered Stats page callbacks")
    return True
