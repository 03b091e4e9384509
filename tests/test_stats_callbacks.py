"""
Tests for the Stats page callbacks.

The callback bodies are plain functions, so they are exercised directly
with the values Dash would pass, without a browser.
"""

from datetime import date

import dash
import pandas as pd
import pytest
from dash import no_update

import stats.callbacks as callbacks
from stats.callbacks import (
    WIDGET_OUTPUT_COUNT,
    load_stats_for_filters,
    register_callbacks,
    snapshot_to_widgets,
    sync_filters_and_location,
    widgets_to_snapshot,
)
from stats.data import StatsLoader
from stats.layout import ACCOUNT_ID, COMPARE_SWITCH_ID, LOCATION_ID, SEARCH_ID

JANUARY = ('2024-01-01', '2024-01-31')


def widgets(date_start=JANUARY[0], date_end=JANUARY[1], compare_on=False, compare_start=None,
            compare_end=None, account_id=None, need_to_fix=None, levels=None, granularity='day', text=''):
    return [date_start, date_end, compare_on, compare_start, compare_end,
            account_id, need_to_fix, levels, granularity, text]


def run_sync(triggered_id, search, store, **widget_values):
    return sync_filters_and_location(triggered_id, search, *widgets(**widget_values), store)


@pytest.fixture
def events():
    return pd.DataFrame({
        'day': pd.to_datetime(['2024-01-02', '2024-01-03', '2023-12-20']),
        'account_id': [5, 5, 5],
        'level': ['error', 'info', 'error'],
        'need_to_fix': [True, False, True],
        'message': ['Disk full', 'Export finished', 'Disk full'],
    })


class TestWidgetConversion:
    """Test conversion between widget values and state snapshots."""

    def test_widgets_to_snapshot(self):
        snapshot = widgets_to_snapshot(
            '2024-01-01T00:00:00', '2024-01-31', False, '2023-12-01', '2023-12-31',
            5.0, 'true', ['error'], 'week', 'disk'
        )
        assert snapshot['date_from'] == date(2024, 1, 1)
        assert snapshot['date_to'] == date(2024, 1, 31)
        # Comparison dates only count while the switch is on
        assert snapshot['compare_date_from'] is None
        assert snapshot['account_id'] == 5
        assert snapshot['need_to_fix'] is True
        assert snapshot['level'] == ['error']
        assert snapshot['search'] == 'disk'

    def test_unreadable_widget_values_become_absent(self):
        snapshot = widgets_to_snapshot('garbage', None, False, None, None, 'abc', 'maybe', [], None, '')
        assert snapshot['date_from'] is None
        assert snapshot['account_id'] is None
        assert snapshot['need_to_fix'] is None
        assert snapshot['level'] is None
        assert snapshot['search'] is None

    def test_snapshot_to_widgets(self):
        values = snapshot_to_widgets({
            'date_from': date(2024, 1, 1), 'date_to': date(2024, 1, 31),
            'compare_date_from': date(2023, 12, 1), 'compare_date_to': date(2023, 12, 31),
            'account_id': 7, 'need_to_fix': False, 'level': ['info'], 'granularity': 'month', 'search': None,
        })
        assert len(values) == WIDGET_OUTPUT_COUNT
        assert values == (
            '2024-01-01', '2024-01-31', True, '2023-12-01', '2023-12-31', False,
            7, 'false', ['info'], 'month', ''
        )


class TestSyncCallback:
    """Test the push and pull paths between widgets and location."""

    def test_initial_load_reads_deep_link(self):
        outputs = run_sync(None, '?dateFrom=2024-01-01&dateTo=2024-01-31&accountId=5&level=error,warning', None)

        assert len(outputs) == WIDGET_OUTPUT_COUNT + 2
        assert outputs[0] is no_update
        assert outputs[1:3] == JANUARY
        assert outputs[7] == 5
        assert outputs[9] == ['error', 'warning']
        store = outputs[-1]
        assert store['pushed_search'] is None
        assert store['filters']['accountId'] == '5'

    def test_initial_load_without_query_uses_defaults(self, isolated_config):
        isolated_config.ui.default_lookback_days = 7
        outputs = run_sync(None, '', None, date_start=None, date_end=None)

        start, end = date.fromisoformat(outputs[1]), date.fromisoformat(outputs[2])
        assert (end - start).days == 7
        assert outputs[10] == 'day'

    def test_widget_change_pushes_full_query(self):
        outputs = run_sync(ACCOUNT_ID, '?dateFrom=2024-01-01&dateTo=2024-01-31', None, account_id=12, text='disk full')

        assert outputs[0] == '?dateFrom=2024-01-01&dateTo=2024-01-31&accountId=12&granularity=day&q=disk+full'
        assert all(value is no_update for value in outputs[1:-1])
        store = outputs[-1]
        assert store['pushed_search'] == outputs[0]
        assert store['suppressor'] == {'last_issued': 1}

    def test_echo_of_own_push_is_ignored(self):
        pushed = run_sync(SEARCH_ID, '', None, text='disk')
        search, store = pushed[0], pushed[-1]

        echo = run_sync(LOCATION_ID, search, store, text='disk')

        assert all(value is no_update for value in echo)

    def test_external_navigation_updates_widgets(self):
        pushed = run_sync(SEARCH_ID, '', None, text='disk')
        store = pushed[-1]

        outputs = run_sync(LOCATION_ID, '?dateFrom=2024-02-01&dateTo=2024-02-29&q=timeout', store, text='disk')

        assert outputs[1:3] == ('2024-02-01', '2024-02-29')
        assert outputs[11] == 'timeout'
        assert outputs[-1]['pushed_search'] is None
        assert outputs[-1]['suppressor'] == {'last_issued': 1}

    def test_navigation_keeps_fields_missing_from_query(self):
        outputs = run_sync(LOCATION_ID, '?q=timeout', None, account_id=3)
        assert outputs[1:3] == JANUARY
        assert outputs[7] == 3

    def test_malformed_query_value_is_skipped(self):
        outputs = run_sync(LOCATION_ID, '?dateFrom=not-a-date&accountId=8', None)
        assert outputs[1] == JANUARY[0]
        assert outputs[7] == 8

    def test_cleared_widget_disappears_from_query(self):
        outputs = run_sync(ACCOUNT_ID, '?dateFrom=2024-01-01&dateTo=2024-01-31&accountId=12', None, account_id=None)
        assert 'accountId' not in outputs[0]

    def test_compare_switch_seeds_previous_period(self):
        outputs = run_sync(COMPARE_SWITCH_ID, '', None, date_start='2024-01-08', date_end='2024-01-14', compare_on=True)

        assert 'compareDateFrom=2024-01-01' in outputs[0]
        assert 'compareDateTo=2024-01-07' in outputs[0]
        assert outputs[3] is True
        assert outputs[4:7] == ('2024-01-01', '2024-01-07', False)

    def test_compare_switch_stays_on_without_main_range(self):
        outputs = run_sync(COMPARE_SWITCH_ID, '', None, date_start=None, date_end=None, compare_on=True)

        assert 'compareDate' not in outputs[0]
        assert outputs[3] is True
        assert outputs[4:7] == (None, None, False)

    def test_compare_switch_off_clears_comparison(self):
        outputs = run_sync(
            COMPARE_SWITCH_ID, '?compareDateFrom=2023-12-01', None,
            compare_on=False, compare_start='2023-12-01', compare_end='2023-12-31'
        )
        assert 'compareDate' not in outputs[0]
        assert outputs[6] is True

    def test_foreign_keys_follow_configuration(self, isolated_config):
        search = '?tab=errors&dateFrom=2024-01-01'
        dropped = run_sync(ACCOUNT_ID, search, None, account_id=1)
        assert 'tab=' not in dropped[0]

        isolated_config.sync.preserve_foreign_keys = True
        kept = run_sync(ACCOUNT_ID, search, None, account_id=1)
        assert kept[0].endswith('&tab=errors')
        assert 'tab' not in kept[-1]['filters']


class TestDataCallback:
    """Test loading statistics for the stored filters."""

    def store_for(self, search):
        return run_sync(None, search, None)[-1]

    def test_loads_summary_and_table(self, monkeypatch, events):
        monkeypatch.setattr(callbacks, '_loader', StatsLoader(events))
        store = self.store_for('?dateFrom=2024-01-01&dateTo=2024-01-31&compareDateFrom=2023-12-01&compareDateTo=2023-12-31')

        summary, results, error, error_open = load_stats_for_filters(store)

        assert 'Events in period: 2' in str(summary)
        assert 'Events in comparison period: 1' in str(summary)
        assert results is not None
        assert error is None
        assert error_open is False

    def test_invalid_filters_skip_loading(self, monkeypatch):
        calls = []
        monkeypatch.setattr(callbacks, '_loader', lambda snapshot: calls.append(snapshot))
        store = {'suppressor': {}, 'pushed_search': None, 'filters': {'dateFrom': '2024-02-01', 'dateTo': '2024-01-01'}}

        summary, results, error, error_open = load_stats_for_filters(store)

        assert calls == []
        assert 'starts after it ends' in str(summary)
        assert error_open is False

    def test_failure_after_retries_is_shown(self, monkeypatch):
        calls = []

        def failing(snapshot):
            calls.append(snapshot)
            raise IOError("events unavailable")

        monkeypatch.setattr(callbacks, '_loader', failing)
        store = self.store_for('?dateFrom=2024-01-01&dateTo=2024-01-31')

        summary, results, error, error_open = load_stats_for_filters(store)

        assert len(calls) == 3
        assert error_open is True
        assert 'Could not load statistics' in error

    def test_empty_store_is_ignored(self):
        assert load_stats_for_filters(None) == (no_update, no_update, no_update, no_update)


class TestRegistration:
    """Test callback registration."""

    def test_register_once_per_app(self):
        app = dash.Dash(__name__)
        assert register_callbacks(app) is True
        assert register_callbacks(app) is False
        assert len(app.callback_map) == 2

    def test_requires_app(self):
        with pytest.raises(ValueError):
            register_callbacks(None)
