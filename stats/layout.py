"""
Layout definition for the Stats page.

The filter widgets, the location they are synchronized with, the sync
store and the results area.
"""

import dash_bootstrap_components as dbc
from dash import dcc, html

from .fields import GRANULARITIES, LEVELS

# Component ids shared with the callbacks
LOCATION_ID = 'stats-location'
DATE_RANGE_ID = 'stats-date-range'
COMPARE_SWITCH_ID = 'stats-compare-switch'
COMPARE_RANGE_ID = 'stats-compare-range'
ACCOUNT_ID = 'stats-account-id'
NEED_TO_FIX_ID = 'stats-need-to-fix'
LEVEL_ID = 'stats-level'
GRANULARITY_ID = 'stats-granularity'
SEARCH_ID = 'stats-search'
SYNC_STORE_ID = 'stats-sync-store'
RESULTS_ID = 'stats-results'
SUMMARY_ID = 'stats-summary'
ERROR_ID = 'stats-error'


def create_date_filters_card():
    """Create the date range and comparison range card."""
    return dbc.Card(dbc.CardBody([
        html.H4("Period", className="card-title"),
        html.Label("Date range:"),
        dcc.DatePickerRange(
            id=DATE_RANGE_ID,
            display_format='YYYY-MM-DD',
            clearable=True
        ),
        dbc.Switch(
            id=COMPARE_SWITCH_ID,
            label="Compare with another period",
            value=False,
            className="mt-3"
        ),
        dcc.DatePickerRange(
            id=COMPARE_RANGE_ID,
            display_format='YYYY-MM-DD',
            disabled=True,
            clearable=True
        ),
    ]))


def create_event_filters_card():
    """Create the card with the event attribute filters."""
    return dbc.Card(dbc.CardBody([
        html.H4("Events", className="card-title"),
        dbc.Row([
            dbc.Col([
                html.Label("Account id:"),
                dcc.Input(id=ACCOUNT_ID, type='number', step=1, debounce=True, className="form-control"),
            ], md=4),
            dbc.Col([
                html.Label("Needs a fix:"),
                dcc.Dropdown(
                    id=NEED_TO_FIX_ID,
                    options=[
                        {'label': 'Yes', 'value': 'true'},
                        {'label': 'No', 'value': 'false'},
                    ],
                    placeholder="Any",
                    clearable=True
                ),
            ], md=4),
            dbc.Col([
                html.Label("Levels:"),
                dcc.Dropdown(
                    id=LEVEL_ID,
                    options=[{'label': level.title(), 'value': level} for level in LEVELS],
                    multi=True,
                    placeholder="All levels"
                ),
            ], md=4),
        ], className="mb-3"),
        dbc.Row([
            dbc.Col([
                html.Label("Group by:"),
                dbc.RadioItems(
                    id=GRANULARITY_ID,
                    options=[{'label': g.title(), 'value': g} for g in GRANULARITIES],
                    value='day',
                    inline=True
                ),
            ], md=6),
            dbc.Col([
                html.Label("Message contains:"),
                dcc.Input(id=SEARCH_ID, type='text', debounce=True, className="form-control"),
            ], md=6),
        ]),
    ]))


def create_results_card():
    """Create the results card with summary, error alert and table."""
    return dbc.Card(dbc.CardBody([
        html.H4("Results", className="card-title"),
        dbc.Alert(id=ERROR_ID, color="danger", is_open=False),
        dcc.Loading(html.Div([
            html.Div(id=SUMMARY_ID, className="mb-2"),
            html.Div(id=RESULTS_ID),
        ])),
    ]))


layout = dbc.Container([
    dcc.Location(id=LOCATION_ID, refresh=False),
    dcc.Store(id=SYNC_STORE_ID, storage_type='memory'),

    dbc.Row([
        dbc.Col([html.H3("Event Statistics")], width=12)
    ]),
    dbc.Row([
        dbc.Col([create_date_filters_card()], md=5),
        dbc.Col([create_event_filters_card()], md=7),
    ], className="mb-3"),
    dbc.Row([
        dbc.Col([create_results_card()], width=12)
    ]),
], fluid=True)
