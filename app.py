import argparse
import logging
import threading
import time
import webbrowser

import dash
import dash_bootstrap_components as dbc

from config_manager import get_config
from core.logging_config import setup_logging_from_config

setup_logging_from_config(get_config().log)
logger = logging.getLogger(__name__)

app = dash.Dash(__name__, use_pages=True, external_stylesheets=[dbc.themes.SLATE], suppress_callback_exceptions=True)


def create_navbar():
    """Create the top navigation bar"""
    return dbc.Navbar(
        id='main-navbar',
        children=[
            dbc.Container([
                dbc.Row([
                    dbc.Col(
                        dbc.NavbarBrand("Filter Sync", href="/", className="ms-2"),
                        width="auto",
                        className="d-flex align-items-center"
                    ),
                    dbc.Col(
                        dbc.Nav([
                            dbc.NavItem(dbc.NavLink("Stats", href="/")),
                        ], className="ms-auto", navbar=True),
                        className="d-flex justify-content-end"
                    )
                ], className="w-100 align-items-center")
            ], fluid=True)
        ],
        color="dark",
        dark=True,
        className="mb-2",
    )


app.layout = dbc.Container([
    create_navbar(),
    dash.page_container,
], fluid=True)


def open_browser(url, delay=1.5):
    """Open browser after a delay"""
    def _open():
        time.sleep(delay)
        try:
            webbrowser.open(url)
        except Exception as e:
            logger.warning(f"Could not open browser automatically: {e}")

    threading.Thread(target=_open, daemon=True).start()


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Filter Sync - Event statistics with URL-synchronized filters')
    parser.add_argument('--no-browser', action='store_true',
                       help='Do not automatically open browser')
    parser.add_argument('--port', type=int, default=None,
                       help='Port to serve on (defaults to the configured port)')
    args = parser.parse_args()

    port = args.port or get_config().ui.port
    url = f"http://127.0.0.1:{port}"

    if not args.no_browser:
        open_browser(url)

    logger.info(f"Serving on {url}")
    app.run(debug=True, port=port, use_reloader=False)
