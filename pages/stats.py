import logging

import dash

from stats.callbacks import register_callbacks

dash.register_page(__name__, path='/', title='Stats')

logger = logging.getLogger(__name__)

try:
    register_callbacks(dash.get_app())
except Exception as e:
    logger.error(f"Stats callback registration failed: {e}")
    raise

from stats.layout import layout
