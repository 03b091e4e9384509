"""
Store models for the Stats page.

The sync store is the only server-visible memory of the page: it carries
the echo suppressor, the search string of the last push and the projected
wire record of the current filters (which the data callback reads back).
"""

from typing import Any, Dict, Optional

from typing_extensions import TypedDict

from filter_sync.echo import EchoSuppressor


class SyncStoreData(TypedDict):
    """Contents of the 'stats-sync-store' dcc.Store."""
    suppressor: Dict[str, Any]
    pushed_search: Optional[str]
    filters: Dict[str, str]


def make_sync_store(suppressor: EchoSuppressor, pushed_search: Optional[str],
                    filters: Dict[str, str]) -> SyncStoreData:
    return SyncStoreData(
        suppressor=suppressor.to_dict(),
        pushed_search=pushed_search,
        filters=dict(filters)
    )


def read_sync_store(store_data: Optional[Dict[str, Any]]) -> SyncStoreData:
    """Normalize raw store data, tolerating an empty or partial store."""
    store_data = store_data or {}
    return SyncStoreData(
        suppressor=store_data.get('suppressor') or {},
        pushed_search=store_data.get('pushed_search'),
        filters=store_data.get('filters') or {}
    )
