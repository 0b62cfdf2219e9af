"""Watchlist resource handler."""

import json

from stock_tracker.data.watchlist import WatchlistStore


class ResourceNotReadyError(Exception):
    """Watchlists have not been loaded yet."""

    pass


def read_watchlist_resource(store: WatchlistStore) -> tuple[str, str]:
    """
    Serve the in-memory watchlist collection. Never reads the store.

    Returns:
        Tuple of (json_text, mime_type)

    Raises:
        ResourceNotReadyError: If load_all has not run
    """
    if not store.loaded:
        raise ResourceNotReadyError("Watchlists not loaded. Call any watchlist tool first.")
    return json.dumps([w.to_dict() for w in store.lists], indent=2), "application/json"
