"""Watchlist tools."""

from typing import Any

from stock_tracker.data.watchlist import WatchlistError, WatchlistStore
from stock_tracker.utils.provenance import build_error_response, build_meta


def _collection(store: WatchlistStore) -> list[dict[str, Any]]:
    return [w.to_dict() for w in store.lists]


def list_watchlists(store: WatchlistStore, ticker: str | None = None) -> dict[str, Any]:
    """
    All watchlists, optionally with the ids of those holding ticker.

    Args:
        store: Watchlist store
        ticker: Ticker to look up (optional)
    """
    response: dict[str, Any] = {
        "meta": build_meta("list_watchlists"),
        "watchlists": _collection(store),
    }
    if ticker:
        response["containing"] = store.lists_containing(ticker)
    return response


def create_watchlist(store: WatchlistStore, name: str) -> dict[str, Any]:
    """Create an empty watchlist."""
    try:
        list_id = store.create_list(name)
    except WatchlistError as e:
        return build_error_response(error_type=e.error_type, message=str(e))
    return {
        "meta": build_meta("create_watchlist"),
        "id": list_id,
        "watchlists": _collection(store),
    }


def add_to_watchlist(store: WatchlistStore, list_id: str, ticker: str) -> dict[str, Any]:
    """Add ticker to one watchlist. Adding an existing ticker changes nothing."""
    if store.get(list_id) is None:
        return build_error_response(
            error_type="watchlist_not_found",
            message=f"No watchlist with id {list_id}",
        )
    store.add_ticker(list_id, ticker)
    return {
        "meta": build_meta("add_to_watchlist"),
        "watchlist": store.get(list_id).to_dict(),
    }


def remove_from_watchlist(store: WatchlistStore, list_id: str, ticker: str) -> dict[str, Any]:
    """Remove ticker from one watchlist."""
    if store.get(list_id) is None:
        return build_error_response(
            error_type="watchlist_not_found",
            message=f"No watchlist with id {list_id}",
        )
    store.remove_ticker(list_id, ticker)
    return {
        "meta": build_meta("remove_from_watchlist"),
        "watchlist": store.get(list_id).to_dict(),
    }


def delete_watchlist(store: WatchlistStore, list_id: str) -> dict[str, Any]:
    """Delete a whole watchlist."""
    existed = store.get(list_id) is not None
    store.remove_list(list_id)
    return {
        "meta": build_meta("delete_watchlist"),
        "deleted": existed,
        "watchlists": _collection(store),
    }
