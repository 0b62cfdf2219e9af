"""Tools exposed to clients."""

from stock_tracker.tools.overview import stock_overview
from stock_tracker.tools.price_chart import price_chart
from stock_tracker.tools.symbol_search import symbol_search
from stock_tracker.tools.top_movers import top_movers
from stock_tracker.tools.watchlists import (
    add_to_watchlist,
    create_watchlist,
    delete_watchlist,
    list_watchlists,
    remove_from_watchlist,
)

__all__ = [
    "add_to_watchlist",
    "create_watchlist",
    "delete_watchlist",
    "list_watchlists",
    "price_chart",
    "remove_from_watchlist",
    "stock_overview",
    "symbol_search",
    "top_movers",
]
