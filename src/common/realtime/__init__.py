from src.common.realtime.change_feed import ChangeFeed, Subscription
from src.common.realtime.queries import COLLECTIONS, StoreQuery, row_to_dict, run_query

# Process-wide feed shared by every service and websocket
change_feed = ChangeFeed()

__all__ = [
    "COLLECTIONS",
    "ChangeFeed",
    "StoreQuery",
    "Subscription",
    "change_feed",
    "row_to_dict",
    "run_query",
]
