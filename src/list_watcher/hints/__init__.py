from list_watcher.hints.base import NullSelectorHints, SelectorHints
from list_watcher.hints.client import HttpSelectorHints
from list_watcher.hints.parsing import looks_like_selector, parse_lca_reply, parse_selector_list

__all__ = [
    "HttpSelectorHints",
    "NullSelectorHints",
    "SelectorHints",
    "looks_like_selector",
    "parse_lca_reply",
    "parse_selector_list",
]
