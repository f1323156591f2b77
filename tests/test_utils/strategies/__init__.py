from tests.test_utils.strategies.html import class_tokens, hash_class_tokens, list_page
from tests.test_utils.strategies.url import url_lists, url_strategy

__all__ = [
    "class_tokens",
    "hash_class_tokens",
    "list_page",
    "url_lists",
    "url_strategy",
]
