from tests.test_utils.fakes.browser import FakeBrowser, FakeContext, FakePage, FakePlaywright, FakeResponse
from tests.test_utils.fakes.fetching import FakeListFetcher, FakePageFetcher, FakeRenderingFetcher
from tests.test_utils.fakes.hints import FakeHints
from tests.test_utils.fakes.notification import FailingNotifier, RecordingNotifier
from tests.test_utils.fakes.storage import InMemoryContentSink, InMemoryHistoryStore, InMemorySubscriptionStore

__all__ = [
    "FailingNotifier",
    "FakeBrowser",
    "FakeContext",
    "FakeHints",
    "FakeListFetcher",
    "FakePage",
    "FakePageFetcher",
    "FakePlaywright",
    "FakeRenderingFetcher",
    "FakeResponse",
    "InMemoryContentSink",
    "InMemoryHistoryStore",
    "InMemorySubscriptionStore",
    "RecordingNotifier",
]
