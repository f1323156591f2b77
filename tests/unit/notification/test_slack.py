import json
from collections.abc import AsyncIterator

import httpx
import pytest
import respx

from list_watcher.config import SlackConfig
from list_watcher.notification import Notification, SlackNotifier

WEBHOOK_URL = "https://hooks.slack.com/services/T00/B00/xxx"


@pytest.fixture
async def notifier() -> AsyncIterator[SlackNotifier]:
    async with httpx.AsyncClient() as client:
        yield SlackNotifier(client, SlackConfig(webhook_url=WEBHOOK_URL))


@pytest.mark.unit
class TestSlackNotifier:
    @pytest.mark.parametrize(
        ("url", "expected_fallback", "expected_blocks"),
        [
            (
                "https://blog.example.com/blog",
                "New entries: Example - <https://blog.example.com/blog>",
                [
                    {"type": "header", "text": {"type": "plain_text", "text": "New entries: Example"}},
                    {"type": "section", "text": {"type": "mrkdwn", "text": "<https://blog.example.com/blog|2 new entries on Example>"}},
                ],
            ),
            (
                None,
                "New entries: Example",
                [
                    {"type": "header", "text": {"type": "plain_text", "text": "New entries: Example"}},
                    {"type": "section", "text": {"type": "mrkdwn", "text": "2 new entries on Example"}},
                ],
            ),
        ],
    )
    @respx.mock
    async def test_send_posts_expected_payload(
        self,
        notifier: SlackNotifier,
        url: str | None,
        expected_fallback: str,
        expected_blocks: list[dict[str, object]],
    ) -> None:
        route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200, text="ok"))
        notification = Notification(title="New entries: Example", body="2 new entries on Example", url=url)

        await notifier.send(notification)

        payload = json.loads(route.calls[0].request.content)
        assert route.call_count == 1
        assert payload["text"] == expected_fallback
        assert payload["blocks"] == expected_blocks

    @respx.mock
    async def test_send_lists_new_links(self, notifier: SlackNotifier) -> None:
        route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200, text="ok"))
        links = tuple(f"https://blog.example.com/post/{index}" for index in range(12))

        await notifier.send(Notification(title="New entries: Example", body="12 new entries", links=links))

        blocks = json.loads(route.calls[0].request.content)["blocks"]
        assert len(blocks) == 3
        lines = blocks[2]["text"]["text"].split("\n")
        assert lines[0] == "- <https://blog.example.com/post/0>"
        assert len(lines) == 11
        assert lines[-1] == "...and 2 more"

    @respx.mock
    async def test_send_retries_on_server_error(self, notifier: SlackNotifier) -> None:
        route = respx.post(WEBHOOK_URL).mock(
            side_effect=[
                httpx.Response(500, text="Internal Server Error"),
                httpx.Response(503, text="Service Unavailable"),
                httpx.Response(200, text="ok"),
            ],
        )

        await notifier.send(Notification(title="Subscription broken: Example", body="All resolution strategies failed"))

        assert route.call_count == 3

    @respx.mock
    async def test_send_fails_after_max_retries(self, notifier: SlackNotifier) -> None:
        route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(500, text="Internal Server Error"))

        with pytest.raises(httpx.HTTPStatusError):
            await notifier.send(Notification(title="Subscription broken: Example", body="All resolution strategies failed"))

        assert route.call_count == 3

    @respx.mock
    async def test_client_error_is_not_retried(self, notifier: SlackNotifier) -> None:
        route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(400, text="invalid_payload"))

        await notifier.send(Notification(title="New entries: Example", body="1 new entry"))

        assert route.call_count == 1
