from http import HTTPStatus

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from list_watcher.config.models import SlackConfig
from list_watcher.notification.base import Notifier
from list_watcher.notification.models import Notification
from list_watcher.observability import get_logger

logger = get_logger(__name__)

MAX_LISTED_LINKS = 10


class SlackNotifier(Notifier):
    def __init__(self, client: httpx.AsyncClient, config: SlackConfig, *, max_attempts: int = 3) -> None:
        self._client = client
        self._config = config
        self._max_attempts = max_attempts

    async def send(self, notification: Notification) -> None:
        payload = self._build_payload(notification)

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.HTTPStatusError)),
            wait=wait_exponential(multiplier=1, max=60),
            stop=stop_after_attempt(self._max_attempts),
            reraise=True,
        ):
            with attempt:
                response = await self._client.post(self._config.webhook_url, json=payload)
                if response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
                    logger.warning("slack_send_failed", status_code=response.status_code)
                    response.raise_for_status()

        logger.info("slack_send_succeeded", links=len(notification.links))

    @staticmethod
    def _build_payload(notification: Notification) -> dict[str, object]:
        heading = notification.body
        if notification.url is not None:
            heading = f"<{notification.url}|{notification.body}>"
        blocks: list[dict[str, object]] = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": notification.title},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": heading},
            },
        ]

        if notification.links:
            listed = [f"- <{link}>" for link in notification.links[:MAX_LISTED_LINKS]]
            remaining = len(notification.links) - MAX_LISTED_LINKS
            if remaining > 0:
                listed.append(f"...and {remaining} more")
            blocks.append(
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": "\n".join(listed)},
                },
            )

        # fallback for non-block-capable clients
        fallback = notification.title
        if notification.url is not None:
            fallback += f" - <{notification.url}>"
        return {"text": fallback, "blocks": blocks}
