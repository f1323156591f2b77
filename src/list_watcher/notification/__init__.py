from list_watcher.notification.base import Notifier
from list_watcher.notification.models import Notification
from list_watcher.notification.slack import SlackNotifier

__all__ = ["Notification", "Notifier", "SlackNotifier"]
