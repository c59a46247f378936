import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

NotificationListener = Callable[[str, str], None]


class NotificationController:
    def __init__(self):
        self._listeners: List[NotificationListener] = []
        self.sent: List[Tuple[str, str]] = []

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def send_notification(self, title, message):
        """
        Sends a notification to the user.

        :param title: The title of the notification.
        :param message: The message to send in the notification.
        """
        if not message or not title:
            raise ValueError("Title and message cannot be empty.")

        self.sent.append((title, message))
        logger.info(f"Notification: {title}: {message}")
        for listener in list(self._listeners):
            try:
                listener(title, message)
            except Exception as e:
                logger.error(f"Notification listener failed: {e}")
