from schedules.notifications.interfaces import NotificationError, Notifier
from schedules.notifications.mail_notifier import EmailNotifier

__all__ = ["EmailNotifier", "NotificationError", "Notifier"]
