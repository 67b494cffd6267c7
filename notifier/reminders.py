"""Reminder and change-notice delivery."""
import json
import logging
from abc import ABC, abstractmethod
from typing import List

import boto3
from botocore.exceptions import ClientError

from event_cache.models import Event

logger = logging.getLogger(__name__)


class NotificationScheduler(ABC):
    """Fire-and-forget sink for event reminders and change notices."""

    @abstractmethod
    def cancel(self, pk: int) -> None:
        """Drop any pending reminder for an event."""

    @abstractmethod
    def schedule(self, event: Event) -> None:
        """Schedule a reminder for an event."""

    @abstractmethod
    def notify_batch_changed(self, events: List[Event]) -> None:
        """Tell the user that some of their selected events changed."""


class LoggingNotificationScheduler(NotificationScheduler):
    """Scheduler that only logs, used when no delivery channel is configured."""

    def cancel(self, pk: int) -> None:
        logger.info(f"Reminder cancelled for event {pk}")

    def schedule(self, event: Event) -> None:
        logger.info(
            f"Reminder scheduled for event {event.pk} on {event.date} at {event.start_time}"
        )

    def notify_batch_changed(self, events: List[Event]) -> None:
        logger.info(f"{len(events)} selected event(s) changed: {[e.pk for e in events]}")


class SnsNotificationScheduler(NotificationScheduler):
    """Publishes reminder instructions to an SNS topic for the device fan-out."""

    def __init__(self, topic_arn: str):
        """
        Args:
            topic_arn: ARN of the SNS topic to publish to
        """
        self.topic_arn = topic_arn
        self.sns = boto3.client('sns')
        logger.info(f"Initialized SnsNotificationScheduler for topic: {topic_arn}")

    def cancel(self, pk: int) -> None:
        self._publish({'action': 'cancel', 'pk': pk})

    def schedule(self, event: Event) -> None:
        self._publish({'action': 'schedule', **_event_summary(event)})

    def notify_batch_changed(self, events: List[Event]) -> None:
        self._publish({
            'action': 'changed',
            'events': [_event_summary(event) for event in events],
        })

    def _publish(self, message: dict) -> None:
        try:
            self.sns.publish(TopicArn=self.topic_arn, Message=json.dumps(message))
        except ClientError as e:
            logger.error(f"Error publishing '{message['action']}' notification: {e}")


def _event_summary(event: Event) -> dict:
    return {
        'pk': event.pk,
        'title': event.title,
        'caption': event.caption,
        'date': event.date.isoformat(),
        'start_time': str(event.start_time),
    }
