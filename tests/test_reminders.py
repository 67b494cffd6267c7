"""Unit tests for notification schedulers."""
import json
import logging
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from factories import make_event
from notifier.reminders import LoggingNotificationScheduler, SnsNotificationScheduler


@pytest.fixture
def sns_topic(monkeypatch):
    """Create a mock SNS topic with an SQS subscriber to read messages back."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    with mock_aws():
        sns = boto3.client('sns', region_name='us-east-1')
        sqs = boto3.client('sqs', region_name='us-east-1')
        topic_arn = sns.create_topic(Name='schedule-reminders')['TopicArn']
        queue_url = sqs.create_queue(QueueName='reminders')['QueueUrl']
        queue_arn = sqs.get_queue_attributes(
            QueueUrl=queue_url, AttributeNames=['QueueArn']
        )['Attributes']['QueueArn']
        sns.subscribe(
            TopicArn=topic_arn,
            Protocol='sqs',
            Endpoint=queue_arn,
            Attributes={'RawMessageDelivery': 'true'}
        )
        yield topic_arn, sqs, queue_url


def received_messages(sqs, queue_url):
    response = sqs.receive_message(QueueUrl=queue_url, MaxNumberOfMessages=10)
    return [json.loads(m['Body']) for m in response.get('Messages', [])]


class TestSnsNotificationScheduler:
    """Test cases for SnsNotificationScheduler."""

    def test_schedule_publishes_event_summary(self, sns_topic):
        topic_arn, sqs, queue_url = sns_topic
        scheduler = SnsNotificationScheduler(topic_arn)

        scheduler.schedule(make_event(pk=5, start=(8, 30)))

        messages = received_messages(sqs, queue_url)
        assert len(messages) == 1
        assert messages[0]['action'] == 'schedule'
        assert messages[0]['pk'] == 5
        assert messages[0]['start_time'] == '08:30'
        assert messages[0]['date'] == '2018-04-12'

    def test_cancel_and_batch_notice(self, sns_topic):
        topic_arn, sqs, queue_url = sns_topic
        scheduler = SnsNotificationScheduler(topic_arn)

        scheduler.cancel(9)
        scheduler.notify_batch_changed([make_event(pk=1), make_event(pk=2)])

        messages = received_messages(sqs, queue_url)
        actions = sorted(m['action'] for m in messages)
        assert actions == ['cancel', 'changed']
        changed = next(m for m in messages if m['action'] == 'changed')
        assert [e['pk'] for e in changed['events']] == [1, 2]

    def test_publish_errors_are_logged(self, sns_topic, caplog):
        topic_arn, _, _ = sns_topic
        scheduler = SnsNotificationScheduler(topic_arn)
        error = ClientError({'Error': {'Code': 'Throttling', 'Message': 'slow down'}}, 'Publish')

        with patch.object(scheduler.sns, 'publish', side_effect=error):
            with caplog.at_level(logging.ERROR):
                scheduler.cancel(1)

        assert any("Error publishing 'cancel'" in r.message for r in caplog.records)


class TestLoggingNotificationScheduler:
    """Test cases for LoggingNotificationScheduler."""

    def test_logs_each_call(self, caplog):
        scheduler = LoggingNotificationScheduler()

        with caplog.at_level(logging.INFO, logger='notifier.reminders'):
            scheduler.schedule(make_event(pk=3))
            scheduler.cancel(3)
            scheduler.notify_batch_changed([make_event(pk=3)])

        messages = [r.message for r in caplog.records]
        assert any('Reminder scheduled for event 3' in m for m in messages)
        assert any('Reminder cancelled for event 3' in m for m in messages)
        assert any('1 selected event(s) changed' in m for m in messages)
