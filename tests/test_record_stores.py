"""Unit tests for record stores and the schedule repository."""
import json

import boto3
import pytest
from moto import mock_aws

from event_cache.errors import PersistenceError
from factories import DAY_2, make_category, make_event
from storage.dynamodb_store import DynamoDBRecordStore
from storage.record_store import InMemoryRecordStore, JsonFileRecordStore
from storage.schedule_repository import ScheduleRepository


@pytest.fixture
def aws_credentials(monkeypatch):
    """Keep boto3 away from real credentials."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create a mock DynamoDB table for testing."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        table = dynamodb.create_table(
            TableName='test-schedule-records',
            KeySchema=[
                {'AttributeName': 'record_key', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'record_key', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        yield table


@pytest.fixture
def dynamodb_store(dynamodb_table):
    return DynamoDBRecordStore('test-schedule-records')


class TestDynamoDBRecordStore:
    """Test cases for DynamoDBRecordStore."""

    def test_get_missing_key(self, dynamodb_store):
        assert dynamodb_store.get('events') is None

    def test_set_and_get(self, dynamodb_store):
        dynamodb_store.set('events', ['a|b', 'c|d'])

        assert dynamodb_store.get('events') == ['a|b', 'c|d']

    def test_set_replaces_previous_value(self, dynamodb_store):
        dynamodb_store.set('version', ['1'])
        dynamodb_store.set('version', ['2'])

        assert dynamodb_store.get('version') == ['2']

    def test_set_empty_list(self, dynamodb_store):
        dynamodb_store.set('added_pks', [])

        assert dynamodb_store.get('added_pks') == []

    def test_set_many(self, dynamodb_store):
        values = {f'key-{i}': [str(i)] for i in range(30)}

        dynamodb_store.set_many(values)

        assert dynamodb_store.get('key-0') == ['0']
        assert dynamodb_store.get('key-29') == ['29']

    def test_large_record_list_spans_several_items(self, dynamodb_store, dynamodb_table):
        records = [f'{i}|' + 'x' * 1500 for i in range(300)]

        dynamodb_store.set('events', records)

        assert dynamodb_store.get('events') == records
        head = dynamodb_table.get_item(Key={'record_key': 'events'})['Item']
        assert head['chunk_count'] > 1
        assert 'Item' in dynamodb_table.get_item(Key={'record_key': 'events#1'})

    def test_shrinking_list_ignores_old_chunks(self, dynamodb_store):
        dynamodb_store.set('events', ['y' * 1500] * 300)
        dynamodb_store.set('events', ['small'])

        assert dynamodb_store.get('events') == ['small']

    def test_head_without_chunk_count(self, dynamodb_store, dynamodb_table):
        dynamodb_table.put_item(Item={'record_key': 'version', 'records': ['7']})

        assert dynamodb_store.get('version') == ['7']

    def test_missing_table_raises_persistence_error(self, dynamodb_table):
        store = DynamoDBRecordStore('no-such-table')

        with pytest.raises(PersistenceError):
            store.get('events')


class TestJsonFileRecordStore:
    """Test cases for JsonFileRecordStore."""

    def test_set_and_get(self, tmp_path):
        store = JsonFileRecordStore(tmp_path / 'records.json')

        assert store.get('events') is None
        store.set('events', ['x'])
        store.set('version', ['3'])

        reopened = JsonFileRecordStore(tmp_path / 'records.json')
        assert reopened.get('events') == ['x']
        assert reopened.get('version') == ['3']

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / 'records.json'
        path.write_text('{not json', encoding='utf-8')

        with pytest.raises(PersistenceError):
            JsonFileRecordStore(path).get('events')

    def test_file_contents_are_json(self, tmp_path):
        path = tmp_path / 'nested' / 'records.json'
        JsonFileRecordStore(path).set_many({'a': ['1'], 'b': []})

        assert json.loads(path.read_text(encoding='utf-8')) == {'a': ['1'], 'b': []}


class TestScheduleRepository:
    """Test cases for ScheduleRepository."""

    def test_snapshot_round_trip(self):
        repository = ScheduleRepository(InMemoryRecordStore())
        event = make_event(pk=3, day=DAY_2, title='Tour | Walk')
        category = make_category(pk=1)

        repository.save_snapshot([event], [category], [3])

        assert repository.load_events()[0].same_fields(event)
        assert repository.load_categories()[0].same_fields(category)
        assert repository.load_selected_ids() == [3]

    def test_version_defaults_to_zero(self):
        repository = ScheduleRepository(InMemoryRecordStore())
        assert repository.load_version() == 0

        repository.save_version(12)
        assert repository.load_version() == 12

    def test_bad_version_falls_back_to_zero(self):
        repository = ScheduleRepository(InMemoryRecordStore({'version': ['twelve']}))
        assert repository.load_version() == 0

    def test_bad_selection_entries_skipped(self):
        repository = ScheduleRepository(InMemoryRecordStore({'added_pks': ['4', 'x', '9']}))
        assert repository.load_selected_ids() == [4, 9]

    def test_first_run_flag(self):
        repository = ScheduleRepository(InMemoryRecordStore())

        assert repository.has_run_before() is False
        repository.mark_run()
        assert repository.has_run_before() is True

    def test_repository_on_dynamodb(self, dynamodb_store):
        repository = ScheduleRepository(dynamodb_store)

        repository.save_snapshot([make_event(pk=1)], [], [1])
        repository.save_version(5)

        assert [e.pk for e in repository.load_events()] == [1]
        assert repository.load_selected_ids() == [1]
        assert repository.load_version() == 5

    def test_large_snapshot_on_dynamodb(self, dynamodb_store):
        repository = ScheduleRepository(dynamodb_store)
        events = [make_event(pk=pk, description='d' * 1500) for pk in range(1, 301)]

        repository.save_snapshot(events, [make_category(pk=1)], [1, 2])
        repository.save_version(2)

        assert sorted(e.pk for e in repository.load_events()) == list(range(1, 301))
        assert repository.load_selected_ids() == [1, 2]
        assert repository.load_version() == 2
