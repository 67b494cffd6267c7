"""DynamoDB-backed record store."""
import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from event_cache.errors import PersistenceError
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)


class DynamoDBRecordStore(RecordStore):
    """
    Record store keeping each key's records in one or more DynamoDB items.

    The head item has the shape
    ``{'record_key': <key>, 'records': [<str>, ...], 'chunk_count': <n>}``.
    When the records do not fit in one item, the rest are spread over
    ``<key>#1`` .. ``<key>#<n-1>``. A head item without ``chunk_count`` holds
    all of its records.
    """

    KEY_ATTRIBUTE = 'record_key'
    VALUES_ATTRIBUTE = 'records'
    CHUNKS_ATTRIBUTE = 'chunk_count'
    BATCH_SIZE = 25  # DynamoDB batch operation limit
    MAX_CHUNK_BYTES = 300_000  # DynamoDB items are capped at 400 KB

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBRecordStore for table: {table_name}")

    def get(self, key: str) -> Optional[List[str]]:
        """
        Read the records stored under a key.

        Args:
            key: Record key

        Returns:
            List of records, or None if the key was never written
        """
        head = self._get_item(key)
        if head is None:
            return None

        records = [str(value) for value in head.get(self.VALUES_ATTRIBUTE, [])]
        for index in range(1, int(head.get(self.CHUNKS_ATTRIBUTE, 1))):
            chunk = self._get_item(self._chunk_key(key, index))
            if chunk is None:
                raise PersistenceError(f"Missing chunk {index} of '{key}'")
            records.extend(str(value) for value in chunk.get(self.VALUES_ATTRIBUTE, []))
        return records

    def set(self, key: str, values: List[str]) -> None:
        self.set_many({key: values})

    def set_many(self, values: Dict[str, List[str]]) -> None:
        """
        Write several keys in batches of 25 items.

        Continuation chunks are written before the head items that count
        them, so a reader never sees a head pointing at a missing chunk.

        Args:
            values: Mapping of record key to records

        Raises:
            PersistenceError: If any batch fails
        """
        heads = []
        chunks = []
        for key, records in values.items():
            items = self._to_items(key, records)
            heads.append(items[0])
            chunks.extend(items[1:])
        logger.info(
            f"Writing {len(heads)} record keys to DynamoDB "
            f"({len(chunks)} continuation chunks)"
        )

        self._write(chunks)
        self._write(heads)

    def _write(self, items: List[dict]) -> None:
        for i in range(0, len(items), self.BATCH_SIZE):
            batch = items[i:i + self.BATCH_SIZE]
            try:
                with self.table.batch_writer() as writer:
                    for item in batch:
                        writer.put_item(Item=item)
            except ClientError as e:
                logger.error(
                    f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                raise PersistenceError(str(e)) from e

    def _get_item(self, key: str) -> Optional[dict]:
        try:
            response = self.table.get_item(
                Key={self.KEY_ATTRIBUTE: key},
                ConsistentRead=True
            )
        except ClientError as e:
            logger.error(f"Error reading '{key}' from DynamoDB: {e}")
            raise PersistenceError(str(e)) from e
        return response.get('Item')

    def _to_items(self, key: str, values: List[str]) -> List[dict]:
        """Split records into items that each stay under MAX_CHUNK_BYTES."""
        groups = [[]]
        size = 0
        for value in values:
            value = str(value)
            value_size = len(value.encode('utf-8'))
            if groups[-1] and size + value_size > self.MAX_CHUNK_BYTES:
                groups.append([])
                size = 0
            groups[-1].append(value)
            size += value_size

        items = [{
            self.KEY_ATTRIBUTE: key,
            self.VALUES_ATTRIBUTE: groups[0],
            self.CHUNKS_ATTRIBUTE: len(groups),
        }]
        for index, group in enumerate(groups[1:], start=1):
            items.append({
                self.KEY_ATTRIBUTE: self._chunk_key(key, index),
                self.VALUES_ATTRIBUTE: group,
            })
        return items

    @staticmethod
    def _chunk_key(key: str, index: int) -> str:
        return f"{key}#{index}"
