"""Text record codec for persisted events and categories.

Each entity is stored as one line of ``|``-separated fields. The field order
is an on-disk contract:

    event:    title|caption|description|pk|start_hour|start_minute|end_hour|
              end_minute|full|year|month|day|college_category|type_category|
              place_id|image_pk|additional_info
    category: pk|name|description|is_college

Backslash, ``|``, and line breaks inside text fields are escaped with a
backslash so any string survives a round trip.
"""
import logging
import re
from datetime import date
from typing import Iterable, List

from event_cache.errors import MalformedRecordError
from event_cache.models import Category, ClockTime, Event

logger = logging.getLogger(__name__)

DELIMITER = '|'
ESCAPE = '\\'
EVENT_FIELD_COUNT = 17
CATEGORY_FIELD_COUNT = 4

_ESCAPES = {ESCAPE: ESCAPE, DELIMITER: DELIMITER, '\n': 'n', '\r': 'r'}
_UNESCAPES = {code: char for char, code in _ESCAPES.items()}
_INT_PATTERN = re.compile(r'-?[0-9]+')


def encode_event(event: Event) -> str:
    """Serialize an event to a single text record."""
    fields = [
        _escape(event.title),
        _escape(event.caption),
        _escape(event.description),
        str(event.pk),
        str(event.start_time.hour),
        str(event.start_time.minute),
        str(event.end_time.hour),
        str(event.end_time.minute),
        _format_bool(event.full),
        str(event.date.year),
        str(event.date.month),
        str(event.date.day),
        str(event.college_category_id),
        str(event.type_category_id),
        _escape(event.place_id),
        str(event.image_pk),
        _escape(event.additional_info),
    ]
    return DELIMITER.join(fields)


def decode_event(record: str) -> Event:
    """
    Parse an event from its text record.

    Args:
        record: Line produced by ``encode_event``

    Returns:
        Decoded Event

    Raises:
        MalformedRecordError: If the field count or any field value is invalid
    """
    parts = _split(record, EVENT_FIELD_COUNT)
    try:
        return Event(
            title=parts[0],
            caption=parts[1],
            description=parts[2],
            pk=_parse_int(parts[3]),
            start_time=ClockTime(_parse_int(parts[4]), _parse_int(parts[5])),
            end_time=ClockTime(_parse_int(parts[6]), _parse_int(parts[7])),
            full=_parse_bool(parts[8]),
            date=date(_parse_int(parts[9]), _parse_int(parts[10]), _parse_int(parts[11])),
            college_category_id=_parse_int(parts[12]),
            type_category_id=_parse_int(parts[13]),
            place_id=parts[14],
            image_pk=_parse_int(parts[15]),
            additional_info=parts[16],
        )
    except ValueError as e:
        raise MalformedRecordError(f"invalid event record: {e}") from e


def encode_category(category: Category) -> str:
    """Serialize a category to a single text record."""
    return DELIMITER.join([
        str(category.pk),
        _escape(category.name),
        _escape(category.description),
        _format_bool(category.is_college),
    ])


def decode_category(record: str) -> Category:
    """Parse a category from its text record, raising MalformedRecordError."""
    parts = _split(record, CATEGORY_FIELD_COUNT)
    try:
        return Category(
            pk=_parse_int(parts[0]),
            name=parts[1],
            description=parts[2],
            is_college=_parse_bool(parts[3]),
        )
    except ValueError as e:
        raise MalformedRecordError(f"invalid category record: {e}") from e


def decode_events(records: Iterable[str]) -> List[Event]:
    """Decode a batch of event records, skipping the ones that fail."""
    events = []
    for record in records:
        try:
            events.append(decode_event(record))
        except MalformedRecordError as e:
            logger.warning(f"Skipping saved event: {e}")
    return events


def decode_categories(records: Iterable[str]) -> List[Category]:
    """Decode a batch of category records, skipping the ones that fail."""
    categories = []
    for record in records:
        try:
            categories.append(decode_category(record))
        except MalformedRecordError as e:
            logger.warning(f"Skipping saved category: {e}")
    return categories


def _escape(value: str) -> str:
    return ''.join(
        ESCAPE + _ESCAPES[char] if char in _ESCAPES else char
        for char in value
    )


def _split(record: str, expected: int) -> List[str]:
    """Split on unescaped delimiters, unescaping each field."""
    fields = []
    current = []
    chars = iter(record)
    for char in chars:
        if char == ESCAPE:
            code = next(chars, None)
            if code not in _UNESCAPES:
                raise MalformedRecordError(f"bad escape sequence in record: {record!r}")
            current.append(_UNESCAPES[code])
        elif char == DELIMITER:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)
    fields.append(''.join(current))

    if len(fields) != expected:
        raise MalformedRecordError(
            f"expected {expected} fields, found {len(fields)}: {record!r}"
        )
    return fields


def _parse_int(value: str) -> int:
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _format_bool(value: bool) -> str:
    return 'true' if value else 'false'


def _parse_bool(value: str) -> bool:
    if value == 'true':
        return True
    if value == 'false':
        return False
    raise ValueError(f"not a boolean: {value!r}")
