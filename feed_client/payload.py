"""Validation of remote feed payloads into domain models."""
import logging
from datetime import datetime
from typing import Any, Dict, List

from event_cache.errors import MalformedFeedError
from event_cache.models import Category, ClockTime, Event, FeedUpdate

logger = logging.getLogger(__name__)

TIME_FORMATS = [
    '%H:%M:%S',      # 24-hour with seconds
    '%H:%M',         # 24-hour format
    '%I:%M %p',      # 12-hour format with AM/PM
    '%I:%M%p',       # 12-hour format without space
]
DATE_FORMAT = '%Y-%m-%d'


def parse_update(payload: Any) -> FeedUpdate:
    """
    Convert a decoded JSON response into a FeedUpdate.

    Expected shape::

        {"version": 12,
         "categories": {"changed": [...], "deleted": [3]},
         "events": {"changed": [...], "deleted": [40, 41]}}

    Any invalid record rejects the whole payload.

    Args:
        payload: Decoded JSON body

    Returns:
        FeedUpdate with parsed categories and events

    Raises:
        MalformedFeedError: If the payload or any record is invalid
    """
    if not isinstance(payload, dict):
        raise MalformedFeedError("response body is not an object")

    version = _require_int(payload, 'version')
    categories = _require_section(payload, 'categories')
    events = _require_section(payload, 'events')

    update = FeedUpdate(
        new_version=version,
        changed_categories=[parse_category(item) for item in categories['changed']],
        deleted_category_ids=_parse_ids(categories['deleted'], 'categories.deleted'),
        changed_events=[parse_event(item) for item in events['changed']],
        deleted_event_ids=_parse_ids(events['deleted'], 'events.deleted'),
    )
    logger.info(
        f"Parsed update to version {version}: "
        f"{len(update.changed_categories)} categories changed, "
        f"{len(update.deleted_category_ids)} deleted; "
        f"{len(update.changed_events)} events changed, "
        f"{len(update.deleted_event_ids)} deleted"
    )
    return update


def parse_event(item: Any) -> Event:
    """
    Build an Event from a feed record.

    Args:
        item: Record with keys pk, name, location, description, start_date,
            start_time, end_time, place_ID, full, image_pk,
            college_category, type_category, additional

    Returns:
        Event

    Raises:
        MalformedFeedError: If a key is missing or has the wrong type
    """
    if not isinstance(item, dict):
        raise MalformedFeedError(f"event record is not an object: {item!r}")

    try:
        return Event(
            pk=_require_int(item, 'pk'),
            title=_require_str(item, 'name'),
            caption=_require_str(item, 'location'),
            description=_require_str(item, 'description'),
            additional_info=_require_str(item, 'additional'),
            college_category_id=_require_int(item, 'college_category'),
            type_category_id=_require_int(item, 'type_category'),
            start_time=_parse_time(_require_str(item, 'start_time')),
            end_time=_parse_time(_require_str(item, 'end_time')),
            date=_parse_date(_require_str(item, 'start_date')),
            place_id=_require_str(item, 'place_ID'),
            full=_require_bool(item, 'full'),
            image_pk=_require_int(item, 'image_pk'),
        )
    except ValueError as e:
        raise MalformedFeedError(f"invalid event record {item.get('pk')!r}: {e}") from e


def parse_category(item: Any) -> Category:
    """Build a Category from a feed record with keys pk, category, description, isCollege."""
    if not isinstance(item, dict):
        raise MalformedFeedError(f"category record is not an object: {item!r}")

    try:
        return Category(
            pk=_require_int(item, 'pk'),
            name=_require_str(item, 'category'),
            description=_require_str(item, 'description'),
            is_college=_require_bool(item, 'isCollege'),
        )
    except ValueError as e:
        raise MalformedFeedError(f"invalid category record {item.get('pk')!r}: {e}") from e


def _require_section(payload: Dict[str, Any], key: str) -> Dict[str, list]:
    section = payload.get(key)
    if not isinstance(section, dict):
        raise MalformedFeedError(f"missing section: {key}")
    for part in ('changed', 'deleted'):
        if not isinstance(section.get(part), list):
            raise MalformedFeedError(f"missing list: {key}.{part}")
    return section


def _parse_ids(values: list, where: str) -> List[int]:
    ids = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedFeedError(f"non-integer id in {where}: {value!r}")
        ids.append(value)
    return ids


def _require_int(item: Dict[str, Any], key: str) -> int:
    value = item.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedFeedError(f"field '{key}' must be an integer, got {value!r}")
    return value


def _require_str(item: Dict[str, Any], key: str) -> str:
    value = item.get(key)
    if not isinstance(value, str):
        raise MalformedFeedError(f"field '{key}' must be a string, got {value!r}")
    return value


def _require_bool(item: Dict[str, Any], key: str) -> bool:
    value = item.get(key)
    if not isinstance(value, bool):
        raise MalformedFeedError(f"field '{key}' must be a boolean, got {value!r}")
    return value


def _parse_time(value: str) -> ClockTime:
    """Parse a time of day in any of TIME_FORMATS."""
    value = value.strip()
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return ClockTime(parsed.hour, parsed.minute)
    raise MalformedFeedError(f"unrecognized time: {value!r}")


def _parse_date(value: str):
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise MalformedFeedError(f"unrecognized date: {value!r}")
