"""AWS Lambda handler for the orientation schedule cache."""
import json
import logging
import os
import time
from datetime import date
from typing import Any, Dict, Optional

from event_cache.errors import EventNotFoundError
from event_cache.program import ProgramSchedule
from event_cache.schedule_cache import ScheduleCache
from event_cache.sync_engine import SyncEngine
from feed_client.schedule_feed import ScheduleFeedClient
from notifier.reminders import LoggingNotificationScheduler, SnsNotificationScheduler
from storage.dynamodb_store import DynamoDBRecordStore
from storage.schedule_repository import ScheduleRepository


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def load_program() -> ProgramSchedule:
    """Build the program schedule from PROGRAM_* and SCHEDULE_* variables."""
    year = int(os.environ.get('PROGRAM_YEAR', '2018'))
    month = int(os.environ.get('PROGRAM_MONTH', '4'))
    days = [
        int(day) for day in os.environ.get('PROGRAM_DAYS', '12,13,16,19,20,23').split(',')
        if day.strip()
    ]
    return ProgramSchedule.for_month(
        year, month, days,
        start_hour=int(os.environ.get('SCHEDULE_START_HOUR', '7')),
        end_hour=int(os.environ.get('SCHEDULE_END_HOUR', '2'))
    )


def _env_flag(name: str) -> bool:
    return os.environ.get(name, 'false').strip().lower() in ('1', 'true', 'yes')


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body)}


def _event_to_dict(event) -> Dict[str, Any]:
    return {
        'pk': event.pk,
        'title': event.title,
        'caption': event.caption,
        'date': event.date.isoformat(),
        'start_time': str(event.start_time),
        'end_time': str(event.end_time),
        'college_category_id': event.college_category_id,
        'type_category_id': event.type_category_id,
        'full': event.full,
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for the schedule cache.

    The payload's ``action`` picks the operation:
        sync (default): apply remote changes since the stored version
        select / deselect: change the selection of event ``pk``
        agenda: list the events of ``day`` (optionally ``selected_only``,
            ``college_id``, ``type_id``)

    Args:
        event: Invocation payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and a JSON body
    """
    table_name = os.environ.get('TABLE_NAME', 'schedule-records')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    feed_url = os.environ.get('FEED_URL', 'https://example.org/api/updates')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    topic_arn = os.environ.get('NOTIFICATION_TOPIC_ARN')
    reminders_enabled = _env_flag('REMINDERS_ENABLED')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    action = (event or {}).get('action', 'sync')
    start_time = time.time()
    logger.info(
        f"Lambda execution started",
        extra={'action': action, 'table_name': table_name}
    )

    try:
        program = load_program()
        repository = ScheduleRepository(DynamoDBRecordStore(table_name=table_name))
        cache = ScheduleCache(program, repository)
        if topic_arn:
            notifier = SnsNotificationScheduler(topic_arn)
        else:
            notifier = LoggingNotificationScheduler()

        if not repository.has_run_before():
            logger.info("First run for this record table")
            repository.mark_run()

        cache.initialize()

        if action == 'sync':
            feed = ScheduleFeedClient(base_url=feed_url, timeout=timeout_seconds)
            engine = SyncEngine(
                cache, feed,
                notifier=notifier,
                reminders_enabled=reminders_enabled
            )
            response = _handle_sync(engine, logger)
        elif action in ('select', 'deselect'):
            response = _handle_selection(cache, notifier, reminders_enabled, action, event)
        elif action == 'agenda':
            response = _handle_agenda(cache, event)
        else:
            response = _response(400, {'message': f"Unknown action: {action}"})

        cache.teardown()

        logger.info(
            f"Lambda execution completed",
            extra={
                'action': action,
                'status_code': response['statusCode'],
                'duration_seconds': round(time.time() - start_time, 2)
            }
        )
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _response(500, {
            'message': 'Schedule operation failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })


def _handle_sync(engine: SyncEngine, logger: logging.Logger) -> Dict[str, Any]:
    logger.info("Synchronizing schedule with feed")
    result = engine.sync()

    if result is None:
        return _response(409, {'message': 'Sync already in progress'})

    if not result.completed:
        # Nothing was committed; the next run retries from the same version
        return _response(502, {
            'message': 'Sync did not complete',
            'version': result.version,
            'errors': result.errors,
            'error_type': result.error_type
        })

    return _response(200, {
        'message': 'Sync completed successfully',
        'version': result.version,
        'statistics': {
            'categories_changed': result.categories_changed,
            'categories_deleted': result.categories_deleted,
            'events_changed': result.events_changed,
            'events_deleted': result.events_deleted,
            'events_rejected': result.events_rejected,
            'selected_events_changed': [e.pk for e in result.changed_selected]
        }
    })


def _handle_selection(
    cache: ScheduleCache,
    notifier,
    reminders_enabled: bool,
    action: str,
    event: Dict[str, Any]
) -> Dict[str, Any]:
    pk = event.get('pk')
    if not _is_int(pk):
        return _response(400, {'message': "'pk' must be an integer"})

    if action == 'select':
        try:
            selected = cache.select(pk)
        except EventNotFoundError as e:
            return _response(404, {'message': str(e)})
        if reminders_enabled:
            notifier.schedule(selected)
        return _response(200, {'message': 'Added', 'event': _event_to_dict(selected)})

    removed = cache.deselect(pk)
    if removed and reminders_enabled:
        notifier.cancel(pk)
    return _response(200, {'message': 'Removed' if removed else 'Not selected', 'pk': pk})


def _handle_agenda(cache: ScheduleCache, event: Dict[str, Any]) -> Dict[str, Any]:
    day = _parse_day(event.get('day'), cache.program)
    if day is None:
        return _response(400, {'message': "'day' must be a YYYY-MM-DD date"})

    college_id = event.get('college_id')
    type_id = event.get('type_id')
    for name, value in (('college_id', college_id), ('type_id', type_id)):
        if value is not None and not _is_int(value):
            return _response(400, {'message': f"'{name}' must be an integer"})

    if event.get('selected_only'):
        events = cache.sorted_selected_for_day(day)
    else:
        events = cache.sorted_for_day(
            day,
            college_id=college_id,
            type_id=type_id
        )

    return _response(200, {
        'day': day.isoformat(),
        'title': cache.program.readable_date(day),
        'events': [
            dict(_event_to_dict(e), selected=cache.is_selected(e.pk)) for e in events
        ]
    })


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_day(value: Optional[str], program: ProgramSchedule) -> Optional[date]:
    if value is None:
        return program.initial_day(date.today())
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None
