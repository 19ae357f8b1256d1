import json
import logging
from datetime import datetime

# Tournament event logger, handlers are configured in settings.LOGGING
state_logger = logging.getLogger('matchday.state')


class StateLogFormatter(logging.Formatter):
    def format(self, record):
        if hasattr(record, 'tournament_data'):
            record.msg = json.dumps({
                'timestamp': datetime.now().isoformat(),
                'event': record.event_type,
                'tournament': record.tournament_data,
                'details': record.msg
            }, default=str)
            record.args = ()
        return super().format(record)


def log_event(event_type, tournament_data, details):
    state_logger.info(
        details,
        extra={
            'event_type': event_type,
            'tournament_data': tournament_data
        }
    )
