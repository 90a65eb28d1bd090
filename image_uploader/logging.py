import json
import logging
import logging.config
from datetime import datetime, timezone

# ``extra`` keys copied into each JSON line when a log call sets them.
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "file_count",
)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key in CONTEXT_FIELDS
            if (value := getattr(record, key, None)) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Send JSON lines to stderr at ``level``.

    python-multipart logs every part it parses at DEBUG, so it is held at
    WARNING whatever the service level is.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonLogFormatter}},
            "handlers": {
                "default": {"class": "logging.StreamHandler", "formatter": "json"}
            },
            "loggers": {"multipart": {"level": "WARNING"}},
            "root": {"handlers": ["default"], "level": level.upper()},
        }
    )
