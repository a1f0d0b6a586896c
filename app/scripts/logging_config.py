# logging_config.py
import logging
import logging.config
import logging.handlers
from pathlib import Path
from datetime import datetime
import json
import contextvars

# per-request identifier kept in a ContextVar
_request_id_ctx = contextvars.ContextVar("request_id", default="-")

class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get("-")
        return True

def set_request_id(req_id: str):
    _request_id_ctx.set(req_id)

def get_logger(name: str = __name__) -> logging.Logger:
    return logging.getLogger(name)

LOG_DIR = Path("logs")

def _rotating(filename: str) -> dict:
    return {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": "INFO",
        "formatter": "default",
        "filters": ["request_id"],
        "filename": str(LOG_DIR / filename),
        "when": "midnight",
        "interval": 1,
        "backupCount": 30,
        "encoding": "utf-8",
    }

def build_dict_config(json_fmt: bool = False) -> dict:
    fmt = (
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s",'
        '"request_id":"%(request_id)s","msg":"%(message)s"}'
        if json_fmt
        else '%(asctime)s | %(levelname)s | %(name)s | rid=%(request_id)s | %(message)s'
    )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "format": fmt,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "default",
                "filters": ["request_id"],
            },
            "file_app": _rotating("app.log"),
            "file_oracle": _rotating("oracle.log"),
        },
        "loggers": {
            # root logger: whole app
            "": {
                "level": "INFO",
                "handlers": ["console", "file_app"],
            },
            # oracle round trips + image fetches get their own file
            "oracle": {
                "level": "INFO",
                "handlers": ["console", "file_oracle"],
                "propagate": False,
            },
            "uvicorn": {"level": "INFO"},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"level": "INFO"},
        },
    }

def setup_logging(json_fmt: bool = False):
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_dict_config(json_fmt=json_fmt))

# ===== matching event helpers =====
def log_image_fetch(url: str, success: bool, size_bytes: int | None = None,
                    status: int | None = None, error: str | None = None,
                    logger: logging.Logger | None = None):
    logger = logger or get_logger("oracle")
    if success:
        logger.info("image fetch ok: %s bytes status=%s url=%s", size_bytes, status, url)
    else:
        logger.warning("image fetch failed: status=%s err=%s url=%s", status, error, url)

def log_oracle_call(provider: str, model: str | None, success: bool, duration: float,
                    candidate_count: int = 0, chars: int | None = None, error: str | None = None,
                    logger: logging.Logger | None = None):
    logger = logger or get_logger("oracle")
    if success:
        logger.info("oracle call ok provider=%s model=%s candidates=%d latency=%.2fs chars=%s",
                    provider, model, candidate_count, duration, chars)
    else:
        logger.error("oracle call failed provider=%s model=%s candidates=%d latency=%.2fs err=%s",
                     provider, model, candidate_count, duration, error)

def log_match_summary(found_id: str, info: dict, logger: logging.Logger | None = None):
    logger = logger or get_logger("oracle")
    summary = {
        'timestamp': datetime.now().isoformat(),
        'found_id': found_id,
        'candidates': info.get('candidates', 0),
        'valid_entries': info.get('valid_entries', 0),
        'ranked': info.get('ranked', 0),
        'placeholders': info.get('placeholders', 0),
    }
    logger.info("match summary: %s", json.dumps(summary, ensure_ascii=False))
