import logging
import sys

import structlog


LOG_FORMAT_PLAINTEXT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
JSON_LOG_FORMATS = {"json", "stackdriver"}


def _json_formatter() -> logging.Formatter:
    # 표준 logging 레코드를 structlog 체인에 태워 한 줄에 하나의 JSON 객체로 출력한다.
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )


def setup_logging(verbosity: int = 0, log_format: str = "plaintext") -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stdout)
    if (log_format or "").strip().lower() in JSON_LOG_FORMATS:
        handler.setFormatter(_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT_PLAINTEXT))

    logging.basicConfig(level=level, handlers=[handler], force=True)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
