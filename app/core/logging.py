import logging

from loguru import logger

from app.core.config import settings


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(request_id="app").opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(name).handlers = [InterceptHandler()]
    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 MB",
            retention="7 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            level="INFO",
        )
