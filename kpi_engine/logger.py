import logging
import sys
import time
from contextlib import contextmanager
from typing import Iterator


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Настраивает логирование для всего проекта."""
    root_logger = logging.getLogger()

    # Сброс существующих хендлеров
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        from pythonjsonlogger.jsonlogger import JsonFormatter

        handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
    root_logger.addHandler(handler)

    # Драйверы БД/HTTP и access-лог uvicorn слишком шумные на INFO
    for noisy in ("asyncpg", "aiohttp", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@contextmanager
def log_duration(logger: logging.Logger, label: str) -> Iterator[None]:
    """Логирует длительность блока: '<label> за 1.2с'."""
    started = time.time()
    try:
        yield
    finally:
        logger.info(f"⏱️ {label} за {time.time() - started:.1f}с")
