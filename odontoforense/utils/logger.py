"""
Logging utilities
"""
import logging
import logging.config
import time
import functools
from pathlib import Path
from typing import Callable, Any
import yaml
from config.settings import settings


def setup_logging(config_path: str = "config/logging.yaml") -> None:
    """
    Initialise logging

    Args:
        config_path: path to a dictConfig YAML file
    """
    config_file = Path(config_path)

    if config_file.exists():
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
        file_handler = config.get("handlers", {}).get("file")
        if file_handler is not None:
            file_handler["filename"] = settings.log_file_path
        Path(settings.log_file_path).parent.mkdir(parents=True, exist_ok=True)
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper()),
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger

    Args:
        name: logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_execution_time(logger: logging.Logger = None):
    """
    Decorator that logs how long the wrapped function took

    Args:
        logger: logger instance (defaults to the function's module logger)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            log = logger or get_logger(func.__module__)

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                execution_time = time.time() - start_time
                log.info(f"{func.__name__} finished in {execution_time:.3f}s")
                return result
            except Exception as e:
                execution_time = time.time() - start_time
                log.error(
                    f"{func.__name__} failed after {execution_time:.3f}s - error: {str(e)}"
                )
                raise

        return wrapper
    return decorator
