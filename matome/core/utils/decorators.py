import asyncio
import functools
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar, cast

T = TypeVar("T")


def log_execution_time(func: Callable[..., T]) -> Callable[..., T]:
    """実行時間をログに記録するデコレータ"""

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs) -> T:
        logger = logging.getLogger(func.__module__)
        start_time = datetime.now()

        try:
            result = await func(*args, **kwargs)
        except Exception:
            execution_time = (datetime.now() - start_time).total_seconds()
            logger.error(
                f"Function {func.__name__} failed",
                extra={"function": func.__name__, "execution_time": execution_time},
            )
            raise

        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"Function {func.__name__} completed",
            extra={"function": func.__name__, "execution_time": execution_time},
        )
        return result

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs) -> T:
        logger = logging.getLogger(func.__module__)
        start_time = datetime.now()
        result = func(*args, **kwargs)
        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"Function {func.__name__} completed",
            extra={"function": func.__name__, "execution_time": execution_time},
        )
        return result

    if asyncio.iscoroutinefunction(func):
        return cast(Callable[..., T], async_wrapper)
    return cast(Callable[..., T], sync_wrapper)
