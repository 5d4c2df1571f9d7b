import asyncio
import logging
from typing import Any, Callable, Sequence

from rosterbot.core.logging_utils import kv

log = logging.getLogger("rosterbot.retry")

BACKOFFS = [1, 3, 10]


async def with_retry(
    func: Callable[..., Any], *args, backoffs: Sequence[float] = BACKOFFS, **kwargs
):
    last_exc = None
    for attempt in range(len(backoffs) + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:  # HttpError / transport errors
            last_exc = e
            if attempt == len(backoffs):
                raise
            log.debug("retry.backoff " + kv(attempt=attempt + 1, err=str(e)))
            await asyncio.sleep(backoffs[attempt])
    raise last_exc
