# util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


@contextmanager
def timed(
    logger: logging.Logger, name: str, level: int = logging.DEBUG, **kv: Any
) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "store.delete_expired"):
          ...
    Emits "<name>.done ms=<int> key=val ..." on success, or "<name>.failed ..."
    at WARNING when the block raises. The exception is not swallowed.
    """
    t0 = time.perf_counter()
    outcome, lvl = "failed", logging.WARNING
    try:
        yield
        outcome, lvl = "done", level
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.log(lvl, "%s.%s ms=%d%s", name, outcome, dt_ms, suffix)
