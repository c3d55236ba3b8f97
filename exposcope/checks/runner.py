"""Run several checks against one target."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional

from exposcope.checks import CHECKS, get_check
from exposcope.core.config import Settings, get_settings
from exposcope.core.logger import get_logger

logger = get_logger(__name__)


async def run_check_with_timeout(
    name: str,
    url: Optional[str],
    timeout: float,
    settings: Optional[Settings] = None,
    **check_kwargs: Any,
) -> dict[str, Any]:
    """
    Run one check under a time limit.

    On timeout the check's cancel token is set, the task is cancelled and
    an error entry is returned in its place.

    Args:
        name: Registered check name
        url: Target URL
        timeout: Time limit in seconds
        settings: Application settings
        **check_kwargs: Passed to the check constructor

    Returns:
        Check report or error dictionary
    """
    check = get_check(name)(settings=settings, **check_kwargs)
    cancel = asyncio.Event()
    task = asyncio.ensure_future(check.run(url, cancel))

    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()

    cancel.set()
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.warning("Check timed out", check=name, timeout=timeout)
    return {"error": f"Timed out after {timeout:g} seconds, when executing {name}"}


async def run_checks(
    url: Optional[str],
    names: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None,
    timeout: Optional[float] = None,
    **check_kwargs: Any,
) -> dict[str, dict[str, Any]]:
    """
    Run checks concurrently, each under its own time limit.

    Returns:
        Mapping of check name to its report or error dictionary
    """
    settings = settings or get_settings()
    names = list(names or CHECKS)
    timeout = timeout if timeout is not None else settings.api.check_timeout

    results = await asyncio.gather(*(
        run_check_with_timeout(name, url, timeout, settings=settings, **check_kwargs)
        for name in names
    ))
    return dict(zip(names, results))
