"""Concurrent per-request fetching of independent data sources."""

from __future__ import annotations

import copy
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping


def gather(loaders: Mapping[str, Callable[[], Any]], defaults: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Run named loaders concurrently and collect their results by name.

    A loader that raises contributes a copy of its entry in ``defaults``
    (``None`` when absent), so one broken source never blanks the response.
    """
    defaults = defaults or {}
    if not loaders:
        return {}

    results: dict[str, Any] = {}
    with ThreadPoolExecutor(max_workers=len(loaders), thread_name_prefix='fanout') as pool:
        futures = {name: pool.submit(loader) for name, loader in loaders.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                print(f'[FANOUT] source {name} failed: {e}')
                results[name] = copy.deepcopy(defaults.get(name))
    return results
