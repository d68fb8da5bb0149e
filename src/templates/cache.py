"""
Process-scoped template cache with a compute-once guarantee.

Lookups of populated keys do not take the lock. On a miss, the first caller
registers an in-flight future and runs the loader; concurrent callers for the
same key wait on that future. A failed load is not cached.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional

from models.template import Template

TemplateLoader = Callable[[str], Template]


class TemplateCache:
    def __init__(self, loader: Optional[TemplateLoader] = None):
        self._loader = loader
        self._lock = threading.Lock()
        self._entries: Dict[str, Future] = {}
        self.loads = 0

    def get(self, template_id: str, loader: Optional[TemplateLoader] = None) -> Template:
        """
        Return the cached template, loading it at most once per key.

        Args:
            template_id: Cache key.
            loader: Overrides the cache's default loader for this call.

        Raises:
            KeyError: No loader is available.
            Exception: Whatever the loader raised, re-raised to every waiter.
        """
        entry = self._entries.get(template_id)
        if entry is not None and entry.done():
            return entry.result()

        owner = False
        with self._lock:
            entry = self._entries.get(template_id)
            if entry is None:
                entry = Future()
                self._entries[template_id] = entry
                owner = True

        if owner:
            self._populate(template_id, entry, loader or self._loader)
        return entry.result()

    def _populate(self, template_id: str, entry: Future, loader: Optional[TemplateLoader]) -> None:
        try:
            if loader is None:
                raise KeyError(f"Template {template_id} is not cached and no loader is configured")
            template = loader(template_id)
            with self._lock:
                self.loads += 1
            entry.set_result(template)
            logging.info(f"Template cache: loaded {template_id}")
        except BaseException as e:
            with self._lock:
                if self._entries.get(template_id) is entry:
                    del self._entries[template_id]
            entry.set_exception(e)
            logging.warning(f"Template cache: failed to load {template_id}: {e}")

    def put(self, template: Template) -> None:
        """Insert or replace a template."""
        entry: Future = Future()
        entry.set_result(template)
        with self._lock:
            self._entries[template.template_id] = entry

    def evict(self, template_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(template_id, None) is not None
        if removed:
            logging.info(f"Template cache: evicted {template_id}")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, template_id: str) -> bool:
        entry = self._entries.get(template_id)
        return entry is not None and entry.done() and entry.exception() is None

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries.values() if e.done() and e.exception() is None)
