"""
Virtual modules - in-memory module sources resolvable by path.

The manifest module never exists on disk; the plugin writes its source here
and the host's resolver reads it back.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional

logger = logging.getLogger("persistql.virtual")


class VirtualModuleStore:
    """
    Ephemeral path -> source store.

    Each write replaces the whole source of a module.
    """

    __slots__ = ("_modules",)

    def __init__(self) -> None:
        self._modules: Dict[str, str] = {}

    def write_module(self, path: str, source: str) -> None:
        self._modules[path] = source
        logger.debug("Wrote virtual module %s (%d chars)", path, len(source))

    def read(self, path: str) -> Optional[str]:
        return self._modules.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._modules

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)
