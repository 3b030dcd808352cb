"""
Build pass model - the slice of a host build tool the manifest pipeline sees.

A :class:`BuildPass` is one compilation run. It owns the modules resolved
during the run, the assets it emits, and an optional parent: passes with a
parent are child passes (server-side rendering sub-compiles and the like)
that reuse their parent's manifest.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .aggregator import QueryContribution


@dataclass
class ModuleRecord:
    """
    A module resolved during a build pass.

    Attributes:
        resource: Absolute or context-relative path of the module.
        contribution: GraphQL text attached by an extraction adapter.
        source: Generated source, set for virtual modules such as the
            manifest module.
    """

    resource: str
    contribution: Optional[QueryContribution] = None
    source: str = ""


@dataclass
class BuildPass:
    """One compilation run of the host build tool."""

    name: str = "main"
    context: str = "."
    parent: Optional["BuildPass"] = None
    modules: List[ModuleRecord] = field(default_factory=list)
    assets: Dict[str, str] = field(default_factory=dict)

    @property
    def is_child(self) -> bool:
        return self.parent is not None

    def child(self, name: str) -> "BuildPass":
        """Create a child pass sharing this pass's context."""
        return BuildPass(name=name, context=self.context, parent=self)

    def add_module(
        self,
        resource: str,
        contribution: Optional[QueryContribution] = None,
    ) -> ModuleRecord:
        module = ModuleRecord(resource=resource, contribution=contribution)
        self.modules.append(module)
        return module

    def modules_for(self, module_name: str) -> Iterator[ModuleRecord]:
        """Modules whose resource is *module_name*, as given or resolved against the context."""
        resolved = os.path.abspath(os.path.join(self.context, module_name))
        for module in self.modules:
            if module.resource == module_name or module.resource == resolved:
                yield module

    def emit_asset(self, filename: str, content: str) -> None:
        self.assets[filename] = content

    def __repr__(self) -> str:
        kind = "child" if self.is_child else "top-level"
        return f"BuildPass({self.name!r}, {kind}, modules={len(self.modules)})"
