"""
Query Aggregator - collects GraphQL contributions across a build pass.

Extraction adapters attach a :class:`QueryContribution` to each module
before the pass seals. The aggregator walks every module of the pass and
joins what they contributed into one :class:`Corpus`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Mapping

from .faults import FilesystemFault

if TYPE_CHECKING:
    from .build import ModuleRecord

logger = logging.getLogger("persistql.aggregator")


@dataclass(frozen=True)
class QueryContribution:
    """
    GraphQL text a single module contributes to the manifest.

    Attributes:
        queries: Literal query strings found in a script module (template
            tags), mapped to their extracted text. The literal strings are
            what enters the corpus.
        source: Raw GraphQL source of a ``.graphql`` module.
        literals: Exact operation strings used as manifest keys verbatim,
            bypassing normalization.
    """

    queries: Mapping[str, str] = field(default_factory=dict)
    source: str = ""
    literals: FrozenSet[str] = frozenset()

    @classmethod
    def from_queries(cls, queries: Iterable[str]) -> "QueryContribution":
        """Contribution of literal query strings (each mapped to itself)."""
        return cls(queries={query: query for query in queries})

    @classmethod
    def from_source(cls, source: str) -> "QueryContribution":
        return cls(source=source)

    @classmethod
    def from_literals(cls, literals: Iterable[str]) -> "QueryContribution":
        return cls(literals=frozenset(literals))

    @classmethod
    def from_file(cls, path: str | Path) -> "QueryContribution":
        """
        Load a ``.graphql`` file as a raw source contribution.

        Raises:
            FilesystemFault: If the file cannot be read.
        """
        path = Path(path)
        try:
            return cls(source=path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise FilesystemFault("read", str(path), str(exc)) from exc

    @property
    def is_empty(self) -> bool:
        return not (self.queries or self.source or self.literals)


@dataclass(frozen=True)
class Corpus:
    """Everything a build pass contributed, ready for normalization."""

    text: str = ""
    literals: FrozenSet[str] = frozenset()
    module_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.literals


class QueryAggregator:
    """
    Joins module contributions into a single corpus.

    Mapping contributions add their literal query strings, raw contributions
    add their source. A module contributes through ``queries`` when it has
    any, otherwise through ``source``. Concatenation order follows module
    order; final ordering is imposed later by sorting manifest keys. Parts
    are newline-separated so a trailing comment cannot swallow the next one.
    """

    def collect(self, modules: Iterable["ModuleRecord"]) -> Corpus:
        parts: List[str] = []
        literals: set[str] = set()
        count = 0

        for module in modules:
            contribution = module.contribution
            if contribution is None or contribution.is_empty:
                continue
            count += 1
            if contribution.queries:
                parts.extend(contribution.queries.keys())
            elif contribution.source:
                parts.append(contribution.source)
            literals.update(contribution.literals)

        corpus = Corpus(text="\n".join(parts), literals=frozenset(literals), module_count=count)
        logger.debug(
            "Aggregated %d contributing module(s): %d chars, %d literal(s)",
            count,
            len(corpus.text),
            len(corpus.literals),
        )
        return corpus
