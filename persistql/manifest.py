"""
Manifest Builder - persisted-query manifests from a build pass.

The manifest maps the canonical text of every operation to its content id:

.. code-block:: json

    {
        "query countUpdated {\\n  amount\\n}\\n": "c3808f06ccac00fa81fb0eb42ebad1ce5405cc30",
        "query getCount {\\n  count {\\n    amount\\n  }\\n}\\n": "f0b1fc6be73d03f4ca8b5cf34c1f7ae164b8ef57"
    }

Keys are always sorted and the JSON is always compact, so identical inputs
serialize to identical bytes and published manifests diff cleanly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .aggregator import Corpus, QueryAggregator
from .faults import ManifestCorruptFault
from .hashing import OperationHasher, default_hasher
from .normalizer import DocumentNormalizer

logger = logging.getLogger("persistql.manifest")

EMPTY_MANIFEST_JSON = "{}"


# ── Value Objects ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ManifestDiff:
    """Operations added and removed between two manifests."""

    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)

    def summary(self) -> str:
        return f"+{len(self.added)} -{len(self.removed)}"

    def to_dict(self) -> Dict[str, List[str]]:
        return {"added": list(self.added), "removed": list(self.removed)}


class Manifest(Mapping):
    """
    Immutable, key-sorted mapping of operation text to operation id.

    Build one with :meth:`from_operations` (hashes the keys) or read a
    published one back with :meth:`from_json`.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping] = None) -> None:
        entries = entries or {}
        self._entries: Dict[str, str] = {key: entries[key] for key in sorted(entries)}

    # ── Construction ─────────────────────────────────────────────────

    @classmethod
    def from_operations(
        cls,
        operations: Iterable[str],
        hasher: OperationHasher = default_hasher,
    ) -> "Manifest":
        """Hash every distinct operation key, in sorted order."""
        return cls({key: hasher.hash(key) for key in sorted(set(operations))})

    @classmethod
    def from_json(cls, text: str) -> "Manifest":
        """
        Read a serialized manifest.

        Raises:
            ManifestCorruptFault: If *text* is not a JSON object of strings.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestCorruptFault(f"invalid JSON ({exc.msg})") from exc
        if not isinstance(data, dict):
            raise ManifestCorruptFault(f"expected a JSON object, got {type(data).__name__}")
        for key, value in data.items():
            if not isinstance(value, str):
                raise ManifestCorruptFault(
                    "operation ids must be strings",
                    metadata={"operation": key},
                )
        return cls(data)

    # ── Mapping protocol ─────────────────────────────────────────────

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Manifest(operations={len(self._entries)})"

    # ── Serialisation ────────────────────────────────────────────────

    def to_json(self) -> str:
        """Canonical compact JSON; byte-identical for identical manifests."""
        return json.dumps(self._entries, separators=(",", ":"), ensure_ascii=False)

    def to_module_source(self) -> str:
        """Source of the virtual module that exports this manifest."""
        return module_source(self.to_json())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    # ── Comparison ───────────────────────────────────────────────────

    def diff(self, other: "Manifest") -> ManifestDiff:
        """Changes needed to go from this manifest to *other*."""
        return ManifestDiff(
            added=tuple(key for key in other if key not in self._entries),
            removed=tuple(key for key in self._entries if key not in other),
        )

    def verify(self, hasher: OperationHasher = default_hasher) -> List[str]:
        """Operation keys whose stored id does not match *hasher*."""
        return [key for key, digest in self._entries.items() if not hasher.verify(key, digest)]


def module_source(manifest_json: str) -> str:
    """Wrap serialized manifest JSON as a CommonJS module body."""
    return f"module.exports = {manifest_json};"


# ── Builder ─────────────────────────────────────────────────────────────


class ManifestBuilder:
    """
    Aggregate, normalize, hash and sort a pass's operations into a manifest.

    Invoked once per seal of a producing pass. A parse failure anywhere in the
    corpus propagates as :class:`~persistql.faults.DocumentParseFault` and no
    manifest is built.

    Args:
        add_typename: Inject ``__typename`` selections into operations.
        hasher: Operation hasher (SHA-1 by default).
    """

    __slots__ = ("aggregator", "normalizer", "hasher")

    def __init__(
        self,
        *,
        add_typename: bool = False,
        hasher: Optional[OperationHasher] = None,
        aggregator: Optional[QueryAggregator] = None,
        normalizer: Optional[DocumentNormalizer] = None,
    ) -> None:
        self.aggregator = aggregator or QueryAggregator()
        self.normalizer = normalizer or DocumentNormalizer(add_typename=add_typename)
        self.hasher = hasher or default_hasher

    def operation_keys(self, corpus: Corpus) -> Set[str]:
        """Normalized operation keys of *corpus* united with its literal keys."""
        keys: Set[str] = set(corpus.literals)
        if corpus.text:
            keys.update(self.normalizer.normalize(corpus.text))
        return keys

    def build_corpus(self, corpus: Corpus) -> Manifest:
        return Manifest.from_operations(self.operation_keys(corpus), self.hasher)

    def build(self, modules: Iterable[Any]) -> Manifest:
        """Build the manifest for *modules* (the module records of a pass)."""
        corpus = self.aggregator.collect(modules)
        manifest = self.build_corpus(corpus)
        logger.debug(
            "Built manifest: %d operation(s) from %d module(s)",
            len(manifest),
            corpus.module_count,
        )
        return manifest
