"""
Shared test fixtures and helpers for the PersistQL test suite.
"""

import os
from typing import Dict, Iterable, Optional

import pytest

from persistql import (
    BuildPass,
    DocumentNormalizer,
    ManifestBuilder,
    PersistedQueryPlugin,
    QueryContribution,
)


MODULE_NAME = os.path.abspath("node_modules/persisted_queries.json")

COUNT_UPDATED = "query countUpdated {\n  amount\n}\n"
GET_COUNT = "query getCount {\n  count {\n    amount\n  }\n}\n"

# Operation ids of the two operations above, fixed by existing clients.
COUNT_UPDATED_ID = "c3808f06ccac00fa81fb0eb42ebad1ce5405cc30"
GET_COUNT_ID = "f0b1fc6be73d03f4ca8b5cf34c1f7ae164b8ef57"

EXPECTED_MANIFEST = {COUNT_UPDATED: COUNT_UPDATED_ID, GET_COUNT: GET_COUNT_ID}


# ============================================================================
# Build pass helpers
# ============================================================================


def make_pass(
    *,
    queries: Optional[Iterable[str]] = None,
    sources: Optional[Dict[str, str]] = None,
    name: str = "main",
    include_manifest_module: bool = True,
) -> BuildPass:
    """
    Build a pass resembling a bundler run over an entry script.

    ``queries`` are template-tag literals of ``entry.js``; ``sources`` maps
    ``.graphql`` file names to their contents.
    """
    build_pass = BuildPass(name=name)
    build_pass.add_module(
        "entry.js",
        QueryContribution.from_queries(queries) if queries else None,
    )
    for filename, text in (sources or {}).items():
        build_pass.add_module(filename, QueryContribution.from_source(text))
    if include_manifest_module:
        build_pass.add_module(MODULE_NAME)
    return build_pass


class RecordingSubscriber:
    """Subscriber that remembers every manifest it receives."""

    def __init__(self, name: str = "subscriber", log: Optional[list] = None):
        self.name = name
        self.updates: list = []
        self._log = log

    def on_update(self, manifest: str) -> None:
        self.updates.append(manifest)
        if self._log is not None:
            self._log.append(self.name)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def normalizer():
    return DocumentNormalizer()


@pytest.fixture
def builder():
    return ManifestBuilder()


@pytest.fixture
def example_pass():
    """entry.js with one tagged query plus example.graphql."""
    return make_pass(
        queries=["query countUpdated { amount }"],
        sources={"example.graphql": "query getCount { count { amount } }"},
    )


@pytest.fixture
def producer():
    return PersistedQueryPlugin(module_name=MODULE_NAME)
