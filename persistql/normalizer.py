"""
Document Normalizer - GraphQL corpus to canonical operation keys.

The corpus handed over by the aggregator is parsed as one document and split
into one standalone document per operation. Each standalone document keeps
only the fragments its operation reaches, drops duplicate fragment
definitions, optionally gains ``__typename`` selections, and is printed back
to text. That text is the manifest key.

Example::

    >>> DocumentNormalizer().normalize("query getCount { count { amount } }")
    {'query getCount {\\n  count {\\n    amount\\n  }\\n}\\n': ...}
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Set

from graphql import GraphQLSyntaxError, parse, print_ast
from graphql.language import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    NameNode,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    visit,
)

from .faults import DocumentParseFault

logger = logging.getLogger("persistql.normalizer")

TYPENAME = "__typename"


# ============================================================================
# Visitors
# ============================================================================


class FragmentSpreadCollector(Visitor):
    """Collects the fragment names spread anywhere below a node."""

    def __init__(self) -> None:
        super().__init__()
        self.names: Set[str] = set()

    def enter_fragment_spread(self, node, *_args):
        self.names.add(node.name.value)


class TypenameInjector(Visitor):
    """
    Appends a ``__typename`` field to every selection set.

    Operation root selection sets are left alone, as are selection sets
    that already select ``__typename``.
    """

    def leave_selection_set(self, node, _key, parent, *_args):
        if isinstance(parent, OperationDefinitionNode):
            return None
        for selection in node.selections:
            if isinstance(selection, FieldNode) and selection.name.value == TYPENAME:
                return None
        return SelectionSetNode(selections=(*node.selections, _typename_field()))


def _typename_field() -> FieldNode:
    return FieldNode(
        name=NameNode(value=TYPENAME),
        arguments=(),
        directives=(),
    )


# ============================================================================
# Document helpers
# ============================================================================


def spread_names(node) -> Set[str]:
    """Names of the fragments spread directly or indirectly inside *node*."""
    collector = FragmentSpreadCollector()
    visit(node, collector)
    return collector.names


def reachable_fragments(roots: Iterable[str], graph: Dict[str, Set[str]]) -> Set[str]:
    """Walk the fragment dependency *graph* from *roots*."""
    reached: Set[str] = set()
    pending: List[str] = list(roots)
    while pending:
        name = pending.pop()
        if name in reached:
            continue
        reached.add(name)
        pending.extend(graph.get(name, ()))
    return reached


def fragment_graph(document: DocumentNode) -> Dict[str, Set[str]]:
    """Map each fragment name to the fragment names its definitions spread."""
    graph: Dict[str, Set[str]] = {}
    for definition in document.definitions:
        if isinstance(definition, FragmentDefinitionNode):
            graph.setdefault(definition.name.value, set()).update(
                spread_names(definition.selection_set)
            )
    return graph


def split_operations(document: DocumentNode) -> List[DocumentNode]:
    """
    Split *document* into one document per operation definition.

    Operations are not keyed by name: anonymous operations and operations
    sharing a name each get their own document. A split document holds its
    operation plus every fragment definition (duplicates included, in
    source order) the operation reaches.
    """
    graph = fragment_graph(document)
    documents: List[DocumentNode] = []

    for operation in document.definitions:
        if not isinstance(operation, OperationDefinitionNode):
            continue
        needed = reachable_fragments(spread_names(operation.selection_set), graph)
        documents.append(
            DocumentNode(
                definitions=tuple(
                    definition
                    for definition in document.definitions
                    if definition is operation
                    or (
                        isinstance(definition, FragmentDefinitionNode)
                        and definition.name.value in needed
                    )
                )
            )
        )

    return documents


def dedupe_fragments(document: DocumentNode) -> DocumentNode:
    """
    Drop duplicate fragment definitions from *document*.

    Definitions are scanned from the end backward; the first definition of a
    name met in that scan survives. The survivor is therefore the last
    definition in source order. Existing manifests hash this result, so the
    rule must not change.
    """
    seen: Set[str] = set()
    kept = []
    for definition in reversed(document.definitions):
        if isinstance(definition, FragmentDefinitionNode):
            name = definition.name.value
            if name in seen:
                continue
            seen.add(name)
        kept.append(definition)
    kept.reverse()
    return DocumentNode(definitions=tuple(kept))


def add_typename(document: DocumentNode) -> DocumentNode:
    """Edited copy of *document* with ``__typename`` injected; input untouched."""
    return visit(document, TypenameInjector())


def print_document(document: DocumentNode) -> str:
    """Print *document*, ending with exactly one newline."""
    return print_ast(document).rstrip("\n") + "\n"


def render_operations(document: DocumentNode) -> List[str]:
    """
    Render every operation of *document* as a standalone key.

    The operation comes first, followed by the fragments it reaches sorted
    by name.
    """
    graph = fragment_graph(document)
    fragments: Dict[str, FragmentDefinitionNode] = {}
    for definition in document.definitions:
        if isinstance(definition, FragmentDefinitionNode):
            fragments.setdefault(definition.name.value, definition)

    rendered: List[str] = []
    for operation in document.definitions:
        if not isinstance(operation, OperationDefinitionNode):
            continue
        needed = reachable_fragments(spread_names(operation.selection_set), graph)
        ordered = [fragments[name] for name in sorted(needed) if name in fragments]
        rendered.append(print_document(DocumentNode(definitions=(operation, *ordered))))
    return rendered


# ============================================================================
# Normalizer
# ============================================================================


class DocumentNormalizer:
    """
    Turns a GraphQL corpus into the set of canonical operation keys.

    Args:
        add_typename: Inject ``__typename`` selections before rendering.
    """

    __slots__ = ("add_typename",)

    def __init__(self, *, add_typename: bool = False) -> None:
        self.add_typename = add_typename

    def parse(self, corpus: str) -> DocumentNode:
        """
        Parse *corpus* as a single document.

        Raises:
            DocumentParseFault: On any GraphQL syntax error.
        """
        try:
            return parse(corpus, no_location=True)
        except GraphQLSyntaxError as exc:
            location = exc.locations[0] if exc.locations else None
            raise DocumentParseFault(
                exc.message,
                line=location.line if location else None,
                column=location.column if location else None,
            ) from exc

    def normalize(self, corpus: str) -> Dict[str, str]:
        """
        Normalize *corpus* into ``{key: key}`` for every distinct operation.

        An empty (or whitespace-only) corpus yields an empty mapping without
        being parsed.
        """
        if not corpus or not corpus.strip():
            return {}

        document = self.parse(corpus)
        keys: Dict[str, str] = {}

        for operation_document in split_operations(document):
            operation_document = dedupe_fragments(operation_document)
            if self.add_typename:
                operation_document = add_typename(operation_document)
            for key in render_operations(operation_document):
                keys[key] = key

        logger.debug(
            "Normalized corpus of %d chars into %d operation(s)",
            len(corpus),
            len(keys),
        )
        return keys
