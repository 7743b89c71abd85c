"""
Annotated documents, token spans, dependency parses and labelled datums.

These are the narrow stand-ins for the NLP layer: features only reach them
through extractors registered on ``DatumTools``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

_DEPENDENCY_PATTERN = re.compile(r"(.*)\((.*)-([0-9']*),(.*)-([0-9']*)\)")

ROOT_INDEX = -1
UP = "<"
DOWN = ">"


@dataclass(frozen=True)
class TypedDependency:
    """A typed head -> dependent arc between two tokens of one sentence.

    Token indices are 0-based; a parent index of ``ROOT_INDEX`` marks the root.
    """

    sentence_index: int
    parent_token_index: int
    child_token_index: int
    type: str

    @classmethod
    def from_string(cls, text: str, sentence_index: int) -> Optional["TypedDependency"]:
        """Parse the ``type(parent-i, child-j)`` form (1-based, 0 = root)."""
        match = _DEPENDENCY_PATTERN.fullmatch(text.strip())
        if match is None:
            return None
        parent = int(match.group(3).replace("'", "").strip())
        child = int(match.group(5).replace("'", "").strip())
        return cls(sentence_index, parent - 1, child - 1, match.group(1).strip())

    def to_string(self, document: "Document") -> str:
        parent = (
            "ROOT"
            if self.parent_token_index == ROOT_INDEX
            else document.get_token(self.sentence_index, self.parent_token_index)
        )
        child = document.get_token(self.sentence_index, self.child_token_index)
        return (
            f"{self.type}({parent}-{self.parent_token_index + 1}, "
            f"{child}-{self.child_token_index + 1})"
        )


@dataclass(frozen=True)
class DependencyPath:
    """Tokens visited between two tokens plus the (direction, type) of each arc."""

    tokens: Tuple[int, ...]
    steps: Tuple[Tuple[str, str], ...] = ()

    @property
    def token_length(self) -> int:
        return len(self.tokens)

    @property
    def length(self) -> int:
        return len(self.steps)

    def to_string(self, use_relation_types: bool = True) -> str:
        if use_relation_types:
            return "".join(direction + relation for direction, relation in self.steps)
        return "".join(direction for direction, _ in self.steps)


class DependencyParse:
    """Dependency tree of one sentence backed by a ``networkx.DiGraph``."""

    def __init__(self, sentence_index: int, token_count: int, dependencies: Sequence[TypedDependency] = ()):
        self.sentence_index = sentence_index
        self.token_count = token_count
        self.dependencies = list(dependencies)
        self.graph = nx.DiGraph()
        self.graph.add_nodes_from(range(token_count))
        for dep in self.dependencies:
            if dep.parent_token_index == ROOT_INDEX:
                continue
            self.graph.add_edge(dep.parent_token_index, dep.child_token_index, type=dep.type)
        self._undirected = self.graph.to_undirected(as_view=True)

    def get_path(self, source_token: int, target_token: int) -> Optional[DependencyPath]:
        """Shortest path between two tokens, or ``None`` when they are not connected."""
        if source_token == target_token:
            if source_token not in self.graph:
                return None
            return DependencyPath(tokens=(source_token,))
        try:
            nodes = nx.shortest_path(self._undirected, source_token, target_token)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

        steps = []
        for u, v in zip(nodes, nodes[1:]):
            if self.graph.has_edge(u, v):
                steps.append((DOWN, self.graph.edges[u, v]["type"]))
            else:
                steps.append((UP, self.graph.edges[v, u]["type"]))
        return DependencyPath(tokens=tuple(nodes), steps=tuple(steps))


@dataclass(eq=False)
class Document:
    name: str
    sentences: List[List[str]]
    dependency_parses: List[DependencyParse] = field(default_factory=list)

    def __post_init__(self):
        if not self.dependency_parses:
            self.dependency_parses = [
                DependencyParse(i, len(tokens)) for i, tokens in enumerate(self.sentences)
            ]

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    def token_count(self, sentence_index: int) -> int:
        return len(self.sentences[sentence_index])

    def get_token(self, sentence_index: int, token_index: int) -> str:
        return self.sentences[sentence_index][token_index]

    def get_dependency_parse(self, sentence_index: int) -> DependencyParse:
        return self.dependency_parses[sentence_index]


@dataclass(frozen=True)
class TokenSpan:
    """Tokens ``[start, end)`` of one sentence; a negative sentence index means none."""

    document: Document
    sentence_index: int
    start_token_index: int
    end_token_index: int

    def is_within_bounds(self) -> bool:
        if self.sentence_index < 0:
            return True
        if self.sentence_index >= self.document.sentence_count:
            return False
        token_count = self.document.token_count(self.sentence_index)
        return 0 <= self.start_token_index < self.end_token_index <= token_count

    def text(self) -> str:
        if self.sentence_index < 0:
            return ""
        tokens = self.document.sentences[self.sentence_index]
        return " ".join(tokens[self.start_token_index : self.end_token_index])


@dataclass(eq=False)
class Datum:
    """An opaque labelled unit; features reach its contents only through extractors."""

    id: str
    label: Optional[str] = None
    document: Optional[Document] = None
    spans: Dict[str, List[TokenSpan]] = field(default_factory=dict)
    strings: Dict[str, str] = field(default_factory=dict)
