"""
Co-occurrence Topology
======================

Character co-occurrence graph over a chapter corpus.

Nodes are characters (keyed by their position in the codex so duplicate
ids cannot collide); an edge carries the number of chapters in which the
Name Matcher finds BOTH names. Pairs are therefore undirected and
counted once.

The graph is built per analysis call and discarded with it. It records
structure only: no centrality or ranking is derived from it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple
import networkx as nx

from ..contracts.story import Chapter, Character
from .names import text_contains_character_name


@dataclass(frozen=True)
class CooccurrenceMetrics:
    """Immutable structural metrics of a co-occurrence graph."""
    node_count: int
    edge_count: int
    density: float
    isolated_count: int
    connected_components_count: int


@dataclass(frozen=True)
class CoAppearance:
    """Two characters and the number of chapters they share."""
    first: Character
    second: Character
    count: int


class CooccurrenceGraph:
    """
    Graph of characters that appear in the same chapters.

    Wraps NetworkX; the only mutation is ``build``, which replaces the
    internal graph wholesale.
    """

    def __init__(self):
        self._graph = nx.Graph()

    def build(
        self,
        characters: Sequence[Character],
        chapters: Iterable[Chapter]
    ) -> CooccurrenceGraph:
        """
        Build the graph from a codex and a chapter corpus.

        Characters with blank names are kept as nodes but never match.
        """
        self._graph = nx.Graph()
        for index, character in enumerate(characters):
            self._graph.add_node(index, character=character, appearances=0)

        for chapter in chapters:
            text = chapter.text
            if not text:
                continue
            present = [
                index for index, character in enumerate(characters)
                if text_contains_character_name(text, character.name)
            ]
            for index in present:
                self._graph.nodes[index]["appearances"] += 1
            for position, first in enumerate(present):
                for second in present[position + 1:]:
                    if self._graph.has_edge(first, second):
                        self._graph[first][second]["weight"] += 1
                    else:
                        self._graph.add_edge(first, second, weight=1)
        return self

    def appearances(self, index: int) -> int:
        """Number of chapters mentioning the character at codex position ``index``."""
        if index not in self._graph:
            return 0
        return self._graph.nodes[index]["appearances"]

    def co_appearance_count(self, first: int, second: int) -> int:
        if not self._graph.has_edge(first, second):
            return 0
        return self._graph[first][second]["weight"]

    def pairs(self, min_count: int = 1) -> List[CoAppearance]:
        """
        Every (i, j) pair with i < j in codex order sharing at least
        ``min_count`` chapters. Ordering is deterministic.
        """
        found: List[Tuple[int, int, int]] = []
        for a, b, data in self._graph.edges(data=True):
            if data["weight"] >= min_count:
                first, second = (a, b) if a < b else (b, a)
                found.append((first, second, data["weight"]))
        found.sort()
        return [
            CoAppearance(
                first=self._graph.nodes[first]["character"],
                second=self._graph.nodes[second]["character"],
                count=count,
            )
            for first, second, count in found
        ]

    def compute_metrics(self) -> CooccurrenceMetrics:
        """Purely structural metrics (density, isolation, components)."""
        if not self._graph:
            return CooccurrenceMetrics(0, 0, 0.0, 0, 0)

        return CooccurrenceMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            isolated_count=nx.number_of_isolates(self._graph),
            connected_components_count=nx.number_connected_components(self._graph),
        )
