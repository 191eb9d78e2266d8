"""Unit tests for similarity graph construction."""

import math

import numpy as np
import pytest

from auramap.graph import (
    SimilarityConfig,
    SimilarityGraphBuilder,
    cosine_similarity,
    cosine_similarity_batch,
    cosine_similarity_matrix,
    score_relevance,
)
from auramap.graph.similarity import rest_length_for
from auramap.models import MemoryNode, NodeKind


def edge_pairs(result) -> set[tuple[str, str]]:
    ids = result.ids
    return {(ids[e.a], ids[e.b]) for e in result.edges}


class TestCosineSimilarity:
    """Tests for cosine similarity functions."""

    def test_identical(self) -> None:
        """Test similarity of a vector with itself."""
        vec = [0.3, -1.2, 4.0]
        assert abs(cosine_similarity(vec, vec) - 1.0) < 1e-9

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite(self) -> None:
        assert abs(cosine_similarity([1.0, 0.0], [-2.0, 0.0]) + 1.0) < 1e-9

    def test_symmetric(self) -> None:
        """Test sim(a, b) == sim(b, a) across random pairs."""
        rng = np.random.default_rng(3)
        for _ in range(50):
            a, b = rng.normal(size=8), rng.normal(size=8)
            assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_zero_norm_is_zero(self) -> None:
        """Test zero vectors never produce NaN."""
        zero = [0.0, 0.0, 0.0]
        for other in ([1.0, 2.0, 3.0], zero, [-1.0, 0.0, 0.0]):
            sim = cosine_similarity(zero, other)
            assert sim == 0.0
            assert not math.isnan(sim)

    def test_dimension_mismatch_is_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_batch(self) -> None:
        """Test batch similarity computation."""
        sims = cosine_similarity_batch([1.0, 0.0], [[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]])
        assert sims == [1.0, 0.0, 0.0]

    def test_matrix_matches_pairwise(self) -> None:
        """Test the matrix form agrees with the scalar form."""
        rng = np.random.default_rng(11)
        vectors = rng.normal(size=(6, 5))
        vectors[2] = 0.0
        matrix = cosine_similarity_matrix(vectors)
        assert matrix.shape == (6, 6)
        np.testing.assert_allclose(matrix, matrix.T)
        for i in range(6):
            for j in range(6):
                if i == 2 or j == 2:
                    assert matrix[i, j] == 0.0
                else:
                    assert abs(matrix[i, j] - cosine_similarity(vectors[i], vectors[j])) < 1e-9


class TestRestLength:
    """Tests for the similarity -> rest length mapping."""

    def test_decreasing_in_similarity(self) -> None:
        config = SimilarityConfig(rest_length_min=20.0, rest_length_range=300.0)
        lengths = [rest_length_for(s, config) for s in (0.5, 0.7, 0.9, 1.0)]
        assert lengths == sorted(lengths, reverse=True)
        assert rest_length_for(1.0, config) == 20.0


class TestSimilarityGraphBuilder:
    """Tests for SimilarityGraphBuilder."""

    def test_scenario_low_threshold(self, sample_nodes: list[MemoryNode]) -> None:
        """Test identical directions link, orthogonal ones do not."""
        result = SimilarityGraphBuilder().build(sample_nodes, threshold=0.5)
        assert edge_pairs(result) == {("e1", "e2")}
        assert result.edges[0].similarity == 1.0

    def test_scenario_high_threshold(self, sample_nodes: list[MemoryNode]) -> None:
        """Test raising the threshold keeps the strong edge and adds nothing."""
        builder = SimilarityGraphBuilder()
        low = edge_pairs(builder.build(sample_nodes, threshold=0.5))
        high = edge_pairs(builder.build(sample_nodes, threshold=0.99))
        assert high == {("e1", "e2")}
        assert high <= low

    def test_strict_threshold_identical(self, sample_nodes: list[MemoryNode]) -> None:
        """Test sim == threshold creates no edge (sim 1.0 at threshold 1.0)."""
        result = SimilarityGraphBuilder().build(sample_nodes, threshold=1.0)
        assert result.edges == []

    def test_strict_threshold_orthogonal(self, node_factory) -> None:
        """Test sim == threshold creates no edge (sim 0.0 at threshold 0.0)."""
        nodes = [node_factory("a", [1.0, 0.0]), node_factory("b", [0.0, 1.0])]
        assert SimilarityGraphBuilder().build(nodes, threshold=0.0).edges == []

    def test_strict_threshold_general_vectors(self, node_factory) -> None:
        """Test sim == threshold creates no edge for vectors off the axes."""
        a, b = [6.0, 5.0, 3.0, 3.0], [6.0, 5.0, 5.0, 3.0]
        nodes = [node_factory("a", a), node_factory("b", b)]
        tau = cosine_similarity(a, b)
        assert SimilarityGraphBuilder().build(nodes, threshold=tau).edges == []

    def test_strict_threshold_matches_pairwise(self, node_factory) -> None:
        """Test the builder agrees with cosine_similarity at the boundary."""
        rng = np.random.default_rng(21)
        builder = SimilarityGraphBuilder()
        for _ in range(300):
            a = rng.integers(1, 7, size=4).astype(float).tolist()
            b = rng.integers(1, 7, size=4).astype(float).tolist()
            nodes = [node_factory("a", a), node_factory("b", b)]
            tau = cosine_similarity(a, b)
            if tau >= 1.0:
                continue
            assert builder.build(nodes, threshold=tau).edges == []
            assert len(builder.build(nodes, threshold=max(0.0, tau - 1e-6)).edges) == 1

    def test_monotonic_in_threshold(self, node_factory) -> None:
        """Test raising the threshold never adds edges."""
        rng = np.random.default_rng(5)
        nodes = [node_factory(f"n{i}", rng.normal(size=6).tolist()) for i in range(40)]
        builder = SimilarityGraphBuilder()

        previous: set[tuple[str, str]] | None = None
        for tau in np.linspace(0.0, 1.0, 21):
            pairs = edge_pairs(builder.build(nodes, threshold=float(tau)))
            if previous is not None:
                assert pairs <= previous
            previous = pairs

    def test_edges_are_unique_unordered_pairs(self, node_factory) -> None:
        """Test a != b and at most one edge per pair."""
        nodes = [node_factory(f"n{i}", [1.0, 0.01 * i]) for i in range(10)]
        result = SimilarityGraphBuilder().build(nodes, threshold=0.5)
        keys = [(e.a, e.b) for e in result.edges]
        assert len(keys) == len(set(keys)) == 45
        assert all(a < b for a, b in keys)

    def test_similarity_above_threshold(self, node_factory) -> None:
        rng = np.random.default_rng(9)
        nodes = [node_factory(f"n{i}", rng.normal(size=4).tolist()) for i in range(30)]
        result = SimilarityGraphBuilder().build(nodes, threshold=0.3)
        assert result.edges
        assert all(0.3 < e.similarity <= 1.0 for e in result.edges)

    def test_empty(self) -> None:
        """Test an empty node set builds an empty graph."""
        result = SimilarityGraphBuilder().build([], threshold=0.5)
        assert result.nodes == []
        assert result.edges == []

    def test_kind_filter(self, sample_nodes: list[MemoryNode]) -> None:
        """Test only allowed kinds enter the graph."""
        result = SimilarityGraphBuilder().build(
            sample_nodes, threshold=0.5, kinds={NodeKind.MEMORY, NodeKind.DREAM}
        )
        assert result.ids == ["e1", "e3"]
        assert result.edges == []

    def test_node_cap_keeps_first(self, node_factory) -> None:
        """Test nodes past the cap are dropped in input order."""
        nodes = [node_factory(f"n{i}", [1.0, 0.0]) for i in range(5)]
        builder = SimilarityGraphBuilder(SimilarityConfig(node_cap=3))
        result = builder.build(nodes, threshold=0.5)
        assert result.ids == ["n0", "n1", "n2"]
        assert result.capped_ids == ["n3", "n4"]
        assert len(result.edges) == 3

    def test_cap_applies_after_filter(self, node_factory) -> None:
        nodes = [
            node_factory("d0", [1.0, 0.0], NodeKind.DREAM),
            node_factory("m0", [1.0, 0.0]),
            node_factory("m1", [1.0, 0.0]),
        ]
        builder = SimilarityGraphBuilder(SimilarityConfig(node_cap=2))
        result = builder.build(nodes, threshold=0.5, kinds={NodeKind.MEMORY})
        assert result.ids == ["m0", "m1"]
        assert result.capped_ids == []

    def test_missing_embedding_isolated(self, node_factory) -> None:
        """Test nodes without embeddings stay as isolated points."""
        nodes = [
            node_factory("a", [1.0, 0.0]),
            node_factory("broken", None),
            node_factory("b", [1.0, 0.0]),
        ]
        result = SimilarityGraphBuilder().build(nodes, threshold=0.5)
        assert result.ids == ["a", "broken", "b"]
        assert result.isolated_ids == ["broken"]
        assert edge_pairs(result) == {("a", "b")}

    def test_dimension_mismatch_isolated(self, node_factory) -> None:
        """Test embeddings with a different dimension than the first are excluded."""
        nodes = [
            node_factory("a", [1.0, 0.0]),
            node_factory("odd", [1.0, 0.0, 0.0]),
            node_factory("b", [1.0, 0.0]),
        ]
        result = SimilarityGraphBuilder().build(nodes, threshold=0.5)
        assert result.isolated_ids == ["odd"]
        assert edge_pairs(result) == {("a", "b")}

    def test_zero_vector_has_no_edges(self, node_factory) -> None:
        nodes = [node_factory("zero", [0.0, 0.0]), node_factory("a", [1.0, 0.0])]
        assert SimilarityGraphBuilder().build(nodes, threshold=0.0).edges == []

    def test_duplicate_ids_ignored(self, node_factory) -> None:
        nodes = [node_factory("a", [1.0, 0.0]), node_factory("a", [0.0, 1.0])]
        result = SimilarityGraphBuilder().build(nodes, threshold=0.5)
        assert result.ids == ["a"]

    def test_duplicates_do_not_use_cap_slots(self, node_factory) -> None:
        """Test the cap counts unique ids only."""
        nodes = [
            node_factory("a", [1.0, 0.0]),
            node_factory("a", [1.0, 0.0]),
            node_factory("b", [1.0, 0.0]),
            node_factory("c", [1.0, 0.0]),
        ]
        result = SimilarityGraphBuilder(SimilarityConfig(node_cap=3)).build(nodes, threshold=0.5)
        assert result.ids == ["a", "b", "c"]
        assert result.capped_ids == []

    def test_invalid_threshold(self, sample_nodes: list[MemoryNode]) -> None:
        with pytest.raises(ValueError):
            SimilarityGraphBuilder().build(sample_nodes, threshold=1.5)


class TestScoreRelevance:
    """Tests for relevance scoring against a focus query."""

    def test_scores_and_clamps(self, node_factory) -> None:
        nodes = [
            node_factory("same", [1.0, 0.0]),
            node_factory("opposite", [-1.0, 0.0]),
            node_factory("none", None),
            node_factory("wrong-dim", [1.0, 0.0, 0.0]),
        ]
        scored = score_relevance(nodes, [2.0, 0.0])
        assert scored == 2
        assert nodes[0].relevance == 1.0
        assert nodes[1].relevance == 0.0
        assert nodes[2].relevance is None
        assert nodes[3].relevance is None

    def test_clear(self, node_factory) -> None:
        nodes = [node_factory("a", [1.0, 0.0], relevance=0.8)]
        score_relevance(nodes, None)
        assert nodes[0].relevance is None
