"""Unit tests for data models."""

from datetime import datetime, timezone

from auramap.models import MemoryNode, NodeKind, parse_datetime, parse_embedding


class TestParseEmbedding:
    """Tests for embedding parsing."""

    def test_list(self) -> None:
        """Test plain list input."""
        assert parse_embedding([1, 2.5, -3]) == [1.0, 2.5, -3.0]

    def test_json_string(self) -> None:
        """Test JSON-encoded input as stored by the chat backend."""
        assert parse_embedding("[0.5, 0.25]") == [0.5, 0.25]

    def test_invalid_json(self) -> None:
        """Test unparsable string yields None instead of raising."""
        assert parse_embedding("[0.5, 0.25") is None
        assert parse_embedding("hello") is None

    def test_non_numeric_components(self) -> None:
        """Test lists with non-numbers are rejected."""
        assert parse_embedding(["a", 1.0]) is None
        assert parse_embedding([True, 1.0]) is None
        assert parse_embedding([None]) is None

    def test_non_finite_components(self) -> None:
        """Test NaN and infinity are rejected."""
        assert parse_embedding([float("nan"), 1.0]) is None
        assert parse_embedding([float("inf")]) is None

    def test_empty_and_missing(self) -> None:
        """Test empty and missing embeddings."""
        assert parse_embedding(None) is None
        assert parse_embedding([]) is None
        assert parse_embedding("[]") is None
        assert parse_embedding({"x": 1}) is None


class TestParseDatetime:
    """Tests for datetime parsing."""

    def test_zulu_suffix(self) -> None:
        """Test ISO strings with a Z suffix."""
        parsed = parse_datetime("2024-05-01T10:00:00Z")
        assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_native_passthrough(self) -> None:
        """Test native datetimes are returned unchanged."""
        now = datetime(2024, 1, 1)
        assert parse_datetime(now) is now

    def test_none(self) -> None:
        assert parse_datetime(None) is None


class TestNodeKind:
    """Tests for NodeKind parsing."""

    def test_known(self) -> None:
        assert NodeKind.parse("dream") == NodeKind.DREAM
        assert NodeKind.parse("THOUGHT") == NodeKind.THOUGHT

    def test_unknown_falls_back(self) -> None:
        assert NodeKind.parse("feeling") == NodeKind.MEMORY


class TestMemoryNode:
    """Tests for MemoryNode."""

    def test_from_dict_store_record(self, sample_records: list[dict]) -> None:
        """Test creation from a Neo4j record."""
        node = MemoryNode.from_dict(sample_records[1])
        assert node.id == "d-1"
        assert node.kind == NodeKind.DREAM
        assert node.text == "Um corredor sem fim"
        assert node.embedding == [0.1, 0.2, 0.31]
        assert node.has_embedding

    def test_from_dict_malformed_embedding_kept(self, sample_records: list[dict]) -> None:
        """Test a malformed embedding leaves the node displayable."""
        node = MemoryNode.from_dict(sample_records[2])
        assert node.id == "t-1"
        assert node.embedding is None
        assert not node.has_embedding
        assert isinstance(node.created_at, datetime)

    def test_from_dict_alternate_keys(self) -> None:
        """Test kind/text keys and relevance clamping."""
        node = MemoryNode.from_dict(
            {"id": 7, "kind": "interaction", "text": "oi", "relevance": 1.7}
        )
        assert node.id == "7"
        assert node.kind == NodeKind.INTERACTION
        assert node.text == "oi"
        assert node.relevance == 1.0

    def test_to_dict(self) -> None:
        """Test serialization omits the embedding."""
        node = MemoryNode(
            id="x",
            kind=NodeKind.THOUGHT,
            text="hmm",
            embedding=[1.0],
            created_at=datetime(2024, 1, 1),
        )
        data = node.to_dict()
        assert data == {
            "id": "x",
            "kind": "thought",
            "text": "hmm",
            "relevance": None,
            "created_at": "2024-01-01T00:00:00",
        }
