"""Run the memory map headless and print layout metrics.

This script:
1. Loads the node batch from a JSON dump or from Neo4j
2. Builds the similarity graph at the given threshold
3. Runs the force-directed layout for N ticks
4. Prints layout metrics every K ticks and a summary of the final frame

Useful for tuning physics constants without a browser:
    python scripts/simulate_map.py --input nodes.json --ticks 600 --threshold 0.7
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Add src to path
sys.path.insert(0, str(project_root / "src"))

from auramap.config import settings
from auramap.graph.config import MapConfig
from auramap.models import MemoryNode, NodeKind
from auramap.runtime import SimulationContext
from auramap.storage.neo4j_client import Neo4jClient, records_to_nodes

logger = logging.getLogger("simulate_map")


def load_nodes_from_file(path: Path) -> list[MemoryNode]:
    """Load a JSON list of node records (store export format)."""
    with path.open(encoding="utf-8") as f:
        records = json.load(f)
    return records_to_nodes(records)


async def load_nodes_from_neo4j(character_id: str | None) -> list[MemoryNode]:
    """Fetch the node batch from Neo4j."""
    db = Neo4jClient()
    await db.connect()
    try:
        return await db.fetch_map_nodes(character_id)
    finally:
        await db.close()


def simulate(
    nodes: list[MemoryNode],
    ticks: int,
    report_every: int,
    threshold: float | None,
    kinds: list[NodeKind] | None,
) -> None:
    """Run the layout and print progress."""
    config = MapConfig.from_settings(settings)
    if threshold is not None:
        config.similarity.threshold = threshold

    with SimulationContext(nodes, config=config, kinds=kinds) as context:
        graph = context.graph
        print(f"Graph: {len(context.nodes)} nodes, {len(graph.edges) if graph else 0} edges")
        if graph and graph.isolated_ids:
            print(f"  {len(graph.isolated_ids)} nodes without usable embeddings")
        if graph and graph.capped_ids:
            print(f"  {len(graph.capped_ids)} nodes over the cap, not shown")

        draw = context.project()
        for tick in range(1, ticks + 1):
            draw = context.step()
            if tick % report_every == 0 or tick == ticks:
                m = context.metrics()
                print(
                    f"  tick {tick:5d}: energy={m.kinetic_energy:12.4f} "
                    f"strain={m.mean_strain:.3f} radius={m.bounding_radius:.1f}"
                )

        print(f"Final frame: {len(draw.nodes)} visible nodes, {len(draw.edges)} visible edges")
        dust = sum(1 for n in draw.nodes if n.dust)
        if dust:
            print(f"  {dust} dust nodes (low relevance)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the memory map layout headless")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="JSON file with node records")
    source.add_argument("--character-id", help="Load nodes for this character from Neo4j")
    parser.add_argument("--ticks", type=int, default=600)
    parser.add_argument("--report-every", type=int, default=60)
    parser.add_argument("--threshold", type=float, default=None)
    parser.add_argument(
        "--kinds",
        nargs="*",
        choices=[k.value for k in NodeKind],
        default=None,
        help="Only show these node kinds",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.input:
        nodes = load_nodes_from_file(args.input)
    else:
        nodes = asyncio.run(load_nodes_from_neo4j(args.character_id))

    kinds = [NodeKind(k) for k in args.kinds] if args.kinds is not None else None
    simulate(nodes, args.ticks, max(1, args.report_every), args.threshold, kinds)


if __name__ == "__main__":
    main()
