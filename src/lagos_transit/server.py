import argparse
import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from lagos_transit import __version__
from lagos_transit.app import mcp
from lagos_transit.data.config import get_config
from lagos_transit.data.database import get_db_path
from lagos_transit.data.dataset_loader import DatasetLoader
from lagos_transit.models.responses import TrafficSource

# Register tools on the shared MCP instance
from lagos_transit.tools import route_tools, stop_tools, traffic_tools  # noqa: F401


class HealthResponse(BaseModel):
    status: str = Field(description="'ok', or 'degraded' when no dataset is ingested")
    version: str
    timestamp: str
    dataset_ready: bool = Field(description="True when the transit database exists")
    traffic_source: TrafficSource = Field(description="Where traffic delays come from")


@mcp.tool()
def health() -> HealthResponse:
    """Check whether the Lagos Transit server can answer queries.

    Reports whether a dataset has been ingested and whether traffic delays
    come from Google Maps ("live") or the time-of-day estimate ("synthetic").
    """
    dataset_ready = get_db_path().is_file()
    live = get_config().live_traffic_enabled
    return HealthResponse(
        status="ok" if dataset_ready else "degraded",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        dataset_ready=dataset_ready,
        traffic_source=TrafficSource.LIVE if live else TrafficSource.SYNTHETIC,
    )


async def run_ingest(dataset_path: Path, db_path: Path) -> dict[str, int]:
    """Load a dataset directory into the SQLite file and report row counts."""
    row_counts = await DatasetLoader(db_path).ingest(dataset_path)

    print(f"\nIngested {dataset_path} into {db_path}:")
    for table, count in row_counts.items():
        print(f"  {table}: {count:,}")
    return row_counts


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lagos-transit",
        description="Lagos bus stop search and route planning over MCP. "
        "Runs the MCP server on stdio when no command is given.",
    )
    commands = parser.add_subparsers(dest="command")

    ingest = commands.add_parser(
        "ingest", help="Load bus-stops.json and routes.json into the transit database"
    )
    ingest.add_argument(
        "dataset_path", type=Path, help="Directory holding bus-stops.json and routes.json"
    )
    ingest.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Database file (default: $LAGOS_TRANSIT_DB_PATH or data/transit.db)",
    )
    ingest.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def main() -> None:
    args = _build_parser().parse_args()

    if args.command != "ingest":
        mcp.run()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_ingest(args.dataset_path, args.db or get_db_path()))


if __name__ == "__main__":
    main()
