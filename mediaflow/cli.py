#!/usr/bin/env python3
"""Run a saved workflow from the command line.

Usage:
    mediaflow run workflow.json
    mediaflow run workflow.json --output result.json

The workflow file is a ``{"nodes": [...], "edges": [...]}`` document. Every
executable node is run against the generation API configured by
GENERATION_API_URL / GENERATION_API_KEY.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from mediaflow.collaborators.base import GenerationClient
from mediaflow.collaborators.http import HttpGenerationClient
from mediaflow.graph.store import GraphStore
from mediaflow.models.execution import RunAllResult
from mediaflow.models.workflow import WorkflowGraph
from mediaflow.services.scheduler import ExecutionScheduler

logger = logging.getLogger(__name__)


def load_workflow(path: Path) -> WorkflowGraph:
    """Read a workflow JSON document."""
    return WorkflowGraph.model_validate_json(path.read_text())


async def run_workflow(
    workflow: WorkflowGraph, client: GenerationClient
) -> tuple[RunAllResult, WorkflowGraph]:
    """Execute every node of ``workflow`` and return the resulting graph."""
    store = GraphStore()
    store.load(workflow.nodes, workflow.edges)
    scheduler = ExecutionScheduler(store, client)
    try:
        result = await scheduler.execute_all()
    finally:
        await client.close()
    return result, WorkflowGraph(nodes=store.nodes, edges=store.edges)


def cmd_run(args: argparse.Namespace) -> int:
    workflow_path = Path(args.workflow)
    if not workflow_path.exists():
        print(f"Error: {workflow_path} does not exist", file=sys.stderr)
        return 1

    try:
        workflow = load_workflow(workflow_path)
    except ValueError as e:
        print(f"Error: invalid workflow file: {e}", file=sys.stderr)
        return 1

    print(f"Running {len(workflow.nodes)} node(s) from {workflow_path}...")
    client = HttpGenerationClient(base_url=args.api_url, api_key=args.api_key)
    result, graph = asyncio.run(run_workflow(workflow, client))

    print(json.dumps(result.summary(), indent=2))

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(graph.model_dump_json(by_alias=True, indent=2))
        print(f"Wrote resulting workflow to {output_path}")

    return 0 if result.success else 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mediaflow",
        description="Run media generation workflows",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute every node in a workflow")
    run_parser.add_argument("workflow", help="Path to a workflow JSON file")
    run_parser.add_argument(
        "--output", "-o", help="Write the resulting workflow JSON to this path"
    )
    run_parser.add_argument(
        "--api-url", default=None, help="Generation API base URL (default: $GENERATION_API_URL)"
    )
    run_parser.add_argument(
        "--api-key", default=None, help="Generation API key (default: $GENERATION_API_KEY)"
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
