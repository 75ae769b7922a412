"""Example: export a Neptune/SPARQL store to local RDF files.

用法::

    python examples/export_dataset.py --endpoint neptune-1.example.com --output ./out
    python examples/export_dataset.py --scope graph --named-graph http://example.com/g1 --format ntriples
    python examples/export_dataset.py --scope query --query "SELECT ?s ?p ?o WHERE { ?s ?p ?o } LIMIT 10"
"""
from __future__ import annotations

import argparse
import asyncio

from sf_rdf_export import ExportError, RdfFormat, ScopeSelection, create_job
from sf_rdf_export.common.config import ConfigManager, Settings
from sf_rdf_export.common.logging import LoggerFactory


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export RDF from a SPARQL endpoint")
    parser.add_argument("--config", help="YAML config path (defaults to $SF_RDF_EXPORT_CONFIG)")
    parser.add_argument("--endpoint", action="append", default=[], help="endpoint host or URL, repeatable")
    parser.add_argument("--scope", default="graph", choices=["graph", "edges", "query"])
    parser.add_argument("--named-graph", action="append", default=[], dest="named_graphs")
    parser.add_argument("--query")
    parser.add_argument("--format", choices=[item.value for item in RdfFormat])
    parser.add_argument("--feature-toggle", action="append", default=None, dest="feature_toggles")
    parser.add_argument("--output", help="output directory (overrides export.output_dir)")
    parser.add_argument("--log-level", default=None, choices=["trace", "debug", "info", "warn", "error"])
    return parser.parse_args()


def build_settings(args: argparse.Namespace) -> Settings:
    settings = ConfigManager.load(override_path=args.config).settings
    updates: dict = {}
    if args.output:
        updates["output_dir"] = args.output
    if args.format:
        updates["format"] = RdfFormat(args.format)
    if args.feature_toggles is not None:
        updates["feature_toggles"] = args.feature_toggles
    export = settings.export.model_copy(update=updates)
    rdf = settings.rdf
    if args.endpoint:
        rdf = rdf.model_copy(update={"endpoints": args.endpoint})
    return settings.model_copy(update={"export": export, "rdf": rdf})


async def main() -> int:
    args = parse_args()
    settings = build_settings(args)
    if args.log_level:
        LoggerFactory.configure(args.log_level)

    selection = ScopeSelection(scope=args.scope, named_graphs=args.named_graphs, query=args.query)
    try:
        job = create_job(selection, settings=settings)
        report = await job.run()
    except ExportError as exc:
        print(f"Export failed: {exc}")
        return 1

    print(f"Exported {report.units} unit(s), {report.bytes_written} bytes in {report.duration_ms:.1f}ms")
    for unit, outcome in report.outcomes:
        print(f"  {unit.describe()}: {outcome.strategy} via {outcome.endpoint}, {outcome.bytes_written} bytes")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
