from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import json

import typer

from transit.analysis.timeout_context import TimeoutExceeded
from transit.config import TransitConfig, merge_payload, transit_defaults
from transit.exceptions import SourceUnitError
from transit.pipeline import TransitivityReport, build_transitivity_from_paths
from transit.types import render_type

app = typer.Typer(add_completion=False)

_EXIT_OK = 0
_EXIT_STALE = 1
_EXIT_INPUT_ERROR = 2


def resolve_config(
    *,
    root: Path,
    config: Optional[Path],
    construct_name: Optional[str] = None,
    trait_path: Optional[str] = None,
    header: Optional[str] = None,
    no_prelude: bool = False,
) -> TransitConfig:
    defaults = transit_defaults(root=root, config_path=config)
    payload: dict[str, object] = {
        "construct_name": construct_name,
        "trait_path": trait_path,
        "header": header,
        "prelude": [] if no_prelude else None,
    }
    return TransitConfig.from_table(merge_payload(payload, defaults))


def _run_pass(paths: List[Path], config: TransitConfig, language: Optional[str]) -> TransitivityReport:
    try:
        return build_transitivity_from_paths(paths, config=config, language_id=language)
    except SourceUnitError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=_EXIT_INPUT_ERROR) from exc
    except TimeoutExceeded as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=_EXIT_INPUT_ERROR) from exc


def _explain(report: TransitivityReport) -> None:
    for entry in report.dropped:
        typer.echo(f"dropped {entry}", err=True)
    for entry in report.exclusions:
        typer.echo(f"excluded {entry}", err=True)
        for route in entry.routes:
            hops = " -> ".join(render_type(hop) for hop in (entry.source, *route))
            typer.echo(f"  route {hops}", err=True)
    for warning in report.warnings:
        typer.echo(f"warning: {warning}", err=True)


@app.command("synth")
def synth(
    paths: List[Path] = typer.Argument(..., help="Rust sources or JSON declaration units."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write generated Rust here."),
    json_report: Optional[Path] = typer.Option(None, "--json-report", help="Write a JSON report."),
    construct_name: Optional[str] = typer.Option(None, "--construct-name"),
    trait_path: Optional[str] = typer.Option(None, "--trait-path"),
    header: Optional[str] = typer.Option(None, "--header"),
    no_prelude: bool = typer.Option(False, "--no-prelude"),
    language: Optional[str] = typer.Option(None, "--language", help="Force an input adapter."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    explain: bool = typer.Option(False, "--explain", help="Report dropped and excluded pairs."),
    check: bool = typer.Option(
        False,
        "--check",
        help="Exit 1 instead of writing when --output is out of date.",
    ),
) -> None:
    """Synthesize the conversions implied by composing declared ones."""
    if check and output is None:
        raise typer.BadParameter("requires --output", param_hint="--check")
    resolved = resolve_config(
        root=root,
        config=config,
        construct_name=construct_name,
        trait_path=trait_path,
        header=header,
        no_prelude=no_prelude,
    )
    report = _run_pass(paths, resolved, language)
    if explain:
        _explain(report)
    if json_report is not None:
        json_report.write_text(
            json.dumps(report.to_dto().model_dump(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    rendered = report.output
    if output is None:
        typer.echo(rendered, nl=False)
        raise typer.Exit(code=_EXIT_OK)
    if check:
        current = output.read_text(encoding="utf-8") if output.exists() else None
        if current != rendered:
            typer.echo(f"{output} is out of date", err=True)
            raise typer.Exit(code=_EXIT_STALE)
        raise typer.Exit(code=_EXIT_OK)
    output.write_text(rendered, encoding="utf-8")
    typer.echo(f"Wrote {len(report.edges)} conversion(s) to {output}")


@app.command("graph")
def graph(
    paths: List[Path] = typer.Argument(...),
    construct_name: Optional[str] = typer.Option(None, "--construct-name"),
    language: Optional[str] = typer.Option(None, "--language"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the defined types and direct conversion edges."""
    resolved = resolve_config(root=root, config=config, construct_name=construct_name)
    report = _run_pass(paths, resolved, language)
    typer.echo("Defined types:")
    for ref in report.defined:
        typer.echo(f"- {render_type(ref)}")
    typer.echo("Direct conversions:")
    for edge in report.graph.sorted_edges():
        typer.echo(f"- {edge}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
