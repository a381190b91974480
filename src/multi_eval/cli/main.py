"""CLI entrypoint for multi-eval — typer app with serve, run and models commands."""

import asyncio
import sys
import time
from pathlib import Path

import structlog
import typer
import uvicorn

from multi_eval.api.app import create_app
from multi_eval.cli.output.summary import print_run
from multi_eval.config.domain.config import EngineConfig
from multi_eval.config.infrastructure.observer import StructlogConfigObserver
from multi_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from multi_eval.core.errors import MultiEvalError
from multi_eval.dispatch.domain.observer import DispatchObserver
from multi_eval.dispatch.infrastructure.composite_observer import (
    CompositeDispatchObserver,
)
from multi_eval.dispatch.infrastructure.observer import StructlogDispatchObserver
from multi_eval.dispatch.infrastructure.progress_observer import (
    ProgressDispatchObserver,
)
from multi_eval.ledger.domain.run import Run
from multi_eval.playground.application.playground import Playground
from multi_eval.playground.infrastructure.engine import Engine

app = typer.Typer(add_completion=False)

_CLI_SESSION = "cli"


def configure_logging(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _load_config(config_path: Path) -> EngineConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    try:
        return loader.load(path=config_path)
    except MultiEvalError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _format_elapsed(elapsed_seconds: float) -> str:
    """Format elapsed seconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{elapsed_seconds:.1f}s"


async def _run_pipeline(
    playground: Playground,
    config: EngineConfig,
    prompt: str,
    models: list[str],
    judges: list[str],
    evaluator: str | None,
    orchestrator: str | None,
    instruction: str | None,
) -> Run:
    """Run the mode implied by the options, then optionally synthesize."""
    generation = config.generation
    if judges:
        return await playground.multi_judge(
            primary_model_ids=models,
            judge_model_ids=judges,
            prompt=prompt,
            config=generation,
        )
    if evaluator is not None:
        return await playground.single_judge(
            primary_model_ids=models,
            evaluator_model_id=evaluator,
            prompt=prompt,
            config=generation,
        )

    run = await playground.compare(model_ids=models, prompt=prompt, config=generation)
    if orchestrator is None or run.cancelled:
        return run
    return await playground.orchestrate(
        orchestrator_model_id=orchestrator,
        config=generation,
        instruction=instruction,
        run_id=run.id,
    )


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to engine config YAML"),
    prompt: str = typer.Argument(..., help="Prompt sent to every model"),
    models: list[str] = typer.Option(
        ..., "--model", "-m", help="Primary model id (repeatable)"
    ),
    judges: list[str] = typer.Option(
        [], "--judge", "-j", help="Multi-judge model id (repeatable)"
    ),
    evaluator: str | None = typer.Option(
        None, "--evaluator", "-e", help="Single-judge evaluator model id"
    ),
    orchestrator: str | None = typer.Option(
        None, "--orchestrator", help="Model that synthesizes a final answer"
    ),
    instruction: str | None = typer.Option(
        None, "--instruction", help="Synthesis instruction for the orchestrator"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the run as JSON to this path"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Run one prompt through the engine and print a summary."""
    try:
        configure_logging(log_format=log_format)
        if judges and evaluator is not None:
            typer.echo("Choose either --judge or --evaluator, not both.")
            raise typer.Exit(code=1)
        if orchestrator is not None and (judges or evaluator is not None):
            typer.echo("--orchestrator applies to compare runs only.")
            raise typer.Exit(code=1)

        config = _load_config(config_path=config_path)
        observers: list[DispatchObserver] = [StructlogDispatchObserver()]
        if log_format != "json":
            observers.append(ProgressDispatchObserver())
        engine = Engine.from_config(
            config=config,
            dispatch_observer=CompositeDispatchObserver(observers=observers),
        )

        started_at = time.monotonic()
        result = asyncio.run(
            _run_pipeline(
                playground=engine.playground(session_id=_CLI_SESSION),
                config=config,
                prompt=prompt,
                models=models,
                judges=judges,
                evaluator=evaluator,
                orchestrator=orchestrator,
                instruction=instruction,
            )
        )
        elapsed_seconds = time.monotonic() - started_at

        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(
                result.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
            )

        print_run(
            run=result, elapsed=_format_elapsed(elapsed_seconds=elapsed_seconds)
        )
        if output is not None:
            typer.echo(f"Run written to {output}")

    except KeyboardInterrupt:
        typer.echo("Run interrupted.")
        sys.exit(1)
    except MultiEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)


@app.command()
def serve(
    config_path: Path = typer.Argument(..., help="Path to engine config YAML"),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Serve the HTTP API for the configured models."""
    configure_logging(log_format=log_format)
    config = _load_config(config_path=config_path)
    try:
        engine = Engine.from_config(config=config)
    except MultiEvalError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc
    uvicorn.run(create_app(engine=engine), host=host, port=port)


@app.command()
def models(
    config_path: Path = typer.Argument(..., help="Path to engine config YAML"),
) -> None:
    """List the models the config registers."""
    configure_logging(log_format="console")
    config = _load_config(config_path=config_path)
    try:
        catalog = Engine.from_config(config=config).catalog()
    except MultiEvalError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    width = max(len(entry.id) for entry in catalog)
    for entry in catalog:
        typer.echo(
            f"{entry.id:<{width}}  {entry.display_name}  ({entry.provider})"
        )


if __name__ == "__main__":
    app()
