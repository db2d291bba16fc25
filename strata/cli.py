"""Strata CLI entry point.

Provides an interactive chat loop plus commands for inspecting modes and
version information.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
import yaml
from typing_extensions import Annotated

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create CLI app
app = typer.Typer(
    name="strata",
    help="Strata - tiered conversational memory with model routing",
    add_completion=False,
)

EXIT_COMMANDS = {"/exit", "/quit"}


def _load_world_data(path: str) -> dict[str, Any]:
    world_path = Path(path).expanduser()
    if not world_path.exists():
        typer.echo(f"❌ World data file not found: {path}", err=True)
        raise typer.Exit(code=1)
    with world_path.open("r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        typer.echo("❌ World data must be a mapping", err=True)
        raise typer.Exit(code=1)
    return data


async def _chat_loop(app_instance: Any, session_id: str, world_data: dict[str, Any]) -> None:
    from strata.backends.base import BackendError
    from strata.plugins.registry import HookExecutionError

    await app_instance.start(world_data)
    typer.echo("Strata chat. Commands: /stats /history /clear /exit")

    try:
        while True:
            try:
                message = (await asyncio.to_thread(input, "You: ")).strip()
            except EOFError:
                break

            if not message:
                continue
            if message in EXIT_COMMANDS:
                break
            if message == "/stats":
                typer.echo(json.dumps(app_instance.stats(), indent=2))
                continue
            if message == "/history":
                await app_instance.engine.writer.drain()
                history = await app_instance.engine.get_session_history(session_id)
                typer.echo("\n---\n".join(history) if history else "(no history)")
                continue
            if message == "/clear":
                await app_instance.engine.clear_session(session_id)
                typer.echo("Session cleared from hot memory")
                continue

            try:
                result = await app_instance.chat(message, session_id)
            except (BackendError, HookExecutionError) as e:
                typer.echo(f"❌ Turn failed: {e}", err=True)
                continue

            typer.echo(f"[{result.model_name} | {result.metadata.complexity}] {result.response}")
    finally:
        await app_instance.stop()


@app.command()
def chat(
    mode: Annotated[
        str, typer.Option("--mode", "-m", help="Operational mode (lite|standard)")
    ] = "",
    config: Annotated[
        str, typer.Option("--config", "-c", help="Path to configuration file")
    ] = "",
    session: Annotated[str, typer.Option("--session", "-s", help="Session id")] = "default",
    world: Annotated[
        str, typer.Option("--world", "-w", help="YAML/JSON file with static world knowledge")
    ] = "",
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable verbose output")
    ] = False,
) -> None:
    """Start an interactive chat session.

    Examples:
        strata chat
        strata chat --mode standard --config strata.yaml --world world.yaml
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    from strata.config import get_config
    from strata.main import StrataApplication

    try:
        strata_config = get_config(config or None)
        if mode:
            strata_config.mode = mode
        app_instance = StrataApplication(strata_config)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1) from e

    world_data = _load_world_data(world) if world else {}
    asyncio.run(_chat_loop(app_instance, session, world_data))


@app.command()
def version() -> None:
    """Show Strata version information."""
    import importlib.metadata

    try:
        ver = importlib.metadata.version("strata")
    except importlib.metadata.PackageNotFoundError:
        ver = "unknown"
    typer.echo(f"Strata version: {ver}")


@app.command()
def info() -> None:
    """Show Strata system information."""
    typer.echo("Strata - tiered conversational memory with model routing")
    typer.echo("")
    typer.echo("Memory tiers:")
    typer.echo("  - hot: per-session recent exchanges (in process)")
    typer.echo("  - warm: semantic index over recent conversation")
    typer.echo("  - cold: semantic archive of memory-worthy exchanges")
    typer.echo("")
    typer.echo("Model tiers: fast, balanced, deep")
    typer.echo("Built-in plugins: cost-tracker, auto-summarizer, analytics")


@app.command()
def modes() -> None:
    """List available operational modes."""
    from strata.config import StrataConfig
    from strata.modes import get_mode, list_modes

    typer.echo("Available operational modes:")
    typer.echo("")

    config = StrataConfig()
    for mode_name in list_modes():
        mode_instance = get_mode(mode_name, config)
        mode_config = mode_instance.mode_config
        typer.echo(f"  {mode_name}:")
        typer.echo(f"    Description: {mode_config.description}")
        typer.echo(f"    Persistent: {'Yes' if mode_config.persistent else 'No'}")
        typer.echo(f"    Vector index: {mode_config.index_backend}")
        typer.echo(f"    Embeddings: {mode_config.embedding_backend}")
        typer.echo("")


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
