import asyncio
import json
from pathlib import Path

import typer
from pydantic_core import to_jsonable_python
from rich.console import Console
from rich.table import Table

from kotto import log
from kotto.config import settings
from kotto.errors import Internal
from kotto.runner import DEFAULT_FACTORY

app = typer.Typer(name="kotto", help="Let a language model drive your Python program.")
console = Console()


@app.command()
def build(
    source: Path = typer.Argument(..., help="Agent module (.py file) or package directory"),
    work_dir: Path = typer.Option(None, help="Directory to write the index to"),
) -> None:
    """Extract declarations from SOURCE and write the index."""
    from kotto.prompts import DeclarationBuilder, save_index

    console.print(f"[bold]Extracting declarations from {source}...[/bold]")
    index = DeclarationBuilder(source).build()
    path = save_index(index, work_dir)
    console.print(
        f"[green]Index created: {path}[/green]\n"
        f"  Declarations: {len(index.declarations)}, Files: {len(index.checksums)}"
    )


@app.command()
def show(
    source: Path = typer.Argument(..., help="Agent module (.py file) or package directory"),
    kind: str = typer.Option(None, help="Only show declarations of this kind: class, method or function"),
    index_dir: Path = typer.Option(None, help="Index directory (default: <source dir>/.kotto)"),
) -> None:
    """List the declarations the model can be shown."""
    from kotto.prompts import Prompts

    prompts = Prompts.load(index_dir) if index_dir else Prompts.for_source(source)
    if kind is None:
        declarations = prompts.index.declarations
    else:
        try:
            declarations = prompts.index.of_kind(kind)
        except ValueError:
            log.error(f"unknown declaration kind: {kind}")
            raise typer.Exit(2)

    table = Table(title="Declarations", border_style="dim", show_lines=False)
    table.add_column("Kind", style="dim", no_wrap=True)
    table.add_column("Id", style="bold cyan", no_wrap=True)
    table.add_column("Location", style="dim")
    for declaration in declarations:
        table.add_row(
            declaration.kind.value,
            declaration.id,
            f"{declaration.file_path}:{declaration.line_start}",
        )
    console.print(table)


@app.command()
def run(
    source: str = typer.Argument(..., help="Agent module: a .py file or a dotted module name"),
    factory: str = typer.Option(DEFAULT_FACTORY, help="Function in SOURCE that returns the agent"),
    options: str = typer.Option("{}", help="JSON object of keyword arguments for the factory"),
    no_exit: bool = typer.Option(False, "--no-exit", help="Do not offer builtins.exit to the model"),
    trace: bool = typer.Option(False, "--trace", help="Log every interaction with the model"),
    replay: Path = typer.Option(None, help="JSON list of canned model replies to use instead of a live model"),
    model: str = typer.Option(None, help="Model name, overriding models.yaml"),
    index_dir: Path = typer.Option(None, help="Index directory (default: <source dir>/.kotto)"),
) -> None:
    """Run the agent in SOURCE until it exits and print its output as JSON."""
    from kotto.llm import StaticModel
    from kotto.prompts import Prompts
    from kotto.runner import make_controller

    log.configure_logging("trace" if trace else settings.log_level)

    try:
        agent_options = json.loads(options)
    except json.JSONDecodeError as e:
        log.error(f"--options is not valid JSON: {e}")
        raise typer.Exit(2)
    if not isinstance(agent_options, dict):
        log.error("--options must be a JSON object")
        raise typer.Exit(2)

    try:
        controller = make_controller(
            source,
            prompts=Prompts.load(index_dir) if index_dir else None,
            llm=StaticModel.from_file(replay) if replay else None,
            options=agent_options,
            allow_exit=False if no_exit else None,
            factory=factory,
            model=model,
        )
        output = asyncio.run(controller.run_to_completion())
    except Internal as e:
        log.error(e.message)
        raise typer.Exit(1)

    console.print_json(data=to_jsonable_python(output, fallback=str))


@app.command()
def serve(
    source: str = typer.Argument(..., help="Agent module: a .py file or a dotted module name"),
    factory: str = typer.Option(DEFAULT_FACTORY, help="Function in SOURCE that returns the agent"),
    host: str = typer.Option("127.0.0.1", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
    no_exit: bool = typer.Option(False, "--no-exit", help="Do not offer builtins.exit to the model"),
    trace: bool = typer.Option(False, "--trace", help="Log every interaction with the model"),
    model: str = typer.Option(None, help="Model name, overriding models.yaml"),
) -> None:
    """Serve the agent in SOURCE over HTTP. The body of POST /run is passed to the factory."""
    import uvicorn

    from kotto.prompts import Prompts
    from kotto.runner import default_llm, import_source, load_agent, source_path
    from kotto.server import create_app

    log.configure_logging("trace" if trace else settings.log_level)

    module = import_source(source)
    fastapi_app = create_app(
        lambda payload: load_agent(module, factory, payload),
        Prompts.for_source(source_path(module)),
        lambda agent: default_llm(agent.agent_name, model),
        allow_exit=False if no_exit else None,
    )
    uvicorn.run(fastapi_app, host=host, port=port)


if __name__ == "__main__":
    app()
