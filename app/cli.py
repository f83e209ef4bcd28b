import json
from typing import Optional

import typer  # type: ignore
import uvicorn

from stringbank.analysis import analyze
from stringbank.exceptions import (
    ConflictingFiltersError,
    InvalidFilterError,
    UpstreamError,
)
from stringbank.query import build_interpreter, compile_filters
from stringbank.utils.config_loader import InterpretMode, load_settings
from stringbank.utils.logger import LoggerManager

app = typer.Typer(help="String analysis service: analyze strings, test filters, run the API.")

cli_logger = LoggerManager.get_logger(name="cli", use_json=True)


@app.command("analyze")
def analyze_value(
    value: str = typer.Argument(..., help="String to analyze."),
):
    """
    Prints the properties a stored record for VALUE would have.
    """
    properties = analyze(value)
    typer.echo(json.dumps(properties.model_dump(), indent=2, ensure_ascii=False))


@app.command()
def interpret(
    text: str = typer.Argument(..., help="Natural-language filter request."),
    mode: Optional[InterpretMode] = typer.Option(
        None, "--mode", help="Override the configured interpretation mode."
    ),
):
    """
    Shows how a natural-language request would be turned into filters.
    """
    settings = load_settings()
    if mode is not None:
        settings = settings.model_copy(update={"nl_mode": mode})

    try:
        interpreter = build_interpreter(settings)
        raw_filters = interpreter.interpret_checked(text)
        typed_filters = compile_filters(raw_filters)
    except ConflictingFiltersError as e:
        typer.echo(f"Conflicting filters: {e.message}", err=True)
        raise typer.Exit(code=2)
    except InvalidFilterError as e:
        typer.echo(f"{e.message}:", err=True)
        for detail in e.details:
            typer.echo(f"  - {detail}", err=True)
        raise typer.Exit(code=2)
    except UpstreamError as e:
        cli_logger.error("interpret.upstream_error", extra={"extra_data": {"error": e.message}})
        typer.echo(f"Upstream error: {e.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps({
        "original": text,
        "mode": interpreter.mode.value,
        "raw_filters": raw_filters,
        "parsed_filters": typed_filters.applied(),
    }, indent=2, ensure_ascii=False))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(3000, "--port", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
):
    """
    Runs the HTTP API with uvicorn.
    """
    cli_logger.info("serve.start", extra={"extra_data": {"host": host, "port": port}})
    uvicorn.run(
        "app.api.main:create_app", factory=True, host=host, port=port, reload=reload
    )


if __name__ == "__main__":
    app()
