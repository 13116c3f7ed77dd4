"""CLI entry point for contextkit."""

from __future__ import annotations

import json

import click


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.option("--log-level", default=None, help="Override observability.log_level")
@click.pass_context
def main(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """Order/Payment bounded-context toolkit."""
    from .core.config import load_settings
    from .observability.logger import setup_logging

    overrides: dict = {}
    if log_level:
        overrides["observability"] = {"log_level": log_level}
    settings = load_settings(config, overrides)
    setup_logging(
        settings.observability.log_level,
        settings.observability.log_format.value,
    )
    ctx.obj = settings


@main.command()
@click.pass_obj
def demo(settings) -> None:
    """Run the Order -> Payment -> Order flow and print the final state."""
    import asyncio

    from .app import run_demo

    result = asyncio.run(run_demo(settings))
    click.echo(json.dumps(result, indent=2, default=str))


@main.command("import-order")
@click.argument("file", type=click.File("r"))
@click.option("--submit", is_flag=True, help="Submit the imported order")
@click.pass_obj
def import_order(settings, file, submit: bool) -> None:
    """Import an external order from a JSON FILE."""
    import asyncio

    from .app import build_app, order_snapshot
    from .ordering.application.commands import ImportExternalOrder, SubmitOrder

    command = ImportExternalOrder.model_validate(json.load(file))

    async def _run() -> dict:
        app = build_app(settings)
        await app.start()
        try:
            result = await app.dispatcher.dispatch(command)
            output: dict = {"import": result.model_dump(mode="json")}
            if result.ok and submit:
                submitted = await app.dispatcher.dispatch(SubmitOrder(order_id=result.value))
                output["submit"] = submitted.model_dump(mode="json")
            if result.ok:
                output["order"] = await order_snapshot(app, result.value)
            return output
        finally:
            await app.stop()

    output = asyncio.run(_run())
    click.echo(json.dumps(output, indent=2, default=str))
    if not output["import"]["ok"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
