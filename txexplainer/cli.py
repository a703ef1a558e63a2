"""Click CLI: explain, serve."""

from __future__ import annotations

import asyncio
import json
import sys

import click

from txexplainer.chain.registry import CHAINS, DEFAULT_CHAIN


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Txexplainer - plain-language explanations of Hedera and Sui transactions."""
    pass


@cli.command()
@click.argument("digest")
@click.option("--chain", default=DEFAULT_CHAIN, type=click.Choice(list(CHAINS)), help="Blockchain of the transaction")
@click.option("--no-ai", is_flag=True, help="Skip AI enhancement")
@click.option("--raw", is_flag=True, help="Also print the raw transaction payload")
@click.option("--json", "as_json", is_flag=True, help="Print the full response envelope as JSON")
def explain(digest: str, chain: str, no_ai: bool, raw: bool, as_json: bool):
    """Explain a single transaction by digest, transaction id or hash."""
    from txexplainer.errors import ExplainerError
    from txexplainer.models.schema import ExplainRequest
    from txexplainer.pipeline import configure_logging, explain_transaction

    configure_logging("WARNING")
    request = ExplainRequest(digest=digest, use_ai=not no_ai, blockchain=chain)
    try:
        response = asyncio.run(explain_transaction(request))
    except ExplainerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(response.to_wire(), indent=2))
        return

    explanation = response.explanation
    click.echo(explanation.summary)
    if explanation.timestamp_formatted:
        click.echo(f"\nTime: {explanation.timestamp_formatted}")
    click.echo(f"Fee: {explanation.total_gas_cost}")

    if explanation.actions:
        click.echo("\n--- Actions ---")
        for i, action in enumerate(explanation.actions, start=1):
            click.echo(f"{i}. [{action.type}] {action.description}")

    if explanation.balance_changes:
        click.echo("\n--- Balance Changes ---")
        for change in explanation.balance_changes:
            sign = "+" if change.change == "increase" else "-"
            click.echo(f"{sign} {change.explanation}")

    if explanation.ai_insights:
        click.echo("\n--- Insights ---")
        for insight in explanation.ai_insights:
            click.echo(f"  * {insight}")
    if explanation.ai_risks:
        click.echo("\n--- Risks ---")
        for risk in explanation.ai_risks:
            click.echo(f"  ! {risk}")

    click.echo(f"\nAI: {explanation.ai_status.value} - {explanation.ai_status_message}")

    if raw and response.raw_transaction is not None:
        click.echo("\n--- Raw Transaction ---")
        click.echo(json.dumps(response.raw_transaction, indent=2))


@cli.command()
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=8000)
def serve(host: str, port: int):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("txexplainer.api.app:app", host=host, port=port)


if __name__ == "__main__":
    cli()
