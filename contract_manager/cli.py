"""Contract Manager CLI: deploy, inspect and edit the contract registry."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from typing import Any, Callable

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from contract_manager import __version__
from contract_manager.auth.models import Role
from contract_manager.config import Settings, configure_logging, load_settings
from contract_manager.registry.errors import RegistryError
from contract_manager.registry.events import EVENT_NAMES, Receipt

console = Console()


@dataclass
class CliState:
    settings: Settings
    caller: str


def registry_errors(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Report registry failures by their code and exit with status 1."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except RegistryError as exc:
            console.print(f"[red]{exc.code}[/]: {escape(str(exc))}")
            raise SystemExit(1)
        except ValueError as exc:
            console.print(f"[red]Invalid input[/]: {escape(str(exc))}")
            raise SystemExit(1)

    return wrapper


def _require_caller(state: CliState) -> str:
    if not state.caller:
        console.print(
            "[red]No caller address.[/] Pass --caller or set CONTRACT_MANAGER_CALLER."
        )
        raise SystemExit(1)
    return state.caller


def _open(state: CliState):
    from contract_manager.deploy import open_registry

    registry = open_registry(state.settings)
    click.get_current_context().call_on_close(registry.close)
    return registry


def _print_receipt(receipt: Receipt) -> None:
    if not receipt.events:
        console.print("[yellow]Nothing changed.[/]")
        return
    console.print(f"[green]Committed[/] {receipt.operation} (call {receipt.call_id})")
    for event in receipt.events:
        args = ", ".join(f"{k}={escape(str(v))}" for k, v in event.args().items())
        console.print(f"  [cyan]{event.name}[/] {args}")


def _load_batch_file(path: str) -> list[Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("contracts") or []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of contracts")
    return data


def _pairs_from_batch(items: list[Any]) -> tuple[list[str], list[str]]:
    addresses, descriptions = [], []
    for item in items:
        if not isinstance(item, dict) or "address" not in item:
            raise ValueError(f"Each entry needs an 'address': {item!r}")
        addresses.append(str(item["address"]))
        descriptions.append(str(item.get("description", "")))
    return addresses, descriptions


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to config.yaml")
@click.option("--network", "-n", default=None, help="Target network")
@click.option("--caller", "-c", default=None, help="Address the call is made from")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, network: str | None, caller: str | None):
    """Contract Manager: an authorized registry of contract addresses.

    Managers add, update and remove contract descriptions; admins set the
    batch loop limit and grant the manager role.
    """
    settings = load_settings(config_path, network=network)
    configure_logging(settings)
    ctx.obj = CliState(settings=settings, caller=caller or settings.default_caller)


# ── Deploy ───────────────────────────────────────────────────────────


@main.command()
@click.option("--initial", "-i", "initial_path", default=None, help="YAML file with initial contracts")
@click.option("--loop-limit", "-l", type=int, default=None, help="Maximum items per batch call")
@click.pass_obj
@registry_errors
def deploy(state: CliState, initial_path: str | None, loop_limit: int | None):
    """Deploy a new registry on the target network.

    The caller becomes administrator and manager.
    """
    from contract_manager.deploy import InitialData, deploy_registry, load_initial_data

    deployer = _require_caller(state)
    initial = load_initial_data(initial_path) if initial_path else InitialData()

    console.print(
        f"\n[bold blue]Contract Manager[/]: deploying to network "
        f"[cyan]{escape(state.settings.network)}[/]\n"
    )
    deployment = deploy_registry(state.settings, deployer, initial, loop_limit)
    click.get_current_context().call_on_close(deployment.registry.close)

    console.print(f"  Deployed at: {deployment.state_path}")
    console.print(f"  Loop limit:  {deployment.registry.loop_limit}")
    console.print(f"  Contracts:   {len(initial.addresses)}")


# ── Queries ──────────────────────────────────────────────────────────


@main.command()
@click.argument("address")
@click.pass_obj
@registry_errors
def show(state: CliState, address: str):
    """Show the registry entry for ADDRESS."""
    details = _open(state).contract_details(address)
    status = "[green]registered[/]" if details.exists else "[yellow]not registered[/]"
    body = f"Status: {status}\nDescription: {escape(details.description) or '-'}"
    console.print(Panel(body, title=address.lower()))


@main.command(name="loop-limit")
@click.pass_obj
@registry_errors
def show_loop_limit(state: CliState):
    """Print the current batch loop limit."""
    console.print(str(_open(state).loop_limit))


@main.command()
@click.argument("account")
@click.pass_obj
@registry_errors
def roles(state: CliState, account: str):
    """List the roles held by ACCOUNT."""
    registry = _open(state)
    held = [role for role in Role if registry.has_role(role, account)]
    if not held:
        console.print("[yellow]No roles.[/]")
        return
    for role in held:
        console.print(f"  [cyan]{role.value}[/] ({role.label})")


@main.command()
@click.option("--event", "-e", type=click.Choice(EVENT_NAMES), default=None, help="Filter by event name")
@click.option("--address", "-a", default=None, help="Filter by contract or account address")
@click.option("--limit", type=click.IntRange(min=1), default=200, help="Maximum number of events")
@click.option("--format", "fmt", type=click.Choice(["table", "json", "csv"]), default="table")
@click.pass_obj
def events(state: CliState, event: str | None, address: str | None, limit: int, fmt: str):
    """Show journaled registry notifications in commit order."""
    from contract_manager.deploy import open_journal

    journal = open_journal(state.settings)
    if fmt != "table":
        click.echo(journal.export_events(fmt, event=event, address=address, limit=limit))
        return

    entries = journal.get_events(event=event, address=address, limit=limit)
    if not entries:
        console.print("[yellow]No events.[/]")
        return

    table = Table(title=f"Events ({len(entries)})")
    table.add_column("Event", style="cyan")
    table.add_column("Operation")
    table.add_column("Arguments")
    for e in entries:
        table.add_row(e.event, e.operation, escape(json.dumps(e.args)))
    console.print(table)


# ── Entry mutations ──────────────────────────────────────────────────


@main.command()
@click.argument("address")
@click.argument("description")
@click.pass_obj
@registry_errors
def add(state: CliState, address: str, description: str):
    """Register contract ADDRESS with DESCRIPTION."""
    _print_receipt(_open(state).add_contract(_require_caller(state), address, description))


@main.command(name="add-batch")
@click.argument("batch_file")
@click.pass_obj
@registry_errors
def add_batch(state: CliState, batch_file: str):
    """Register every contract listed in BATCH_FILE (all or nothing)."""
    addresses, descriptions = _pairs_from_batch(_load_batch_file(batch_file))
    receipt = _open(state).add_contracts_in_batch(_require_caller(state), addresses, descriptions)
    _print_receipt(receipt)


@main.command()
@click.argument("address")
@click.argument("description")
@click.pass_obj
@registry_errors
def update(state: CliState, address: str, description: str):
    """Replace the description of registered contract ADDRESS."""
    receipt = _open(state).update_contract_description(
        _require_caller(state), address, description
    )
    _print_receipt(receipt)


@main.command(name="update-batch")
@click.argument("batch_file")
@click.pass_obj
@registry_errors
def update_batch(state: CliState, batch_file: str):
    """Replace the descriptions listed in BATCH_FILE (all or nothing)."""
    addresses, descriptions = _pairs_from_batch(_load_batch_file(batch_file))
    receipt = _open(state).update_contracts_descriptions_in_batch(
        _require_caller(state), addresses, descriptions
    )
    _print_receipt(receipt)


@main.command()
@click.argument("address")
@click.pass_obj
@registry_errors
def remove(state: CliState, address: str):
    """Remove contract ADDRESS from the registry."""
    _print_receipt(_open(state).remove_contract(_require_caller(state), address))


@main.command(name="remove-batch")
@click.argument("batch_file")
@click.pass_obj
@registry_errors
def remove_batch(state: CliState, batch_file: str):
    """Remove every contract listed in BATCH_FILE (all or nothing)."""
    addresses = [
        str(item["address"]) if isinstance(item, dict) else str(item)
        for item in _load_batch_file(batch_file)
    ]
    _print_receipt(_open(state).remove_contracts_in_batch(_require_caller(state), addresses))


# ── Administration ───────────────────────────────────────────────────


@main.command(name="set-loop-limit")
@click.argument("limit", type=click.IntRange(min=0))
@click.pass_obj
@registry_errors
def set_loop_limit(state: CliState, limit: int):
    """Set the maximum number of items one batch call may process."""
    _print_receipt(_open(state).set_loop_limit(_require_caller(state), limit))


@main.command(name="grant-manager")
@click.argument("account")
@click.pass_obj
@registry_errors
def grant_manager(state: CliState, account: str):
    """Grant the contract manager role to ACCOUNT."""
    _print_receipt(_open(state).grant_manager_role(_require_caller(state), account))


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=8000, type=int)
@click.pass_obj
@registry_errors
def serve(state: CliState, host: str, port: int):
    """Serve the registry over HTTP."""
    import uvicorn

    from contract_manager.api.app import create_app

    uvicorn.run(create_app(state.settings), host=host, port=port)


if __name__ == "__main__":
    main()
