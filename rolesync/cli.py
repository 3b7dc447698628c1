"""rolesync CLI — reconcile RBAC roles against a local role store."""

import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from rolesync import __version__
from rolesync.config import DEFAULT_AUDIT_DIR, DEFAULT_CONFLICT_RETRIES, DEFAULT_STORE_DIR
from rolesync.errors import RoleSyncError

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """rolesync — converge persisted RBAC roles toward their desired rules.

    Reads desired roles from YAML, compares them with what the store holds,
    and (with --confirm) creates or updates roles so they grant at least
    the desired permissions.
    """
    _configure_logging(verbose)


# ── Reconcile ────────────────────────────────────────────────────────


@main.command()
@click.argument("role_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--store-dir", "-s", default=str(DEFAULT_STORE_DIR), help="Role store directory")
@click.option("--audit-dir", default=str(DEFAULT_AUDIT_DIR), help="Audit log directory")
@click.option("--confirm", is_flag=True, help="Perform writes (default is a dry run)")
@click.option(
    "--remove-extra-permissions",
    is_flag=True,
    help="Replace rules exactly instead of only adding missing ones",
)
@click.option(
    "--conflict-retries",
    default=DEFAULT_CONFLICT_RETRIES,
    show_default=True,
    type=click.IntRange(min=1),
    help="Attempts per role when the stored role changes underneath us",
)
def reconcile(
    role_file: str,
    store_dir: str,
    audit_dir: str,
    confirm: bool,
    remove_extra_permissions: bool,
    conflict_retries: int,
):
    """Reconcile every role in ROLE_FILE against the store.

    Each role is reconciled independently; a failure on one role does not
    stop the others, but makes the command exit non-zero.
    """
    from rolesync.audit import AuditLogger
    from rolesync.loader import load_roles
    from rolesync.reconciliation import ReconcileRoleOptions, retry_on_conflict
    from rolesync.store.local_store import LocalRoleStore

    mode = "" if confirm else " [yellow](dry run)[/]"
    console.print(f"\n[bold blue]rolesync[/] — Reconciling: {role_file}{mode}\n")

    try:
        roles = load_roles(role_file)
    except RoleSyncError as e:
        console.print(f"  [red]Failed to load roles:[/] {e}")
        raise SystemExit(1)

    store = LocalRoleStore(store_dir)
    audit = AuditLogger(audit_dir) if confirm else None

    table = Table(title=f"Reconcile Results ({len(roles)} roles)")
    table.add_column("Role", style="cyan")
    table.add_column("Operation")
    table.add_column("Missing", justify="right")
    table.add_column("Extra", justify="right")
    table.add_column("Protected", justify="center")

    failed = 0
    changes = []
    for role in roles:
        options = ReconcileRoleOptions(
            role=role,
            client=store,
            confirm=confirm,
            remove_extra_permissions=remove_extra_permissions,
        )
        try:
            result = retry_on_conflict(options.run, attempts=conflict_retries)
        except RoleSyncError as e:
            failed += 1
            table.add_row(role.name, "[red]error[/]", "-", "-", "-")
            console.print(f"  [red]x[/] {role.name}: {e}")
            continue

        if audit is not None and result.needs_write:
            audit.record(result, actor=os.environ.get("USER", ""))

        table.add_row(
            role.name,
            _operation_label(result.operation.value, result.needs_write, confirm),
            str(len(result.missing_rules)),
            str(len(result.extra_rules)),
            "[yellow]Y[/]" if result.protected else "",
        )
        if result.missing_rules or result.extra_rules:
            changes.append(result)

    console.print(table)

    for result in changes:
        console.print(f"\n  [bold]{result.summary()}[/]")
        for rule in result.missing_rules:
            console.print(f"    [green]+[/] {rule.describe()}")
        extra_marker = "[red]-[/]" if remove_extra_permissions else "[dim]=[/]"
        for rule in result.extra_rules:
            console.print(f"    {extra_marker} {rule.describe()}")

    if failed:
        console.print(f"\n[red]FAIL[/] ({failed} of {len(roles)} roles could not be reconciled)")
        raise SystemExit(1)


def _operation_label(operation: str, needs_write: bool, confirm: bool) -> str:
    if operation == "none":
        return "[green]none[/]"
    if needs_write and not confirm:
        return f"[yellow]{operation} (pending)[/]"
    if not needs_write:
        return f"[dim]{operation} (skipped)[/]"
    return f"[bold]{operation}[/]"


# ── Store ────────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.option("--store-dir", "-s", default=str(DEFAULT_STORE_DIR), help="Role store directory")
def get(name: str, store_dir: str):
    """Print a stored role as YAML."""
    from rolesync.loader import dump_role
    from rolesync.store.local_store import LocalRoleStore

    try:
        role = LocalRoleStore(store_dir).get(name)
    except RoleSyncError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    click.echo(dump_role(role), nl=False)


@main.command(name="list")
@click.option("--store-dir", "-s", default=str(DEFAULT_STORE_DIR), help="Role store directory")
def list_roles(store_dir: str):
    """List all roles in the store."""
    from rolesync.store.local_store import LocalRoleStore

    try:
        roles = LocalRoleStore(store_dir).list_roles()
    except RoleSyncError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    if not roles:
        console.print("[yellow]Store is empty.[/]")
        return

    table = Table(title=f"Roles ({len(roles)})")
    table.add_column("Name", style="cyan")
    table.add_column("Version", justify="right")
    table.add_column("Rules", justify="right")
    table.add_column("Protected", justify="center")

    for role in roles:
        protected = "[yellow]Y[/]" if role.protected else ""
        table.add_row(role.name, role.resource_version, str(len(role.rules)), protected)

    console.print(table)


if __name__ == "__main__":
    main()
