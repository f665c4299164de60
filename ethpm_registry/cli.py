"""ethpm-registry CLI — publish, transfer and inspect EthPM package releases."""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from ethpm_registry import __version__
from ethpm_registry.config import RegistrySettings
from ethpm_registry.registry.errors import RegistryError

console = Console()


def _service(ctx: click.Context):
    from ethpm_registry.registry.service import RegistryService

    return RegistryService.from_settings(ctx.obj["settings"])


def _fail(error: RegistryError):
    console.print(f"  [red]x[/] [{error.code}] {error.message}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--registry-dir", "-r", default=None, help="Registry directory (env: ETHPM_REGISTRY_DIR)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, registry_dir: str | None, verbose: bool):
    """ethpm-registry — an append-only registry of EthPM packages.

    The first account to publish a package name owns it. Only the owner
    may publish further versions or transfer the name.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = RegistrySettings.from_env(registry_dir=registry_dir)


# ── Mutations ────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.argument("version")
@click.argument("manifest_uri")
@click.option("--caller", "-c", required=True, help="Account publishing the release")
@click.pass_context
def publish(ctx: click.Context, name: str, version: str, manifest_uri: str, caller: str):
    """Publish MANIFEST_URI as release NAME@VERSION."""
    try:
        release = _service(ctx).publish(name, version, manifest_uri, caller)
    except RegistryError as e:
        _fail(e)
    console.print(f"  [green]v[/] Published: [cyan]{release.qualified_id}[/] -> {release.manifest_uri}")


@main.command()
@click.argument("name")
@click.argument("new_owner")
@click.option("--caller", "-c", required=True, help="Current owner of the package")
@click.pass_context
def transfer(ctx: click.Context, name: str, new_owner: str, caller: str):
    """Transfer ownership of NAME to NEW_OWNER."""
    try:
        previous = _service(ctx).transfer_ownership(name, new_owner, caller)
    except RegistryError as e:
        _fail(e)
    console.print(f"  [green]v[/] [cyan]{name}[/]: {previous} -> {new_owner}")


# ── Queries ──────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.argument("version")
@click.pass_context
def uri(ctx: click.Context, name: str, version: str):
    """Print the manifest URI of NAME@VERSION."""
    try:
        click.echo(_service(ctx).get_package_uri(name, version))
    except RegistryError as e:
        _fail(e)


@main.command()
@click.argument("name")
@click.argument("version")
@click.pass_context
def exists(ctx: click.Context, name: str, version: str):
    """Exit 0 if NAME@VERSION is published, 1 otherwise."""
    found = _service(ctx).package_exists(name, version)
    click.echo("yes" if found else "no")
    sys.exit(0 if found else 1)


@main.command()
@click.argument("name")
@click.pass_context
def versions(ctx: click.Context, name: str):
    """List versions of NAME in publish order."""
    found = _service(ctx).get_versions(name)
    if not found:
        console.print(f"[yellow]No versions published for '{name}'.[/]")
        return
    for v in found:
        click.echo(v)


@main.command()
@click.argument("name")
@click.pass_context
def owner(ctx: click.Context, name: str):
    """Print the owner of NAME."""
    current = _service(ctx).get_owner(name)
    if current is None:
        console.print(f"[yellow]'{name}' has no owner (never published).[/]")
        return
    click.echo(current)


@main.command(name="packages")
@click.pass_context
def list_packages(ctx: click.Context):
    """List every package in the registry."""
    service = _service(ctx)
    names = service.list_packages()

    if not names:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(names)} packages)")
    table.add_column("Name", style="cyan")
    table.add_column("Owner")
    table.add_column("Versions", justify="right")
    table.add_column("Latest")

    for name in names:
        record = service.get_package(name)
        table.add_row(name, record.owner, str(len(record.versions)), record.latest_version or "")

    console.print(table)


# ── Validation ───────────────────────────────────────────────────────


@main.command(name="check-name")
@click.argument("kind", type=click.Choice(["package", "contract", "alias"]))
@click.argument("value")
def check_name(kind: str, value: str):
    """Check VALUE against the package, contract-name or alias rules."""
    from ethpm_registry.standard import naming

    predicate = {
        "package": naming.is_valid_package_name,
        "contract": naming.is_valid_contract_name,
        "alias": naming.is_valid_contract_alias,
    }[kind]

    if predicate(value):
        console.print(f"  [green]v[/] {value!r} is a valid {kind} name")
    else:
        console.print(f"  [red]x[/] {value!r} is not a valid {kind} name")
        sys.exit(1)


@main.command()
@click.argument("manifest_path")
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
def validate(manifest_path: str, strict: bool):
    """Validate the names and version tag of an EthPM v3 manifest."""
    import yaml

    from ethpm_registry.standard.manifest_validator import load_manifest, validate_manifest

    console.print(f"\n[bold blue]ethpm-registry[/] — Validating: {manifest_path}\n")

    try:
        data = load_manifest(manifest_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"  [red]Failed to parse:[/] {e}")
        sys.exit(1)

    result = validate_manifest(data)
    for issue in result.errors:
        console.print(f"  [red]x[/] [{issue.code}] {issue.message}")
    for w in result.warnings:
        console.print(f"  [yellow]![/] [{w.code}] {w.message}")

    if not result.passed:
        console.print(f"\n[red]{result.summary()}[/]")
        sys.exit(1)
    if strict and result.warnings:
        console.print("\n[red]FAIL[/] (strict mode: warnings treated as errors)")
        sys.exit(1)
    console.print("\n[green]Valid![/]")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--package", "-p", default=None, help="Only entries for this package")
@click.option("--action", "-a", default=None, help="e.g. package.published")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.option("--limit", default=200, show_default=True)
@click.pass_context
def audit(ctx: click.Context, package: str | None, action: str | None, fmt: str, limit: int):
    """Export the registry audit journal."""
    from ethpm_registry.audit.audit_log import AuditLogger

    settings = ctx.obj["settings"]
    if not settings.audit_enabled:
        console.print("[yellow]Audit journal is disabled (ETHPM_AUDIT_ENABLED).[/]")
        return

    journal = AuditLogger(settings.resolved_audit_dir)
    click.echo(journal.export_events(fmt, package=package, action=action, limit=limit))


if __name__ == "__main__":
    main()
