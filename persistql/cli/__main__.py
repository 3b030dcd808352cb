"""PersistQL CLI - Main Entry Point.

The `persistql` command builds and inspects persisted-query manifests
outside a host build tool.

Commands:
    build    - Build a manifest from .graphql files
    inspect  - List (and verify) the operations of a manifest
    diff     - Compare two manifests
    hash     - Print the operation id of a query string
"""

import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, NoReturn, Optional

import click

from .. import __version__
from ..aggregator import QueryContribution
from ..build import BuildPass
from ..config import ConfigLoader
from ..faults import Fault, FilesystemFault
from ..hashing import OperationHasher
from ..manifest import Manifest, module_source
from ..normalizer import DocumentNormalizer
from ..plugin import PersistedQueryPlugin
from . import __cli_name__
from .utils.colors import (
    _CHECK,
    _CROSS,
    bold,
    dim,
    error,
    info,
    kv,
    section,
    success,
    warning,
)

GRAPHQL_SUFFIXES = (".graphql", ".gql")
DEFAULT_MODULE_NAME = "persisted_queries.json"


def discover_documents(paths: Iterable[Path]) -> List[Path]:
    """Expand *paths* into the GraphQL files they name or contain, sorted per directory."""
    found: List[Path] = []
    for path in paths:
        if path.is_dir():
            found.extend(
                sorted(p for p in path.rglob("*") if p.is_file() and p.suffix in GRAPHQL_SUFFIXES)
            )
        else:
            found.append(path)
    return found


def _read_manifest(path: Path) -> Manifest:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemFault("read", str(path), str(exc)) from exc
    return Manifest.from_json(text)


def _first_line(operation: str) -> str:
    return operation.splitlines()[0] if operation else ""


def _fail(fault: Fault) -> NoReturn:
    error(f"{_CROSS} {fault}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose: bool):
    """Persisted-query manifests for GraphQL operations."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# build
# ============================================================================

@cli.command('build')
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Write to file instead of stdout')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True), help='JSON config file')
@click.option('--add-typename', is_flag=True, help='Inject __typename selections')
@click.option('--module-source', 'as_module', is_flag=True, help='Emit the module.exports wrapper instead of JSON')
def build(
    paths: tuple,
    output: Optional[Path],
    config_path: Optional[str],
    add_typename: bool,
    as_module: bool,
):
    """
    Build a manifest from .graphql / .gql files.

    Examples:
      persistql build queries/
      persistql build queries/ fragments.graphql -o persisted_queries.json
      persistql build queries/ --add-typename --module-source
    """
    try:
        config = ConfigLoader.load(
            config_path,
            defaults={'module_name': DEFAULT_MODULE_NAME},
            overrides={'add_typename': add_typename or None},
        )
        plugin = PersistedQueryPlugin(config)

        build_pass = BuildPass(name="cli", context=str(Path.cwd()))
        for document in discover_documents(paths):
            build_pass.add_module(str(document), QueryContribution.from_file(document))

        manifest = plugin.process(build_pass)
    except Fault as fault:
        _fail(fault)

    text = manifest.to_json()
    if as_module:
        text = module_source(text)

    if output is None:
        click.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    success(f"{_CHECK} {len(manifest)} operation(s) from {len(build_pass.modules)} file(s) → {output}")


# ============================================================================
# inspect
# ============================================================================

@cli.command('inspect')
@click.argument('manifest_path', type=click.Path(exists=True, path_type=Path))
@click.option('--verify', is_flag=True, help='Re-hash every operation')
@click.option('--algorithm', default='sha1', show_default=True, help='Hash algorithm used for --verify')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
def inspect(manifest_path: Path, verify: bool, algorithm: str, json_output: bool):
    """
    List the operations of a manifest.

    Examples:
      persistql inspect persisted_queries.json
      persistql inspect persisted_queries.json --verify
    """
    try:
        manifest = _read_manifest(manifest_path)
        mismatched = manifest.verify(OperationHasher(algorithm)) if verify else []
    except Fault as fault:
        _fail(fault)

    if json_output:
        data = [
            {"id": digest, "operation": operation, "valid": operation not in mismatched}
            for operation, digest in manifest.items()
        ]
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(click.style(f"{'ID':<42} OPERATION", fg="cyan"))
        for operation, digest in manifest.items():
            marker = click.style(f" {_CROSS}", fg="red") if operation in mismatched else ""
            click.echo(f"{digest:<42} {_first_line(operation)}{marker}")
        click.echo()
        kv("Operations", str(len(manifest)))

    if verify:
        if mismatched:
            error(f"{_CROSS} {len(mismatched)} operation id(s) do not match their text")
            sys.exit(1)
        if not json_output:
            success(f"{_CHECK} all operation ids verified")


# ============================================================================
# diff
# ============================================================================

@cli.command('diff')
@click.argument('old_path', type=click.Path(exists=True, path_type=Path))
@click.argument('new_path', type=click.Path(exists=True, path_type=Path))
def diff(old_path: Path, new_path: Path):
    """
    Compare two manifests. Exits 1 when they differ.

    Examples:
      persistql diff build/old.json build/new.json
    """
    try:
        changes = _read_manifest(old_path).diff(_read_manifest(new_path))
    except Fault as fault:
        _fail(fault)

    if not changes.changed:
        success(f"{_CHECK} manifests are identical")
        return

    if changes.added:
        section("Added")
        for operation in changes.added:
            click.echo(click.style(f"+ {_first_line(operation)}", fg="green"))
    if changes.removed:
        section("Removed")
        for operation in changes.removed:
            click.echo(click.style(f"- {_first_line(operation)}", fg="red"))

    click.echo()
    warning(f"{changes.summary()} operation(s)")
    sys.exit(1)


# ============================================================================
# hash
# ============================================================================

@cli.command('hash')
@click.argument('text')
@click.option('--normalize', is_flag=True, help='Normalize the text as GraphQL first')
@click.option('--algorithm', default='sha1', show_default=True, help='Hash algorithm')
def hash_command(text: str, normalize: bool, algorithm: str):
    """
    Print the operation id of TEXT.

    Examples:
      persistql hash "query getCount { count { amount } }" --normalize
    """
    try:
        hasher = OperationHasher(algorithm)
        if not normalize:
            click.echo(hasher.hash(text))
            return
        operations = DocumentNormalizer().normalize(text)
    except Fault as fault:
        _fail(fault)

    if not operations:
        info("No operations found.")
        return
    for operation in sorted(operations):
        click.echo(f"{hasher.hash(operation)}  {bold(_first_line(operation))}")
    dim(f"{len(operations)} operation(s)")


def main():
    """Entry point for `persistql` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
