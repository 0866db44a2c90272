import logging
import sys
from pathlib import Path

import rich_click as click
import yaml
from ariadne.exceptions import GraphQLFileSyntaxError
from rich.traceback import install

from gschema import __version__, log
from gschema.compiler import (
    compile_operation_files,
    compile_schema_files,
    write_descriptor_tables,
    write_operation_registries,
)
from gschema.config import GSchemaConfig, load_config
from gschema.errors import GSchemaError
from gschema.runtime import PersistedQueries

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file containing gschema configuration",
)

output_dir_option = click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, writable=True, path_type=Path),
    required=True,
    help="Output directory",
)


def _load_config_or_exit(config_path: Path | None) -> GSchemaConfig:
    try:
        return load_config(config_path)
    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        log.error(f"Invalid configuration {config_path}: {e}")
        sys.exit(1)


@click.group(context_settings={"auto_envvar_prefix": "gschema"})
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Log level",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Log file",
)
@click.version_option(__version__)
def cli(log_level: str, log_file: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
        log.addHandler(file_handler)

    log.setLevel(log_level.upper())
    if log_level.upper() == "DEBUG":
        _ = install(show_locals=True)


@click.group(name="compile")
def compile_group() -> None:
    """Compile schema and operation documents into JSON artifacts."""
    pass


@compile_group.command(name="schema")
@click.option(
    "--schema",
    "-s",
    "schemas",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    multiple=True,
    help="The GraphQL schema file or directory containing schema files. Can be specified multiple times.",
)
@output_dir_option
@config_option
def compile_schema(schemas: tuple[Path, ...], output: Path, config_path: Path | None) -> None:
    """Compile SDL modules into one descriptor table per module."""
    config = _load_config_or_exit(config_path)
    try:
        tables = compile_schema_files(schemas, config.schema_)
        written = write_descriptor_tables(tables, output)
    except (GSchemaError, GraphQLFileSyntaxError) as e:
        log.error(f"Schema compilation failed: {e}")
        sys.exit(1)
    except OSError as e:
        log.error(f"File I/O error: {e}")
        sys.exit(1)

    for path in written:
        log.key_value("written", path)
    log.success(f"Compiled {len(tables)} schema module(s) to {output}")


@compile_group.command(name="operations")
@click.option(
    "--documents",
    "-d",
    "documents",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    multiple=True,
    help="Operation source file (.graphql, .gql, .py) or directory. Can be specified multiple times.",
)
@output_dir_option
@config_option
def compile_operations(documents: tuple[Path, ...], output: Path, config_path: Path | None) -> None:
    """Compile client operations into persisted-query registries."""
    config = _load_config_or_exit(config_path)
    try:
        compiled = compile_operation_files(documents, config.operations)
        written = write_operation_registries(compiled, output, config.operations)
    except (GSchemaError, GraphQLFileSyntaxError) as e:
        log.error(f"Operation compilation failed: {e}")
        sys.exit(1)
    except (OSError, SyntaxError) as e:
        log.error(f"Cannot read operation sources: {e}")
        sys.exit(1)

    for path in written:
        log.key_value("written", path)
    operation_count = sum(len(registry.operations) for registry in compiled.registries.values())
    log.success(f"Compiled {operation_count} operation(s) into {len(compiled.registries)} registry file(s)")


@click.command()
@click.option(
    "--registry",
    "-r",
    "registries",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    multiple=True,
    help="Compiled registry file (*.queries.json) or directory. Can be specified multiple times.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the whole operation record as JSON")
@click.argument("query_hash")
def lookup(registries: tuple[Path, ...], query_hash: str, as_json: bool) -> None:
    """Look up a persisted operation by its hash."""
    try:
        queries = PersistedQueries.from_files(registries)
    except (OSError, ValueError) as e:
        log.error(f"Cannot load registries: {e}")
        sys.exit(1)

    record = queries.get(query_hash)
    if record is None:
        log.error(f"Unknown operation hash {query_hash}")
        log.hint("Registries are written by `gschema compile operations`, make sure they are up to date")
        sys.exit(1)

    if as_json:
        log.print_dict(record.model_dump(by_alias=True))
        return

    log.rule(f"{record.kind} {record.operation_name}")
    log.key_value("constant", record.constant_name)
    log.key_value("origin", f"{record.origin_file}:{record.origin_line}")
    click.echo(record.body)


cli.add_command(compile_group)
cli.add_command(lookup)


if __name__ == "__main__":
    cli()
