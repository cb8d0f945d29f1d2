#!/usr/bin/env python3
"""HR Bridge - Entry point."""
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import asyncio
import json
import logging
from pathlib import Path

import click
from colorama import Fore, Style, init

from config import AppConfig
from hrbridge.api.gemini_client import GeminiClient
from hrbridge.api.schema_generator import SchemaGenerator
from hrbridge.api.service import MappingService
from hrbridge.builder.integration_compiler import IntegrationCompiler
from hrbridge.builder.models import IntegrationRequest
from hrbridge.errors import HRBridgeError, ValidationError
from hrbridge.exporter.json_exporter import JsonExporter
from hrbridge.mapper.mapping import TransformationSpec
from hrbridge.schema.reference_store import load_reference_data
from hrbridge.transformer.engine import TransformationEngine

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    print(f"{Fore.CYAN}{'=' * 44}")
    print(f"{Fore.CYAN}║   {Fore.WHITE}HR Bridge{Fore.CYAN}                            ║")
    print(f"{Fore.CYAN}║   {Fore.WHITE}Field Mapping & Integration Builder{Fore.CYAN}  ║")
    print(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    print()


def read_json(path):
    """Read a JSON file, exiting with a readable error."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Could not read {path}: {e}")


def fail(error: HRBridgeError):
    """Print an error (with every validation problem) and exit."""
    click.echo(f"{Fore.RED}❌ {error}")
    if isinstance(error, ValidationError):
        for problem in error.errors:
            click.echo(f"{Fore.RED}   - {problem}")
    sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """HR Bridge - Map HR source fields to any destination and build integrations."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = AppConfig.from_env()


@cli.command()
@click.argument("destination", type=click.Path(exists=True))
@click.option("--reference", type=click.Path(file_okay=False), help="Reference data directory")
@click.option("--output", "-o", type=click.Path(), help="Where to write the mappings")
@click.option("--heuristic", is_flag=True, help="Skip the AI service")
@click.pass_obj
def suggest(app_config, destination, reference, output, heuristic):
    """Suggest field mappings for a destination schema or payload."""
    print_banner()

    try:
        reference_data = load_reference_data(reference or app_config.reference_dir)
        destination_schema = read_json(destination)

        if heuristic:
            app_config.gemini.api_key = ""
        service = MappingService(app_config.gemini, app_config.batch)
        suggestion = asyncio.run(service.suggest(reference_data, destination_schema))
    except HRBridgeError as e:
        fail(e)

    for warning in suggestion.warnings:
        click.echo(f"{Fore.YELLOW}⚠️  {warning}")

    click.echo(
        f"{Fore.GREEN}✅ {len(suggestion.mappings)} mappings ({suggestion.strategy})"
    )
    for mapping in suggestion.mappings:
        confidence = f"{mapping.confidence:.0%}" if mapping.confidence is not None else "-"
        transformation = (
            f" [{mapping.transformation.type_name}]" if mapping.transformation else ""
        )
        click.echo(
            f"  {mapping.source_field.path} -> {mapping.target_path} "
            f"{Fore.CYAN}{confidence}{Style.RESET_ALL}{transformation}"
        )

    output_file = Path(output or Path(app_config.output_dir) / "mappings.json")
    JsonExporter().export_mappings(
        output_file, suggestion.mappings, suggestion.strategy, suggestion.warnings
    )
    click.echo(f"{Fore.GREEN}Saved to {output_file}")


@cli.command(name="compile")
@click.argument("mappings_file", type=click.Path(exists=True))
@click.option("--email", required=True, help="Customer email")
@click.option("--endpoint", required=True, help="Destination endpoint URL")
@click.option("--source-payload", type=click.Path(exists=True), help="Sample source payload")
@click.option("--name", "integration_name", help="Integration name")
@click.option("--output", "-o", type=click.Path(), help="Where to write the integration")
@click.pass_obj
def compile_integration(app_config, mappings_file, email, endpoint, source_payload,
                        integration_name, output):
    """Compile a mapping list into an integration task graph."""
    print_banner()

    exporter = JsonExporter()
    try:
        mappings = exporter.load_mappings(Path(mappings_file))
        if source_payload:
            payload = read_json(source_payload)
        else:
            payload = load_reference_data(app_config.reference_dir).source_sample

        request = IntegrationRequest(
            customer_email=email,
            destination_endpoint=endpoint,
            mappings=mappings,
            source_payload=payload,
            integration_name=integration_name,
        )
        artifact = IntegrationCompiler(app_config.compiler).compile(request)
    except HRBridgeError as e:
        fail(e)

    for warning in artifact.warnings:
        click.echo(f"{Fore.YELLOW}⚠️  {warning}")

    output_file = Path(output or Path(app_config.output_dir) / "integration.json")
    exporter.export(output_file, artifact)

    click.echo(
        f"{Fore.GREEN}✅ {len(artifact.tasks)} tasks, "
        f"{len(artifact.transformation_tasks)} transformations"
    )
    click.echo(f"{Fore.YELLOW}Preview payload:")
    click.echo(json.dumps(artifact.preview_payload, indent=2, ensure_ascii=False))
    click.echo(f"{Fore.GREEN}Saved to {output_file}")


@cli.command()
@click.argument("value")
@click.option("--type", "kind", help="Transformation type (format_document, normalize, ...)")
@click.option("--operation", default="", help="Operation for the type")
@click.option("--pattern", help="Document pattern (cpf, cnpj, phone, cep)")
@click.option("--separator", help="Separator for concat/split")
@click.option("--output-format", help="Date output format")
@click.option("--chain", type=click.Path(exists=True), help="JSON file with a list of transformations")
def transform(value, kind, operation, pattern, separator, output_format, chain):
    """Try a transformation (or a chain) on a value."""
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value

    if chain:
        specs = [TransformationSpec.from_dict(item) for item in read_json(chain)]
    elif kind:
        specs = [TransformationSpec.from_dict({
            "type": kind,
            "operation": operation,
            "pattern": pattern,
            "separator": separator,
            "outputFormat": output_format,
        })]
    else:
        raise click.UsageError("Provide --type or --chain")

    for step in TransformationEngine().apply_steps(parsed, specs):
        click.echo(
            f"{Fore.CYAN}{step['transformation']['type']}{Style.RESET_ALL}: "
            f"{json.dumps(step['input'], ensure_ascii=False)} -> "
            f"{Fore.GREEN}{json.dumps(step['output'], ensure_ascii=False)}"
        )


@cli.command(name="generate-schema")
@click.argument("description")
@click.option("--format", "target_format", default="detailed_payload", help="Target format")
@click.option("--output", "-o", type=click.Path(), help="Where to write the schema")
@click.pass_obj
def generate_schema(app_config, description, target_format, output):
    """Generate a destination schema from a description (requires GEMINI_API_KEY)."""
    print_banner()

    try:
        schema = SchemaGenerator(GeminiClient(app_config.gemini)).generate(description, target_format)
    except HRBridgeError as e:
        fail(e)

    text = json.dumps(schema, indent=2, ensure_ascii=False)
    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"{Fore.GREEN}✅ Schema saved to {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    cli()
