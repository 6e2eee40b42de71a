"""Configuration-related CLI commands."""

from __future__ import annotations

from pathlib import Path

import click


@click.command(name="init-config")
@click.option(
    "--output-file",
    type=click.Path(path_type=Path),
    default=Path("genoprot.yaml"),
    help="Output configuration file path",
)
@click.option(
    "--stdout",
    is_flag=True,
    help="Print the template YAML to stdout instead of writing a file",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(output_file: Path, stdout: bool, force: bool) -> None:
    """Generate a template configuration file."""
    from genoprot.resources import get_default_config

    config_text = get_default_config()
    if stdout:
        click.echo(config_text)
        return
    if output_file.exists() and not force:
        raise click.UsageError(f"{output_file} already exists (use --force to overwrite)")
    output_file.write_text(config_text, encoding="utf-8")
    click.echo(f"Configuration template saved to: {output_file}")
    click.echo("Set fastq1 (and fastq2 for paired reads), then run e.g. `genoprot proteins -c FILE`.")
