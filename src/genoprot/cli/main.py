"""Click application entrypoint for genoprot."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from types import FrameType
from typing import List, Optional

import click

from genoprot import __version__
from genoprot.exceptions import GenoprotError
from genoprot.utils.logging import get_logger

from .commands.config import init_config
from .commands.flows import fusion, lncrna, proteins, quantify, show_steps, strandedness
from .commands.validate import validate
from .exit_codes import EXIT_ERROR, EXIT_SIGINT, EXIT_SIGTERM, EXIT_SUCCESS


def _handle_signal(signum: int, frame: Optional[FrameType]) -> None:
    """Handle interrupt signals for graceful shutdown."""
    sig_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
    click.echo(f"\n{sig_name} received, stopping...", err=True)
    raise KeyboardInterrupt(sig_name)


class GenoprotGroup(click.Group):
    """Group that turns genoprot errors into exit codes instead of tracebacks."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except GenoprotError as exc:
            get_logger("cli").debug("Command failed", exc_info=True)
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(EXIT_ERROR)


@click.group(cls=GenoprotGroup, context_settings=dict(help_option_names=["-h", "--help"]))
# Version option (use -V to avoid conflict with -v/--verbose)
@click.version_option(__version__, "-V", "--version", prog_name="genoprot")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log verbosity (-v for INFO, -vv for DEBUG)",
)
@click.option("--log-file", type=click.Path(path_type=Path), help="Path for log file output")
@click.pass_context
def cli(ctx: click.Context, verbose: int, log_file: Optional[Path]) -> None:
    """genoprot: sample-specific protein databases and transcriptome analyses
    from sequencing reads.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file


cli.add_command(proteins)
cli.add_command(lncrna)
cli.add_command(fusion)
cli.add_command(quantify)
cli.add_command(strandedness)
cli.add_command(show_steps)
cli.add_command(init_config)
cli.add_command(validate)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with signal handling."""
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        rv = cli.main(args=argv, prog_name="genoprot", standalone_mode=False)
        # Non-standalone click returns the code passed to ctx.exit()
        return rv if isinstance(rv, int) else EXIT_SUCCESS
    except KeyboardInterrupt as exc:
        return EXIT_SIGTERM if str(exc) == "SIGTERM" else EXIT_SIGINT
    except click.exceptions.Exit as exc:
        return exc.exit_code
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        return EXIT_SIGINT
    except SystemExit as exc:
        # Preserve explicit exit codes from commands
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
