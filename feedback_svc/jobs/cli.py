"""CLI entrypoint for feedback-svc jobs"""

import typer

from feedback_svc.jobs.favicon import favicon_cmd

cli = typer.Typer(no_args_is_help=True, add_completion=False)

cli.add_typer(favicon_cmd, no_args_is_help=True)

if __name__ == "__main__":
    cli()
