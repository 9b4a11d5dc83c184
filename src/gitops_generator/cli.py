# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Command-line interface for gitops-generator."""

import sys
from collections.abc import Callable
from pathlib import Path

import click

from gitops_generator._version import __version__
from gitops_generator.config import load_component_configs, load_generated_index
from gitops_generator.exceptions import GeneratorError
from gitops_generator.generator import generate_bases, generate_environment, setup_logging
from gitops_generator.git_utils import (
    create_generated_commit,
    get_git_commit,
    is_git_dirty,
)


def _common_options(func: Callable) -> Callable:
    """Options shared by every subcommand."""
    options = [
        click.option(
            "--config-dir",
            "-c",
            type=click.Path(exists=False, path_type=Path),
            default=Path("conf"),
            help="Configuration directory",
            show_default=True,
        ),
        click.option(
            "--output-dir",
            "-o",
            type=click.Path(exists=False, path_type=Path),
            default=Path("gitops"),
            help="Root of the GitOps repository to write to",
            show_default=True,
        ),
        click.option(
            "--verbose",
            "-v",
            is_flag=True,
            help="Show detailed output",
        ),
        click.option(
            "--create-commit",
            is_flag=True,
            help="Create a git commit in the output directory with generated files",
        ),
        click.option(
            "--allow-dirty-config",
            is_flag=True,
            help="Allow creation of commit even if config directory has local changes",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run(
    config_dir: Path,
    output_dir: Path,
    verbose: bool,
    create_commit: bool,
    allow_dirty_config: bool,
    generate: Callable[[list, Path], set[Path]],
) -> None:
    """Load configs, run a generation step and optionally commit the result."""
    setup_logging(verbose=verbose)

    try:
        repo_root = Path.cwd()
        config_dir = repo_root / config_dir
        output_dir = repo_root / output_dir

        if verbose:
            click.echo(f"Configuration directory: {config_dir}")
            click.echo(f"Output directory: {output_dir}")
            click.echo()

        configs = load_component_configs(config_dir)
        if verbose:
            click.echo(f"Loaded {len(configs)} component configuration(s)")

        written_paths = generate(configs, output_dir)

        if create_commit:
            if is_git_dirty(config_dir) and not allow_dirty_config:
                raise ValueError(
                    "Config directory has local changes. Use --allow-dirty-config "
                    "to allow commit creation with uncommitted changes."
                )

            config_commit = get_git_commit(config_dir)
            if create_generated_commit(
                output_dir, __version__, config_commit, written_paths
            ):
                click.echo(f"✓ Created commit in {output_dir}")

    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except GeneratorError as e:
        click.echo(f"Generation error: {e}", err=True)
        sys.exit(1)
    except RuntimeError as e:
        click.echo(f"Runtime error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


@click.group()
@click.version_option(version=__version__, prog_name="gitops-generator")
def main() -> None:
    """Generate kustomize bases and overlays for application components."""


@main.command()
@_common_options
def base(
    config_dir: Path,
    output_dir: Path,
    verbose: bool,
    create_commit: bool,
    allow_dirty_config: bool,
) -> None:
    """Generate the base manifests of every component."""
    _run(config_dir, output_dir, verbose, create_commit, allow_dirty_config, generate_bases)


@main.command()
@_common_options
@click.option(
    "--environment",
    "-e",
    required=True,
    help="Environment name, used as the overlay directory name",
)
@click.option("--image", "-i", default="", help="Container image for this environment")
@click.option("--namespace", "-n", required=True, help="Namespace of this environment")
@click.option(
    "--generated-index",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="YAML file listing the patch files each component generated previously",
)
def overlay(
    config_dir: Path,
    output_dir: Path,
    verbose: bool,
    create_commit: bool,
    allow_dirty_config: bool,
    environment: str,
    image: str,
    namespace: str,
    generated_index: Path | None,
) -> None:
    """Generate the overlay of one environment for every component."""

    def generate(configs: list, out: Path) -> set[Path]:
        index = load_generated_index(generated_index) if generated_index else None
        return generate_environment(configs, out, environment, image, namespace, index)

    _run(config_dir, output_dir, verbose, create_commit, allow_dirty_config, generate)


if __name__ == "__main__":
    main()
