# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Base manifest generation and orchestration over all components."""

import logging
from pathlib import Path

from gitops_generator.config import ComponentConfig
from gitops_generator.files import dump_yaml, ensure_directory, remove_files, write_files
from gitops_generator.filesystem import Filesystem, OsFilesystem
from gitops_generator.kustomization import (
    KUSTOMIZATION_FILE,
    dump_kustomization,
    read_kustomization,
)
from gitops_generator.overlay import DEPLOYMENT_PATCH_FILE, generate_overlays
from gitops_generator.resources import build_deployment, build_route, build_service

logger = logging.getLogger(__name__)

DEPLOYMENT_FILE = "deployment.yaml"
SERVICE_FILE = "service.yaml"
ROUTE_FILE = "route.yaml"
# Files in a base directory that belong to this generator
BASE_FILES = (DEPLOYMENT_FILE, SERVICE_FILE, ROUTE_FILE)

COMPONENTS_DIR = "components"
BASE_DIR = "base"
OVERLAYS_DIR = "overlays"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with a formatter for console output.

    Args:
        verbose: If True, set log level to DEBUG; otherwise INFO
    """
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S %z",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def generate_base(fs: Filesystem, component_dir: str | Path, config: ComponentConfig) -> list[str]:
    """
    Generate the base manifests of a component.

    Writes the Deployment, and the Service and Route when the component
    exposes a port, then lists them as resources in the base
    kustomization.yaml. Service and Route files left over from a run in
    which the component exposed a port are removed, both from disk and
    from the resources list. Hand-authored resources are kept.

    Args:
        fs: Filesystem to write to
        component_dir: Directory receiving the base manifests
        config: Component configuration

    Returns:
        Names of the files written, in write order

    Raises:
        DirectoryCreationError: If component_dir cannot be created
        ManifestReadError: If an existing kustomization.yaml cannot be read
        ManifestDecodeError: If an existing kustomization.yaml is invalid
        ManifestWriteError: If a file cannot be written
    """
    ensure_directory(fs, component_dir)

    k = read_kustomization(fs, Path(component_dir) / KUSTOMIZATION_FILE)
    k.set_type()

    files = {DEPLOYMENT_FILE: dump_yaml(build_deployment(config))}
    if config.target_port:
        files[SERVICE_FILE] = dump_yaml(build_service(config))
        files[ROUTE_FILE] = dump_yaml(build_route(config))
    stale = [name for name in BASE_FILES if name not in files]
    k.remove_resources(*stale)
    k.add_resources(*files)
    files[KUSTOMIZATION_FILE] = dump_kustomization(k)

    write_files(fs, component_dir, files)
    remove_files(fs, component_dir, stale)
    return list(files)


def _check_unique(configs: list[ComponentConfig]) -> None:
    names: set[str] = set()
    for config in configs:
        if config.name in names:
            raise ValueError(f"Configuration conflict: component '{config.name}' is defined twice")
        names.add(config.name)


def component_path(output_dir: Path, config: ComponentConfig) -> Path:
    """Directory holding the base and overlays of a component."""
    return output_dir / COMPONENTS_DIR / config.name


def generate_bases(
    configs: list[ComponentConfig],
    output_dir: Path,
    fs: Filesystem | None = None,
) -> set[Path]:
    """
    Generate base manifests for all configured components.

    Args:
        configs: List of component configurations
        output_dir: Root of the GitOps repository
        fs: Filesystem to write to (default: the local disk)

    Returns:
        Set of paths that were written

    Raises:
        ValueError: If two components share a name
        GeneratorError: If generating a component fails
    """
    if fs is None:
        fs = OsFilesystem()

    if not configs:
        logger.info("No components configured")
        return set()

    _check_unique(configs)

    written: set[Path] = set()
    for config in configs:
        base_dir = component_path(output_dir, config) / BASE_DIR
        logger.info(f"Generating base for {config.name} ({config.namespace})")
        try:
            names = generate_base(fs, base_dir, config)
        except Exception:
            logger.error(f"✗ {config.name} ({config.namespace})")
            raise
        written.update(base_dir / name for name in names)
        logger.info(f"✓ {config.name} ({config.namespace}) -> {len(names)} file(s)")

    logger.info(f"Done! Generated {len(written)} file(s)")
    return written


def generate_environment(
    configs: list[ComponentConfig],
    output_dir: Path,
    environment: str,
    image: str,
    namespace: str,
    generated_index: dict[str, list[str]] | None = None,
    fs: Filesystem | None = None,
) -> set[Path]:
    """
    Generate the overlay of one environment for all configured components.

    Each overlay lives in components/<name>/overlays/<environment> and refers
    to the component's base directory.

    Args:
        configs: List of component configurations
        output_dir: Root of the GitOps repository
        environment: Name of the environment, used as the overlay directory
        image: Container image deployed in this environment
        namespace: Namespace of this environment
        generated_index: Patch files each component owned after the previous run
        fs: Filesystem to write to (default: the local disk)

    Returns:
        Set of paths that were written

    Raises:
        ValueError: If two components share a name
        GeneratorError: If generating a component fails
    """
    if fs is None:
        fs = OsFilesystem()

    if not configs:
        logger.info("No components configured")
        return set()

    _check_unique(configs)

    written: set[Path] = set()
    for config in configs:
        overlay_dir = component_path(output_dir, config) / OVERLAYS_DIR / environment
        logger.info(f"Generating {environment} overlay for {config.name} ({namespace})")
        try:
            generate_overlays(
                fs,
                output_dir,
                overlay_dir,
                config,
                image,
                namespace,
                generated_index,
                resources=[f"../../{BASE_DIR}"],
            )
        except Exception:
            logger.error(f"✗ {config.name} ({namespace})")
            raise
        written.add(overlay_dir / DEPLOYMENT_PATCH_FILE)
        written.add(overlay_dir / KUSTOMIZATION_FILE)
        logger.info(f"✓ {config.name} ({namespace}) -> {environment}")

    logger.info(f"Done! Generated {len(written)} file(s)")
    return written
