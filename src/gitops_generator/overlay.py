# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Reconciliation of environment overlays.

An overlay directory holds the Deployment patch of a component together
with a kustomization.yaml listing the patches. The kustomization may also
contain entries written by hand; these are never touched. Only patch files
recorded as generated for the component by a previous run are candidates
for removal.
"""

import logging
import os
from pathlib import Path

from gitops_generator.config import ComponentConfig
from gitops_generator.files import dump_yaml, ensure_directory, write_files
from gitops_generator.filesystem import Filesystem
from gitops_generator.kustomization import (
    KUSTOMIZATION_FILE,
    dump_kustomization,
    read_kustomization,
)
from gitops_generator.resources import build_deployment_patch

logger = logging.getLogger(__name__)

DEPLOYMENT_PATCH_FILE = "deployment-patch.yaml"


def overlay_patch_files(extra_patches: list[str] | None = None) -> list[str]:
    """Patch files a component owns in an overlay after this run."""
    patches = [DEPLOYMENT_PATCH_FILE]
    for name in extra_patches or []:
        if name not in patches:
            patches.append(name)
    return patches


def _display_path(gitops_root: str | Path, path: str | Path) -> str:
    relative = os.path.relpath(path, gitops_root)
    return str(path) if relative.startswith("..") else relative


def generate_overlays(
    fs: Filesystem,
    gitops_root: str | Path,
    overlay_dir: str | Path,
    config: ComponentConfig,
    image: str,
    namespace: str,
    generated_index: dict[str, list[str]] | None = None,
    extra_patches: list[str] | None = None,
    resources: list[str] | None = None,
) -> None:
    """
    Write the Deployment patch of a component and wire it into an overlay.

    The kustomization.yaml in overlay_dir is created when missing and updated
    otherwise. Patch files the generated index records for this component
    that are no longer produced are removed from it, the current patch files
    are added when missing, and every other entry keeps its position.
    Repeated calls with the same arguments produce identical files.

    Args:
        fs: Filesystem to read from and write to
        gitops_root: Root of the GitOps repository, used for log messages
        overlay_dir: Overlay directory of the component
        config: Component configuration
        image: Container image for this environment
        namespace: Namespace of this environment
        generated_index: Patch files each component owned after the previous run
        extra_patches: Additional patch files produced for the component in
            this run, written by the caller
        resources: Resource entries to add to the kustomization when missing

    Raises:
        DirectoryCreationError: If overlay_dir cannot be created
        ManifestReadError: If the existing kustomization.yaml cannot be read
        ManifestDecodeError: If the existing kustomization.yaml is invalid
        ManifestWriteError: If a file cannot be written
    """
    ensure_directory(fs, overlay_dir)

    kustomization_path = Path(overlay_dir) / KUSTOMIZATION_FILE
    k = read_kustomization(fs, kustomization_path)
    k.set_type()

    current = overlay_patch_files(extra_patches)
    previous = (generated_index or {}).get(config.name, [])
    stale = [name for name in previous if name not in current]
    for name in k.remove_patches(*stale):
        logger.debug(f"Removed stale patch {name} from {_display_path(gitops_root, kustomization_path)}")
    k.add_patches(*current)
    if resources:
        k.add_resources(*resources)

    # Serialize everything before writing so a failure leaves no partial state
    files = {
        DEPLOYMENT_PATCH_FILE: dump_yaml(build_deployment_patch(config, image, namespace)),
        KUSTOMIZATION_FILE: dump_kustomization(k),
    }
    write_files(fs, overlay_dir, files)
    logger.debug(
        f"Overlay {_display_path(gitops_root, overlay_dir)} lists {len(k.patches)} patch(es)"
    )
