# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Reading and writing kustomization.yaml files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gitops_generator.exceptions import ManifestDecodeError, ManifestReadError
from gitops_generator.files import dump_yaml
from gitops_generator.filesystem import Filesystem

KUSTOMIZATION_FILE = "kustomization.yaml"
KUSTOMIZATION_KIND = "Kustomization"
KUSTOMIZATION_API_VERSION = "kustomize.config.k8s.io/v1beta1"

# Canonical spelling of known keys, matched case-insensitively when reading
_LIST_FIELDS = {"resources": "resources", "bases": "bases", "patches": "patches"}
_MAP_FIELDS = {
    "commonlabels": "commonLabels",
    "commonannotations": "commonAnnotations",
}
_STR_FIELDS = {"apiversion": "apiVersion", "kind": "kind"}
_KNOWN_FIELDS = {**_LIST_FIELDS, **_MAP_FIELDS, **_STR_FIELDS}


@dataclass
class Kustomization:
    """The subset of a kustomization manifest managed by this tool.

    Top-level keys that are not modelled are kept in ``extra`` and written
    back unchanged.
    """

    api_version: str = ""
    kind: str = ""
    resources: list[str] = field(default_factory=list)
    bases: list[str] = field(default_factory=list)
    patches: list[str] = field(default_factory=list)
    common_labels: dict[str, str] = field(default_factory=dict)
    common_annotations: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def set_type(self) -> None:
        """Set the fixed kind and apiVersion."""
        self.kind = KUSTOMIZATION_KIND
        self.api_version = KUSTOMIZATION_API_VERSION

    def add_resources(self, *names: str) -> None:
        _append_missing(self.resources, names)

    def add_patches(self, *names: str) -> None:
        _append_missing(self.patches, names)

    def remove_patches(self, *names: str) -> list[str]:
        """Remove patch entries, returning the ones that were present."""
        removed = [p for p in self.patches if p in names]
        self.patches = [p for p in self.patches if p not in names]
        return removed

    def remove_resources(self, *names: str) -> list[str]:
        """Remove resource entries, returning the ones that were present."""
        removed = [r for r in self.resources if r in names]
        self.resources = [r for r in self.resources if r not in names]
        return removed


def _append_missing(entries: list[str], names: tuple[str, ...]) -> None:
    for name in names:
        if name not in entries:
            entries.append(name)


def _string_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(
            f"field '{key}': expected a list of strings, got {type(value).__name__}"
        )
    for item in value:
        if not isinstance(item, str):
            raise ValueError(
                f"field '{key}': expected a list of strings, "
                f"got item of type {type(item).__name__}"
            )
    return list(value)


def _string_map(key: str, value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError(f"field '{key}': expected a mapping, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


def parse_kustomization(content: bytes | str) -> Kustomization:
    """
    Parse the content of a kustomization.yaml file.

    Args:
        content: Raw file content

    Returns:
        Parsed manifest

    Raises:
        ValueError: If the content is not YAML, or a known field has the wrong
            type or appears under more than one spelling; the message names
            the offending field
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid YAML: {e}") from e

    if data is None:
        return Kustomization()
    if not isinstance(data, dict):
        raise ValueError(
            f"expected a mapping at the top level, got {type(data).__name__}"
        )

    k = Kustomization()
    seen: set[str] = set()
    for raw_key, value in data.items():
        key = str(raw_key).lower()
        canonical = _KNOWN_FIELDS.get(key)
        if canonical is not None:
            if canonical in seen:
                raise ValueError(f"field '{canonical}': defined more than once")
            seen.add(canonical)
        if key in _LIST_FIELDS:
            name = _LIST_FIELDS[key]
            # Explicit nulls are treated as absent
            entries = [] if value is None else _string_list(name, value)
            setattr(k, name, entries)
        elif key in _MAP_FIELDS:
            name = _MAP_FIELDS[key]
            mapping = {} if value is None else _string_map(name, value)
            if name == "commonLabels":
                k.common_labels = mapping
            else:
                k.common_annotations = mapping
        elif key in _STR_FIELDS:
            if value is not None and not isinstance(value, str):
                raise ValueError(
                    f"field '{_STR_FIELDS[key]}': expected a string, "
                    f"got {type(value).__name__}"
                )
            if key == "kind":
                k.kind = value or ""
            else:
                k.api_version = value or ""
        else:
            k.extra[raw_key] = value
    return k


def kustomization_to_dict(k: Kustomization) -> dict[str, Any]:
    """Convert a manifest to a plain dict, omitting empty fields."""
    data: dict[str, Any] = {}
    if k.api_version:
        data["apiVersion"] = k.api_version
    if k.kind:
        data["kind"] = k.kind
    if k.resources:
        data["resources"] = list(k.resources)
    if k.bases:
        data["bases"] = list(k.bases)
    if k.patches:
        data["patches"] = list(k.patches)
    if k.common_labels:
        data["commonLabels"] = dict(k.common_labels)
    if k.common_annotations:
        data["commonAnnotations"] = dict(k.common_annotations)
    data.update(k.extra)
    return data


def dump_kustomization(k: Kustomization) -> bytes:
    """Serialize a manifest with a stable key order."""
    return dump_yaml(kustomization_to_dict(k))


def read_kustomization(fs: Filesystem, path: str | Path) -> Kustomization:
    """
    Read a kustomization file if it exists.

    Args:
        fs: Filesystem to read from
        path: Path to the kustomization.yaml file

    Returns:
        The parsed manifest, or an empty one if the file does not exist

    Raises:
        ManifestReadError: If the file exists but cannot be read
        ManifestDecodeError: If the file content is not a valid manifest
    """
    if not fs.exists(path):
        return Kustomization()

    try:
        content = fs.read_file(path)
    except OSError as e:
        raise ManifestReadError(f"failed to read {path}: {e}", str(path)) from e

    try:
        return parse_kustomization(content)
    except ValueError as e:
        raise ManifestDecodeError(
            f"failed to unmarshal data from {path}: {e}", str(path)
        ) from e
