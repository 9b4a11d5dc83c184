# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Configuration parsing and validation for gitops-generator."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class EnvVar:
    """A single container environment variable."""

    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass
class ComponentConfig:
    """Configuration for a single application component."""

    name: str
    namespace: str = ""
    application: str = ""
    replicas: int | None = None  # None when not configured
    # When False a configured replica count of 0 falls back to 1
    allow_zero_replicas: bool = False
    container_image: str = ""
    target_port: int = 0  # 0 means the component exposes no port
    image_pull_secret: str | None = None
    resources: dict[str, dict[str, str]] = field(default_factory=dict)
    base_env: list[EnvVar] = field(default_factory=list)
    overlay_env: list[EnvVar] = field(default_factory=list)
    route: str | None = None
    labels: dict[str, str] | None = None  # None selects the default labels

    @property
    def resolved_replicas(self) -> int:
        """Replica count written to generated Deployments."""
        if self.replicas is None:
            return 1
        if self.replicas == 0 and not self.allow_zero_replicas:
            return 1
        return self.replicas


def load_component_configs(config_dir: Path) -> list[ComponentConfig]:
    """
    Load all component configurations from TOML files in the config directory.

    Each TOML file may contain any number of [[components]] tables. Files are
    read in sorted path order so that the result is deterministic.

    Args:
        config_dir: Directory containing TOML configuration files

    Returns:
        List of component configs

    Raises:
        FileNotFoundError: If config_dir doesn't exist or contains no TOML files
        ValueError: If TOML is invalid, missing required fields or a component
            name is used twice
    """
    if not config_dir.exists():
        raise FileNotFoundError(f"Configuration directory not found: {config_dir}")

    if not config_dir.is_dir():
        raise ValueError(f"Configuration path is not a directory: {config_dir}")

    toml_files = sorted(config_dir.rglob("*.toml"))
    if not toml_files:
        raise FileNotFoundError(f"No TOML files found in {config_dir}")

    configs: list[ComponentConfig] = []
    seen: dict[str, Path] = {}
    for toml_file in toml_files:
        with open(toml_file, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {toml_file}: {e}") from e

        if "components" not in data:
            raise ValueError(f"No [[components]] entries found in {toml_file}")

        for component_data in data["components"]:
            config = _parse_component_config(component_data, toml_file)
            if config.name in seen:
                raise ValueError(
                    f"Component '{config.name}' defined in both {seen[config.name]} "
                    f"and {toml_file}"
                )
            seen[config.name] = toml_file
            configs.append(config)

    return configs


def _parse_env(entries: list, key: str, source_file: Path) -> list[EnvVar]:
    """Parse an array of {name, value} tables into EnvVar objects."""
    if not isinstance(entries, list):
        raise ValueError(f"'{key}' must be an array of tables in {source_file}")

    env: list[EnvVar] = []
    for entry in entries:
        if not isinstance(entry, dict) or "name" not in entry:
            raise ValueError(f"Each '{key}' entry requires 'name' in {source_file}")
        env.append(EnvVar(name=str(entry["name"]), value=str(entry.get("value", ""))))
    return env


def _parse_resources(data: dict, source_file: Path) -> dict[str, dict[str, str]]:
    """Parse resource limits and requests, keeping quantities as strings."""
    resources: dict[str, dict[str, str]] = {}
    for section in ("limits", "requests"):
        if section in data:
            resources[section] = {k: str(v) for k, v in data[section].items()}
    unknown = set(data) - {"limits", "requests"}
    if unknown:
        raise ValueError(
            f"Unknown resources section(s) {sorted(unknown)} in {source_file}"
        )
    return resources


def _parse_component_config(data: dict, source_file: Path) -> ComponentConfig:
    """Parse a single component configuration from TOML data."""
    for required in ("name", "namespace"):
        if not data.get(required):
            raise ValueError(f"Missing required field '{required}' in {source_file}")

    replicas = data.get("replicas")
    if replicas is not None and (not isinstance(replicas, int) or replicas < 0):
        raise ValueError(
            f"'replicas' must be a non-negative integer for '{data['name']}' "
            f"in {source_file}"
        )

    target_port = data.get("target_port", 0)
    if not isinstance(target_port, int) or not 0 <= target_port <= 65535:
        raise ValueError(
            f"'target_port' must be between 0 and 65535 for '{data['name']}' "
            f"in {source_file}"
        )

    labels = data.get("labels")
    return ComponentConfig(
        name=data["name"],
        namespace=data["namespace"],
        application=data.get("application", ""),
        replicas=replicas,
        allow_zero_replicas=bool(data.get("allow_zero_replicas", False)),
        container_image=data.get("image", ""),
        target_port=target_port,
        image_pull_secret=data.get("image_pull_secret") or None,
        resources=_parse_resources(data.get("resources", {}), source_file),
        base_env=_parse_env(data.get("env", []), "env", source_file),
        overlay_env=_parse_env(data.get("overlay_env", []), "overlay_env", source_file),
        route=data.get("route") or None,
        labels={k: str(v) for k, v in labels.items()} if labels else None,
    )


def load_generated_index(path: Path) -> dict[str, list[str]]:
    """
    Load the index of patch files generated for each component by a previous run.

    Args:
        path: Path to a YAML mapping of component name to a list of file names

    Returns:
        Mapping of component name to file names; empty if the file is empty

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a mapping of names to string lists
    """
    if not path.exists():
        raise FileNotFoundError(f"Generated resource index not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Generated resource index must be a YAML mapping: {path}")

    index: dict[str, list[str]] = {}
    for name, files in data.items():
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ValueError(
                f"Entry '{name}' in {path} must be a list of file names"
            )
        index[str(name)] = files
    return index
