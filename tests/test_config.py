# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Tests for configuration parsing and validation."""

import textwrap
from pathlib import Path

import pytest

from gitops_generator.config import (
    ComponentConfig,
    EnvVar,
    load_component_configs,
    load_generated_index,
)


def write_toml(directory: Path, name: str, content: str) -> Path:
    path = directory / name
    path.write_text(textwrap.dedent(content))
    return path


@pytest.fixture
def conf(tmp_path: Path) -> Path:
    conf = tmp_path / "conf"
    conf.mkdir()
    return conf


# ---------------------------------------------------------------------------
# load_component_configs
# ---------------------------------------------------------------------------


def test_load_full_component(conf: Path) -> None:
    write_toml(
        conf,
        "config.toml",
        """\
        [[components]]
        name = "web"
        namespace = "shop"
        application = "shop-app"
        replicas = 3
        image = "quay.io/acme/web:1.0"
        target_port = 8080
        image_pull_secret = "pull-secret"
        route = "web.example.com"
        env = [
            { name = "LOG_LEVEL", value = "info" },
            { name = "PORT", value = 8080 },
        ]
        overlay_env = [{ name = "LOG_LEVEL", value = "debug" }]

        [components.labels]
        team = "payments"

        [components.resources.limits]
        cpu = "1"
        memory = "512Mi"

        [components.resources.requests]
        cpu = "500m"
        """,
    )

    (config,) = load_component_configs(conf)
    assert config == ComponentConfig(
        name="web",
        namespace="shop",
        application="shop-app",
        replicas=3,
        container_image="quay.io/acme/web:1.0",
        target_port=8080,
        image_pull_secret="pull-secret",
        resources={"limits": {"cpu": "1", "memory": "512Mi"}, "requests": {"cpu": "500m"}},
        base_env=[EnvVar("LOG_LEVEL", "info"), EnvVar("PORT", "8080")],
        overlay_env=[EnvVar("LOG_LEVEL", "debug")],
        route="web.example.com",
        labels={"team": "payments"},
    )


def test_load_minimal_component_defaults(conf: Path) -> None:
    write_toml(
        conf,
        "config.toml",
        """\
        [[components]]
        name = "worker"
        namespace = "jobs"
        """,
    )

    (config,) = load_component_configs(conf)
    assert config.replicas is None
    assert config.resolved_replicas == 1
    assert config.target_port == 0
    assert config.image_pull_secret is None
    assert config.route is None
    assert config.labels is None
    assert config.base_env == []
    assert config.resources == {}


def test_load_zero_replicas_requires_opt_in(conf: Path) -> None:
    write_toml(
        conf,
        "config.toml",
        """\
        [[components]]
        name = "a"
        namespace = "ns"
        replicas = 0

        [[components]]
        name = "b"
        namespace = "ns"
        replicas = 0
        allow_zero_replicas = true
        """,
    )

    a, b = load_component_configs(conf)
    assert a.resolved_replicas == 1
    assert b.resolved_replicas == 0


@pytest.mark.parametrize("field", ["name", "namespace"])
def test_load_missing_required_field(conf: Path, field: str) -> None:
    values = {"name": '"web"', "namespace": '"shop"'}
    del values[field]
    body = "\n".join(f"{k} = {v}" for k, v in values.items())
    write_toml(conf, "config.toml", f"[[components]]\n{body}\n")

    with pytest.raises(ValueError, match=f"Missing required field '{field}'"):
        load_component_configs(conf)


@pytest.mark.parametrize(
    ("line", "message"),
    [
        ("replicas = -1", "'replicas' must be a non-negative integer"),
        ('replicas = "two"', "'replicas' must be a non-negative integer"),
        ("target_port = 70000", "'target_port' must be between 0 and 65535"),
        ('env = [{ value = "x" }]', "Each 'env' entry requires 'name'"),
        ('overlay_env = "x"', "'overlay_env' must be an array of tables"),
    ],
)
def test_load_invalid_values(conf: Path, line: str, message: str) -> None:
    write_toml(
        conf,
        "config.toml",
        f'[[components]]\nname = "web"\nnamespace = "shop"\n{line}\n',
    )
    with pytest.raises(ValueError, match=message):
        load_component_configs(conf)


def test_load_unknown_resources_section(conf: Path) -> None:
    write_toml(
        conf,
        "config.toml",
        """\
        [[components]]
        name = "web"
        namespace = "shop"

        [components.resources.claims]
        gpu = "1"
        """,
    )
    with pytest.raises(ValueError, match="Unknown resources section"):
        load_component_configs(conf)


def test_load_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_component_configs(tmp_path / "nonexistent")


def test_load_not_a_directory(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("")
    with pytest.raises(ValueError, match="not a directory"):
        load_component_configs(path)


def test_load_no_toml_files(conf: Path) -> None:
    with pytest.raises(FileNotFoundError, match="No TOML files found"):
        load_component_configs(conf)


def test_load_no_components_table(conf: Path) -> None:
    write_toml(conf, "config.toml", 'title = "nothing"\n')
    with pytest.raises(ValueError, match=r"No \[\[components\]\] entries"):
        load_component_configs(conf)


def test_load_invalid_toml(conf: Path) -> None:
    write_toml(conf, "config.toml", "[[components]\n")
    with pytest.raises(ValueError, match="Invalid TOML"):
        load_component_configs(conf)


def test_load_multiple_files_in_sorted_order(conf: Path) -> None:
    (conf / "sub").mkdir()
    write_toml(conf, "b.toml", '[[components]]\nname = "b"\nnamespace = "ns"\n')
    write_toml(conf / "sub", "c.toml", '[[components]]\nname = "c"\nnamespace = "ns"\n')
    write_toml(conf, "a.toml", '[[components]]\nname = "a"\nnamespace = "ns"\n')

    configs = load_component_configs(conf)
    assert [c.name for c in configs] == ["a", "b", "c"]


def test_load_duplicate_component_name(conf: Path) -> None:
    write_toml(conf, "a.toml", '[[components]]\nname = "web"\nnamespace = "ns"\n')
    write_toml(conf, "b.toml", '[[components]]\nname = "web"\nnamespace = "other"\n')
    with pytest.raises(ValueError, match="Component 'web' defined in both"):
        load_component_configs(conf)


# ---------------------------------------------------------------------------
# load_generated_index
# ---------------------------------------------------------------------------


def test_load_generated_index(tmp_path: Path) -> None:
    path = tmp_path / "index.yaml"
    path.write_text("web:\n- patch1.yaml\n- patch2.yaml\nworker: []\n")
    assert load_generated_index(path) == {
        "web": ["patch1.yaml", "patch2.yaml"],
        "worker": [],
    }


def test_load_generated_index_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "index.yaml"
    path.write_text("")
    assert load_generated_index(path) == {}


def test_load_generated_index_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Generated resource index not found"):
        load_generated_index(tmp_path / "index.yaml")


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("- web\n", "must be a YAML mapping"),
        ("web: patch1.yaml\n", "Entry 'web'"),
        ("web:\n- 1\n", "Entry 'web'"),
    ],
)
def test_load_generated_index_invalid(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "index.yaml"
    path.write_text(content)
    with pytest.raises(ValueError, match=message):
        load_generated_index(path)
