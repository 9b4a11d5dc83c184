# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Builders for the Kubernetes objects generated for a component.

All builders are pure: they return fresh dictionaries and never modify the
configuration passed in.
"""

import copy

from gitops_generator.config import ComponentConfig, EnvVar

CONTAINER_NAME = "container-image"
PROBE_INITIAL_DELAY_SECONDS = 10
PROBE_PERIOD_SECONDS = 10
ROUTE_WEIGHT = 100

_LABEL_PREFIX = "app.kubernetes.io"


def match_labels(config: ComponentConfig) -> dict[str, str]:
    """Labels used to select the pods of a component."""
    return {f"{_LABEL_PREFIX}/instance": config.name}


def object_labels(config: ComponentConfig) -> dict[str, str]:
    """Labels set on the generated objects themselves.

    Custom labels from the configuration are used verbatim when present.
    """
    if config.labels:
        return dict(config.labels)
    return {
        f"{_LABEL_PREFIX}/name": config.name,
        f"{_LABEL_PREFIX}/instance": config.name,
        f"{_LABEL_PREFIX}/part-of": config.application,
        f"{_LABEL_PREFIX}/managed-by": "kustomize",
        f"{_LABEL_PREFIX}/created-by": "application-service",
    }


def _metadata(config: ComponentConfig) -> dict:
    return {
        "name": config.name,
        "namespace": config.namespace,
        "labels": object_labels(config),
    }


def merge_env_vars(base: list[EnvVar], overlay: list[EnvVar]) -> list[EnvVar]:
    """Merge overlay environment variables on top of the base ones.

    An overlay entry replaces the value of a base entry with the same name
    and keeps that entry's position. Names only present in the overlay are
    appended in overlay order. Nothing is ever removed.

    Args:
        base: Environment variables shared by every environment
        overlay: Environment specific overrides

    Returns:
        New list with the merged variables
    """
    merged: list[EnvVar] = []
    positions: dict[str, int] = {}
    for env in [*base, *overlay]:
        if env.name in positions:
            merged[positions[env.name]] = env
        else:
            positions[env.name] = len(merged)
            merged.append(env)
    return merged


def build_deployment(config: ComponentConfig) -> dict:
    """Build the base Deployment for a component."""
    container: dict = {"name": CONTAINER_NAME}
    if config.container_image:
        container["image"] = config.container_image
    container["imagePullPolicy"] = "Always"
    if config.base_env:
        container["env"] = [env.to_dict() for env in config.base_env]
    if config.target_port:
        container["ports"] = [{"containerPort": config.target_port}]
        container["readinessProbe"] = {
            "initialDelaySeconds": PROBE_INITIAL_DELAY_SECONDS,
            "periodSeconds": PROBE_PERIOD_SECONDS,
            "tcpSocket": {"port": config.target_port},
        }
        container["livenessProbe"] = {
            "initialDelaySeconds": PROBE_INITIAL_DELAY_SECONDS,
            "periodSeconds": PROBE_PERIOD_SECONDS,
            "httpGet": {"path": "/", "port": config.target_port},
        }
    if config.resources:
        container["resources"] = copy.deepcopy(config.resources)

    pod_spec: dict = {}
    if config.image_pull_secret:
        pod_spec["imagePullSecrets"] = [{"name": config.image_pull_secret}]
    pod_spec["containers"] = [container]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(config),
        "spec": {
            "replicas": config.resolved_replicas,
            "selector": {"matchLabels": match_labels(config)},
            "template": {
                "metadata": {"labels": match_labels(config)},
                "spec": pod_spec,
            },
        },
    }


def build_deployment_patch(config: ComponentConfig, image: str, namespace: str) -> dict:
    """Build the environment specific Deployment patch for a component.

    The patch only carries the fields that differ between environments. Its
    selector and pod template metadata are left empty so that a strategic
    merge only overrides the container image, environment and resources.

    Args:
        config: Component configuration
        image: Container image for this environment; falls back to the
            configured image when empty
        namespace: Namespace of this environment

    Returns:
        Partial Deployment object
    """
    container: dict = {"name": CONTAINER_NAME}
    image = image or config.container_image
    if image:
        container["image"] = image
    env = merge_env_vars(config.base_env, config.overlay_env)
    if env:
        container["env"] = [e.to_dict() for e in env]
    if config.resources:
        container["resources"] = copy.deepcopy(config.resources)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": config.name, "namespace": namespace},
        "spec": {
            "replicas": config.resolved_replicas,
            "selector": {},
            "template": {
                "metadata": {},
                "spec": {"containers": [container]},
            },
        },
    }


def build_service(config: ComponentConfig) -> dict:
    """Build the Service exposing the component's target port."""
    spec: dict = {"selector": match_labels(config)}
    if config.target_port:
        spec["ports"] = [
            {"port": config.target_port, "targetPort": config.target_port}
        ]
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(config),
        "spec": spec,
    }


def build_route(config: ComponentConfig) -> dict:
    """Build the OpenShift Route pointing at the component's Service."""
    spec: dict = {}
    if config.route:
        spec["host"] = config.route
    spec["port"] = {"targetPort": config.target_port}
    spec["tls"] = {
        "insecureEdgeTerminationPolicy": "Redirect",
        "termination": "edge",
    }
    spec["to"] = {"kind": "Service", "name": config.name, "weight": ROUTE_WEIGHT}
    return {
        "apiVersion": "route.openshift.io/v1",
        "kind": "Route",
        "metadata": _metadata(config),
        "spec": spec,
    }
