# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Exceptions raised while generating and reconciling manifests."""

__all__ = [
    "GeneratorError",
    "DirectoryCreationError",
    "ManifestReadError",
    "ManifestDecodeError",
    "ManifestWriteError",
]


class GeneratorError(Exception):
    """Generic base exception used for this library."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class DirectoryCreationError(GeneratorError):
    """Raised when an output directory cannot be created."""


class ManifestReadError(GeneratorError):
    """Raised when an existing kustomization file cannot be read."""


class ManifestDecodeError(GeneratorError):
    """Raised when an existing kustomization file is not a valid manifest."""


class ManifestWriteError(GeneratorError):
    """Raised when a generated file cannot be written.

    The file on disk may be unchanged or truncated; callers should treat
    its state as unknown and retry.
    """
