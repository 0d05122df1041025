"""Exception types raised by mesh_volume."""

from typing import Optional


class MeshVolumeError(Exception):
    """Base class for mesh_volume errors."""


class MalformedGeometryError(MeshVolumeError):
    """A mesh buffer cannot be interpreted as a triangle list.

    Raised by strict helpers only; scene analysis catches it, skips the
    mesh and reports the condition as a diagnostic instead.
    """

    def __init__(self, code: str, message: str, mesh_name: Optional[str] = None):
        self.code = code
        self.mesh_name = mesh_name
        prefix = f"{mesh_name}: " if mesh_name else ""
        super().__init__(f"{prefix}[{code}] {message}")
