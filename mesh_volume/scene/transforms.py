"""
4x4 homogeneous transform helpers.

Matrices use the column-vector convention: a point ``p`` maps to
``M @ [x, y, z, 1]``, so ``compose(parent, child)`` applies ``child``
first. Translation lives in the last column.
"""

from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

ArrayLike3 = Union[Sequence[float], NDArray[np.float64]]


def identity() -> NDArray[np.float64]:
    """Return a fresh 4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def as_matrix(matrix: Optional[object]) -> NDArray[np.float64]:
    """Coerce ``matrix`` to a 4x4 float64 array (identity for None).

    Accepts a nested 4x4 sequence or a flat sequence of 16 numbers in
    row-major order.

    Raises:
        ValueError: if the input does not hold 16 values
    """
    if matrix is None:
        return identity()
    arr = np.array(matrix, dtype=np.float64)
    if arr.shape == (16,):
        arr = arr.reshape(4, 4)
    if arr.shape != (4, 4):
        raise ValueError(f"Transform must be 4x4, got shape {arr.shape}")
    return arr


def translation_matrix(offset: ArrayLike3) -> NDArray[np.float64]:
    """Translation by ``offset`` (dx, dy, dz)."""
    m = identity()
    m[:3, 3] = np.asarray(offset, dtype=np.float64)
    return m


def scale_matrix(factor: Union[float, ArrayLike3]) -> NDArray[np.float64]:
    """Uniform (scalar) or per-axis scale about the origin."""
    m = identity()
    m[:3, :3] = np.diag(np.broadcast_to(np.asarray(factor, dtype=np.float64), (3,)))
    return m


def rotation_matrix(axis: ArrayLike3, angle_rad: float) -> NDArray[np.float64]:
    """Rotation about ``axis`` through the origin (Rodrigues' formula).

    Raises:
        ValueError: for a zero-length axis
    """
    axis = np.asarray(axis, dtype=np.float64)
    length = np.linalg.norm(axis)
    if length < 1e-12:
        raise ValueError("Rotation axis must be non-zero")
    x, y, z = axis / length

    K = np.array([
        [0.0, -z, y],
        [z, 0.0, -x],
        [-y, x, 0.0],
    ])
    R = np.eye(3) + np.sin(angle_rad) * K + (1 - np.cos(angle_rad)) * (K @ K)

    m = identity()
    m[:3, :3] = R
    return m


def compose(*matrices: object) -> NDArray[np.float64]:
    """Multiply matrices left to right: ``compose(A, B) == A @ B``."""
    result = identity()
    for matrix in matrices:
        result = result @ as_matrix(matrix)
    return result


def is_affine(matrix: NDArray[np.float64]) -> bool:
    """True when the bottom row is exactly (0, 0, 0, 1)."""
    return bool(np.array_equal(matrix[3], [0.0, 0.0, 0.0, 1.0]))


def apply_transform(
    points: NDArray[np.float64],
    matrix: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Transform an (N, 3) point array by a 4x4 matrix.

    Non-affine matrices get the homogeneous divide by ``w``; a zero ``w``
    yields inf/nan coordinates under normal float rules.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        return points.reshape(0, 3)

    transformed = points @ matrix[:3, :3].T + matrix[:3, 3]
    if is_affine(matrix):
        return transformed

    w = points @ matrix[3, :3] + matrix[3, 3]
    with np.errstate(divide='ignore', invalid='ignore'):
        return transformed / w[:, np.newaxis]
