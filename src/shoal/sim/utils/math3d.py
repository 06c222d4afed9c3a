from __future__ import annotations

import math
from typing import NamedTuple

from pygame.math import Vector3

# Shorter vectors are treated as zero-length by the normalize helpers.
NORMALIZE_EPSILON = 1e-12

UP = Vector3(0.0, 1.0, 0.0)


class Basis(NamedTuple):
    """Orthonormal axes of an orientation; the columns of a rotation matrix."""

    x_axis: Vector3
    y_axis: Vector3
    z_axis: Vector3


def identity_basis() -> Basis:
    return Basis(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 1.0, 0.0), Vector3(0.0, 0.0, 1.0))


def _safe_normalize(vector: Vector3) -> Vector3:
    return _safe_normalize_xyz(vector.x, vector.y, vector.z)


def _safe_normalize_xyz(x: float, y: float, z: float) -> Vector3:
    length = math.sqrt(x * x + y * y + z * z)
    if length < NORMALIZE_EPSILON:
        return Vector3()
    inv = 1.0 / length
    return Vector3(x * inv, y * inv, z * inv)


def _normalize_ip(vector: Vector3) -> Vector3:
    """Normalize in place, leaving (near-)zero vectors untouched."""
    length = vector.length()
    if length < NORMALIZE_EPSILON:
        vector.update(0.0, 0.0, 0.0)
        return vector
    vector *= 1.0 / length
    return vector


def _scale_components(vector: Vector3, factors: tuple[float, float, float]) -> Vector3:
    return Vector3(vector.x * factors[0], vector.y * factors[1], vector.z * factors[2])


def look_at(direction: Vector3, up: Vector3 = UP) -> Basis:
    """
    Orientation that points an object's local -Z axis along `direction`.

    Matches the usual right-handed look-at from the origin: a zero `direction`
    yields the identity, and one parallel to `up` is nudged slightly so the
    cross product stays defined.
    """

    z_axis = Vector3(-direction.x, -direction.y, -direction.z)
    if z_axis.length_squared() == 0.0:
        z_axis.z = 1.0
    _normalize_ip(z_axis)
    x_axis = up.cross(z_axis)
    if x_axis.length_squared() == 0.0:
        if abs(up.z) == 1.0:
            z_axis.x += 0.0001
        else:
            z_axis.z += 0.0001
        _normalize_ip(z_axis)
        x_axis = up.cross(z_axis)
    _normalize_ip(x_axis)
    y_axis = z_axis.cross(x_axis)
    return Basis(x_axis, y_axis, z_axis)


def basis_to_quaternion(basis: Basis) -> tuple[float, float, float, float]:
    """Rotation quaternion `(x, y, z, w)` for a pure-rotation basis."""
    x_axis, y_axis, z_axis = basis
    m11, m12, m13 = x_axis.x, y_axis.x, z_axis.x
    m21, m22, m23 = x_axis.y, y_axis.y, z_axis.y
    m31, m32, m33 = x_axis.z, y_axis.z, z_axis.z
    trace = m11 + m22 + m33

    if trace > 0.0:
        s = 0.5 / math.sqrt(trace + 1.0)
        return ((m32 - m23) * s, (m13 - m31) * s, (m21 - m12) * s, 0.25 / s)
    if m11 > m22 and m11 > m33:
        s = 2.0 * math.sqrt(1.0 + m11 - m22 - m33)
        return (0.25 * s, (m12 + m21) / s, (m13 + m31) / s, (m32 - m23) / s)
    if m22 > m33:
        s = 2.0 * math.sqrt(1.0 + m22 - m11 - m33)
        return ((m12 + m21) / s, 0.25 * s, (m23 + m32) / s, (m13 - m31) / s)
    s = 2.0 * math.sqrt(1.0 + m33 - m11 - m22)
    return ((m13 + m31) / s, (m23 + m32) / s, 0.25 * s, (m21 - m12) / s)


def _yaw_pitch(direction: Vector3) -> tuple[float, float]:
    horizontal_sq = direction.x * direction.x + direction.z * direction.z
    if horizontal_sq + direction.y * direction.y < 1e-12:
        return 0.0, 0.0
    yaw = math.atan2(direction.x, direction.z)
    pitch = math.atan2(direction.y, math.sqrt(horizontal_sq))
    return yaw, pitch
