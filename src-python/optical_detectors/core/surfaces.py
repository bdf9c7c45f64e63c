"""
Copyright 2026 optical-detectors authors and contributors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

Ray-testable surface primitives for detectors.

A detector's pose (position + orientation) and size parameters are turned into
one of three shapes, each with a ray/surface intersection test:

- DiskSurface: a circular aperture, seen edge-on in the 2D scene
- RectSurface: a planar rectangle with lateral (and optionally height) bounds
- SegmentSurface: a line segment centered on the pose

Every degenerate case (parallel ray, hit behind or too close to the ray origin,
hit outside the bounds, NaN) results in an empty list, never an exception.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union, Dict

from .constants import MIN_RAY_SEGMENT_LENGTH, PARALLEL_EPSILON
from .geometry import geometry, Point

logger = logging.getLogger(__name__)

PointLike = Union[Point, Dict[str, float]]


@dataclass
class IntersectionRecord:
    """
    Result of a successful ray/surface intersection.

    Attributes:
        distance: Distance along the ray to the hit (always > MIN_RAY_SEGMENT_LENGTH).
        point: World coordinates of the hit.
        normal: Unit surface normal at the hit, facing the incoming ray.
        surface_id: Which face of the detector was hit (e.g. 'sensor').
        local_x: Offset from the detector center along its axis, if the surface reports it.
        local_y: Offset from the detector center along its normal, if the surface reports it.
    """
    distance: float
    point: Point
    normal: Point
    surface_id: str
    local_x: Optional[float] = None
    local_y: Optional[float] = None


def _pose_is_valid(center: Optional[PointLike], angle: float) -> bool:
    if center is None:
        return False
    center = geometry.as_point(center)
    return geometry.is_finite_point(center) and math.isfinite(angle)


def _facing_normal(normal: Point, d_dot_n: float) -> Point:
    """Flip `normal` if needed so that it opposes a ray with direction·normal == d_dot_n."""
    if d_dot_n > 0:
        return geometry.scale_vec(normal, -1.0)
    return normal


def _checked_record(record: IntersectionRecord, owner: str) -> List[IntersectionRecord]:
    values = [record.point.x, record.point.y, record.normal.x, record.normal.y]
    if record.local_x is not None:
        values.append(record.local_x)
    if record.local_y is not None:
        values.append(record.local_y)
    if any(math.isnan(v) for v in values):
        logger.error("%s: NaN in intersection result, hit rejected", owner)
        return []
    return [record]


class DiskSurface:
    """
    Circular aperture of a given diameter centered on the detector position.

    The aperture plane contains the detector axis (angle) and its normal is the
    axis rotated by -90 degrees, so that at angle 0 the front faces -y. A
    front-only disk accepts only rays arriving against the normal
    (direction·normal < 0).

    Attributes:
        surface_id (str): Identifier reported in intersection records.
        front_only (bool): Whether rays from behind are rejected.
        radius_sq_tolerance (float): Slack added to radius² in the bounds test.
        center (Point or None): Aperture center; None until the first valid update.
        axis (Point): Unit vector along the aperture.
        normal (Point): Unit normal of the aperture plane.
        radius (float): Aperture radius.
        radius_sq (float): Squared radius.
    """

    def __init__(self, surface_id: str, front_only: bool = False, radius_sq_tolerance: float = 0.0):
        self.surface_id = surface_id
        self.front_only = front_only
        self.radius_sq_tolerance = radius_sq_tolerance
        self.center: Optional[Point] = None
        self.axis = geometry.point(1.0, 0.0)
        self.normal = geometry.point(0.0, 1.0)
        self.radius = 0.0
        self.radius_sq = 0.0

    def update(self, center: PointLike, angle: float, diameter: float) -> None:
        """
        Recompute the derived geometry. Keeps the previous geometry if the pose is not valid.

        Args:
            center: Aperture center.
            angle: Orientation in radians.
            diameter: Aperture diameter.
        """
        if not _pose_is_valid(center, angle):
            return
        center = geometry.as_point(center)
        self.center = geometry.point(center.x, center.y)
        self.axis = geometry.from_angle(angle)
        self.normal = geometry.from_angle(angle - math.pi / 2)
        self.radius = diameter / 2.0
        self.radius_sq = self.radius * self.radius

    def intersect(self, origin: PointLike, direction: PointLike) -> List[IntersectionRecord]:
        """
        Intersect a ray with the aperture.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A list with one IntersectionRecord, or an empty list.
        """
        if self.center is None:
            return []
        o = geometry.as_point(origin)
        d = geometry.as_point(direction)

        d_dot_n = geometry.dot(d, self.normal)
        if self.front_only and d_dot_n >= -PARALLEL_EPSILON:
            return []
        if abs(d_dot_n) < PARALLEL_EPSILON:
            return []

        t = geometry.dot(geometry.subtract(self.center, o), self.normal) / d_dot_n
        if t < MIN_RAY_SEGMENT_LENGTH:
            return []

        hit = geometry.add(o, geometry.scale_vec(d, t))
        if geometry.distance_squared(hit, self.center) > self.radius_sq + self.radius_sq_tolerance:
            return []

        record = IntersectionRecord(
            distance=t,
            point=hit,
            normal=_facing_normal(self.normal, d_dot_n),
            surface_id=self.surface_id
        )
        return _checked_record(record, f"DiskSurface '{self.surface_id}'")


class RectSurface:
    """
    Planar rectangle of a given width (along the axis) and height (along the normal).

    The intersection plane passes through the detector center shifted by
    `plane_offset` along the normal. The hit must lie within half the width
    laterally; when `bound_height` is set it must also lie within half the
    height along the normal. Local coordinates of the hit relative to the
    detector center are reported in the record.

    Attributes:
        surface_id (str): Identifier reported in intersection records.
        bound_height (bool): Whether the height bound is enforced.
        center (Point or None): Detector center; None until the first valid update.
        plane_center (Point or None): A point of the intersection plane.
        axis (Point): Unit vector along the width.
        normal (Point): Unit normal of the plane.
        half_width (float): Half of the width.
        half_height (float): Half of the height.
    """

    def __init__(self, surface_id: str, bound_height: bool = True):
        self.surface_id = surface_id
        self.bound_height = bound_height
        self.center: Optional[Point] = None
        self.plane_center: Optional[Point] = None
        self.axis = geometry.point(1.0, 0.0)
        self.normal = geometry.point(0.0, 1.0)
        self.half_width = 0.0
        self.half_height = 0.0

    def update(self, center: PointLike, angle: float, width: float, height: float,
               plane_offset: float = 0.0) -> None:
        """
        Recompute the derived geometry. Keeps the previous geometry if the pose is not valid.

        Args:
            center: Detector center.
            angle: Orientation in radians.
            width: Extent along the axis.
            height: Extent along the normal.
            plane_offset: Signed shift of the intersection plane along the normal.
        """
        if not _pose_is_valid(center, angle):
            return
        center = geometry.as_point(center)
        self.center = geometry.point(center.x, center.y)
        self.axis = geometry.from_angle(angle)
        self.normal = geometry.from_angle(angle + math.pi / 2)
        self.half_width = width / 2.0
        self.half_height = height / 2.0
        self.plane_center = geometry.add(self.center, geometry.scale_vec(self.normal, plane_offset))

    def intersect(self, origin: PointLike, direction: PointLike) -> List[IntersectionRecord]:
        """
        Intersect a ray with the rectangle.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A list with one IntersectionRecord (with local_x/local_y), or an empty list.
        """
        if self.center is None:
            return []
        o = geometry.as_point(origin)
        d = geometry.as_point(direction)

        denom = geometry.dot(d, self.normal)
        if abs(denom) < PARALLEL_EPSILON:
            return []

        t = geometry.dot(geometry.subtract(self.plane_center, o), self.normal) / denom
        if t < MIN_RAY_SEGMENT_LENGTH:
            return []

        hit = geometry.add(o, geometry.scale_vec(d, t))
        local = geometry.subtract(hit, self.center)
        local_x = geometry.dot(local, self.axis)
        local_y = geometry.dot(local, self.normal)

        if abs(local_x) > self.half_width:
            return []
        if self.bound_height and abs(local_y) > self.half_height:
            return []

        record = IntersectionRecord(
            distance=t,
            point=hit,
            normal=_facing_normal(self.normal, denom),
            surface_id=self.surface_id,
            local_x=local_x,
            local_y=local_y
        )
        return _checked_record(record, f"RectSurface '{self.surface_id}'")


class SegmentSurface:
    """
    Line segment of a given length centered on the detector position, along its axis.

    Attributes:
        surface_id (str): Identifier reported in intersection records.
        p1 (Point or None): Start of the segment; None until the first valid update.
        p2 (Point or None): End of the segment.
        direction (Point): Unit vector from p1 to p2.
        normal (Point): The direction rotated by +90 degrees.
        length (float): Segment length.
    """

    def __init__(self, surface_id: str):
        self.surface_id = surface_id
        self.p1: Optional[Point] = None
        self.p2: Optional[Point] = None
        self.direction = geometry.point(1.0, 0.0)
        self.normal = geometry.point(0.0, 1.0)
        self.length = 0.0

    def update(self, center: PointLike, angle: float, length: float) -> None:
        """
        Recompute the endpoints. Keeps the previous geometry if the pose is not valid.

        Args:
            center: Midpoint of the segment.
            angle: Orientation in radians.
            length: Segment length.
        """
        if not _pose_is_valid(center, angle):
            return
        center = geometry.as_point(center)
        half = geometry.scale_vec(geometry.from_angle(angle), length / 2.0)
        self.p1 = geometry.subtract(center, half)
        self.p2 = geometry.add(center, half)
        self.direction = geometry.normalize_vec(geometry.subtract(self.p2, self.p1))
        self.normal = geometry.rotate_vec(self.direction, math.pi / 2)
        self.length = length

    def intersect(self, origin: PointLike, direction: PointLike) -> List[IntersectionRecord]:
        """
        Intersect a ray with the segment.

        With v1 = origin - p1, v2 = p2 - p1 and v3 the ray direction rotated by
        +90 degrees, the ray parameter is cross(v2, v1) / (v2·v3) and the segment
        parameter is (v1·v3) / (v2·v3). A zero-length segment yields v2·v3 == 0.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A list with one IntersectionRecord, or an empty list.
        """
        if self.p1 is None:
            return []
        o = geometry.as_point(origin)
        d = geometry.as_point(direction)

        v1 = geometry.subtract(o, self.p1)
        v2 = geometry.subtract(self.p2, self.p1)
        v3 = geometry.point(-d.y, d.x)
        dot_v2_v3 = geometry.dot(v2, v3)
        if abs(dot_v2_v3) < PARALLEL_EPSILON:
            return []

        t1 = geometry.cross(v2, v1) / dot_v2_v3
        t2 = geometry.dot(v1, v3) / dot_v2_v3
        if not (t1 > MIN_RAY_SEGMENT_LENGTH and 0.0 <= t2 <= 1.0):
            return []

        hit = geometry.add(o, geometry.scale_vec(d, t1))
        record = IntersectionRecord(
            distance=t1,
            point=hit,
            normal=_facing_normal(self.normal, geometry.dot(d, self.normal)),
            surface_id=self.surface_id,
            local_x=(t2 - 0.5) * self.length
        )
        return _checked_record(record, f"SegmentSurface '{self.surface_id}'")
