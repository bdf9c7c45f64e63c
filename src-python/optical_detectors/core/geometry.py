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
"""

import math
from typing import Union, Dict
from shapely.geometry import Point as ShapelyPoint, LineString, Polygon


class Point:
    """
    A point (or vector) in 2D space.
    Can be converted to a Shapely Point.
    """
    def __init__(self, x: float, y: float):
        self.x = x
        self.y = y

    def to_shapely(self) -> ShapelyPoint:
        """Convert to Shapely Point."""
        return ShapelyPoint(self.x, self.y)

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary representation."""
        return {'x': self.x, 'y': self.y}


class Line:
    """
    A line in 2D space, defined by two points.
    Used as a segment when p1 and p2 are the two endpoints.
    """
    def __init__(self, p1: Point, p2: Point):
        self.p1 = p1
        self.p2 = p2

    def to_shapely(self) -> LineString:
        """Convert to Shapely LineString."""
        return LineString([(self.p1.x, self.p1.y), (self.p2.x, self.p2.y)])

    def __repr__(self) -> str:
        return f"Line(p1={self.p1}, p2={self.p2})"


class Circle:
    """
    A circle in 2D space, defined by a center point and a radius.
    """
    def __init__(self, c: Point, r: float):
        self.c = c
        self.r = r

    def to_shapely(self) -> Polygon:
        """Convert to a Shapely polygon (buffered point approximating the circle)."""
        return self.c.to_shapely().buffer(self.r)

    def __repr__(self) -> str:
        return f"Circle(c={self.c}, r={self.r})"


class Geometry:
    """
    The geometry module, which provides basic geometric figures and vector operations.
    Points double as 2D vectors.
    """

    @staticmethod
    def point(x: float, y: float) -> Point:
        """
        Create a point.

        Args:
            x: The x-coordinate of the point.
            y: The y-coordinate of the point.

        Returns:
            Point object
        """
        return Point(x, y)

    @staticmethod
    def as_point(p: Union[Point, Dict[str, float]]) -> Point:
        """
        Coerce a Point or a {'x': ..., 'y': ...} dict into a Point.

        Scene objects persist their points as dicts; geometry operations work on Points.
        """
        if isinstance(p, Point):
            return p
        return Point(p['x'], p['y'])

    @staticmethod
    def line(p1: Point, p2: Point) -> Line:
        """Create a segment between two points."""
        return Line(p1, p2)

    @staticmethod
    def circle(c: Point, r: float) -> Circle:
        """Create a circle from its center and radius."""
        return Circle(c, r)

    @staticmethod
    def dot(p1: Point, p2: Point) -> float:
        """
        Calculate the dot product, where the two points are treated as vectors.

        Args:
            p1: First point (as vector)
            p2: Second point (as vector)

        Returns:
            Dot product
        """
        return p1.x * p2.x + p1.y * p2.y

    @staticmethod
    def cross(p1: Point, p2: Point) -> float:
        """
        Calculate the cross product, where the two points are treated as vectors.

        Args:
            p1: First point (as vector)
            p2: Second point (as vector)

        Returns:
            Cross product (z-component in 2D)
        """
        return p1.x * p2.y - p1.y * p2.x

    @staticmethod
    def add(p1: Point, p2: Point) -> Point:
        """Component-wise sum of two vectors."""
        return Point(p1.x + p2.x, p1.y + p2.y)

    @staticmethod
    def subtract(p1: Point, p2: Point) -> Point:
        """Component-wise difference p1 - p2."""
        return Point(p1.x - p2.x, p1.y - p2.y)

    @staticmethod
    def scale_vec(p1: Point, factor: float) -> Point:
        """Multiply a vector by a scalar."""
        return Point(p1.x * factor, p1.y * factor)

    @staticmethod
    def distance(p1: Point, p2: Point) -> float:
        """
        Calculate the distance between two points.

        Args:
            p1: First point
            p2: Second point

        Returns:
            Distance between points
        """
        return math.sqrt(Geometry.distance_squared(p1, p2))

    @staticmethod
    def distance_squared(p1: Point, p2: Point) -> float:
        """
        Calculate the squared distance between two points.

        Args:
            p1: First point
            p2: Second point

        Returns:
            Squared distance between points
        """
        dx = p1.x - p2.x
        dy = p1.y - p2.y
        return dx * dx + dy * dy

    @staticmethod
    def normalize_vec(p1: Point) -> Point:
        """
        Normalize the given point as if it were a vector.

        A zero vector is returned unchanged instead of dividing by zero.

        Args:
            p1: Point (as vector)

        Returns:
            Normalized vector
        """
        len_val = math.sqrt(p1.x * p1.x + p1.y * p1.y)
        if len_val == 0:
            return Point(0.0, 0.0)
        return Point(p1.x / len_val, p1.y / len_val)

    @staticmethod
    def rotate_vec(p1: Point, angle: float) -> Point:
        """
        Rotate the given point as if it were a vector by the given angle in radians.

        Args:
            p1: Point (as vector)
            angle: Rotation angle in radians

        Returns:
            Rotated vector
        """
        return Point(
            p1.x * math.cos(angle) - p1.y * math.sin(angle),
            p1.x * math.sin(angle) + p1.y * math.cos(angle)
        )

    @staticmethod
    def from_angle(angle: float) -> Point:
        """Unit vector pointing at the given angle in radians."""
        return Point(math.cos(angle), math.sin(angle))

    @staticmethod
    def lerp(p1: Point, p2: Point, t: float) -> Point:
        """
        Linear interpolation between two points, with t clamped to [0, 1].
        """
        t = max(0.0, min(1.0, t))
        return Point(p1.x * (1 - t) + p2.x * t, p1.y * (1 - t) + p2.y * t)

    @staticmethod
    def is_finite_point(p1: Point) -> bool:
        """True when neither coordinate is NaN or infinite."""
        return math.isfinite(p1.x) and math.isfinite(p1.y)


# Create a singleton instance for convenience
geometry = Geometry()
