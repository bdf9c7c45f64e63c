"""
===============================================================================
SURFACE PRIMITIVE TESTS
===============================================================================

Tests for the ray-testable surfaces shared by the detectors, covering:

1. DISK SURFACE
   - Front hit, double-sided hit, front-only rejection
   - Parallel rays, hits behind the origin, hits at the origin
   - Radius bound (with and without tolerance)

2. RECT SURFACE
   - Local coordinates, lateral bound, height bound, plane offset

3. SEGMENT SURFACE
   - Segment parameter, end points, zero-length segment

4. DEGENERATE INPUT
   - Invalid poses keep the previous geometry
   - NaN directions never produce a record

5. RAY
   - Direction normalization, intensity clamp, complex amplitude, terminate

Run with:
    python developer_tests/test_surfaces.py

Or with pytest:
    pytest developer_tests/test_surfaces.py -v
===============================================================================
"""

import sys
import math
from pathlib import Path

# Add the src-python directory to the path
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from optical_detectors.core.geometry import geometry, Point
from optical_detectors.core.ray import Ray
from optical_detectors.core.surfaces import DiskSurface, RectSurface, SegmentSurface


# =============================================================================
# TEST CONFIGURATION
# =============================================================================

TOLERANCE = 1e-6


def assert_close(actual, expected, tol=TOLERANCE, msg=""):
    """Assert that two values are close within tolerance."""
    if abs(actual - expected) > tol:
        raise AssertionError(
            f"{msg}: expected {expected}, got {actual} (diff: {abs(actual - expected)})"
        )


def make_disk(front_only=False, tolerance=0.0, diameter=20.0):
    disk = DiskSurface('sensor', front_only=front_only, radius_sq_tolerance=tolerance)
    disk.update(geometry.point(0, 0), 0.0, diameter)
    return disk


# =============================================================================
# DISK SURFACE
# =============================================================================

def test_disk_front_hit():
    """A ray arriving from the front hits the center of the disk."""
    disk = make_disk(front_only=True)
    records = disk.intersect({'x': 0, 'y': -10}, {'x': 0, 'y': 1})

    assert len(records) == 1
    record = records[0]
    assert_close(record.distance, 10.0, msg="distance")
    assert_close(record.point.x, 0.0, msg="hit x")
    assert_close(record.point.y, 0.0, msg="hit y")
    assert_close(record.normal.y, -1.0, msg="normal faces the ray")
    assert record.surface_id == 'sensor'


def test_disk_front_only_rejects_back():
    disk = make_disk(front_only=True)
    assert disk.intersect({'x': 0, 'y': 10}, {'x': 0, 'y': -1}) == []


def test_disk_double_sided_flips_normal():
    """A double-sided disk accepts rays from behind and reports a normal against them."""
    disk = make_disk(front_only=False)
    records = disk.intersect({'x': 0, 'y': 10}, {'x': 0, 'y': -1})

    assert len(records) == 1
    assert_close(records[0].distance, 10.0, msg="distance")
    assert_close(records[0].normal.y, 1.0, msg="flipped normal")
    d_dot_n = geometry.dot(geometry.point(0, -1), records[0].normal)
    assert d_dot_n < 0, "normal must oppose the ray"


def test_disk_parallel_ray():
    disk = make_disk()
    assert disk.intersect({'x': -20, 'y': 0}, {'x': 1, 'y': 0}) == []


def test_disk_hit_behind_origin():
    disk = make_disk()
    assert disk.intersect({'x': 0, 'y': 10}, {'x': 0, 'y': 1}) == []


def test_disk_rejects_hit_at_origin():
    """A ray emitted on the surface itself does not hit it again."""
    disk = make_disk()
    assert disk.intersect({'x': 0, 'y': 0}, {'x': 0, 'y': 1}) == []


def test_disk_radius_bound():
    disk = make_disk(tolerance=1e-9)
    assert disk.intersect({'x': 15, 'y': -10}, {'x': 0, 'y': 1}) == []
    # Exactly on the rim
    assert len(disk.intersect({'x': 10, 'y': -10}, {'x': 0, 'y': 1})) == 1


def test_disk_rotated():
    """At 90 degrees the front of a front-only disk faces +x."""
    disk = DiskSurface('sensor', front_only=True)
    disk.update(geometry.point(0, 0), math.pi / 2, 20.0)

    assert disk.intersect({'x': -10, 'y': 0}, {'x': 1, 'y': 0}) == []
    records = disk.intersect({'x': 10, 'y': 0}, {'x': -1, 'y': 0})
    assert len(records) == 1
    assert_close(records[0].point.x, 0.0, msg="hit x")


# =============================================================================
# RECT SURFACE
# =============================================================================

def test_rect_local_coordinates():
    rect = RectSurface('sensor', bound_height=True)
    rect.update(geometry.point(0, 0), 0.0, 80.0, 60.0)

    records = rect.intersect({'x': 10, 'y': -50}, {'x': 0, 'y': 1})
    assert len(records) == 1
    assert_close(records[0].distance, 50.0, msg="distance")
    assert_close(records[0].local_x, 10.0, msg="local x")
    assert_close(records[0].local_y, 0.0, msg="local y")


def test_rect_lateral_bound():
    rect = RectSurface('sensor')
    rect.update(geometry.point(0, 0), 0.0, 80.0, 60.0)

    assert rect.intersect({'x': 50, 'y': -50}, {'x': 0, 'y': 1}) == []
    assert len(rect.intersect({'x': 40, 'y': -50}, {'x': 0, 'y': 1})) == 1


def test_rect_plane_offset():
    """With an offset of -height/2 the plane is the face of the box on the -normal side."""
    rect = RectSurface('entrance', bound_height=False)
    rect.update(geometry.point(0, 0), 0.0, 80.0, 50.0, plane_offset=-25.0)

    records = rect.intersect({'x': 0, 'y': -100}, {'x': 0, 'y': 1})
    assert len(records) == 1
    assert_close(records[0].point.y, -25.0, msg="hit y")
    assert_close(records[0].local_y, -25.0, msg="local y")
    assert_close(records[0].distance, 75.0, msg="distance")


def test_rect_parallel_ray():
    rect = RectSurface('sensor')
    rect.update(geometry.point(0, 0), 0.0, 80.0, 60.0)
    assert rect.intersect({'x': -100, 'y': 0}, {'x': 1, 'y': 0}) == []


# =============================================================================
# SEGMENT SURFACE
# =============================================================================

def test_segment_hit():
    segment = SegmentSurface('front')
    segment.update(geometry.point(0, 0), 0.0, 100.0)

    records = segment.intersect({'x': 25, 'y': -10}, {'x': 0, 'y': 1})
    assert len(records) == 1
    assert_close(records[0].distance, 10.0, msg="distance")
    assert_close(records[0].point.x, 25.0, msg="hit x")
    assert_close(records[0].local_x, 25.0, msg="local x")
    assert_close(records[0].normal.y, -1.0, msg="normal faces the ray")


def test_segment_end_points():
    segment = SegmentSurface('front')
    segment.update(geometry.point(0, 0), 0.0, 100.0)

    assert len(segment.intersect({'x': 50, 'y': -10}, {'x': 0, 'y': 1})) == 1
    assert len(segment.intersect({'x': -50, 'y': -10}, {'x': 0, 'y': 1})) == 1
    assert segment.intersect({'x': 60, 'y': -10}, {'x': 0, 'y': 1}) == []


def test_segment_zero_length():
    segment = SegmentSurface('front')
    segment.update(geometry.point(0, 0), 0.0, 0.0)
    assert segment.intersect({'x': 0, 'y': -10}, {'x': 0, 'y': 1}) == []


def test_segment_behind_origin():
    segment = SegmentSurface('front')
    segment.update(geometry.point(0, 0), 0.0, 100.0)
    assert segment.intersect({'x': 0, 'y': -10}, {'x': 0, 'y': -1}) == []


# =============================================================================
# DEGENERATE INPUT
# =============================================================================

def test_surfaces_before_update():
    origin, direction = {'x': 0, 'y': -10}, {'x': 0, 'y': 1}
    assert DiskSurface('a').intersect(origin, direction) == []
    assert RectSurface('b').intersect(origin, direction) == []
    assert SegmentSurface('c').intersect(origin, direction) == []


def test_invalid_pose_keeps_geometry():
    disk = make_disk()
    disk.update(Point(float('nan'), 0.0), 0.0, 50.0)
    assert_close(disk.center.x, 0.0, msg="center kept")
    assert_close(disk.radius, 10.0, msg="radius kept")

    segment = SegmentSurface('front')
    segment.update(geometry.point(0, 0), 0.0, 100.0)
    segment.update(geometry.point(0, 0), float('inf'), 100.0)
    assert_close(segment.p1.x, -50.0, msg="p1 kept")


def test_nan_direction_rejected():
    disk = make_disk()
    assert disk.intersect({'x': 0, 'y': -10}, Point(float('nan'), 1.0)) == []

    rect = RectSurface('sensor')
    rect.update(geometry.point(0, 0), 0.0, 80.0, 60.0)
    assert rect.intersect({'x': 0, 'y': -10}, Point(float('nan'), 1.0)) == []


# =============================================================================
# RAY
# =============================================================================

def test_ray_construction():
    ray = Ray({'x': 0, 'y': 0}, {'x': 3, 'y': 4}, intensity=-2.0)
    assert_close(ray.direction['x'], 0.6, msg="dx")
    assert_close(ray.direction['y'], 0.8, msg="dy")
    assert ray.intensity == 0.0
    assert ray.wavelength_nm == 550
    assert not ray.terminated


def test_ray_complex_amplitude():
    ray = Ray({'x': 0, 'y': 0}, {'x': 1, 'y': 0}, intensity=4.0, phase=math.pi / 3)
    amplitude, phase = ray.get_complex_amplitude()
    assert_close(amplitude, 2.0, msg="amplitude")
    assert_close(phase, math.pi / 3, msg="phase")


def test_ray_terminate_keeps_first_reason():
    ray = Ray({'x': 0, 'y': 0}, {'x': 1, 'y': 0})
    ray.terminate('absorbed_photodiode')
    ray.terminate('absorbed_ccd')
    assert ray.terminated
    assert ray.end_reason == 'absorbed_photodiode'

    copy = ray.copy()
    assert not copy.terminated
    assert copy.uuid != ray.uuid


# =============================================================================
# MAIN
# =============================================================================

def run_all_tests():
    tests = [
        ("Disk front hit", test_disk_front_hit),
        ("Disk front-only back rejection", test_disk_front_only_rejects_back),
        ("Disk double-sided normal", test_disk_double_sided_flips_normal),
        ("Disk parallel ray", test_disk_parallel_ray),
        ("Disk hit behind origin", test_disk_hit_behind_origin),
        ("Disk hit at origin", test_disk_rejects_hit_at_origin),
        ("Disk radius bound", test_disk_radius_bound),
        ("Disk rotated", test_disk_rotated),
        ("Rect local coordinates", test_rect_local_coordinates),
        ("Rect lateral bound", test_rect_lateral_bound),
        ("Rect plane offset", test_rect_plane_offset),
        ("Rect parallel ray", test_rect_parallel_ray),
        ("Segment hit", test_segment_hit),
        ("Segment end points", test_segment_end_points),
        ("Segment zero length", test_segment_zero_length),
        ("Segment behind origin", test_segment_behind_origin),
        ("Surfaces before update", test_surfaces_before_update),
        ("Invalid pose", test_invalid_pose_keeps_geometry),
        ("NaN direction", test_nan_direction_rejected),
        ("Ray construction", test_ray_construction),
        ("Ray complex amplitude", test_ray_complex_amplitude),
        ("Ray terminate", test_ray_terminate_keeps_first_reason),
    ]

    passed = 0
    errors = []
    for name, test_func in tests:
        try:
            test_func()
            passed += 1
            print(f"  PASS: {name}")
        except Exception as e:
            errors.append((name, str(e)))
            print(f"  FAILED: {name}: {e}")

    print("\n" + "=" * 78)
    print(f"SUMMARY: {passed}/{len(tests)} tests passed")
    print("=" * 78)
    return not errors


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
