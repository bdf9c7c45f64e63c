"""
===============================================================================
SCREEN TESTS - Coherent Accumulation
===============================================================================

Tests for the interference screen:

1. INTERFERENCE LAW
   - Two equal rays in opposition cancel: I ~ 0
   - Two equal rays in phase add up: I ~ (2A)^2
   - The incoherent sum is kept alongside

2. BINNING
   - Projection of the hit on the screen, clamping of the last bin
   - Bin centers and the normalized intensity pattern

3. STATE LIFECYCLE
   - The screen never terminates rays
   - Editing num_bins yields a freshly sized, zeroed state
   - NaN phasors (NaN or infinite phase) are left out of the coherent sum
   - Rays with a non-finite intensity are not recorded

Run with:
    python developer_tests/test_screen.py

Or with pytest:
    pytest developer_tests/test_screen.py -v
===============================================================================
"""

import sys
import math
from pathlib import Path

import numpy as np

# Add the src-python directory to the path
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from optical_detectors.core.ray import Ray
from optical_detectors.core.scene_objs import Screen


# =============================================================================
# TEST CONFIGURATION
# =============================================================================

TOLERANCE = 1e-9


def assert_close(actual, expected, tol=TOLERANCE, msg=""):
    """Assert that two values are close within tolerance."""
    if abs(actual - expected) > tol:
        raise AssertionError(
            f"{msg}: expected {expected}, got {actual} (diff: {abs(actual - expected)})"
        )


def make_screen(num_bins=10):
    """Screen of length 150 along x, centered at the origin."""
    return Screen(json_obj={'num_bins': num_bins})


def fire(screen, x=1.0, intensity=1.0, phase=0.0):
    """Send a ray from below onto the screen at the given x. Returns (ray, records)."""
    ray = Ray({'x': x, 'y': -10}, {'x': 0, 'y': 1}, intensity=intensity, phase=phase)
    records = screen.intersect(ray.origin, ray.direction)
    if records:
        assert screen.interact(ray, records[0]) == []
    return ray, records


# =============================================================================
# INTERFERENCE LAW
# =============================================================================

def test_destructive_interference():
    """Phases 0 and pi, equal amplitude, same bin: the coherent intensity vanishes."""
    print("\n" + "=" * 60)
    print("TEST: Destructive interference")
    print("=" * 60)

    screen = make_screen()
    amplitude = 0.5
    fire(screen, intensity=amplitude ** 2, phase=0.0)
    fire(screen, intensity=amplitude ** 2, phase=math.pi)

    index = screen.get_bin_index(screen.get_bin_center(5))
    assert index == 5
    assert_close(screen.get_coherent_intensity(5), 0.0, msg="coherent intensity")
    assert_close(screen.get_bin(5).intensity_sum, 2 * amplitude ** 2, msg="incoherent sum")
    assert screen.get_bin(5).hit_count == 2
    print(f"  PASS: I = {screen.get_coherent_intensity(5):.3e}")


def test_constructive_interference():
    """Phases 0 and 0, equal amplitude, same bin: I = (2A)^2."""
    screen = make_screen()
    amplitude = 0.5
    fire(screen, intensity=amplitude ** 2, phase=0.0)
    fire(screen, intensity=amplitude ** 2, phase=0.0)

    assert_close(screen.get_coherent_intensity(5), (2 * amplitude) ** 2, msg="coherent intensity")
    assert_close(screen.max_intensity, (2 * amplitude) ** 2, msg="max intensity")


def test_quadrature_phasors():
    """Phases 0 and pi/2 add as orthogonal phasors: I = 2A^2."""
    screen = make_screen()
    fire(screen, intensity=1.0, phase=0.0)
    fire(screen, intensity=1.0, phase=math.pi / 2)

    b = screen.get_bin(5)
    assert_close(b.real, 1.0, msg="real")
    assert_close(b.imag, 1.0, msg="imag")
    assert_close(screen.get_coherent_intensity(5), 2.0, msg="coherent intensity")


def test_different_bins_do_not_interfere():
    screen = make_screen()
    fire(screen, x=1.0, phase=0.0)
    fire(screen, x=-40.0, phase=math.pi)

    assert_close(screen.get_coherent_intensity(5), 1.0, msg="bin 5")
    assert_close(screen.get_coherent_intensity(2), 1.0, msg="bin 2")


# =============================================================================
# BINNING
# =============================================================================

def test_bin_index_projection():
    screen = make_screen()
    assert screen.bin_width == 15.0
    assert_close(screen.p1.x, -75.0, msg="p1")
    assert_close(screen.p2.x, 75.0, msg="p2")

    fire(screen, x=-74.0)
    fire(screen, x=75.0)
    assert screen.get_bin(0).hit_count == 1
    assert screen.get_bin(9).hit_count == 1, "the far end falls into the last bin"


def test_bin_center():
    screen = make_screen()
    center = screen.get_bin_center(5)
    assert_close(center.x, 7.5, msg="bin center x")
    assert_close(center.y, 0.0, msg="bin center y")


def test_intensity_pattern():
    screen = make_screen()
    assert screen.get_intensity_pattern() == []

    fire(screen, x=1.0, intensity=1.0)
    fire(screen, x=1.0, intensity=1.0)
    fire(screen, x=-40.0, intensity=1.0)

    pattern = screen.get_intensity_pattern()
    assert [round(s.t, 6) for s in pattern] == [0.25, 0.55]
    assert_close(pattern[0].normalized, 0.25, msg="bin 2 normalized")
    assert_close(pattern[1].normalized, 1.0, msg="bin 5 normalized")
    assert all(0.0 <= s.normalized <= 1.0 for s in pattern)


def test_miss_outside_segment():
    screen = make_screen()
    _, records = fire(screen, x=80.0)
    assert records == []


# =============================================================================
# STATE LIFECYCLE
# =============================================================================

def test_screen_does_not_terminate():
    screen = make_screen()
    ray, records = fire(screen)
    assert len(records) == 1
    assert not ray.terminated
    assert ray.end_reason is None
    assert screen.is_terminal is False


def test_num_bins_edit_resets_state():
    """Changing num_bins 100 -> 50 leaves a zeroed state of the new size."""
    screen = make_screen(num_bins=100)
    for x in (-50.0, 0.0, 1.0, 30.0):
        fire(screen, x=x)
    assert screen.hit_count.sum() == 4

    update = screen.set_property('num_bins', 50)
    assert update == {'isHandled': True, 'isApplied': True, 'needsRetrace': True}
    assert screen.num_bins == 50
    assert screen.bin_width == 3.0
    for array in (screen.real, screen.imag, screen.intensity_sum, screen.hit_count):
        assert len(array) == 50
        assert not array.any()
    assert screen.max_intensity == 0.0


def test_num_bins_bounds():
    screen = make_screen()
    for value in (0, -3, 1001, 'abc', None):
        update = screen.set_property('num_bins', value)
        assert update['isHandled'] and not update['isApplied'], f"num_bins={value!r}"
    assert screen.num_bins == 10
    assert screen.set_property('num_bins', 1000)['isApplied']
    assert Screen(json_obj={'num_bins': 5000}).num_bins == 1000


def test_length_edit():
    screen = make_screen()
    assert screen.set_property('length', 5)['isApplied'] is False
    assert screen.set_property('length', 300)['needsRetrace'] is True
    assert_close(screen.p1.x, -150.0, msg="p1 after length edit")
    assert screen.bin_width == 30.0


def test_nan_phase():
    """A NaN phasor is skipped; the hit and its intensity are still counted."""
    screen = make_screen()
    fire(screen, intensity=1.0, phase=float('nan'))

    b = screen.get_bin(5)
    assert b.real == 0.0 and b.imag == 0.0
    assert b.hit_count == 1
    assert b.intensity_sum == 1.0
    assert screen.max_intensity == 0.0
    assert math.isfinite(screen.get_coherent_intensity(5))


def test_infinite_phase():
    """An infinite phase behaves like a NaN one: no phasor, but the hit counts."""
    screen = make_screen()
    for phase in (float('inf'), float('-inf')):
        ray, records = fire(screen, intensity=1.0, phase=phase)
        assert len(records) == 1
        assert not ray.terminated

    b = screen.get_bin(5)
    assert b.real == 0.0 and b.imag == 0.0
    assert b.hit_count == 2
    assert b.intensity_sum == 2.0
    assert screen.max_intensity == 0.0


def test_non_finite_intensity_not_recorded():
    screen = make_screen()
    fire(screen, intensity=1.0)

    ray = Ray({'x': 1.0, 'y': -10}, {'x': 0, 'y': 1})
    ray.intensity = float('nan')
    records = screen.intersect(ray.origin, ray.direction)
    assert screen.interact(ray, records[0]) == []

    b = screen.get_bin(5)
    assert b.hit_count == 1
    assert b.intensity_sum == 1.0
    assert np.isfinite(screen.intensity_sum).all()
    assert_close(screen.max_intensity, 1.0, msg="max intensity")


def test_reset():
    screen = make_screen()
    fire(screen)
    screen.on_simulation_start()
    assert not screen.real.any() and not screen.hit_count.any()
    assert screen.max_intensity == 0.0


# =============================================================================
# MAIN
# =============================================================================

def run_all_tests():
    tests = [
        ("Destructive interference", test_destructive_interference),
        ("Constructive interference", test_constructive_interference),
        ("Quadrature phasors", test_quadrature_phasors),
        ("Separate bins", test_different_bins_do_not_interfere),
        ("Bin index projection", test_bin_index_projection),
        ("Bin center", test_bin_center),
        ("Intensity pattern", test_intensity_pattern),
        ("Miss outside segment", test_miss_outside_segment),
        ("No termination", test_screen_does_not_terminate),
        ("num_bins edit reset", test_num_bins_edit_resets_state),
        ("num_bins bounds", test_num_bins_bounds),
        ("Length edit", test_length_edit),
        ("NaN phase", test_nan_phase),
        ("Infinite phase", test_infinite_phase),
        ("Non-finite intensity", test_non_finite_intensity_not_recorded),
        ("Reset", test_reset),
    ]

    passed = 0
    errors = []
    for name, test_func in tests:
        try:
            test_func()
            passed += 1
        except Exception as e:
            errors.append((name, str(e)))
            print(f"\n  FAILED: {name}")
            print(f"    Error: {e}")

    print("\n" + "=" * 78)
    print(f"SUMMARY: {passed}/{len(tests)} tests passed")
    print("=" * 78)
    return not errors


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
