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

"""
Interference Demo - Two Slits on a Screen

Two coherent point sources (the slits) light a Screen detector. Every ray
carries the optical phase 2*pi*path/wavelength accumulated from its slit,
and the screen adds the rays of each bin as phasors.

Setup:
- Slits at (-10, -500) and (10, -500), i.e. separation d = 20
- Screen of length 200 with 100 bins along y = 0
- Wavelength 2 (scene units)

Expected behavior:
- Fringes with a spacing of wavelength * L / d = 50 along the screen
- The recorded pattern follows cos^2(pi * d * x / (wavelength * L))
- The incoherent intensity sum stays flat across the screen
"""

import sys
import os
import math

import numpy as np

# Add parent directories to path to import optical_detectors modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from optical_detectors.core.geometry import geometry
from optical_detectors.core.ray import Ray
from optical_detectors.core.scene import Scene
from optical_detectors.core.scene_objs import Screen

WAVELENGTH = 2.0
SLIT_SEPARATION = 20.0
DISTANCE = 500.0


def trace_slit(scene, slit, intensity):
    """Send one ray from the slit to every bin center of every screen in the scene."""
    for screen in scene.optical_objs:
        for index in range(screen.num_bins):
            target = screen.get_bin_center(index)
            direction = geometry.normalize_vec(geometry.subtract(target, slit))
            probe = Ray(slit.to_dict(), direction.to_dict(), intensity=intensity)
            records = screen.intersect(probe.origin, probe.direction)
            if not records:
                continue
            # Phase accumulated along the path from the slit to the screen
            probe.phase = 2 * math.pi * records[0].distance / WAVELENGTH
            screen.interact(probe, records[0])


def main():
    print("Interference Demo - Two Slits on a Screen")
    print("=" * 60)

    scene = Scene()
    scene.name = 'Two slits'
    screen = Screen(scene, {'pos': {'x': 0, 'y': 0}, 'length': 200, 'num_bins': 100})
    scene.add_object(screen)

    slits = [geometry.point(-SLIT_SEPARATION / 2, -DISTANCE),
             geometry.point(SLIT_SEPARATION / 2, -DISTANCE)]

    print(f"\nScene setup:")
    print(f"  Slits: {[s.to_dict() for s in slits]}")
    print(f"  Screen: length={screen.length}, bins={screen.num_bins}, bin width={screen.bin_width}")
    print(f"  Wavelength: {WAVELENGTH}")

    scene.on_simulation_start()
    for slit in slits:
        trace_slit(scene, slit, intensity=1.0)

    pattern = screen.get_intensity_pattern()
    positions = np.array([(s.t - 0.5) * screen.length for s in pattern])
    measured = np.array([s.normalized for s in pattern])
    expected = np.cos(math.pi * SLIT_SEPARATION * positions / (WAVELENGTH * DISTANCE)) ** 2

    print(f"\nRecorded {int(screen.hit_count.sum())} hits in {len(pattern)} bins")
    print(f"  Max coherent intensity: {screen.max_intensity:.4f} (two in-phase rays: 4.0)")
    print(f"  Fringe spacing (theory): {WAVELENGTH * DISTANCE / SLIT_SEPARATION:.1f}")
    print(f"  Max deviation from cos^2 law: {np.abs(measured - expected).max():.4f}")

    print("\nPattern:")
    for x, value in zip(positions[::4], measured[::4]):
        bar = '#' * int(round(value * 40))
        print(f"  x={x:7.1f}  {value:5.3f}  {bar}")

    # Incoherent reference: the plain intensity sum is flat
    incoherent = screen.intensity_sum
    print(f"\nIncoherent sum per bin: min={incoherent.min():.3f}, max={incoherent.max():.3f}")

    # Save the pattern next to this script
    import csv
    import json

    output_dir = os.path.dirname(__file__)
    csv_file = os.path.join(output_dir, 'pattern.csv')
    with open(csv_file, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['x', 'coherent_intensity', 'normalized', 'expected'])
        for x, sample, exp in zip(positions, pattern, expected):
            writer.writerow([f"{x:.4f}", f"{sample.coherent_intensity:.6f}",
                             f"{sample.normalized:.6f}", f"{exp:.6f}"])
    print(f"\nCSV data exported to: {csv_file}")

    json_file = os.path.join(output_dir, 'scene.json')
    with open(json_file, 'w') as f:
        json.dump(scene.serialize(), f, indent=2)
    print(f"Scene configuration saved to: {json_file}")


if __name__ == "__main__":
    main()
