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

import logging
import math
from typing import Optional, Dict, Any, List, NamedTuple, TYPE_CHECKING

import numpy as np

from ..base_scene_obj import BaseSceneObj, DetectorKind, PropertyDescriptor, PropertyUpdate, parse_float, parse_int
from ...geometry import geometry, Point
from ...surfaces import SegmentSurface, IntersectionRecord

if TYPE_CHECKING:
    from ...ray import Ray

logger = logging.getLogger(__name__)


class ScreenBin(NamedTuple):
    """Snapshot of one spatial bin of a screen."""
    real: float
    imag: float
    intensity_sum: float
    hit_count: int


class PatternSample(NamedTuple):
    """
    One point of a screen's intensity pattern.

    Attributes:
        t: Position of the bin center along the screen, in [0, 1] from p1 to p2.
        coherent_intensity: |sum of phasors|² of the bin.
        normalized: coherent_intensity / max_intensity, capped at 1.
    """
    t: float
    coherent_intensity: float
    normalized: float


class Screen(BaseSceneObj):
    """
    A screen recording the interference pattern of the incident light.

    The screen is a line segment of the given length centered on its position,
    divided into `num_bins` equal cells. Each hit adds the ray's complex
    amplitude (phasor) to its cell, so rays in phase add up and rays in
    opposition cancel. The plain intensity sum is kept alongside as an
    incoherent reference.

    The screen is a recording surface: `interact` never terminates the ray.

    Attributes:
        pos (dict): Midpoint of the screen {'x': float, 'y': float}
        angle (float): Orientation in degrees
        length (float): Screen length (at least 10)
        num_bins (int): Number of cells, in [1, 1000]
        show_pattern (bool): Whether the host should display the pattern
        real, imag (numpy.ndarray): Accumulated phasor components per bin
        intensity_sum (numpy.ndarray): Accumulated intensity per bin
        hit_count (numpy.ndarray): Number of hits per bin
        max_intensity (float): Largest coherent intensity of any bin
    """

    type = 'Screen'
    kind = DetectorKind.SCREEN
    is_terminal = False
    termination_reason = None
    pick_tolerance = 5.0
    bbox_buffer = 5.0

    MIN_LENGTH = 10.0
    MAX_BINS = 1000

    serializable_defaults = {
        **BaseSceneObj.serializable_defaults,
        'length': 150.0,
        'num_bins': 200,
        'show_pattern': True
    }

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        super().__init__(scene, json_obj)
        self.length = max(self.MIN_LENGTH, parse_float(self.length) or self.MIN_LENGTH)
        num_bins = parse_int(self.num_bins)
        self.num_bins = max(1, min(self.MAX_BINS, num_bins if num_bins is not None else 1))
        self.show_pattern = bool(self.show_pattern)

        self.bin_width = 0.0
        self.max_intensity = 0.0
        self.real = np.zeros(self.num_bins)
        self.imag = np.zeros(self.num_bins)
        self.intensity_sum = np.zeros(self.num_bins)
        self.hit_count = np.zeros(self.num_bins, dtype=int)

        self.surface = SegmentSurface('front')
        self.on_size_changed()

    @property
    def p1(self) -> Optional[Point]:
        return self.surface.p1

    @property
    def p2(self) -> Optional[Point]:
        return self.surface.p2

    def update_geometry(self) -> None:
        self.surface.update(self.pose_point, self.angle_rad, self.length)
        self.bin_width = self.length / self.num_bins if self.num_bins > 0 else 0.0

    def reset(self) -> None:
        self.real = np.zeros(self.num_bins)
        self.imag = np.zeros(self.num_bins)
        self.intensity_sum = np.zeros(self.num_bins)
        self.hit_count = np.zeros(self.num_bins, dtype=int)
        self.max_intensity = 0.0

    def get_bin_index(self, point: Point) -> int:
        """
        Get the bin a point of the screen falls into.

        The point is projected on the screen direction; positions outside the
        screen are clamped to the first or last bin.
        """
        along = geometry.dot(geometry.subtract(point, self.p1), self.surface.direction)
        t = along / self.length
        return max(0, min(self.num_bins - 1, math.floor(t * self.num_bins)))

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        """
        Add the ray's phasor and intensity to the bin it hit.

        The ray is not terminated. A NaN phasor (NaN or infinite phase) is left
        out of the coherent sum, but the hit is still counted and its intensity
        added to the incoherent sum. A ray whose intensity is not a finite,
        non-negative number is not recorded at all.

        Returns:
            An empty list.
        """
        if self.p1 is None or self.length <= 1e-9 or len(self.real) != self.num_bins:
            return []
        if not (math.isfinite(ray.intensity) and ray.intensity >= 0):
            logger.debug("%s: ray with intensity %r not recorded", self.get_display_name(), ray.intensity)
            return []

        index = self.get_bin_index(geometry.as_point(record.point))
        amplitude, phase = ray.get_complex_amplitude()
        if math.isfinite(phase):
            ray_real = amplitude * math.cos(phase)
            ray_imag = amplitude * math.sin(phase)
        else:
            ray_real = ray_imag = math.nan

        if not (math.isnan(ray_real) or math.isnan(ray_imag)):
            self.real[index] += ray_real
            self.imag[index] += ray_imag

        self.intensity_sum[index] += ray.intensity
        self.hit_count[index] += 1

        coherent = self.get_coherent_intensity(index)
        if math.isfinite(coherent) and coherent > self.max_intensity:
            self.max_intensity = coherent
        return []

    def get_bin(self, index: int) -> ScreenBin:
        return ScreenBin(float(self.real[index]), float(self.imag[index]),
                         float(self.intensity_sum[index]), int(self.hit_count[index]))

    def get_coherent_intensity(self, index: int) -> float:
        """|real + i·imag|² of a bin."""
        return float(self.real[index] ** 2 + self.imag[index] ** 2)

    def get_bin_center(self, index: int) -> Optional[Point]:
        """World position of the center of a bin, or None before the geometry is valid."""
        if self.p1 is None:
            return None
        return geometry.lerp(self.p1, self.p2, (index + 0.5) / self.num_bins)

    def get_intensity_pattern(self) -> List[PatternSample]:
        """
        Get the coherent intensity pattern along the screen.

        Returns:
            One PatternSample per bin that received hits, in order from p1 to
            p2. Empty while the maximum intensity is negligible.
        """
        if self.max_intensity <= 1e-9:
            return []
        coherent = self.real ** 2 + self.imag ** 2
        samples = []
        for index in np.flatnonzero(self.hit_count):
            value = float(coherent[index])
            samples.append(PatternSample(
                t=(int(index) + 0.5) / self.num_bins,
                coherent_intensity=value,
                normalized=min(1.0, value / self.max_intensity)
            ))
        return samples

    def get_footprint(self):
        half = geometry.scale_vec(geometry.from_angle(self.angle_rad), self.length / 2.0)
        center = geometry.as_point(self.pos)
        return geometry.line(geometry.subtract(center, half), geometry.add(center, half)).to_shapely()

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        return {
            **super().get_properties(),
            'length': {'value': self.length, 'label': 'Length', 'type': 'number',
                       'min': self.MIN_LENGTH, 'step': 1},
            'num_bins': {'value': self.num_bins, 'label': 'Number of bins', 'type': 'number',
                         'min': 1, 'max': self.MAX_BINS, 'step': 1},
            'show_pattern': {'value': self.show_pattern, 'label': 'Show intensity pattern', 'type': 'checkbox'},
        }

    def set_property(self, name: str, value: Any) -> PropertyUpdate:
        update = super().set_property(name, value)
        if update['isHandled']:
            return update

        if name == 'length':
            length = parse_float(value)
            if length is None or length < self.MIN_LENGTH:
                return self._reject(name, value)
            return self._set_size_value('length', length)
        if name == 'num_bins':
            num_bins = parse_int(value)
            if num_bins is None or not 1 <= num_bins <= self.MAX_BINS:
                return self._reject(name, value)
            return self._set_size_value('num_bins', num_bins)
        if name == 'show_pattern':
            return self._set_flag(name, value)
        return update

    def __repr__(self) -> str:
        return (f"Screen(pos={self.pos}, angle={self.angle}, length={self.length}, "
                f"num_bins={self.num_bins}, hits={int(self.hit_count.sum())}, "
                f"max_intensity={self.max_intensity:.4f})")
