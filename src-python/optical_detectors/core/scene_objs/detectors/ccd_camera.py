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
from typing import Optional, Dict, Any, List, NamedTuple, Tuple, TYPE_CHECKING

import numpy as np

from ..base_scene_obj import BaseSceneObj, DetectorKind, PropertyDescriptor, PropertyUpdate, parse_float, parse_int
from ...constants import PROPERTY_CHANGE_EPSILON
from ...surfaces import RectSurface, IntersectionRecord

if TYPE_CHECKING:
    from ...ray import Ray

logger = logging.getLogger(__name__)


class PixelValue(NamedTuple):
    intensity: float
    hit_count: int


class CCDCamera(BaseSceneObj):
    """
    A CCD camera accumulating the incident light into a pixel grid.

    The sensor is a width x height rectangle divided into
    pixel_count_x x pixel_count_y pixels. The signal recorded for a ray is its
    intensity scaled by the quantum efficiency and the exposure time. Every
    accepted ray is absorbed.

    Attributes:
        pos (dict): Center of the sensor {'x': float, 'y': float}
        angle (float): Orientation in degrees
        width (float): Sensor extent along the axis (at least 20)
        height (float): Sensor extent along the normal (at least 20)
        pixel_count_x (int): Pixels along the width, in [4, 128]
        pixel_count_y (int): Pixels along the height, in [4, 128]
        quantum_efficiency (float): In [0.1, 1]
        exposure_time (float): At least 0.1
        show_image (bool): Whether the host should display the image
        pixel_intensity (numpy.ndarray): Accumulated signal, shape (pixel_count_y, pixel_count_x)
        pixel_hits (numpy.ndarray): Number of hits per pixel, same shape
        max_pixel_value (float): Largest pixel signal
    """

    type = 'CCDCamera'
    kind = DetectorKind.CCD_CAMERA
    termination_reason = 'absorbed_ccd'
    pick_tolerance = 10.0
    bbox_buffer = 15.0

    MIN_SIZE = 20.0
    MIN_PIXEL_COUNT = 4
    MAX_PIXEL_COUNT = 128
    MIN_QUANTUM_EFFICIENCY = 0.1
    MAX_QUANTUM_EFFICIENCY = 1.0
    MIN_EXPOSURE_TIME = 0.1

    serializable_defaults = {
        **BaseSceneObj.serializable_defaults,
        'width': 80.0,
        'height': 60.0,
        'pixel_count_x': 32,
        'pixel_count_y': 24,
        'quantum_efficiency': 0.8,
        'exposure_time': 1.0,
        'show_image': True
    }

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        super().__init__(scene, json_obj)
        defaults = self.__class__.serializable_defaults
        self.width = max(self.MIN_SIZE, parse_float(self.width) or self.MIN_SIZE)
        self.height = max(self.MIN_SIZE, parse_float(self.height) or self.MIN_SIZE)
        self.pixel_count_x = self._clamp_count(parse_int(self.pixel_count_x), defaults['pixel_count_x'])
        self.pixel_count_y = self._clamp_count(parse_int(self.pixel_count_y), defaults['pixel_count_y'])

        qe = parse_float(self.quantum_efficiency)
        if qe is None:
            qe = defaults['quantum_efficiency']
        self.quantum_efficiency = max(self.MIN_QUANTUM_EFFICIENCY, min(self.MAX_QUANTUM_EFFICIENCY, qe))
        exposure = parse_float(self.exposure_time)
        if exposure is None:
            exposure = defaults['exposure_time']
        self.exposure_time = max(self.MIN_EXPOSURE_TIME, exposure)
        self.show_image = bool(self.show_image)

        self.pixel_width = 0.0
        self.pixel_height = 0.0
        self.pixel_intensity = np.zeros((self.pixel_count_y, self.pixel_count_x))
        self.pixel_hits = np.zeros((self.pixel_count_y, self.pixel_count_x), dtype=int)
        self.max_pixel_value = 0.0

        self.surface = RectSurface('sensor', bound_height=True)
        self.on_size_changed()

    def _clamp_count(self, count: Optional[int], default: int) -> int:
        if count is None:
            count = default
        return max(self.MIN_PIXEL_COUNT, min(self.MAX_PIXEL_COUNT, count))

    def update_geometry(self) -> None:
        self.surface.update(self.pose_point, self.angle_rad, self.width, self.height)
        self.pixel_width = self.width / self.pixel_count_x
        self.pixel_height = self.height / self.pixel_count_y

    def reset(self) -> None:
        self.pixel_intensity = np.zeros((self.pixel_count_y, self.pixel_count_x))
        self.pixel_hits = np.zeros((self.pixel_count_y, self.pixel_count_x), dtype=int)
        self.max_pixel_value = 0.0

    def get_pixel_index(self, local_x: float, local_y: float) -> Tuple[int, int]:
        """
        Get the (ix, iy) pixel of a point given in sensor coordinates.

        Points on or past the border are clamped to the outermost pixels.
        """
        ix = math.floor((local_x + self.width / 2.0) / self.pixel_width)
        iy = math.floor((local_y + self.height / 2.0) / self.pixel_height)
        ix = max(0, min(self.pixel_count_x - 1, ix))
        iy = max(0, min(self.pixel_count_y - 1, iy))
        return ix, iy

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        if not math.isfinite(ray.intensity):
            logger.debug("%s: ray with intensity %r not recorded", self.get_display_name(), ray.intensity)
            ray.terminate(self.termination_reason)
            return []
        ix, iy = self.get_pixel_index(record.local_x or 0.0, record.local_y or 0.0)
        effective_intensity = ray.intensity * self.quantum_efficiency * self.exposure_time
        self.pixel_intensity[iy, ix] += effective_intensity
        self.pixel_hits[iy, ix] += 1
        value = float(self.pixel_intensity[iy, ix])
        if value > self.max_pixel_value:
            self.max_pixel_value = value
        ray.terminate(self.termination_reason)
        return []

    def get_pixel(self, ix: int, iy: int) -> PixelValue:
        return PixelValue(float(self.pixel_intensity[iy, ix]), int(self.pixel_hits[iy, ix]))

    def get_total_intensity(self) -> float:
        return float(self.pixel_intensity.sum())

    def get_image(self) -> Optional[np.ndarray]:
        """
        Get the image normalized to the brightest pixel.

        Returns:
            A (pixel_count_y, pixel_count_x) array with values in [0, 1], row
            by row, or None while no signal has been recorded.
        """
        if self.max_pixel_value <= 0:
            return None
        return self.pixel_intensity / self.max_pixel_value

    def get_footprint(self):
        return self._rect_footprint(self.width, self.height)

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        return {
            **super().get_properties(),
            'width': {'value': self.width, 'label': 'Width', 'type': 'number', 'min': self.MIN_SIZE, 'step': 5},
            'height': {'value': self.height, 'label': 'Height', 'type': 'number', 'min': self.MIN_SIZE, 'step': 5},
            'pixel_count_x': {'value': self.pixel_count_x, 'label': 'Horizontal pixels', 'type': 'number',
                              'min': self.MIN_PIXEL_COUNT, 'max': self.MAX_PIXEL_COUNT, 'step': 4},
            'pixel_count_y': {'value': self.pixel_count_y, 'label': 'Vertical pixels', 'type': 'number',
                              'min': self.MIN_PIXEL_COUNT, 'max': self.MAX_PIXEL_COUNT, 'step': 4},
            'quantum_efficiency': {'value': self.quantum_efficiency, 'label': 'Quantum efficiency', 'type': 'number',
                                   'min': self.MIN_QUANTUM_EFFICIENCY, 'max': self.MAX_QUANTUM_EFFICIENCY,
                                   'step': 0.05},
            'exposure_time': {'value': self.exposure_time, 'label': 'Exposure time', 'type': 'number',
                              'min': self.MIN_EXPOSURE_TIME, 'step': 0.1},
            'show_image': {'value': self.show_image, 'label': 'Show image', 'type': 'checkbox'},
            'total_intensity': {'value': f"{self.get_total_intensity():.4f}", 'label': 'Total intensity',
                                'type': 'text', 'readonly': True},
        }

    def _set_gain_value(self, name: str, new_value: float) -> PropertyUpdate:
        # Gains scale future hits only; the recorded image is kept until the retrace.
        if abs(getattr(self, name) - new_value) <= PROPERTY_CHANGE_EPSILON:
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
        setattr(self, name, new_value)
        return {'isHandled': True, 'isApplied': True, 'needsRetrace': True}

    def set_property(self, name: str, value: Any) -> PropertyUpdate:
        update = super().set_property(name, value)
        if update['isHandled']:
            return update

        if name in ('width', 'height'):
            size = parse_float(value)
            if size is None or size < self.MIN_SIZE:
                return self._reject(name, value)
            return self._set_size_value(name, size)
        if name in ('pixel_count_x', 'pixel_count_y'):
            count = parse_int(value)
            if count is None or not self.MIN_PIXEL_COUNT <= count <= self.MAX_PIXEL_COUNT:
                return self._reject(name, value)
            return self._set_size_value(name, count)
        if name == 'quantum_efficiency':
            qe = parse_float(value)
            if qe is None or not self.MIN_QUANTUM_EFFICIENCY <= qe <= self.MAX_QUANTUM_EFFICIENCY:
                return self._reject(name, value)
            return self._set_gain_value(name, qe)
        if name == 'exposure_time':
            exposure = parse_float(value)
            if exposure is None or exposure < self.MIN_EXPOSURE_TIME:
                return self._reject(name, value)
            return self._set_gain_value(name, exposure)
        if name == 'show_image':
            return self._set_flag(name, value)
        if name == 'total_intensity':
            return {'isHandled': True, 'isApplied': False, 'needsRetrace': False}
        return update

    def __repr__(self) -> str:
        return (f"CCDCamera(pos={self.pos}, angle={self.angle}, size={self.width}x{self.height}, "
                f"pixels={self.pixel_count_x}x{self.pixel_count_y}, "
                f"max_pixel_value={self.max_pixel_value:.4f})")
