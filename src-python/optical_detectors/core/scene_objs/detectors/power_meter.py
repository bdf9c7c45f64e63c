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
from typing import Optional, Dict, Any, List, TYPE_CHECKING

from ..base_scene_obj import BaseSceneObj, DetectorKind, PropertyDescriptor, PropertyUpdate, parse_float
from ...geometry import geometry
from ...surfaces import DiskSurface, IntersectionRecord

if TYPE_CHECKING:
    from ...ray import Ray

logger = logging.getLogger(__name__)


class PowerMeter(BaseSceneObj):
    """
    A power meter measuring the total power of the incident light.

    The sensor is a circular aperture accepting rays from either side. Every
    accepted ray is absorbed; the meter keeps the total, the number of hits
    and the largest single-ray intensity.

    Attributes:
        pos (dict): Center of the sensor {'x': float, 'y': float}
        angle (float): Orientation in degrees
        diameter (float): Sensor diameter (at least 20)
        total_power (float): Sum of the absorbed intensities
        hit_count (int): Number of absorbed rays
        peak_power (float): Largest intensity of a single absorbed ray
    """

    type = 'PowerMeter'
    kind = DetectorKind.POWER_METER
    termination_reason = 'absorbed_power_meter'
    pick_tolerance = 10.0
    bbox_buffer = 15.0

    MIN_DIAMETER = 20.0

    serializable_defaults = {
        **BaseSceneObj.serializable_defaults,
        'diameter': 40.0
    }

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        super().__init__(scene, json_obj)
        self.diameter = max(self.MIN_DIAMETER, parse_float(self.diameter) or self.MIN_DIAMETER)

        self.total_power = 0.0
        self.hit_count = 0
        self.peak_power = 0.0

        self.surface = DiskSurface('sensor')
        self.on_size_changed()

    def update_geometry(self) -> None:
        self.surface.update(self.pose_point, self.angle_rad, self.diameter)

    def reset(self) -> None:
        self.total_power = 0.0
        self.hit_count = 0
        self.peak_power = 0.0

    def get_average_power(self) -> float:
        """
        Average power per absorbed ray.

        Returns:
            total_power / hit_count, or 0 when nothing was absorbed.
        """
        if self.hit_count == 0:
            return 0.0
        return self.total_power / self.hit_count

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        if not math.isfinite(ray.intensity):
            logger.debug("%s: ray with intensity %r not recorded", self.get_display_name(), ray.intensity)
            ray.terminate(self.termination_reason)
            return []
        self.total_power += ray.intensity
        self.hit_count += 1
        self.peak_power = max(self.peak_power, ray.intensity)
        ray.terminate(self.termination_reason)
        return []

    def get_footprint(self):
        return geometry.circle(geometry.as_point(self.pos), self.diameter / 2.0).to_shapely()

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        return {
            **super().get_properties(),
            'diameter': {'value': self.diameter, 'label': 'Diameter', 'type': 'number',
                         'min': self.MIN_DIAMETER, 'step': 5},
            'total_power': {'value': f"{self.total_power:.4e}", 'label': 'Total power',
                            'type': 'text', 'readonly': True},
            'hit_count': {'value': self.hit_count, 'label': 'Rays hit', 'type': 'text', 'readonly': True},
            'average_power': {'value': f"{self.get_average_power():.4e}", 'label': 'Average power per ray',
                              'type': 'text', 'readonly': True},
            'peak_power': {'value': f"{self.peak_power:.4e}", 'label': 'Peak power',
                           'type': 'text', 'readonly': True},
        }

    def set_property(self, name: str, value: Any) -> PropertyUpdate:
        update = super().set_property(name, value)
        if update['isHandled']:
            return update

        if name == 'diameter':
            d = parse_float(value)
            if d is None or d < self.MIN_DIAMETER:
                return self._reject(name, value)
            return self._set_size_value('diameter', d)
        if name in ('total_power', 'hit_count', 'average_power', 'peak_power'):
            return {'isHandled': True, 'isApplied': False, 'needsRetrace': False}
        return update

    def __repr__(self) -> str:
        return (f"PowerMeter(pos={self.pos}, angle={self.angle}, diameter={self.diameter}, "
                f"total_power={self.total_power:.4f}, hit_count={self.hit_count}, "
                f"peak_power={self.peak_power:.4f})")
