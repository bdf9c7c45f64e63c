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
from ...constants import RADIUS_SQ_TOLERANCE
from ...geometry import geometry
from ...surfaces import DiskSurface, IntersectionRecord

if TYPE_CHECKING:
    from ...ray import Ray

logger = logging.getLogger(__name__)


def format_power_reading(power: float) -> str:
    """
    Format an accumulated power for display.

    Exponential notation for tiny (< 0.001) and large (>= 1000) positive
    readings, three decimals otherwise.
    """
    if 0 < power < 0.001:
        return f"{power:.2e}"
    if power < 1000:
        return f"{power:.3f}"
    return f"{power:.3e}"


class Photodiode(BaseSceneObj):
    """
    A photodiode converting the incident optical power into a reading.

    The sensitive area is a circular aperture which only accepts rays coming
    from its front side (against the normal, which is the axis rotated by -90
    degrees; at angle 0 the front faces -y). Every accepted ray is absorbed.

    Attributes:
        pos (dict): Center of the aperture {'x': float, 'y': float}
        angle (float): Orientation in degrees
        diameter (float): Aperture diameter (at least 1)
        incident_power (float): Sum of the intensities of the absorbed rays
        hit_count (int): Number of absorbed rays
    """

    type = 'Photodiode'
    kind = DetectorKind.PHOTODIODE
    termination_reason = 'absorbed_photodiode'
    pick_tolerance = 0.0

    MIN_DIAMETER = 1.0

    serializable_defaults = {
        **BaseSceneObj.serializable_defaults,
        'diameter': 20.0
    }

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        """
        Initialize the photodiode.

        Args:
            scene: The scene the photodiode belongs to, if any.
            json_obj: The JSON object to be deserialized, if any.
        """
        super().__init__(scene, json_obj)
        self.diameter = max(self.MIN_DIAMETER, parse_float(self.diameter) or self.MIN_DIAMETER)

        self.incident_power = 0.0
        self.hit_count = 0

        self.surface = DiskSurface('detector_surface', front_only=True,
                                   radius_sq_tolerance=RADIUS_SQ_TOLERANCE)
        self.on_size_changed()

    @property
    def radius(self) -> float:
        return self.diameter / 2.0

    def update_geometry(self) -> None:
        self.surface.update(self.pose_point, self.angle_rad, self.diameter)

    def reset(self) -> None:
        self.incident_power = 0.0
        self.hit_count = 0

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        """
        Absorb the ray and add its intensity to the reading.

        Returns:
            An empty list (a photodiode never spawns rays).
        """
        if not math.isfinite(ray.intensity):
            logger.debug("%s: ray with intensity %r not recorded", self.get_display_name(), ray.intensity)
            ray.terminate(self.termination_reason)
            return []
        self.incident_power += ray.intensity
        self.hit_count += 1
        ray.terminate(self.termination_reason)
        return []

    def get_display_value(self) -> str:
        """The current reading, formatted for display."""
        return format_power_reading(self.incident_power)

    def get_footprint(self):
        return geometry.circle(geometry.as_point(self.pos), self.radius).to_shapely()

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        return {
            **super().get_properties(),
            'diameter': {'value': self.diameter, 'label': 'Aperture (diameter)', 'type': 'number',
                         'min': self.MIN_DIAMETER, 'step': 1},
            'measured_power': {'value': self.get_display_value(), 'label': 'Measured power',
                               'type': 'text', 'readonly': True},
            'hit_count': {'value': self.hit_count, 'label': 'Hit count', 'type': 'text', 'readonly': True},
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
        if name in ('measured_power', 'hit_count'):
            return {'isHandled': True, 'isApplied': False, 'needsRetrace': False}
        return update

    def __repr__(self) -> str:
        return (f"Photodiode(pos={self.pos}, angle={self.angle}, diameter={self.diameter}, "
                f"incident_power={self.incident_power:.4f}, hit_count={self.hit_count})")
