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

import copy
import json
import logging
import math
import uuid as uuid_module
from enum import Enum
from typing import Optional, Dict, Any, List, TypedDict, Union, TYPE_CHECKING

from shapely import affinity
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry

from ..constants import PROPERTY_CHANGE_EPSILON
from ..geometry import geometry, Point
from ..surfaces import IntersectionRecord

if TYPE_CHECKING:
    from ..ray import Ray

logger = logging.getLogger(__name__)


class DetectorKind(Enum):
    """The detector variants. The value is the serialized `type` string."""
    PHOTODIODE = 'Photodiode'
    POWER_METER = 'PowerMeter'
    SPECTROMETER = 'Spectrometer'
    SCREEN = 'Screen'
    CCD_CAMERA = 'CCDCamera'


class PropertyDescriptor(TypedDict, total=False):
    """
    Description of one configurable or read-out property, for a property panel.

    Attributes:
        value: The current value.
        label: Human-readable label.
        type: 'number', 'text' or 'checkbox'.
        min: Smallest accepted value (numbers only).
        max: Largest accepted value (numbers only).
        step: Suggested increment (numbers only).
        readonly: Whether the property is a measurement that cannot be set.
    """
    value: Any
    label: str
    type: str
    min: float
    max: float
    step: float
    readonly: bool


class PropertyUpdate(TypedDict, total=False):
    """
    Return value of `set_property`.

    Attributes:
        isHandled: Whether the property name was recognized.
        isApplied: Whether the value was accepted (an unchanged value counts as accepted).
        needsRetrace: Whether the host should run a new trace pass. This replaces
                      any global "needs retrace" flag.
    """
    isHandled: bool
    isApplied: bool
    needsRetrace: bool


NOT_HANDLED: PropertyUpdate = {'isHandled': False, 'isApplied': False, 'needsRetrace': False}


def parse_float(value: Any) -> Optional[float]:
    """
    Parse a property value as a finite float.

    Accepts numbers and numeric strings. Returns None for anything else,
    including booleans, NaN and infinities.
    """
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def parse_int(value: Any) -> Optional[int]:
    """Parse a property value as an integer, truncating any fractional part."""
    result = parse_float(value)
    if result is None:
        return None
    return int(result)


class BaseSceneObj:
    """
    Base class for the detectors of a scene.

    Every detector implements the same flat contract, with no intermediate
    classes between this base and the concrete detector:

    - `update_geometry()` recomputes the derived surface geometry from the pose and size
    - `reset()` discards the accumulated signal
    - `intersect(origin, direction)` returns at most one IntersectionRecord
    - `interact(ray, record, ray_factory)` accumulates the ray and returns spawned rays

    Any edit of the pose or of a size parameter goes through `on_pose_changed` /
    `on_size_changed`, which run `update_geometry()` then `reset()` together, so
    accumulated data never outlives the geometry it was recorded with.

    Besides the tracer-facing contract, the class provides serialization of the
    configuration (never of the accumulated signal), a property-descriptor
    accessor and validated setter for property panels, and shapely footprints
    used for hit-testing the detector body.
    """

    type: str = ''
    """The serialized type of the object."""

    kind: Optional[DetectorKind] = None
    """The detector variant implemented by the class."""

    serializable_defaults: Dict[str, Any] = {
        'pos': {'x': 0.0, 'y': 0.0},
        'angle': 0.0
    }
    """
    The default values of the configuration properties which are to be serialized.
    If some property is default, it will not be serialized and will be deserialized
    to the default value. Points are stored as dictionaries {'x': ..., 'y': ...}.
    The angle is stored in degrees. Subclasses extend this dictionary.
    """

    is_optical: bool = True
    """Whether the object interacts with rays."""

    is_terminal: bool = True
    """Whether `interact` terminates the ray (absorbing detector) or lets it continue (recording detector)."""

    termination_reason: str = 'no_interaction_logic'
    """The reason passed to `ray.terminate` by terminal detectors."""

    pick_tolerance: float = 0.0
    """Distance from the footprint within which `contains_point` reports a hit."""

    bbox_buffer: float = 2.0
    """Margin added around the footprint bounds by `get_bounding_box`."""

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        """
        Initialize the base scene object.

        Args:
            scene: The scene the object belongs to, if any.
            json_obj: The JSON object to be deserialized, if any.
        """
        self.scene = scene
        self.error: Optional[str] = None
        """The error message of the object."""

        self.warning: Optional[str] = None
        """The warning message of the object."""

        self._uuid: str = str(uuid_module.uuid4())
        self._name: Optional[str] = None

        self.surface = None
        """The ray-testable surface, created by the subclass."""

        serializable_defaults = self.__class__.serializable_defaults
        if json_obj:
            known_keys = ['type'] + list(serializable_defaults.keys())
            for key in json_obj:
                if key not in known_keys:
                    self._report_error(f"Unknown object key '{key}' for type '{self.__class__.type}'")

            for prop_name, default_value in serializable_defaults.items():
                if prop_name in json_obj:
                    setattr(self, prop_name, copy.deepcopy(json_obj[prop_name]))
                else:
                    setattr(self, prop_name, copy.deepcopy(default_value))
        else:
            for prop_name, default_value in serializable_defaults.items():
                setattr(self, prop_name, copy.deepcopy(default_value))

        self._normalize_pose()

    def _report_error(self, message: str) -> None:
        # Stored in the scene when there is one, since an unknown key likely
        # means the whole scene comes from an incompatible version.
        if self.scene is not None and hasattr(self.scene, 'error'):
            self.scene.error = message
        else:
            self.error = message

    def _normalize_pose(self) -> None:
        try:
            self.pos = {'x': float(self.pos['x']), 'y': float(self.pos['y'])}
        except (TypeError, KeyError, ValueError):
            self.error = f"Invalid position {self.pos!r}, using the default position"
            self.pos = copy.deepcopy(BaseSceneObj.serializable_defaults['pos'])
        angle = parse_float(self.angle)
        if angle is None:
            self.error = f"Invalid angle {self.angle!r}"
            angle = 0.0
        self.angle = angle

    # ==================== Pose ====================

    @property
    def pose_point(self) -> Optional[Point]:
        """The position as a Point, or None while the position is not valid."""
        try:
            p = geometry.point(self.pos['x'], self.pos['y'])
        except (TypeError, KeyError):
            return None
        if not geometry.is_finite_point(p):
            return None
        return p

    @property
    def angle_rad(self) -> float:
        """The orientation in radians."""
        return math.radians(self.angle)

    # ==================== Geometry / state lifecycle ====================

    def update_geometry(self) -> None:
        """
        Recompute the derived geometry from the current pose and size.

        Must be followed by `reset()`; use `on_pose_changed` / `on_size_changed`
        rather than calling it directly. Leaves the previous geometry in place
        when the pose is not valid yet.
        """
        pass

    def reset(self) -> None:
        """Discard the accumulated signal and recreate an empty state."""
        pass

    def on_pose_changed(self) -> None:
        """Called after the position or the orientation was edited."""
        self.update_geometry()
        self.reset()

    def on_size_changed(self) -> None:
        """Called after a size or resolution parameter was edited."""
        self.update_geometry()
        self.reset()

    def on_simulation_start(self) -> None:
        """Called by the host before each trace pass."""
        self.reset()

    # ==================== Tracer-facing contract ====================

    def intersect(self, origin: Union[Point, Dict[str, float]],
                  direction: Union[Point, Dict[str, float]]) -> List[IntersectionRecord]:
        """
        Test a ray against the detector surface.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A list with zero or one IntersectionRecord. Never raises for
            degenerate geometry.
        """
        if self.surface is None:
            return []
        return self.surface.intersect(origin, direction)

    def check_ray_intersects(self, ray: 'Ray') -> Optional[IntersectionRecord]:
        """
        Convenience wrapper of `intersect` for a Ray object.

        Returns:
            The intersection record, or None.
        """
        records = self.intersect(ray.origin, ray.direction)
        return records[0] if records else None

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        """
        Accumulate a ray that hit the detector.

        Args:
            ray: The incident ray.
            record: The intersection record returned by `intersect` for this ray.
            ray_factory: Constructor for spawned rays. Unused by detectors, which
                         never spawn rays.

        Returns:
            The list of spawned rays.
        """
        logger.warning("interact() not implemented for %s", self.get_display_name())
        ray.terminate(self.termination_reason)
        return []

    # ==================== Configuration contract ====================

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        """
        Get the property descriptors of the object, by property name.

        Subclasses extend the pose descriptors returned here.
        """
        return {
            'pos_x': {'value': self.pos['x'], 'label': 'Position X', 'type': 'number', 'step': 1},
            'pos_y': {'value': self.pos['y'], 'label': 'Position Y', 'type': 'number', 'step': 1},
            'angle': {'value': self.angle, 'label': 'Angle (deg)', 'type': 'number', 'step': 1},
        }

    def set_property(self, name: str, value: Any) -> PropertyUpdate:
        """
        Validate and apply a property edit.

        Invalid values are rejected and leave the object untouched. Edits of the
        pose or of a size parameter run `update_geometry()` and `reset()` before
        returning.

        Args:
            name: The property name, as in `get_properties`.
            value: The new value (numbers may be given as strings).

        Returns:
            PropertyUpdate describing what happened.
        """
        if name in ('pos_x', 'pos_y'):
            new_value = parse_float(value)
            if new_value is None:
                return self._reject(name, value)
            axis = name[-1]
            if abs(self.pos[axis] - new_value) <= PROPERTY_CHANGE_EPSILON:
                return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
            self.pos = {**self.pos, axis: new_value}
            self.on_pose_changed()
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': True}
        if name == 'angle':
            new_value = parse_float(value)
            if new_value is None:
                return self._reject(name, value)
            if abs(self.angle - new_value) <= PROPERTY_CHANGE_EPSILON:
                return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
            self.angle = new_value
            self.on_pose_changed()
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': True}
        return dict(NOT_HANDLED)

    def _reject(self, name: str, value: Any) -> PropertyUpdate:
        logger.debug("%s: rejected value %r for '%s'", self.get_display_name(), value, name)
        return {'isHandled': True, 'isApplied': False, 'needsRetrace': False}

    def _set_size_value(self, name: str, new_value: Union[int, float]) -> PropertyUpdate:
        """Store an already validated size parameter and rebuild geometry and state if it changed."""
        if abs(getattr(self, name) - new_value) <= PROPERTY_CHANGE_EPSILON:
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
        setattr(self, name, new_value)
        self.on_size_changed()
        return {'isHandled': True, 'isApplied': True, 'needsRetrace': True}

    def _set_flag(self, name: str, value: Any) -> PropertyUpdate:
        """Store a display-only boolean."""
        setattr(self, name, bool(value))
        return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}

    # ==================== Serialization ====================

    def serialize(self) -> Dict[str, Any]:
        """
        Serializes the configuration of the object to a JSON-compatible dictionary.

        Only configuration values that differ from the defaults are written.
        The accumulated signal is never part of the output.

        Returns:
            The serialized dictionary object.
        """
        json_obj = {'type': self.__class__.type}
        for prop_name, default_value in self.__class__.serializable_defaults.items():
            current_value = getattr(self, prop_name)
            if json.dumps(current_value, sort_keys=True) != json.dumps(default_value, sort_keys=True):
                json_obj[prop_name] = copy.deepcopy(current_value)
        return json_obj

    # ==================== Transformation Methods ====================

    def move(self, diff_x: float, diff_y: float) -> bool:
        """
        Move the object by the given displacement.

        Args:
            diff_x: The x-coordinate displacement.
            diff_y: The y-coordinate displacement.

        Returns:
            True, indicating the movement was successful.
        """
        self.pos = {'x': self.pos['x'] + diff_x, 'y': self.pos['y'] + diff_y}
        self.on_pose_changed()
        return True

    def rotate(self, angle: float, center: Optional[Point] = None) -> bool:
        """
        Rotate the object by the given angle.

        Args:
            angle: The angle in radians. Positive for counter-clockwise.
            center: The center of rotation. If None, the object rotates in place.

        Returns:
            True, indicating the rotation was successful.
        """
        rotation_center = center if center is not None else self.get_default_center()
        offset = geometry.rotate_vec(
            geometry.subtract(geometry.as_point(self.pos), rotation_center), angle
        )
        self.pos = geometry.add(rotation_center, offset).to_dict()
        self.angle = self.angle + math.degrees(angle)
        self.on_pose_changed()
        return True

    def get_default_center(self) -> Point:
        """
        Get the default center of rotation.

        Returns:
            The position of the object as a Point.
        """
        return geometry.point(self.pos['x'], self.pos['y'])

    # ==================== Footprint / hit-testing ====================

    def get_footprint(self) -> BaseGeometry:
        """
        Get the outline of the detector body as a shapely geometry.

        Subclasses return their body shape; the base is just the position.
        """
        return geometry.as_point(self.pos).to_shapely()

    def _rect_footprint(self, width: float, height: float) -> BaseGeometry:
        """Rectangle of the given size centered on the position and rotated by the angle."""
        rect = box(-width / 2, -height / 2, width / 2, height / 2)
        rect = affinity.rotate(rect, self.angle_rad, origin=(0, 0), use_radians=True)
        return affinity.translate(rect, self.pos['x'], self.pos['y'])

    def contains_point(self, point: Union[Point, Dict[str, float]]) -> bool:
        """
        Check whether a point (e.g. the mouse) is on the detector body.

        Args:
            point: The point to test.

        Returns:
            True if the point is within `pick_tolerance` of the footprint.
        """
        p = geometry.as_point(point)
        if not geometry.is_finite_point(p):
            return False
        return self.get_footprint().distance(p.to_shapely()) <= self.pick_tolerance

    def get_bounding_box(self) -> Dict[str, float]:
        """
        Get the axis-aligned bounding box of the footprint, with a margin.

        Returns:
            Dictionary with 'x', 'y' (lower corner), 'width' and 'height'.
        """
        min_x, min_y, max_x, max_y = self.get_footprint().bounds
        buffer = self.bbox_buffer
        return {
            'x': min_x - buffer,
            'y': min_y - buffer,
            'width': (max_x - min_x) + 2 * buffer,
            'height': (max_y - min_y) + 2 * buffer
        }

    # ==================== Error/Warning Methods ====================

    def get_error(self) -> Optional[str]:
        """Get the error message of the object, or None."""
        return self.error

    def get_warning(self) -> Optional[str]:
        """Get the warning message of the object, or None."""
        return self.warning

    # ==================== Object Identification ====================

    @property
    def uuid(self) -> str:
        """
        Get the unique identifier for this object.

        The UUID is auto-generated when the object is created and remains
        constant for the lifetime of the object instance.
        """
        return self._uuid

    @property
    def name(self) -> Optional[str]:
        """Get the human-readable name of the object, if set."""
        return self._name

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._name = value

    def get_display_name(self) -> str:
        """
        Get a display name for the object.

        Returns the user-defined name if set, otherwise returns a combination
        of the object type and a short UUID suffix for identification.

        Returns:
            A string suitable for display (e.g., "Main Screen" or "Screen_a1b2c3d4").
        """
        if self._name:
            return self._name
        type_name = self.__class__.type or self.__class__.__name__
        return f"{type_name}_{self._uuid[:8]}"

    def __repr__(self) -> str:
        type_name = self.__class__.type or self.__class__.__name__
        return f"<{type_name} '{self.get_display_name()}'>"
