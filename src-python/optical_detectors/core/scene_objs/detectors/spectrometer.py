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
from typing import Optional, Dict, Any, List, Iterator, NamedTuple, TYPE_CHECKING

from ..base_scene_obj import BaseSceneObj, DetectorKind, PropertyDescriptor, PropertyUpdate, parse_float
from ...constants import SPECTROMETER_WAVELENGTH_LOWER_LIMIT, SPECTROMETER_WAVELENGTH_UPPER_LIMIT
from ...surfaces import RectSurface, IntersectionRecord

if TYPE_CHECKING:
    from ...ray import Ray

logger = logging.getLogger(__name__)


class SpectrumPoint(NamedTuple):
    """One bin of a recorded spectrum."""
    wavelength: float
    intensity: float


class SpectrumView:
    """
    Ascending-wavelength view of a spectrometer's histogram.

    Iterating produces SpectrumPoint items on demand from the current state of
    the histogram. The view can be iterated any number of times and never
    modifies the spectrometer.
    """

    def __init__(self, spectrometer: 'Spectrometer'):
        self._spectrometer = spectrometer

    def __iter__(self) -> Iterator[SpectrumPoint]:
        data = self._spectrometer.spectrum_data
        for index in sorted(data):
            yield SpectrumPoint(self._spectrometer.bin_wavelength(index), data[index])

    def __len__(self) -> int:
        return len(self._spectrometer.spectrum_data)

    def __repr__(self) -> str:
        return f"SpectrumView({list(self)})"


class Spectrometer(BaseSceneObj):
    """
    A spectrometer recording the wavelength distribution of the incident light.

    Light enters through a slit on the front face of the box, i.e. the plane
    half the height away from the center against the box normal; the hit must
    lie within half the width laterally. Every accepted ray is absorbed and its
    intensity added to the histogram bin of its wavelength.

    Bins are keyed by the integer index round(wavelength / resolution), rounding
    halves up, so the bin of index i stands for the wavelength i * resolution.

    Attributes:
        pos (dict): Center of the box {'x': float, 'y': float}
        angle (float): Orientation in degrees
        width (float): Slit width (at least 40)
        height (float): Box height (at least 30)
        wavelength_min (float): Lower end of the displayed range in nm
        wavelength_max (float): Upper end of the displayed range in nm, always > wavelength_min
        resolution (float): Bin width in nm, within [0.1, 10]
        show_spectrum (bool): Whether the host should display the spectrum
        spectrum_data (dict): Sparse histogram, bin index -> summed intensity
        max_intensity (float): Largest bin value
        total_hits (int): Number of absorbed rays
    """

    type = 'Spectrometer'
    kind = DetectorKind.SPECTROMETER
    termination_reason = 'absorbed_spectrometer'
    pick_tolerance = 5.0
    bbox_buffer = 15.0

    MIN_WIDTH = 40.0
    MIN_HEIGHT = 30.0
    MIN_RESOLUTION = 0.1
    MAX_RESOLUTION = 10.0

    serializable_defaults = {
        **BaseSceneObj.serializable_defaults,
        'width': 80.0,
        'height': 50.0,
        'wavelength_min': 380.0,
        'wavelength_max': 750.0,
        'resolution': 1.0,
        'show_spectrum': True
    }

    def __init__(self, scene=None, json_obj: Optional[Dict[str, Any]] = None):
        super().__init__(scene, json_obj)
        defaults = self.__class__.serializable_defaults
        self.width = max(self.MIN_WIDTH, parse_float(self.width) or self.MIN_WIDTH)
        self.height = max(self.MIN_HEIGHT, parse_float(self.height) or self.MIN_HEIGHT)

        wl_min = parse_float(self.wavelength_min)
        wl_max = parse_float(self.wavelength_max)
        wl_min = defaults['wavelength_min'] if wl_min is None else max(SPECTROMETER_WAVELENGTH_LOWER_LIMIT, wl_min)
        wl_max = defaults['wavelength_max'] if wl_max is None else min(SPECTROMETER_WAVELENGTH_UPPER_LIMIT, wl_max)
        if wl_min >= wl_max:
            self.warning = (f"Invalid wavelength range [{wl_min}, {wl_max}], "
                            f"using [{defaults['wavelength_min']}, {defaults['wavelength_max']}]")
            wl_min, wl_max = defaults['wavelength_min'], defaults['wavelength_max']
        self.wavelength_min = wl_min
        self.wavelength_max = wl_max

        resolution = parse_float(self.resolution)
        if resolution is None:
            resolution = defaults['resolution']
        self.resolution = max(self.MIN_RESOLUTION, min(self.MAX_RESOLUTION, resolution))
        self.show_spectrum = bool(self.show_spectrum)

        self.spectrum_data: Dict[int, float] = {}
        self.max_intensity = 0.0
        self.total_hits = 0

        self.surface = RectSurface('entrance', bound_height=False)
        self.on_size_changed()

    def update_geometry(self) -> None:
        self.surface.update(self.pose_point, self.angle_rad, self.width, self.height,
                            plane_offset=-self.height / 2.0)

    def reset(self) -> None:
        self.spectrum_data = {}
        self.max_intensity = 0.0
        self.total_hits = 0

    def get_wavelength_bin(self, wavelength: float) -> int:
        """
        Get the index of the bin a wavelength falls into.

        Args:
            wavelength: Wavelength in nm.

        Returns:
            round(wavelength / resolution), with halves rounded up.
        """
        return math.floor(wavelength / self.resolution + 0.5)

    def bin_wavelength(self, index: int) -> float:
        """The wavelength (nm) represented by a bin index."""
        return index * self.resolution

    def interact(self, ray: 'Ray', record: IntersectionRecord, ray_factory=None) -> List['Ray']:
        """
        Absorb the ray and add its intensity to the bin of its wavelength.

        A ray with a non-finite wavelength or intensity is absorbed without
        being recorded.

        Returns:
            An empty list.
        """
        wavelength = ray.wavelength_nm
        if not (math.isfinite(wavelength) and math.isfinite(ray.intensity)):
            logger.debug("%s: ray with wavelength %r and intensity %r not recorded",
                         self.get_display_name(), wavelength, ray.intensity)
            ray.terminate(self.termination_reason)
            return []

        index = self.get_wavelength_bin(wavelength)
        self.spectrum_data[index] = self.spectrum_data.get(index, 0.0) + ray.intensity
        self.max_intensity = max(self.max_intensity, self.spectrum_data[index])
        self.total_hits += 1
        ray.terminate(self.termination_reason)
        return []

    def get_spectrum_array(self) -> SpectrumView:
        """
        Get the recorded spectrum in ascending wavelength order.

        Returns:
            A restartable view yielding SpectrumPoint(wavelength, intensity).
        """
        return SpectrumView(self)

    def get_peak_wavelength(self) -> Optional[float]:
        """
        Get the wavelength of the strongest bin.

        Returns:
            The wavelength in nm, or None when nothing was recorded.
        """
        if not self.spectrum_data:
            return None
        index = max(sorted(self.spectrum_data), key=lambda i: self.spectrum_data[i])
        return self.bin_wavelength(index)

    def get_footprint(self):
        return self._rect_footprint(self.width, self.height)

    def get_properties(self) -> Dict[str, PropertyDescriptor]:
        peak = self.get_peak_wavelength()
        return {
            **super().get_properties(),
            'width': {'value': self.width, 'label': 'Width', 'type': 'number',
                      'min': self.MIN_WIDTH, 'step': 5},
            'height': {'value': self.height, 'label': 'Height', 'type': 'number',
                       'min': self.MIN_HEIGHT, 'step': 5},
            'wavelength_min': {'value': self.wavelength_min, 'label': 'Min wavelength (nm)', 'type': 'number',
                               'min': SPECTROMETER_WAVELENGTH_LOWER_LIMIT, 'max': 900, 'step': 10},
            'wavelength_max': {'value': self.wavelength_max, 'label': 'Max wavelength (nm)', 'type': 'number',
                               'min': 300, 'max': SPECTROMETER_WAVELENGTH_UPPER_LIMIT, 'step': 10},
            'resolution': {'value': self.resolution, 'label': 'Resolution (nm)', 'type': 'number',
                           'min': self.MIN_RESOLUTION, 'max': self.MAX_RESOLUTION, 'step': 0.1},
            'show_spectrum': {'value': self.show_spectrum, 'label': 'Show spectrum', 'type': 'checkbox'},
            'total_hits': {'value': self.total_hits, 'label': 'Total hits', 'type': 'text', 'readonly': True},
            'peak_wavelength': {'value': f"{peak:.1f} nm" if peak is not None else '-',
                                'label': 'Peak wavelength', 'type': 'text', 'readonly': True},
        }

    def set_property(self, name: str, value: Any) -> PropertyUpdate:
        update = super().set_property(name, value)
        if update['isHandled']:
            return update

        if name == 'width':
            w = parse_float(value)
            if w is None or w < self.MIN_WIDTH:
                return self._reject(name, value)
            return self._set_size_value('width', w)
        if name == 'height':
            h = parse_float(value)
            if h is None or h < self.MIN_HEIGHT:
                return self._reject(name, value)
            return self._set_size_value('height', h)
        if name == 'resolution':
            res = parse_float(value)
            if res is None or not self.MIN_RESOLUTION <= res <= self.MAX_RESOLUTION:
                return self._reject(name, value)
            return self._set_size_value('resolution', res)
        # The range only affects display, so the recorded spectrum is kept.
        if name == 'wavelength_min':
            wl_min = parse_float(value)
            if wl_min is None or wl_min < SPECTROMETER_WAVELENGTH_LOWER_LIMIT or wl_min >= self.wavelength_max:
                return self._reject(name, value)
            self.wavelength_min = wl_min
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
        if name == 'wavelength_max':
            wl_max = parse_float(value)
            if wl_max is None or wl_max > SPECTROMETER_WAVELENGTH_UPPER_LIMIT or wl_max <= self.wavelength_min:
                return self._reject(name, value)
            self.wavelength_max = wl_max
            return {'isHandled': True, 'isApplied': True, 'needsRetrace': False}
        if name == 'show_spectrum':
            return self._set_flag(name, value)
        if name in ('total_hits', 'peak_wavelength'):
            return {'isHandled': True, 'isApplied': False, 'needsRetrace': False}
        return update

    def __repr__(self) -> str:
        return (f"Spectrometer(pos={self.pos}, angle={self.angle}, width={self.width}, "
                f"height={self.height}, resolution={self.resolution}, "
                f"bins={len(self.spectrum_data)}, total_hits={self.total_hits})")
