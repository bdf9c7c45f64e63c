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
import uuid as _uuid_mod
from typing import Dict, NamedTuple, Optional

from .constants import DEFAULT_WAVELENGTH_NM


class ComplexAmplitude(NamedTuple):
    """Field amplitude and phase (radians) carried by a ray."""
    amplitude: float
    phase: float


class Ray:
    """
    Representation of a light ray as seen by the detectors.

    A ray starts at `origin` and travels along the unit vector `direction`.
    It carries a scalar intensity, a wavelength and an optical phase; the
    latter two only matter to the Spectrometer and the Screen respectively.

    Detectors never move a ray. The only side effect they have on it is
    calling `terminate`, which tells the tracer to stop propagating it.

    Attributes:
        origin (dict): Starting point {'x': float, 'y': float}
        direction (dict): Unit direction vector {'x': float, 'y': float}
        intensity (float): Scalar intensity (never negative)
        wavelength (float or None): Wavelength in nm, or None for the default
        phase (float): Optical phase in radians
        terminated (bool): True once a detector (or the tracer) stopped the ray
        end_reason (str or None): Reason given by the first `terminate` call
        source_label (str or None): Optional human-readable label (e.g. "slit_a")
        uuid (str): Unique identifier of this ray
    """

    def __init__(
        self,
        origin: Dict[str, float],
        direction: Dict[str, float],
        intensity: float = 1.0,
        wavelength: Optional[float] = None,
        phase: float = 0.0
    ) -> None:
        """
        Initialize a ray.

        Args:
            origin (dict): Starting point {'x': float, 'y': float}
            direction (dict): Direction vector, normalized here
            intensity (float): Intensity, clamped to be non-negative (default: 1.0)
            wavelength (float or None): Wavelength in nm (default: None)
            phase (float): Phase in radians (default: 0.0)
        """
        dx = direction['x']
        dy = direction['y']
        length = math.sqrt(dx * dx + dy * dy)
        if length > 0:
            dx, dy = dx / length, dy / length

        self.origin: Dict[str, float] = {'x': origin['x'], 'y': origin['y']}
        self.direction: Dict[str, float] = {'x': dx, 'y': dy}
        self.intensity: float = max(0.0, intensity)
        self.wavelength: Optional[float] = wavelength
        self.phase: float = phase
        self.terminated: bool = False
        self.end_reason: Optional[str] = None
        self.source_label: Optional[str] = None
        self.uuid: str = str(_uuid_mod.uuid4())

    @property
    def wavelength_nm(self) -> float:
        """The wavelength in nm, falling back to the default for unspecified light."""
        if self.wavelength is None:
            return DEFAULT_WAVELENGTH_NM
        return self.wavelength

    def get_complex_amplitude(self) -> ComplexAmplitude:
        """
        Get the complex field amplitude of the ray.

        The amplitude is the square root of the intensity, so that the squared
        modulus of a sum of phasors is an intensity again.

        Returns:
            ComplexAmplitude: (amplitude, phase)
        """
        return ComplexAmplitude(math.sqrt(self.intensity), self.phase)

    def terminate(self, reason: str = 'unknown') -> None:
        """
        Stop the ray. Only the first reason is kept.

        Args:
            reason: Why the ray stopped (e.g. 'absorbed_photodiode').
        """
        if not self.terminated:
            self.terminated = True
            self.end_reason = reason

    def copy(self) -> 'Ray':
        """
        Create a copy of this ray with a fresh uuid and a live (non-terminated) state.

        Returns:
            Ray: A new Ray object with the same optical properties
        """
        new_ray = Ray(
            origin=dict(self.origin),
            direction=dict(self.direction),
            intensity=self.intensity,
            wavelength=self.wavelength,
            phase=self.phase
        )
        new_ray.source_label = self.source_label
        return new_ray

    def __repr__(self) -> str:
        """String representation for debugging."""
        state = f", terminated='{self.end_reason}'" if self.terminated else ""
        label = f", label='{self.source_label}'" if self.source_label else ""
        return (f"Ray(origin={self.origin}, direction={self.direction}, "
                f"intensity={self.intensity:.6f}, wavelength={self.wavelength}, "
                f"phase={self.phase:.4f}{state}{label}, uuid={self.uuid[:8]}...)")
