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

Optical Detectors
=================

Detector surfaces and signal accumulation for 2D optical ray tracing.

A tracer asks each detector whether a ray hits it (`intersect`) and, on a
hit, hands the ray over (`interact`). The detectors accumulate the signal
with the model of their kind:

- Photodiode, PowerMeter: incoherent power sum
- Spectrometer: wavelength histogram
- Screen: coherent (phasor) sum per spatial bin, i.e. interference
- CCDCamera: 2D pixel grid

Quick start:
    from optical_detectors import Scene, Ray
    from optical_detectors.core.scene_objs import Photodiode
"""

__version__ = "0.1.0"

# Convenience imports for common usage
from .core.scene import Scene
from .core.ray import Ray
from .core.scene_objs import (
    DetectorKind, Photodiode, PowerMeter, Spectrometer, Screen, CCDCamera, create_detector
)

__all__ = [
    'Scene',
    'Ray',
    'DetectorKind',
    'Photodiode',
    'PowerMeter',
    'Spectrometer',
    'Screen',
    'CCDCamera',
    'create_detector',
    '__version__',
]
