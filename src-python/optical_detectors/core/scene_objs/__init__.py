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

from .base_scene_obj import (
    BaseSceneObj, DetectorKind, PropertyDescriptor, PropertyUpdate, parse_float, parse_int
)
from .detectors import (
    Photodiode, PowerMeter, Spectrometer, Screen, CCDCamera, DETECTOR_TYPES, create_detector
)

__all__ = ['BaseSceneObj', 'DetectorKind', 'PropertyDescriptor', 'PropertyUpdate', 'parse_float', 'parse_int', 'Photodiode', 'PowerMeter', 'Spectrometer', 'Screen', 'CCDCamera', 'DETECTOR_TYPES', 'create_detector']
