"""
Detector scene objects

Copyright 2026 optical-detectors authors and contributors
Licensed under the Apache License, Version 2.0
"""

from typing import Any, Dict, Optional, Type, Union

from ..base_scene_obj import BaseSceneObj, DetectorKind
from .photodiode import Photodiode, format_power_reading
from .power_meter import PowerMeter
from .spectrometer import Spectrometer, SpectrumPoint, SpectrumView
from .screen import Screen, ScreenBin, PatternSample
from .ccd_camera import CCDCamera, PixelValue

DETECTOR_TYPES: Dict[DetectorKind, Type[BaseSceneObj]] = {
    DetectorKind.PHOTODIODE: Photodiode,
    DetectorKind.POWER_METER: PowerMeter,
    DetectorKind.SPECTROMETER: Spectrometer,
    DetectorKind.SCREEN: Screen,
    DetectorKind.CCD_CAMERA: CCDCamera,
}


def create_detector(kind_or_type: Union[DetectorKind, str], scene=None,
                    json_obj: Optional[Dict[str, Any]] = None) -> BaseSceneObj:
    """
    Create a detector from its kind or its serialized type string.

    Args:
        kind_or_type: A DetectorKind, or a type string such as 'Photodiode'.
        scene: The scene the detector belongs to, if any.
        json_obj: The JSON object to be deserialized, if any.

    Returns:
        The new detector.

    Raises:
        ValueError: If the type is not a known detector type.
    """
    try:
        kind = DetectorKind(kind_or_type)
    except ValueError:
        known = [k.value for k in DetectorKind]
        raise ValueError(f"Unknown detector type '{kind_or_type}'. Known types: {known}") from None
    return DETECTOR_TYPES[kind](scene, json_obj)


__all__ = [
    'Photodiode', 'format_power_reading',
    'PowerMeter',
    'Spectrometer', 'SpectrumPoint', 'SpectrumView',
    'Screen', 'ScreenBin', 'PatternSample',
    'CCDCamera', 'PixelValue',
    'DETECTOR_TYPES', 'create_detector',
]
