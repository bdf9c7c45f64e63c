"""
Constants used throughout the detector simulation.

These are shared by the surface primitives and the detectors, so they live
here to avoid circular imports between the two.
"""

# Minimum forward distance along a ray for a hit to count.
# Rejects self-intersection at the point the ray was emitted from.
MIN_RAY_SEGMENT_LENGTH = 1e-6

# A ray whose direction has a smaller projection than this onto a surface
# normal is treated as parallel to the surface.
PARALLEL_EPSILON = 1e-9

# Slack on the squared-radius bound of front-only circular apertures
RADIUS_SQ_TOLERANCE = 1e-9

# Changes smaller than this are not considered edits of a numeric property
PROPERTY_CHANGE_EPSILON = 1e-6

# Wavelengths (in nanometers)
DEFAULT_WAVELENGTH_NM = 550  # Used for rays without an explicit wavelength
SPECTROMETER_WAVELENGTH_LOWER_LIMIT = 200
SPECTROMETER_WAVELENGTH_UPPER_LIMIT = 1000
