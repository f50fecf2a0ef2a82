"""Frame-axis transforms: window extraction, intensity profile, normalization."""

from speechdataset.data.transforms.intensity import intensity_curve, max_intensity_frame_index
from speechdataset.data.transforms.normalization import normalize
from speechdataset.data.transforms.windowing import Window, valid_windows

__all__ = [
    "Window",
    "intensity_curve",
    "max_intensity_frame_index",
    "normalize",
    "valid_windows",
]
