"""Per-frame intensity profile of a spectrogram."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from speechdataset.data.contracts import SpectrogramData


def intensity_curve(spectrogram: SpectrogramData) -> npt.NDArray[np.float32]:
    """Mean of the spectral values in each frame, shape [num_frames]."""
    return np.asarray(spectrogram.as_frames().mean(axis=-1), dtype=np.float32)


def max_intensity_frame_index(spectrogram: SpectrogramData) -> int:
    """Index of the loudest frame; the first one wins on ties."""
    return int(np.argmax(intensity_curve(spectrogram)))
