"""Zero-mean, unit-variance normalization of extracted windows."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


def normalize(window: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Subtract the mean and divide by the standard deviation over the whole window.

    A constant window has zero deviation and normalizes to all zeros.
    """
    x = np.asarray(window, dtype=np.float32)
    centered = x - x.mean()
    std = float(x.std())
    if std == 0.0:
        return np.zeros_like(x)
    return np.asarray(centered / std, dtype=np.float32)
