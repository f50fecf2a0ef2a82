"""Example contracts shared by the store, codec, and batch assembly."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from speechdataset.errors import InvalidArgumentError


Float32Array = npt.NDArray[np.float32]

# Label reserved for background-noise recordings, windowed without a focus frame.
BACKGROUND_NOISE_TAG = "_background_noise_"


def _as_frozen_float32(values: npt.ArrayLike) -> Float32Array:
    array = np.array(values, dtype=np.float32).reshape(-1)
    array.flags.writeable = False
    return array


@dataclass(frozen=True, slots=True, eq=False)
class SpectrogramData:
    """Flattened spectrogram: ``num_frames`` consecutive frames of ``frame_size`` values."""

    data: Float32Array
    frame_size: int

    def __post_init__(self) -> None:
        if isinstance(self.frame_size, bool) or not isinstance(self.frame_size, (int, np.integer)):
            raise InvalidArgumentError(f"frame_size must be an integer, got {self.frame_size!r}")
        if self.frame_size <= 0:
            raise InvalidArgumentError(f"frame_size must be > 0, got {self.frame_size}")
        object.__setattr__(self, "frame_size", int(self.frame_size))
        data = _as_frozen_float32(self.data)
        if data.size == 0:
            raise InvalidArgumentError("spectrogram data must not be empty")
        if data.size % self.frame_size != 0:
            raise InvalidArgumentError(
                f"spectrogram data length ({data.size}) is not divisible by "
                f"frame_size ({self.frame_size})"
            )
        object.__setattr__(self, "data", data)

    @property
    def num_frames(self) -> int:
        return self.data.size // self.frame_size

    def as_frames(self) -> Float32Array:
        """View the flat data as a [num_frames, frame_size] matrix."""
        return self.data.reshape(self.num_frames, self.frame_size)


@dataclass(frozen=True, slots=True, eq=False)
class RawAudioData:
    """Raw PCM samples recorded alongside a spectrogram."""

    data: Float32Array
    sample_rate_hz: float

    def __post_init__(self) -> None:
        rate = self.sample_rate_hz
        if isinstance(rate, bool) or not isinstance(rate, (int, float, np.integer, np.floating)):
            raise InvalidArgumentError(f"sample_rate_hz must be a number, got {self.sample_rate_hz!r}")
        if not rate > 0:
            raise InvalidArgumentError(f"sample_rate_hz must be > 0, got {self.sample_rate_hz}")
        object.__setattr__(self, "data", _as_frozen_float32(self.data))

    @property
    def num_samples(self) -> int:
        return self.data.size


@dataclass(frozen=True, slots=True, eq=False)
class Example:
    """One labeled training sample as supplied by the capture pipeline."""

    label: str
    spectrogram: SpectrogramData
    raw_audio: RawAudioData | None = None

    @property
    def num_frames(self) -> int:
        return self.spectrogram.num_frames

    @property
    def is_background_noise(self) -> bool:
        return self.label == BACKGROUND_NOISE_TAG
