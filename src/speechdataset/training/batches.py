"""Windowed training batch assembly from an example store."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from speechdataset.data.contracts import BACKGROUND_NOISE_TAG
from speechdataset.data.store import ExampleStore
from speechdataset.data.transforms import max_intensity_frame_index, normalize, valid_windows
from speechdataset.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

Float32Array = npt.NDArray[np.float32]
IntArray = npt.NDArray[np.int64]


@dataclass(frozen=True, slots=True)
class BatchConfig:
    """Window extraction and post-processing options for :func:`assemble_batch`.

    ``num_frames`` and ``hop_frames`` default to the shared frame count and 1
    when every example has the same length, and are required otherwise.
    """

    num_frames: int | None = None
    hop_frames: int | None = None
    normalize: bool = True
    shuffle: bool = True
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_frames is not None and self.num_frames <= 0:
            raise InvalidArgumentError("num_frames must be > 0 when set")
        if self.hop_frames is not None and self.hop_frames <= 0:
            raise InvalidArgumentError("hop_frames must be > 0 when set")


@dataclass(frozen=True, slots=True)
class SpectrogramBatch:
    """Stacked windows with optional one-hot targets aligned row-for-row."""

    xs: Float32Array
    ys: Float32Array | None
    label_indices: IntArray | None
    class_names: tuple[str, ...]
    num_frames: int
    hop_frames: int

    @property
    def size(self) -> int:
        return int(self.xs.shape[0])


def one_hot(indices: npt.ArrayLike, depth: int) -> Float32Array:
    """One-hot encode integer class indices into a [len(indices), depth] float32 matrix."""
    idx = np.asarray(indices, dtype=np.int64)
    if idx.ndim != 1:
        raise InvalidArgumentError("indices must be 1D")
    if depth <= 0:
        raise InvalidArgumentError("depth must be > 0")
    if idx.size and (idx.min() < 0 or idx.max() >= depth):
        raise InvalidArgumentError(f"indices must lie in [0, {depth})")
    return np.eye(depth, dtype=np.float32)[idx]


def paired_shuffle(
    xs: list[Float32Array],
    ys: list[int] | None,
    rng: np.random.Generator,
) -> tuple[list[Float32Array], list[int] | None]:
    """Apply one uniform random permutation to ``xs`` and, in lockstep, ``ys``."""
    if ys is not None and len(ys) != len(xs):
        raise InvalidArgumentError("xs and ys must have the same length")
    order = rng.permutation(len(xs))
    shuffled_xs = [xs[i] for i in order]
    shuffled_ys = None if ys is None else [ys[i] for i in order]
    return shuffled_xs, shuffled_ys


def assemble_batch(
    store: ExampleStore,
    label: str | None = None,
    config: BatchConfig | None = None,
) -> SpectrogramBatch:
    """Cut fixed-length windows from every example and stack them into a batch.

    With ``label`` given only that label's examples are used and no targets
    are produced. Otherwise all labels are used and ``ys`` holds one-hot
    targets over the sorted vocabulary, which must have at least two labels.

    Keyword examples yield windows that all contain their maximum-intensity
    frame; background-noise examples yield evenly spaced windows.
    """
    if store.is_empty():
        raise InvalidArgumentError("Cannot get spectrograms as tensors because the dataset is empty")
    vocab = store.vocabulary()
    if label is not None:
        if label not in vocab:
            raise InvalidArgumentError(f"Label {label} is not in the vocabulary ({list(vocab)})")
    elif len(vocab) < 2:
        raise InvalidArgumentError(
            "One-hot encoding of labels requires the vocabulary to have at least two words, "
            f"but it has only {len(vocab)} word."
        )

    resolved = BatchConfig() if config is None else config
    num_frames, hop_frames = _resolve_window_params(store, resolved)

    windows_data: list[Float32Array] = []
    label_indices: list[int] | None = None if label is not None else []
    frame_size: int | None = None
    for class_index, current_label in enumerate(vocab):
        if label is not None and current_label != label:
            continue
        for stored in store.examples_of(current_label):
            spectrogram = stored.example.spectrogram
            if frame_size is None:
                frame_size = spectrogram.frame_size
            elif spectrogram.frame_size != frame_size:
                raise InvalidArgumentError(
                    f"Mismatch in frameSize ({spectrogram.frame_size} vs {frame_size})"
                )

            focus_index = (
                None
                if current_label == BACKGROUND_NOISE_TAG
                else max_intensity_frame_index(spectrogram)
            )
            snippet = spectrogram.as_frames()
            for window in valid_windows(spectrogram.num_frames, focus_index, num_frames, hop_frames):
                segment = snippet[window.as_slice()]
                windows_data.append(normalize(segment) if resolved.normalize else segment.copy())
                if label_indices is not None:
                    label_indices.append(class_index)

    if resolved.shuffle:
        rng = np.random.default_rng(resolved.seed)
        windows_data, label_indices = paired_shuffle(windows_data, label_indices, rng)

    xs = np.stack(windows_data, axis=0).astype(np.float32)
    if label_indices is None:
        ys = None
        indices = None
        class_names: tuple[str, ...] = (label,) if label is not None else vocab
    else:
        indices = np.asarray(label_indices, dtype=np.int64)
        ys = one_hot(indices, len(vocab))
        class_names = vocab

    logger.debug(
        "Assembled batch of %d windows (num_frames=%d, hop_frames=%d, label=%s)",
        xs.shape[0],
        num_frames,
        hop_frames,
        label,
    )
    return SpectrogramBatch(
        xs=xs,
        ys=ys,
        label_indices=indices,
        class_names=class_names,
        num_frames=num_frames,
        hop_frames=hop_frames,
    )


def _resolve_window_params(store: ExampleStore, config: BatchConfig) -> tuple[int, int]:
    unique_num_frames = store.unique_frame_counts()
    if len(unique_num_frames) == 1:
        num_frames = unique_num_frames[0] if config.num_frames is None else config.num_frames
        hop_frames = 1 if config.hop_frames is None else config.hop_frames
    else:
        if config.num_frames is None:
            raise InvalidArgumentError(
                f"There are {len(unique_num_frames)} unique lengths among the {store.size()} "
                "examples of this Dataset, hence num_frames is required. But it is not provided."
            )
        if config.hop_frames is None:
            raise InvalidArgumentError(
                f"There are {len(unique_num_frames)} unique lengths among the {store.size()} "
                "examples of this Dataset, hence hop_frames is required. But it is not provided."
            )
        num_frames = config.num_frames
        hop_frames = config.hop_frames

    if num_frames > unique_num_frames[0]:
        raise InvalidArgumentError(
            f"num_frames ({num_frames}) exceeds the minimum num_frames ({unique_num_frames[0]}) "
            "among the examples of the Dataset."
        )
    return num_frames, hop_frames
