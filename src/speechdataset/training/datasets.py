"""Torch tensor conversion of assembled spectrogram batches."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import torch
from torch.utils.data import TensorDataset

from speechdataset.errors import InvalidArgumentError
from speechdataset.training.batches import SpectrogramBatch


@dataclass(frozen=True, slots=True)
class SpectrogramTensors:
    """Torch-ready inputs [N, 1, num_frames, frame_size] and class index labels."""

    inputs: torch.Tensor
    labels: torch.Tensor | None
    class_names: tuple[str, ...]

    def as_tensor_dataset(self) -> TensorDataset:
        if self.labels is None:
            raise InvalidArgumentError("labels are required to build a TensorDataset")
        return TensorDataset(self.inputs, self.labels)


def batch_to_tensors(batch: SpectrogramBatch) -> SpectrogramTensors:
    """Convert a batch to tensors with a leading channel axis for conv models."""
    if batch.xs.ndim != 3:
        raise InvalidArgumentError("batch xs must be a 3D array [count, num_frames, frame_size]")
    inputs_np = np.ascontiguousarray(batch.xs[:, np.newaxis, :, :], dtype=np.float32)
    labels = None
    if batch.label_indices is not None:
        labels = torch.from_numpy(np.asarray(batch.label_indices, dtype=np.int64))
    return SpectrogramTensors(
        inputs=torch.from_numpy(inputs_np),
        labels=labels,
        class_names=batch.class_names,
    )
