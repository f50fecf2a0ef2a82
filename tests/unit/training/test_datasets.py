"""Tests for batch to torch tensor conversion."""

from __future__ import annotations

import numpy as np
import pytest
import torch

from speechdataset.data import BACKGROUND_NOISE_TAG, Example, ExampleStore, SpectrogramData
from speechdataset.errors import InvalidArgumentError
from speechdataset.training import BatchConfig, assemble_batch, batch_to_tensors


def _store() -> ExampleStore:
    store = ExampleStore()
    for label, offset in (("yes", 1.0), (BACKGROUND_NOISE_TAG, -1.0), ("yes", 2.0)):
        data = np.arange(16, dtype=np.float32) * offset
        store.add(Example(label=label, spectrogram=SpectrogramData(data=data, frame_size=4)))
    return store


def test_batch_to_tensors_shapes_and_dtypes() -> None:
    batch = assemble_batch(_store(), config=BatchConfig(num_frames=2, hop_frames=2, seed=0))
    tensors = batch_to_tensors(batch)

    assert tensors.inputs.shape == (batch.size, 1, 2, 4)
    assert tensors.inputs.dtype == torch.float32
    assert tensors.labels is not None
    assert tensors.labels.dtype == torch.int64
    assert tensors.labels.tolist() == batch.label_indices.tolist()  # type: ignore[union-attr]
    assert tensors.class_names == (BACKGROUND_NOISE_TAG, "yes")
    assert torch.allclose(tensors.inputs[:, 0], torch.from_numpy(batch.xs))

    dataset = tensors.as_tensor_dataset()
    assert len(dataset) == batch.size


def test_labeled_batch_has_no_tensor_targets() -> None:
    batch = assemble_batch(_store(), "yes", BatchConfig(shuffle=False))
    tensors = batch_to_tensors(batch)

    assert tensors.labels is None
    assert tensors.inputs.shape == (2, 1, 4, 4)
    with pytest.raises(InvalidArgumentError, match="labels are required"):
        tensors.as_tensor_dataset()
