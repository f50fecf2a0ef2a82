"""Training data assembly: windowed batches and torch tensor handoff."""

from speechdataset.training.batches import (
    BatchConfig,
    SpectrogramBatch,
    assemble_batch,
    one_hot,
    paired_shuffle,
)
from speechdataset.training.datasets import SpectrogramTensors, batch_to_tensors

__all__ = [
    "BatchConfig",
    "SpectrogramBatch",
    "SpectrogramTensors",
    "assemble_batch",
    "batch_to_tensors",
    "one_hot",
    "paired_shuffle",
]
