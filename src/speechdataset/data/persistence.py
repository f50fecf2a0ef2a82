"""File persistence and reproducible fingerprints for serialized datasets."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from speechdataset.data.store import ExampleStore

logger = logging.getLogger(__name__)


def dataset_fingerprint(serialized: bytes) -> str:
    """SHA256 hex digest of serialized dataset bytes."""
    if not serialized:
        raise ValueError("serialized dataset must not be empty")
    return hashlib.sha256(serialized).hexdigest()


def save_store(path: str | Path, store: ExampleStore) -> Path:
    """Serialize ``store`` into ``path``, creating parent directories."""
    target = Path(path)
    serialized = store.serialize()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(serialized)
    logger.info("Saved %d examples to %s (%d bytes)", store.size(), target, len(serialized))
    return target


def load_store(path: str | Path) -> ExampleStore:
    """Read and deserialize a dataset file written by :func:`save_store`."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Dataset file does not exist: {source}")
    if not source.is_file():
        raise ValueError(f"Expected file path, got: {source}")
    store = ExampleStore.deserialize(source.read_bytes())
    logger.info("Loaded %d examples from %s", store.size(), source)
    return store
