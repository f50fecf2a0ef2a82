"""Mutable, serializable collection of labeled speech examples."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from speechdataset.data.contracts import Example
from speechdataset.data.identity import DEFAULT_UID_GENERATOR, UidGenerator
from speechdataset.data.serialization import (
    ExampleSpec,
    SerializedExamples,
    decode_serialized_examples,
    deserialize_example,
    encode_serialized_examples,
    iter_example_payloads,
    serialize_example,
)
from speechdataset.errors import InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoredExample:
    """An example together with the uid the store assigned to it."""

    uid: str
    example: Example


class ExampleStore:
    """Examples keyed by uid, with a per-label index kept in insertion order.

    Every uid in the label index exists in the primary mapping and vice
    versa; a label whose last example is removed disappears from the index.
    No internal locking: callers must not mutate the store while a
    serialization or batch-assembly pass iterates it.
    """

    def __init__(self, *, uid_generator: UidGenerator | None = None) -> None:
        self._uid_generator = DEFAULT_UID_GENERATOR if uid_generator is None else uid_generator
        self._examples: dict[str, Example] = {}
        self._label_to_uids: dict[str, list[str]] = {}

    @classmethod
    def deserialize(
        cls,
        buffer: bytes | bytearray | memoryview,
        *,
        uid_generator: UidGenerator | None = None,
    ) -> ExampleStore:
        """Build a store from bytes produced by :meth:`serialize`; uids are reassigned."""
        serialized = decode_serialized_examples(buffer)
        store = cls(uid_generator=uid_generator)
        for spec, payload in iter_example_payloads(serialized):
            store.add(deserialize_example(spec, payload))
        logger.debug("Deserialized %d examples across %d labels", store.size(), len(store._label_to_uids))
        return store

    def add(self, example: Example) -> str:
        """Add an example and return its newly assigned uid."""
        if example is None:
            raise InvalidArgumentError("Got None example")
        if not isinstance(example.label, str) or not example.label:
            raise InvalidArgumentError(
                f"Expected label to be a non-empty string, but got {example.label!r}"
            )
        uid = self._uid_generator.next_uid()
        self._examples[uid] = example
        self._label_to_uids.setdefault(example.label, []).append(uid)
        return uid

    def remove(self, uid: str) -> None:
        """Remove one example, dropping its label once no examples remain under it."""
        if uid not in self._examples:
            raise NotFoundError(f"Nonexistent example uid: {uid}")
        label = self._examples.pop(uid).label
        bucket = self._label_to_uids[label]
        bucket.remove(uid)
        if not bucket:
            del self._label_to_uids[label]

    def merge(self, other: ExampleStore) -> None:
        """Copy every example of ``other`` into this store under fresh uids."""
        if other is self:
            raise InvalidArgumentError("Cannot merge a dataset into itself")
        for label in other.vocabulary():
            for stored in other.examples_of(label):
                self.add(stored.example)

    def get(self, uid: str) -> Example:
        if uid not in self._examples:
            raise NotFoundError(f"Nonexistent example uid: {uid}")
        return self._examples[uid]

    def example_counts(self) -> dict[str, int]:
        """Number of examples under each label."""
        return {label: len(uids) for label, uids in self._label_to_uids.items()}

    def examples_of(self, label: str) -> tuple[StoredExample, ...]:
        """All examples of ``label`` with their uids, in insertion order."""
        if label is None:
            raise InvalidArgumentError("Expected label to be a string, but got None")
        if label not in self._label_to_uids:
            raise NotFoundError(f'No example of label "{label}" exists in dataset')
        return tuple(StoredExample(uid=uid, example=self._examples[uid]) for uid in self._label_to_uids[label])

    def vocabulary(self) -> tuple[str, ...]:
        """Sorted distinct labels of the examples currently held."""
        return tuple(sorted(self._label_to_uids))

    def unique_frame_counts(self) -> tuple[int, ...]:
        """Sorted distinct spectrogram frame counts across all examples."""
        return tuple(sorted({example.num_frames for example in self._examples.values()}))

    def size(self) -> int:
        return len(self._examples)

    def is_empty(self) -> bool:
        return not self._examples

    def clear(self) -> None:
        self._examples.clear()
        self._label_to_uids.clear()

    def serialize(self) -> bytes:
        """Encode all examples: labels in vocabulary order, then insertion order within a label."""
        if self.is_empty():
            raise InvalidArgumentError("Cannot serialize empty Dataset")
        manifest: list[ExampleSpec] = []
        chunks: list[bytes] = []
        for label in self.vocabulary():
            for uid in self._label_to_uids[label]:
                spec, data = serialize_example(self._examples[uid])
                manifest.append(spec)
                chunks.append(data)
        encoded = encode_serialized_examples(
            SerializedExamples(manifest=tuple(manifest), data=b"".join(chunks))
        )
        logger.debug("Serialized %d examples into %d bytes", len(manifest), len(encoded))
        return encoded

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, uid: object) -> bool:
        return uid in self._examples

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size()}, vocabulary={list(self.vocabulary())})"
