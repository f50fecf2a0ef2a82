"""Example store, binary codec, and persistence for keyword-spotting datasets."""

from speechdataset.data.contracts import BACKGROUND_NOISE_TAG, Example, RawAudioData, SpectrogramData
from speechdataset.data.identity import DEFAULT_UID_GENERATOR, UidGenerator
from speechdataset.data.persistence import dataset_fingerprint, load_store, save_store
from speechdataset.data.serialization import (
    DATASET_SERIALIZATION_DESCRIPTOR,
    DATASET_SERIALIZATION_VERSION,
    ExampleSpec,
    SerializedExamples,
    decode_serialized_examples,
    deserialize_example,
    encode_serialized_examples,
    serialize_example,
)
from speechdataset.data.store import ExampleStore, StoredExample

__all__ = [
    "BACKGROUND_NOISE_TAG",
    "DATASET_SERIALIZATION_DESCRIPTOR",
    "DATASET_SERIALIZATION_VERSION",
    "DEFAULT_UID_GENERATOR",
    "Example",
    "ExampleSpec",
    "ExampleStore",
    "RawAudioData",
    "SerializedExamples",
    "SpectrogramData",
    "StoredExample",
    "UidGenerator",
    "dataset_fingerprint",
    "decode_serialized_examples",
    "deserialize_example",
    "encode_serialized_examples",
    "load_store",
    "save_store",
    "serialize_example",
]
