"""Tests for the binary dataset codec and store serialization."""

from __future__ import annotations

import json
import struct

import numpy as np
import pytest

from speechdataset.data import (
    DATASET_SERIALIZATION_DESCRIPTOR,
    DATASET_SERIALIZATION_VERSION,
    Example,
    ExampleSpec,
    ExampleStore,
    RawAudioData,
    SerializedExamples,
    SpectrogramData,
    decode_serialized_examples,
    deserialize_example,
    encode_serialized_examples,
    serialize_example,
)
from speechdataset.errors import FormatError, InvalidArgumentError


def _example(label: str, num_frames: int, frame_size: int = 4, *, seed: int = 0, raw_samples: int = 0) -> Example:
    rng = np.random.default_rng(seed)
    raw_audio = None
    if raw_samples:
        raw_audio = RawAudioData(data=rng.normal(size=raw_samples).astype(np.float32), sample_rate_hz=16000)
    return Example(
        label=label,
        spectrogram=SpectrogramData(
            data=rng.normal(size=num_frames * frame_size).astype(np.float32),
            frame_size=frame_size,
        ),
        raw_audio=raw_audio,
    )


def _populated_store() -> ExampleStore:
    store = ExampleStore()
    store.add(_example("yes", 5, seed=1, raw_samples=32))
    store.add(_example("_background_noise_", 12, seed=2))
    store.add(_example("no", 5, seed=3))
    store.add(_example("yes", 7, seed=4))
    return store


def test_version_is_positive_integer() -> None:
    assert isinstance(DATASET_SERIALIZATION_VERSION, int)
    assert DATASET_SERIALIZATION_VERSION > 0
    assert len(DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii")) == 8


def test_serialized_header_layout() -> None:
    store = _populated_store()
    blob = store.serialize()

    assert blob[:8] == DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii")
    version, manifest_length = struct.unpack_from("<II", blob, 8)
    assert version == DATASET_SERIALIZATION_VERSION
    manifest = json.loads(blob[16 : 16 + manifest_length].decode("utf-8"))
    assert [entry["label"] for entry in manifest] == ["_background_noise_", "no", "yes", "yes"]
    assert manifest[2] == {"label": "yes", "spectrogramNumFrames": 5, "spectrogramFrameSize": 4,
                           "rawAudioNumSamples": 32, "rawAudioSampleRateHz": 16000}
    assert "rawAudioNumSamples" not in manifest[3]
    payload_bytes = len(blob) - 16 - manifest_length
    assert payload_bytes == 4 * (12 * 4 + 5 * 4 + 5 * 4 + 32 + 7 * 4)


def test_store_round_trip_is_bit_exact() -> None:
    store = _populated_store()
    restored = ExampleStore.deserialize(store.serialize())

    assert restored.example_counts() == store.example_counts()
    assert restored.vocabulary() == store.vocabulary()
    for label in store.vocabulary():
        originals = store.examples_of(label)
        copies = restored.examples_of(label)
        assert len(originals) == len(copies)
        for original, copy in zip(originals, copies):
            assert copy.uid != original.uid
            assert copy.example.spectrogram.frame_size == original.example.spectrogram.frame_size
            assert copy.example.spectrogram.data.tobytes() == original.example.spectrogram.data.tobytes()
            if original.example.raw_audio is None:
                assert copy.example.raw_audio is None
            else:
                assert copy.example.raw_audio is not None
                assert copy.example.raw_audio.sample_rate_hz == original.example.raw_audio.sample_rate_hz
                assert copy.example.raw_audio.data.tobytes() == original.example.raw_audio.data.tobytes()


def test_serialization_is_deterministic_across_reload() -> None:
    store = _populated_store()
    first = store.serialize()

    assert store.serialize() == first
    assert ExampleStore.deserialize(first).serialize() == first


def test_serialize_empty_store_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match="empty"):
        ExampleStore().serialize()


def test_decode_rejects_wrong_descriptor() -> None:
    blob = bytearray(_populated_store().serialize())
    blob[:8] = b"XXXXXXXX"
    with pytest.raises(FormatError, match="descriptor"):
        decode_serialized_examples(bytes(blob))


def test_decode_rejects_truncated_buffers() -> None:
    blob = _populated_store().serialize()
    with pytest.raises(FormatError, match="header"):
        decode_serialized_examples(blob[:10])
    with pytest.raises(FormatError, match="payload"):
        decode_serialized_examples(blob[:-4])
    with pytest.raises(FormatError, match="payload"):
        decode_serialized_examples(blob + b"\x00\x00\x00\x00")


def test_decode_rejects_manifest_overrun() -> None:
    header = struct.pack("<8sII", DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii"), 1, 1000)
    with pytest.raises(FormatError, match="overruns"):
        decode_serialized_examples(header + b"[]")


def test_decode_rejects_malformed_manifest() -> None:
    manifest = json.dumps([{"label": "yes"}]).encode("utf-8")
    header = struct.pack("<8sII", DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii"), 1, len(manifest))
    with pytest.raises(FormatError, match="spectrogramNumFrames"):
        decode_serialized_examples(header + manifest)


def test_example_codec_splits_spectrogram_and_raw_audio() -> None:
    example = _example("go", 3, frame_size=2, seed=9, raw_samples=5)
    spec, data = serialize_example(example)

    assert spec == ExampleSpec(
        label="go",
        spectrogram_num_frames=3,
        spectrogram_frame_size=2,
        raw_audio_num_samples=5,
        raw_audio_sample_rate_hz=16000,
    )
    assert spec.has_raw_audio
    assert len(data) == spec.byte_length == 4 * (3 * 2 + 5)

    decoded = deserialize_example(spec, data)
    assert decoded.label == "go"
    assert np.array_equal(decoded.spectrogram.data, example.spectrogram.data)
    assert decoded.raw_audio is not None
    assert np.array_equal(decoded.raw_audio.data, example.raw_audio.data)  # type: ignore[union-attr]


def test_encode_rejects_manifest_payload_mismatch() -> None:
    spec = ExampleSpec(label="go", spectrogram_num_frames=2, spectrogram_frame_size=2)
    with pytest.raises(InvalidArgumentError, match="manifest describes"):
        encode_serialized_examples(SerializedExamples(manifest=(spec,), data=b"\x00" * 4))


def test_decode_surfaces_version_field() -> None:
    spec, data = serialize_example(_example("go", 2, frame_size=2))
    blob = encode_serialized_examples(SerializedExamples(manifest=(spec,), data=data, version=3))

    decoded = decode_serialized_examples(blob)
    assert decoded.version == 3
    assert decoded.manifest == (spec,)
    assert decoded.data == data


def test_store_round_trip_preserves_non_finite_values_bit_exact() -> None:
    spectrogram = np.asarray([-np.inf, 1.0, np.nan, 2.5], dtype=np.float32)
    raw = np.asarray([np.nan, np.inf, 0.0], dtype=np.float32)
    store = ExampleStore()
    store.add(
        Example(
            label="yes",
            spectrogram=SpectrogramData(data=spectrogram, frame_size=2),
            raw_audio=RawAudioData(data=raw, sample_rate_hz=8000),
        )
    )

    restored = ExampleStore.deserialize(store.serialize())

    copy = restored.examples_of("yes")[0].example
    assert copy.spectrogram.data.tobytes() == spectrogram.tobytes()
    assert copy.raw_audio is not None
    assert copy.raw_audio.data.tobytes() == raw.tobytes()


def test_decode_rejects_non_positive_sample_rate() -> None:
    manifest = json.dumps(
        [
            {
                "label": "yes",
                "spectrogramNumFrames": 1,
                "spectrogramFrameSize": 1,
                "rawAudioNumSamples": 1,
                "rawAudioSampleRateHz": 0,
            }
        ]
    ).encode("utf-8")
    header = struct.pack("<8sII", DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii"), 1, len(manifest))
    payload = np.zeros(2, dtype="<f4").tobytes()
    with pytest.raises(FormatError, match="raw_audio_sample_rate_hz must be > 0"):
        decode_serialized_examples(header + manifest + payload)
