"""Binary codec for serialized example collections.

Buffer layout::

    [ 8 bytes ] ASCII descriptor, DATASET_SERIALIZATION_DESCRIPTOR
    [ 4 bytes ] uint32 LE format version
    [ 4 bytes ] uint32 LE byte length of the JSON manifest
    [ N bytes ] UTF-8 JSON manifest, one entry per example
    [ rest    ] float32 LE payload, per manifest entry in order:
                spectrogram values, then raw audio values (if any)

The payload carries no per-example offsets, so spans are recomputed from the
manifest and examples must be sliced in manifest order.
"""

from __future__ import annotations

import io
import json
import logging
import struct
from dataclasses import dataclass
from typing import Any, Iterator, cast

import numpy as np

from speechdataset.data.contracts import Example, RawAudioData, SpectrogramData
from speechdataset.errors import FormatError, InvalidArgumentError

logger = logging.getLogger(__name__)

# Stands for "TensorFlow.js Speech-Commands Dataset". Never change this.
DATASET_SERIALIZATION_DESCRIPTOR = "TFJSSCDS"

# Positive and monotonically increasing across format revisions.
DATASET_SERIALIZATION_VERSION = 1

_FLOAT32_LE = np.dtype("<f4")
_BYTES_PER_VALUE = _FLOAT32_LE.itemsize
_HEADER = struct.Struct("<8sII")


@dataclass(frozen=True, slots=True)
class ExampleSpec:
    """Manifest entry describing one serialized example's payload span."""

    label: str
    spectrogram_num_frames: int
    spectrogram_frame_size: int
    raw_audio_num_samples: int | None = None
    raw_audio_sample_rate_hz: float | None = None

    def __post_init__(self) -> None:
        if not self.label:
            raise InvalidArgumentError("manifest label must not be empty")
        if self.spectrogram_num_frames <= 0:
            raise InvalidArgumentError("spectrogram_num_frames must be > 0")
        if self.spectrogram_frame_size <= 0:
            raise InvalidArgumentError("spectrogram_frame_size must be > 0")
        if (self.raw_audio_num_samples is None) != (self.raw_audio_sample_rate_hz is None):
            raise InvalidArgumentError(
                "raw_audio_num_samples and raw_audio_sample_rate_hz must be set together"
            )
        if self.raw_audio_num_samples is not None and self.raw_audio_num_samples < 0:
            raise InvalidArgumentError("raw_audio_num_samples must be >= 0")
        if self.raw_audio_sample_rate_hz is not None and not self.raw_audio_sample_rate_hz > 0:
            raise InvalidArgumentError("raw_audio_sample_rate_hz must be > 0")

    @property
    def has_raw_audio(self) -> bool:
        return self.raw_audio_num_samples is not None

    @property
    def spectrogram_byte_length(self) -> int:
        return self.spectrogram_num_frames * self.spectrogram_frame_size * _BYTES_PER_VALUE

    @property
    def byte_length(self) -> int:
        """Total payload bytes for this example."""
        raw_bytes = (self.raw_audio_num_samples or 0) * _BYTES_PER_VALUE
        return self.spectrogram_byte_length + raw_bytes

    def to_jsonable(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "label": self.label,
            "spectrogramNumFrames": self.spectrogram_num_frames,
            "spectrogramFrameSize": self.spectrogram_frame_size,
        }
        if self.has_raw_audio:
            payload["rawAudioNumSamples"] = self.raw_audio_num_samples
            payload["rawAudioSampleRateHz"] = _compact_number(self.raw_audio_sample_rate_hz)
        return payload

    @classmethod
    def from_jsonable(cls, payload: Any) -> "ExampleSpec":
        if not isinstance(payload, dict):
            raise FormatError(f"manifest entry must be an object, got {type(payload).__name__}")
        try:
            label = payload["label"]
            num_frames = payload["spectrogramNumFrames"]
            frame_size = payload["spectrogramFrameSize"]
        except KeyError as exc:
            raise FormatError(f"manifest entry is missing field {exc.args[0]!r}") from exc
        if not isinstance(label, str):
            raise FormatError("manifest entry label must be a string")
        for name, value in (("spectrogramNumFrames", num_frames), ("spectrogramFrameSize", frame_size)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise FormatError(f"manifest entry {name} must be an integer")
        raw_num_samples = payload.get("rawAudioNumSamples")
        raw_sample_rate = payload.get("rawAudioSampleRateHz")
        if raw_num_samples is not None and (isinstance(raw_num_samples, bool) or not isinstance(raw_num_samples, int)):
            raise FormatError("manifest entry rawAudioNumSamples must be an integer")
        if raw_sample_rate is not None and (isinstance(raw_sample_rate, bool) or not isinstance(raw_sample_rate, (int, float))):
            raise FormatError("manifest entry rawAudioSampleRateHz must be a number")
        try:
            return cls(
                label=label,
                spectrogram_num_frames=num_frames,
                spectrogram_frame_size=frame_size,
                raw_audio_num_samples=raw_num_samples,
                raw_audio_sample_rate_hz=None if raw_sample_rate is None else float(raw_sample_rate),
            )
        except InvalidArgumentError as exc:
            raise FormatError(f"invalid manifest entry: {exc}") from exc


@dataclass(frozen=True, slots=True)
class SerializedExamples:
    """Intermediate form: ordered manifest plus the concatenated payload."""

    manifest: tuple[ExampleSpec, ...]
    data: bytes
    version: int = DATASET_SERIALIZATION_VERSION


def serialize_example(example: Example) -> tuple[ExampleSpec, bytes]:
    """Split one example into its manifest entry and float32 payload bytes."""
    spectrogram = example.spectrogram
    raw_audio = example.raw_audio
    spec = ExampleSpec(
        label=example.label,
        spectrogram_num_frames=spectrogram.num_frames,
        spectrogram_frame_size=spectrogram.frame_size,
        raw_audio_num_samples=None if raw_audio is None else raw_audio.num_samples,
        raw_audio_sample_rate_hz=None if raw_audio is None else raw_audio.sample_rate_hz,
    )
    data = spectrogram.data.astype(_FLOAT32_LE, copy=False).tobytes()
    if raw_audio is not None:
        data += raw_audio.data.astype(_FLOAT32_LE, copy=False).tobytes()
    return spec, data


def deserialize_example(spec: ExampleSpec, data: bytes | memoryview) -> Example:
    """Rebuild one example from its manifest entry and exact payload span."""
    if len(data) != spec.byte_length:
        raise FormatError(
            f"payload for example {spec.label!r} has {len(data)} bytes, "
            f"expected {spec.byte_length}"
        )
    split = spec.spectrogram_byte_length
    spectrogram = SpectrogramData(
        data=np.frombuffer(data[:split], dtype=_FLOAT32_LE).astype(np.float32),
        frame_size=spec.spectrogram_frame_size,
    )
    raw_audio: RawAudioData | None = None
    if spec.has_raw_audio:
        raw_audio = RawAudioData(
            data=np.frombuffer(data[split:], dtype=_FLOAT32_LE).astype(np.float32),
            sample_rate_hz=cast(float, spec.raw_audio_sample_rate_hz),
        )
    return Example(label=spec.label, spectrogram=spectrogram, raw_audio=raw_audio)


def encode_serialized_examples(serialized: SerializedExamples) -> bytes:
    """Encode manifest and payload into one contiguous buffer."""
    expected = sum(spec.byte_length for spec in serialized.manifest)
    if expected != len(serialized.data):
        raise InvalidArgumentError(
            f"payload has {len(serialized.data)} bytes but manifest describes {expected}"
        )
    manifest_bytes = json.dumps(
        [spec.to_jsonable() for spec in serialized.manifest],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")

    with io.BytesIO() as buffer:
        buffer.write(
            _HEADER.pack(
                DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii"),
                serialized.version,
                len(manifest_bytes),
            )
        )
        buffer.write(manifest_bytes)
        buffer.write(serialized.data)
        encoded = buffer.getvalue()
    logger.debug(
        "Encoded %d examples into %d bytes (manifest %d bytes)",
        len(serialized.manifest),
        len(encoded),
        len(manifest_bytes),
    )
    return encoded


def decode_serialized_examples(buffer: bytes | bytearray | memoryview) -> SerializedExamples:
    """Decode a buffer produced by :func:`encode_serialized_examples`."""
    if buffer is None:
        raise InvalidArgumentError("buffer must not be None")
    with memoryview(buffer) as view:
        if view.nbytes < _HEADER.size:
            raise FormatError(
                f"buffer has {view.nbytes} bytes, shorter than the {_HEADER.size}-byte header"
            )
        descriptor, version, manifest_length = _HEADER.unpack_from(view, 0)
        if descriptor != DATASET_SERIALIZATION_DESCRIPTOR.encode("ascii"):
            raise FormatError("Deserialization error: invalid descriptor")
        manifest_end = _HEADER.size + manifest_length
        if manifest_end > view.nbytes:
            raise FormatError(
                f"manifest length ({manifest_length}) overruns buffer of {view.nbytes} bytes"
            )
        try:
            raw_manifest = json.loads(bytes(view[_HEADER.size : manifest_end]).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FormatError(f"manifest is not valid UTF-8 JSON: {exc}") from exc
        if not isinstance(raw_manifest, list):
            raise FormatError("manifest must be a JSON array")
        manifest = tuple(ExampleSpec.from_jsonable(entry) for entry in raw_manifest)
        data = bytes(view[manifest_end:])

    expected = sum(spec.byte_length for spec in manifest)
    if expected != len(data):
        raise FormatError(
            f"payload has {len(data)} bytes but manifest describes {expected}"
        )
    logger.debug("Decoded %d manifest entries (format version %d)", len(manifest), version)
    return SerializedExamples(manifest=manifest, data=data, version=version)


def iter_example_payloads(serialized: SerializedExamples) -> Iterator[tuple[ExampleSpec, memoryview]]:
    """Yield each manifest entry with its payload span, slicing sequentially."""
    with memoryview(serialized.data) as view:
        offset = 0
        for spec in serialized.manifest:
            end = offset + spec.byte_length
            if end > view.nbytes:
                raise FormatError(
                    f"payload ends at byte {view.nbytes}, example {spec.label!r} needs {end}"
                )
            yield spec, view[offset:end]
            offset = end


def _compact_number(value: float | None) -> float | int | None:
    if value is not None and float(value).is_integer():
        return int(value)
    return value
