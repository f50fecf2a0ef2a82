"""CLI for inspecting, merging, and batching serialized speech datasets."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from speechdataset.data import ExampleStore, dataset_fingerprint, load_store, save_store
from speechdataset.logging_utils import setup_logging
from speechdataset.training import BatchConfig, assemble_batch

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create parser for dataset file operations."""
    parser = argparse.ArgumentParser(
        prog="speechdataset-tool",
        description="Inspect, merge, and extract training batches from serialized speech datasets.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Print dataset summary as JSON.")
    summary.add_argument("dataset", type=Path, help="Serialized dataset file.")

    merge = subparsers.add_parser("merge", help="Merge dataset files into one.")
    merge.add_argument("output", type=Path, help="Destination dataset file.")
    merge.add_argument("inputs", type=Path, nargs="+", help="Dataset files to merge, in order.")

    batch = subparsers.add_parser("batch", help="Extract a windowed training batch to .npz.")
    batch.add_argument("dataset", type=Path, help="Serialized dataset file.")
    batch.add_argument("--output", type=Path, required=True, help="Destination .npz file.")
    batch.add_argument("--label", type=str, default=None, help="Restrict the batch to one label.")
    batch.add_argument("--num-frames", type=int, default=None, help="Frames per window.")
    batch.add_argument("--hop-frames", type=int, default=None, help="Hop between windows in frames.")
    batch.add_argument(
        "--normalize",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Normalize each window to zero mean and unit variance.",
    )
    batch.add_argument(
        "--shuffle",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Shuffle windows together with their labels.",
    )
    batch.add_argument("--seed", type=int, default=None, help="Shuffle RNG seed.")
    return parser


def summarize_store(store: ExampleStore) -> dict[str, Any]:
    """JSON-safe summary of store contents."""
    serialized = store.serialize()
    return {
        "size": store.size(),
        "vocabulary": list(store.vocabulary()),
        "example_counts": store.example_counts(),
        "unique_frame_counts": list(store.unique_frame_counts()),
        "serialized_bytes": len(serialized),
        "fingerprint": dataset_fingerprint(serialized),
    }


def run_summary(args: argparse.Namespace) -> dict[str, Any]:
    return summarize_store(load_store(args.dataset))


def run_merge(args: argparse.Namespace) -> dict[str, Any]:
    merged = ExampleStore()
    for path in args.inputs:
        merged.merge(load_store(path))
        logger.info("Merged %s (total %d examples)", path, merged.size())
    output = save_store(args.output, merged)
    return {"output": str(output), **summarize_store(merged)}


def run_batch(args: argparse.Namespace) -> dict[str, Any]:
    store = load_store(args.dataset)
    config = BatchConfig(
        num_frames=args.num_frames,
        hop_frames=args.hop_frames,
        normalize=args.normalize,
        shuffle=args.shuffle,
        seed=args.seed,
    )
    batch = assemble_batch(store, args.label, config)

    arrays: dict[str, np.ndarray] = {
        "xs": batch.xs,
        "class_names": np.asarray(batch.class_names),
    }
    if batch.ys is not None:
        arrays["ys"] = batch.ys
    args.output.parent.mkdir(parents=True, exist_ok=True)
    with args.output.open("wb") as handle:
        np.savez(handle, **arrays)
    logger.info("Wrote batch of %d windows to %s", batch.size, args.output)
    return {
        "output": str(args.output),
        "num_windows": batch.size,
        "xs_shape": list(batch.xs.shape),
        "ys_shape": None if batch.ys is None else list(batch.ys.shape),
        "class_names": list(batch.class_names),
        "num_frames": batch.num_frames,
        "hop_frames": batch.hop_frames,
    }


_COMMANDS = {
    "summary": run_summary,
    "merge": run_merge,
    "batch": run_batch,
}


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint for dataset file operations."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        payload = _COMMANDS[args.command](args)
    except Exception as exc:
        print(f"[ERROR] {args.command} failed: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
