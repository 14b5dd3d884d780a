from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
import sys
from typing import Any

import numpy as np

from nhist import (
    AxisMismatchError,
    CategoryAxis,
    DimensionMismatchError,
    Histogram,
    HistogramError,
    load_definition,
)
from nhist.serialization import load, save


LOGGER = logging.getLogger("nhist.cli")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="nhist")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Root logger level. DEBUG shows storage promotions and batch fill counts.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fill = sub.add_parser("fill", help="Fill a histogram from a delimited text file (one column per axis).")
    fill.add_argument("definition", type=Path, help="TOML histogram definition.")
    fill.add_argument("input", type=Path)
    fill.add_argument("--output", type=Path, required=True)
    fill.add_argument("--append", action="store_true", help="Add to the histogram already stored at --output.")
    fill.add_argument("--delimiter", default=",")
    fill.add_argument("--skip-header", action="store_true")

    show = sub.add_parser("show", help="Print a summary of a saved histogram.")
    show.add_argument("path", type=Path)
    show.add_argument("--flow", action="store_true", help="Include underflow/overflow slots in 1-D listings.")
    show.add_argument("--json", action="store_true", help="Print the summary as JSON.")

    merge = sub.add_parser("merge", help="Sum saved histograms that share the same axes.")
    merge.add_argument("output", type=Path)
    merge.add_argument("inputs", type=Path, nargs="+")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "fill":
            definition = load_definition(args.definition)
            hist = definition.build()
            columns = _read_columns(args.input, hist, delimiter=args.delimiter, skip_header=args.skip_header)
            accepted = hist.fill_columns(*columns)
            rows = len(columns[0])
            if args.append and args.output.exists():
                stored = load(args.output)
                stored += hist
                hist = stored
            save(hist, args.output)
            LOGGER.info("filled %s from %s into %s", definition.name, args.input, args.output)
            print(f"fill complete: rows={rows} accepted={accepted} dropped={rows - accepted} sum={hist.sum()}")
            return 0

        if args.command == "show":
            hist = load(args.path)
            summary = _summarize(hist, flow=args.flow)
            if args.json:
                print(json.dumps(summary, indent=2, sort_keys=True))
            else:
                print(_format_summary(summary))
            return 0

        if args.command == "merge":
            total = load(args.inputs[0])
            for path in args.inputs[1:]:
                part = load(path)
                if part.axes != total.axes:
                    raise AxisMismatchError(f"{path} has different axes than {args.inputs[0]}")
                total += part
            save(total, args.output)
            print(f"merge complete: inputs={len(args.inputs)} sum={total.sum()} depth={total.depth}")
            return 0
    except (HistogramError, ValueError, FileNotFoundError) as exc:
        print(f"nhist: error: {exc}", file=sys.stderr)
        return 2

    raise RuntimeError(f"unsupported command: {args.command}")


def _read_columns(path: Path, hist: Histogram, *, delimiter: str, skip_header: bool) -> list[Any]:
    if not path.exists():
        raise FileNotFoundError(f"input file not found: {path}")
    dimension = hist.dimension
    label_maps = [
        {str(label): label for label in axis.labels} if isinstance(axis, CategoryAxis) else None
        for axis in hist.axes
    ]
    columns: list[list[Any]] = [[] for _ in range(dimension)]
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f, delimiter=delimiter)
        for line_no, row in enumerate(reader, start=1):
            if skip_header and line_no == 1:
                continue
            if not row or row[0].lstrip().startswith("#"):
                continue
            if len(row) != dimension:
                raise DimensionMismatchError(f"{path}:{line_no}: expected {dimension} fields, got {len(row)}")
            for k, raw in enumerate(row):
                text = raw.strip()
                labels = label_maps[k]
                if labels is not None:
                    columns[k].append(labels.get(text, text))
                    continue
                try:
                    columns[k].append(float(text))
                except ValueError as exc:
                    raise ValueError(f"{path}:{line_no}: field {k + 1} is not a number: {text!r}") from exc
    return [
        np.asarray(col, dtype=np.float64) if label_maps[k] is None else np.asarray(col, dtype=object)
        for k, col in enumerate(columns)
    ]


def _summarize(hist: Histogram, *, flow: bool) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "dimension": hist.dimension,
        "shape": [hist.shape(i) for i in range(hist.dimension)],
        "depth": hist.depth,
        "sum": hist.sum(),
        "axes": [axis.to_dict() for axis in hist.axes],
    }
    if hist.dimension == 1:
        axis = hist.axis(0)
        lo, hi = axis.index_bounds if flow else (0, axis.bins)
        bins = []
        for index in range(lo, hi):
            if index < 0:
                name = "underflow"
            elif index >= axis.bins:
                name = "other" if isinstance(axis, CategoryAxis) else "overflow"
            else:
                name = axis.bin_label(index)
            bins.append({"index": index, "bin": name, "count": hist.at(index)})
        summary["bins"] = bins
    return summary


def _format_summary(summary: dict[str, Any]) -> str:
    lines = [
        f"dimension: {summary['dimension']}",
        f"shape: {tuple(summary['shape'])}",
        f"depth: {summary['depth']} byte(s)",
        f"sum: {summary['sum']}",
    ]
    for i, axis in enumerate(summary["axes"]):
        label = f" ({axis['label']})" if axis.get("label") else ""
        lines.append(f"axis {i}: {axis['kind']}{label}")
    for row in summary.get("bins", []):
        lines.append(f"  {row['bin']:>24}  {row['count']}")
    return "\n".join(lines)


if __name__ == "__main__":
    sys.exit(main())
