#!/usr/bin/env python3

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from gridpaper_svg import generate_svg


@dataclass
class Case:
    name: str
    params: Dict[str, Any]
    expect: Dict[str, Any]
    source_file: Path


def _read_case(path: Path) -> Case:
    data = json.loads(path.read_text(encoding="utf-8"))
    params = data.get("params")
    expect = data.get("expect") or {}
    if not isinstance(params, dict):
        raise TypeError(f"{path}: params must be an object/dict")
    if not isinstance(expect, dict):
        raise TypeError(f"{path}: expect must be an object/dict")
    return Case(name=path.stem, params=params, expect=expect, source_file=path)


def _iter_cases(params_dir: Path) -> List[Case]:
    if not params_dir.exists():
        raise FileNotFoundError(f"Params dir not found: {params_dir}")

    cases = [_read_case(p) for p in sorted(params_dir.glob("*.json"))]
    if not cases:
        raise FileNotFoundError(f"No *.json found in: {params_dir}")
    return cases


def _find_error_warnings(warnings: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [w for w in warnings or [] if str((w or {}).get("severity", "")).lower() == "error"]


def _validate_svg(svg: str, *, name: str) -> None:
    if not isinstance(svg, str) or not svg.strip():
        raise ValueError(f"{name}: empty svg")
    if "<svg" not in svg.lstrip()[:5000]:
        raise ValueError(f"{name}: svg does not look like SVG")


def _check_expect(layout: Dict[str, Any], expect: Dict[str, Any], *, name: str) -> None:
    # Only exact keys of the layout summary are compared (n_rows, n_columns, title_placement, ...).
    for key, want in expect.items():
        got = layout.get(key)
        if got != want:
            raise ValueError(f"{name}: layout[{key!r}] = {got!r}, expected {want!r}")


def main(argv: List[str]) -> int:
    ap = argparse.ArgumentParser(description="Generate and check regression grid sheets from JSON cases.")
    ap.add_argument(
        "--params-dir",
        default="examples/regression_params",
        help="Directory containing *.json files with {params, expect} (default: %(default)s)",
    )
    ap.add_argument(
        "--out-dir",
        default="artifacts/regression",
        help="Output directory for generated SVGs (default: %(default)s)",
    )
    args = ap.parse_args(argv)

    out_dir = Path(args.out_dir)
    cases = _iter_cases(Path(args.params_dir))

    failures: List[Tuple[str, str]] = []
    for c in cases:
        try:
            res = generate_svg(c.params)
            _validate_svg(res.get("svg"), name=c.name)

            errors = _find_error_warnings(res.get("warnings"))
            if errors:
                raise ValueError(f"Blocking errors returned: {errors}")
            _check_expect(res["layout"], c.expect, name=c.name)

            out_dir.mkdir(parents=True, exist_ok=True)
            out_path = out_dir / f"{c.name}.svg"
            out_path.write_text(res["svg"], encoding="utf-8")
            print(f"OK  {c.name} -> {out_path}")
        except (ValueError, TypeError, KeyError) as e:
            failures.append((c.name, str(e)))
            print(f"FAIL {c.name}: {e}", file=sys.stderr)

    if failures:
        print("\nFailures:", file=sys.stderr)
        for name, msg in failures:
            print(f"- {name}: {msg}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
