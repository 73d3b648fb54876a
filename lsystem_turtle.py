#!/usr/bin/env python3
"""lsystem_turtle.py

A bracketed L-system turtle interpreter that emits 2D line segments.

Key features:
- Fixed alphabet: F (draw), + and - (turn), [ and ] (branch push/pop).
- Whole-input validation before any turtle state changes.
- Depth-dependent modulation: segment length decays as scale_factor**depth,
  turn angles grow by (1 + angle_variation * depth).
- Permissive numerics and a permissive unmatched ']' policy.
- JSON config input, JSON segment output, random word generator.

Run:
  python lsystem_turtle.py interpret config.json segments.json
  python lsystem_turtle.py validate config.json
  python lsystem_turtle.py random out.json --seed 123
  python lsystem_turtle.py --help
"""

from __future__ import annotations

import argparse
import json
import math
import os
import random
import sys
from dataclasses import dataclass
from typing import Any, cast

Point = tuple[float, float]
Segment = tuple[Point, Point]

ALPHABET = frozenset("F+-[]")


# -------------------------
# Errors / Validation
# -------------------------


class ConfigError(ValueError):
    pass


class InvalidSymbol(ValueError):
    """A character outside the turtle alphabet was found in the input word."""

    def __init__(self, symbol: str, index: int) -> None:
        super().__init__(f"invalid symbol {symbol!r} at index {index}")
        self.symbol = symbol
        self.index = index


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_float(x: Any, path: str) -> float:
    _require(
        isinstance(x, (int, float)) and not isinstance(x, bool),
        f"{path} must be a number",
    )
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


def validate_symbols(symbols: str) -> None:
    """Raise InvalidSymbol for the first character outside the alphabet."""
    for i, ch in enumerate(symbols):
        if ch not in ALPHABET:
            raise InvalidSymbol(ch, i)


# -------------------------
# Turtle model
# -------------------------


@dataclass(frozen=True)
class TurtleConfig:
    angle_deg: float
    length: float
    scale_factor: float = 1.0
    angle_variation: float = 0.0


@dataclass(frozen=True)
class BranchFrame:
    position: Point
    heading: Point
    scale: float


@dataclass
class TurtleState:
    position: Point = (0.0, 0.0)
    heading: Point = (0.0, 1.0)
    scale: float = 1.0

    def save(self) -> BranchFrame:
        return BranchFrame(self.position, self.heading, self.scale)

    def restore(self, frame: BranchFrame) -> None:
        self.position = frame.position
        self.heading = frame.heading
        self.scale = frame.scale


def rotate(v: Point, angle_deg: float) -> Point:
    """Rotate v counter-clockwise by angle_deg as one exact transform."""
    rad = math.radians(angle_deg)
    if not math.isfinite(rad):
        # cos/sin have no value at +-inf; the heading becomes undefined.
        return (math.nan, math.nan)
    c = math.cos(rad)
    s = math.sin(rad)
    return (v[0] * c - v[1] * s, v[0] * s + v[1] * c)


def depth_scale(scale_factor: float, depth: int) -> float:
    try:
        # float() so an int factor cannot grow into an unconvertible int.
        return float(scale_factor) ** depth
    except OverflowError:
        # Negative base with odd depth overflows towards -inf.
        sign = -1.0 if scale_factor < 0 and depth % 2 else 1.0
        return math.copysign(math.inf, sign)


# -------------------------
# Turtle interpreter
# -------------------------


def interpret_config(symbols: str, config: TurtleConfig) -> list[Segment]:
    """Interpret a validated word into segments, one per 'F'.

    '+' turns clockwise and '-' counter-clockwise. An unmatched ']' is
    ignored: depth and state are left unchanged.
    """
    validate_symbols(symbols)

    state = TurtleState()
    stack: list[BranchFrame] = []
    depth = 0
    out: list[Segment] = []

    for sym in symbols:
        if sym == "F":
            dist = config.length * state.scale * depth_scale(config.scale_factor, depth)
            x, y = state.position
            hx, hy = state.heading
            end = (x + hx * dist, y + hy * dist)
            out.append((state.position, end))
            state.position = end
            continue

        if sym == "+" or sym == "-":
            varied = config.angle_deg * (1.0 + config.angle_variation * depth)
            state.heading = rotate(state.heading, -varied if sym == "+" else varied)
            continue

        if sym == "[":
            stack.append(state.save())
            depth += 1
            continue

        # sym == "]"
        if stack:
            state.restore(stack.pop())
            depth -= 1

    return out


def interpret(
    symbols: str,
    rotation_angle_degrees: float,
    base_line_length: float,
    scale_factor: float,
    angle_variation: float,
) -> list[Segment]:
    return interpret_config(
        symbols,
        TurtleConfig(
            angle_deg=rotation_angle_degrees,
            length=base_line_length,
            scale_factor=scale_factor,
            angle_variation=angle_variation,
        ),
    )


def max_depth(symbols: str) -> int:
    """Deepest bracket nesting reached, ignoring unmatched ']'."""
    depth = deepest = 0
    for ch in symbols:
        if ch == "[":
            depth += 1
            deepest = max(deepest, depth)
        elif ch == "]" and depth > 0:
            depth -= 1
    return deepest


# -------------------------
# Segment output
# -------------------------


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def compute_bounds(
    segments: list[Segment],
) -> tuple[float, float, float, float] | None:
    if not segments:
        return None
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for seg in segments:
        for x, y in seg:
            if x < min_x:
                min_x = x
            if x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            if y > max_y:
                max_y = y
    return (min_x, min_y, max_x, max_y)


def _round(x: float, precision: int) -> float:
    r = round(x, precision)
    # Normalise -0.0 so it never appears in the output document.
    return r if r else 0.0


def segments_to_json(
    segments: list[Segment], *, precision: int, name: str | None = None
) -> dict[str, Any]:
    return {
        "name": name,
        "count": len(segments),
        "segments": [
            [[_round(x, precision), _round(y, precision)] for x, y in seg]
            for seg in segments
        ],
    }


def write_segments(
    segments: list[Segment],
    *,
    out_path: str,
    precision: int,
    name: str | None = None,
) -> None:
    doc = segments_to_json(segments, precision=precision, name=name)
    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# Config parsing
# -------------------------


@dataclass(frozen=True)
class InterpretConfig:
    name: str
    symbols: str
    turtle: TurtleConfig
    precision: int


def parse_config(obj: dict[str, Any]) -> InterpretConfig:
    obj = _as_dict(obj, "root")

    name = _as_str(obj.get("name", "L-System"), "name")
    # Alphabet violations surface as InvalidSymbol when interpreting.
    symbols = _as_str(obj.get("symbols", ""), "symbols")

    turtle = _as_dict(obj.get("turtle", {}), "turtle")
    cfg = TurtleConfig(
        angle_deg=_as_float(turtle.get("angle", 25), "turtle.angle"),
        length=_as_float(turtle.get("length", 10), "turtle.length"),
        scale_factor=_as_float(
            turtle.get("scale_factor", 1), "turtle.scale_factor"
        ),
        angle_variation=_as_float(
            turtle.get("angle_variation", 0), "turtle.angle_variation"
        ),
    )

    output = _as_dict(obj.get("output", {}), "output")
    precision = _as_int(output.get("precision", 6), "output.precision")
    _require(0 <= precision <= 17, "output.precision must be between 0 and 17")

    return InterpretConfig(name=name, symbols=symbols, turtle=cfg, precision=precision)


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def dump_json(obj: dict[str, Any], path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# Random word generator
# -------------------------


def random_word(
    rng: random.Random, length: int, *, p_branch: float = 0.20, depth_limit: int = 3
) -> str:
    """Draw `length` symbols, then close whatever branches are still open.

    Each draw opens a branch with probability p_branch (while fewer than
    depth_limit are open), closes one with probability p_branch (while any
    is open), and otherwise picks F, + or -. A lone F is appended to words
    that drew none, so every word emits geometry.
    """
    out: list[str] = []
    open_branches = 0

    for _ in range(length):
        roll = rng.random()
        if roll < p_branch and open_branches < depth_limit:
            out.append("[")
            open_branches += 1
        elif roll >= 1.0 - p_branch and open_branches:
            out.append("]")
            open_branches -= 1
        else:
            out.append(rng.choices("F+-", weights=(0.55, 0.225, 0.225))[0])

    out.extend("]" * open_branches)

    if "F" not in out:
        out.append("F")

    return "".join(out)


def generate_random_config(seed: int | None = None) -> dict[str, Any]:
    rng = random.Random(seed)

    cfg = {
        "name": "Random L-System",
        "symbols": random_word(rng, rng.randint(20, 60)),
        "turtle": {
            "angle": rng.choice([15, 20, 22.5, 25, 30, 36, 45, 60, 90]),
            "length": rng.choice([5, 8, 10, 12, 15]),
            "scale_factor": rng.choice([0.5, 0.6, 0.7, 0.8, 0.9, 1.0]),
            "angle_variation": rng.choice([0.0, 0.05, 0.1, 0.2]),
        },
        "output": {"precision": 6},
    }

    # Generated configs must always parse cleanly.
    parse_config(cfg)
    return cfg


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INPUT JSON SYNTAX

  name: string (optional, default "L-System")
      Copied into the output document.

  symbols: string (default "")
      An already-expanded L-system word over the alphabet F + - [ ].
      Any other character is rejected before interpretation starts.

  turtle: object (optional)

    turtle.angle: number degrees (default 25)
        Base turn angle. '+' turns clockwise, '-' counter-clockwise.

    turtle.length: number (default 10)
        Base segment length for 'F'.

    turtle.scale_factor: number (default 1)
        Segment length at bracket depth d is length * scale_factor**d.

    turtle.angle_variation: number (default 0)
        Turn angle at depth d is angle * (1 + angle_variation * d).

  output: object (optional)

    output.precision: integer 0..17 (default 6)
        Decimal places kept for coordinates in the output document.

The turtle starts at (0, 0) heading (0, 1). An unmatched ']' is ignored.
No range checks are applied to turtle numbers.

Example:

    {
      "name": "Fractal plant",
      "symbols": "F[+F[+F]F[-F]]F[-F]",
      "turtle": {"angle": 25, "length": 10, "scale_factor": 0.7}
    }
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem_turtle.py",
        description="Turtle interpreter that turns L-system words into line segments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pi = sub.add_parser(
        "interpret",
        help="Interpret a JSON config and write its segments as JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pi.add_argument("config", help="Path to the input JSON config.")
    pi.add_argument("output", help="Path to write the segments JSON.")
    pi.add_argument(
        "--symbols",
        default=None,
        help="Word to interpret instead of the config's 'symbols'.",
    )

    pv = sub.add_parser(
        "validate",
        help="Validate a JSON config and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    pg = sub.add_parser(
        "random",
        help="Generate a random JSON config for experimentation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pg.add_argument("output", help="Where to write the generated JSON file.")
    pg.add_argument(
        "--seed", type=int, default=None, help="Seed for repeatable randomness."
    )

    return p


# -------------------------
# Commands
# -------------------------


def cmd_interpret(config_path: str, output_path: str, symbols: str | None) -> None:
    cfg = parse_config(load_json(config_path))
    word = cfg.symbols if symbols is None else symbols

    segments = interpret_config(word, cfg.turtle)
    write_segments(
        segments, out_path=output_path, precision=cfg.precision, name=cfg.name
    )


def cmd_validate(config_path: str) -> None:
    cfg = parse_config(load_json(config_path))
    segments = interpret_config(cfg.symbols, cfg.turtle)

    print(f"name: {cfg.name}")
    print(f"symbols: {len(cfg.symbols)}")
    print(f"max depth: {max_depth(cfg.symbols)}")
    print(
        "turtle: "
        f"angle={cfg.turtle.angle_deg} length={cfg.turtle.length} "
        f"scale_factor={cfg.turtle.scale_factor} "
        f"angle_variation={cfg.turtle.angle_variation}"
    )
    print(f"segments: {len(segments)}")
    bounds = compute_bounds(segments)
    if bounds is None:
        print("bounds: none")
    else:
        print("bounds: " + " ".join(f"{b:.{cfg.precision}g}" for b in bounds))


def cmd_random(output_path: str, seed: int | None) -> None:
    dump_json(generate_random_config(seed), output_path)


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "interpret":
            cmd_interpret(args.config, args.output, args.symbols)
        elif args.cmd == "validate":
            cmd_validate(args.config)
        elif args.cmd == "random":
            cmd_random(args.output, args.seed)
        else:
            raise AssertionError("unreachable")
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except InvalidSymbol as e:
        print(f"Symbol error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
