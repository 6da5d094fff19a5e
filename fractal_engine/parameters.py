"""Parameter types describing a single fractal render."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from numbers import Integral, Real
from typing import Any, Mapping, Optional

from .errors import InvalidParameterError


class FractalKind(str, Enum):
    MANDELBROT = "mandelbrot"
    JULIA = "julia"
    SIERPINSKI = "sierpinski"
    KOCH = "koch"
    DRAGON = "dragon"


class ColorScheme(str, Enum):
    RAINBOW = "rainbow"
    FIRE = "fire"
    OCEAN = "ocean"
    MONOCHROME = "monochrome"
    NEON = "neon"


@dataclass(frozen=True)
class JuliaConstant:
    """The fixed ``c`` of a Julia set, ``real + imag * i``."""

    real: float
    imag: float


DEFAULT_JULIA_C = JuliaConstant(real=-0.7, imag=0.27015)

# Escape counts are int32 tensors.
MAX_ITERATIONS_LIMIT = 2**31 - 1


@dataclass(frozen=True)
class FractalParameters:
    """Parameters that describe a single render of a fractal."""

    kind: FractalKind = FractalKind.MANDELBROT
    width: int = 512
    height: int = 512
    max_iterations: int = 100
    zoom: float = 1.0
    center_x: float = 0.0
    center_y: float = 0.0
    color_scheme: ColorScheme = ColorScheme.RAINBOW
    escape_radius: float = 2.0
    julia_c: Optional[JuliaConstant] = None

    def resolved_julia_c(self) -> JuliaConstant:
        return self.julia_c if self.julia_c is not None else DEFAULT_JULIA_C


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidParameterError(f"{name} must be positive, got {value}")


def _require_finite(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")


def _require_positive_real(name: str, value: Any) -> None:
    _require_finite(name, value)
    if value <= 0:
        raise InvalidParameterError(f"{name} must be positive, got {value}")


def validate_parameters(params: FractalParameters) -> FractalParameters:
    """Check every invariant of ``params`` and return it unchanged.

    Violations raise :class:`InvalidParameterError`; nothing is clamped.
    """

    if not isinstance(params.kind, FractalKind):
        raise InvalidParameterError(f"unknown fractal kind {params.kind!r}")
    if not isinstance(params.color_scheme, ColorScheme):
        raise InvalidParameterError(f"unknown color scheme {params.color_scheme!r}")

    _require_positive_int("width", params.width)
    _require_positive_int("height", params.height)
    _require_positive_int("max_iterations", params.max_iterations)
    if params.max_iterations > MAX_ITERATIONS_LIMIT:
        raise InvalidParameterError(
            f"max_iterations must not exceed {MAX_ITERATIONS_LIMIT}, got {params.max_iterations}"
        )
    _require_positive_real("zoom", params.zoom)
    _require_positive_real("escape_radius", params.escape_radius)
    _require_finite("center_x", params.center_x)
    _require_finite("center_y", params.center_y)

    if params.julia_c is not None:
        if not isinstance(params.julia_c, JuliaConstant):
            raise InvalidParameterError(f"julia_c must be a JuliaConstant, got {params.julia_c!r}")
        _require_finite("julia_c.real", params.julia_c.real)
        _require_finite("julia_c.imag", params.julia_c.imag)

    return params


# camelCase names used by the browser control panel's state object.
_KEY_ALIASES = {
    "type": "kind",
    "maxIterations": "max_iterations",
    "centerX": "center_x",
    "centerY": "center_y",
    "colorScheme": "color_scheme",
    "escapeRadius": "escape_radius",
    "juliaC": "julia_c",
}

_FIELD_NAMES = {f.name for f in fields(FractalParameters)}


def _coerce_enum(enum_cls, value, label):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise InvalidParameterError(f"unknown {label} '{value}'. Valid choices: {choices}.") from None


def _coerce_julia_c(value) -> Optional[JuliaConstant]:
    if value is None or isinstance(value, JuliaConstant):
        return value
    if isinstance(value, Mapping):
        try:
            return JuliaConstant(real=float(value["real"]), imag=float(value["imag"]))
        except KeyError as exc:
            raise InvalidParameterError(f"julia_c is missing the '{exc.args[0]}' component") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"julia_c components must be numbers: {value!r}") from exc
    if isinstance(value, (list, tuple)) and len(value) == 2:
        try:
            return JuliaConstant(real=float(value[0]), imag=float(value[1]))
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"julia_c components must be numbers: {value!r}") from exc
    raise InvalidParameterError(f"julia_c must be {{real, imag}} or a pair, got {value!r}")


def parameters_from_mapping(mapping: Mapping[str, Any], base: Optional[FractalParameters] = None) -> FractalParameters:
    """Build validated parameters from a plain mapping such as a JSON config.

    Keys may use the dataclass field names or the control panel's camelCase
    names. Fields absent from ``mapping`` keep their value from ``base``.
    """

    if not isinstance(mapping, Mapping):
        raise InvalidParameterError(f"parameters must be a mapping of names to values, got {type(mapping).__name__}")

    values: dict[str, Any] = {}
    for key, value in mapping.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            raise InvalidParameterError(f"unknown parameter '{key}'")
        values[name] = value

    if "kind" in values:
        values["kind"] = _coerce_enum(FractalKind, values["kind"], "fractal kind")
    if "color_scheme" in values:
        values["color_scheme"] = _coerce_enum(ColorScheme, values["color_scheme"], "color scheme")
    if "julia_c" in values:
        values["julia_c"] = _coerce_julia_c(values["julia_c"])

    base = base if base is not None else FractalParameters()
    merged = {f.name: getattr(base, f.name) for f in fields(FractalParameters)}
    merged.update(values)
    return validate_parameters(FractalParameters(**merged))
