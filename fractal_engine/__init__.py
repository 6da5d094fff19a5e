"""Public API for fractal rendering utilities."""

from .chaos_game import chaos_game_points, render_sierpinski, sierpinski_vertices
from .colors import colorize, map_color
from .coordinates import pixel_to_complex, sampling_axes, view_bounds
from .errors import (
    FractalError,
    InvalidParameterError,
    RenderCancelledError,
    UnsupportedFractalKindError,
)
from .escape_time import escape_counts
from .parameters import (
    DEFAULT_JULIA_C,
    MAX_ITERATIONS_LIMIT,
    ColorScheme,
    FractalKind,
    FractalParameters,
    JuliaConstant,
    parameters_from_mapping,
    validate_parameters,
)
from .renderer import CancellationToken, FractalRenderer, RenderResult, RenderState, render_fractal

__all__ = [
    "CancellationToken",
    "ColorScheme",
    "DEFAULT_JULIA_C",
    "FractalError",
    "FractalKind",
    "FractalParameters",
    "FractalRenderer",
    "InvalidParameterError",
    "JuliaConstant",
    "MAX_ITERATIONS_LIMIT",
    "RenderCancelledError",
    "RenderResult",
    "RenderState",
    "UnsupportedFractalKindError",
    "chaos_game_points",
    "colorize",
    "escape_counts",
    "map_color",
    "parameters_from_mapping",
    "pixel_to_complex",
    "render_fractal",
    "render_sierpinski",
    "sampling_axes",
    "sierpinski_vertices",
    "validate_parameters",
    "view_bounds",
]
