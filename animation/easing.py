"""Frame-indexed animation curves.

Everything here is a pure function of the frame number: evaluating the same
frame twice gives the same value, so any frame can be rendered in isolation.
"""
from dataclasses import dataclass
import numpy as np


_EXTRAPOLATE_MODES = ('clamp', 'extend', 'identity')


def _check_ranges(input_range, output_range):
    xp = np.asarray(input_range, dtype=np.float64)
    fp = np.asarray(output_range, dtype=np.float64)
    if xp.ndim != 1 or xp.shape != fp.shape:
        raise ValueError(
            f"input_range and output_range must be 1-D and the same length "
            f"(got {xp.shape} and {fp.shape})")
    if xp.shape[0] < 2:
        raise ValueError("interpolate needs at least two breakpoints")
    if np.any(np.diff(xp) <= 0):
        raise ValueError(f"input_range must be strictly ascending: {list(input_range)}")
    return xp, fp


def interpolate(frame, input_range, output_range,
                extrapolate_left: str = 'clamp',
                extrapolate_right: str = 'clamp'):
    """Piecewise-linear keyframe curve.

    Between breakpoints the value is the linear blend of the bracketing pair.
    Outside the range the behaviour depends on the extrapolate mode:
      'clamp'    -> hold the first/last value (default)
      'extend'   -> continue the slope of the outer segment
      'identity' -> return the frame itself
    Works on scalars and numpy arrays; a scalar frame returns a float.
    """
    for mode in (extrapolate_left, extrapolate_right):
        if mode not in _EXTRAPOLATE_MODES:
            raise ValueError(f"Unknown extrapolate mode {mode!r}, expected one of {_EXTRAPOLATE_MODES}")
    xp, fp = _check_ranges(input_range, output_range)

    x = np.asarray(frame, dtype=np.float64)
    result = np.interp(x, xp, fp)

    below = x < xp[0]
    above = x > xp[-1]
    if extrapolate_left == 'extend':
        slope = (fp[1] - fp[0]) / (xp[1] - xp[0])
        result = np.where(below, fp[0] + (x - xp[0]) * slope, result)
    elif extrapolate_left == 'identity':
        result = np.where(below, x, result)
    if extrapolate_right == 'extend':
        slope = (fp[-1] - fp[-2]) / (xp[-1] - xp[-2])
        result = np.where(above, fp[-1] + (x - xp[-1]) * slope, result)
    elif extrapolate_right == 'identity':
        result = np.where(above, x, result)

    if result.ndim == 0:
        return float(result)
    return result


# ── Damped spring ─────────────────────────────────────────────────
@dataclass(frozen=True)
class SpringConfig:
    damping: float = 10.0
    mass: float = 1.0
    stiffness: float = 100.0

    def __post_init__(self):
        if self.mass <= 0 or self.stiffness <= 0:
            raise ValueError(f"spring mass and stiffness must be positive: {self}")
        if self.damping < 0:
            raise ValueError(f"spring damping must be non-negative: {self}")

    @property
    def natural_frequency(self) -> float:
        return float(np.sqrt(self.stiffness / self.mass))

    @property
    def damping_ratio(self) -> float:
        return self.damping / (2.0 * np.sqrt(self.stiffness * self.mass))


def spring(frame: float, fps: float = 30.0, config: SpringConfig = None,
           **params) -> float:
    """Response of a mass-spring-damper released at rest, 0 → 1.

    `frame` is the offset from the trigger frame (current frame minus
    trigger). Offsets at or before the trigger return exactly 0. The
    solution is closed-form, so any frame can be evaluated directly. With the
    default parameters the system is underdamped: it overshoots 1 and
    settles back.

    Parameters may be given as a SpringConfig or as damping/mass/stiffness
    keywords.
    """
    if config is None:
        config = SpringConfig(**params)
    elif params:
        raise TypeError("pass either config or spring keywords, not both")
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    if frame <= 0:
        return 0.0

    t = frame / fps
    omega0 = config.natural_frequency
    zeta = config.damping_ratio

    if zeta < 1.0:
        omega1 = omega0 * np.sqrt(1.0 - zeta * zeta)
        envelope = np.exp(-zeta * omega0 * t)
        offset = envelope * ((zeta * omega0 / omega1) * np.sin(omega1 * t)
                             + np.cos(omega1 * t))
    elif zeta == 1.0:
        offset = np.exp(-omega0 * t) * (1.0 + omega0 * t)
    else:
        root = np.sqrt(zeta * zeta - 1.0)
        r1 = -omega0 * (zeta - root)
        r2 = -omega0 * (zeta + root)
        offset = (r2 * np.exp(r1 * t) - r1 * np.exp(r2 * t)) / (r2 - r1)
    return float(1.0 - offset)
