import numpy as np
from PIL import ImageColor


# ── Palette anchors (sRGB hex) ────────────────────────────────────
EMBEDDING_NEGATIVE = "#2563eb"   # blue
EMBEDDING_ZERO = "#171717"       # near black
EMBEDDING_POSITIVE = "#dc2626"   # red

ATTENTION_ZERO = "#0a0a0a"
ATTENTION_HIGH = "#fbbf24"       # amber

LOGIT_LOW = "#1e1b4b"            # deep indigo, almost off
LOGIT_MID = "#6366f1"            # indigo
LOGIT_HIGH = "#22d3ee"           # cyan
LOGIT_TARGET = "#06b6d4"         # highlight for the predicted word
LOGIT_THRESHOLD = 0.2

RELEVANCE_NEGATIVE = "#ff4444"
RELEVANCE_NEUTRAL = "#888888"
RELEVANCE_POSITIVE = "#44aaff"


def hex_to_rgb(color: str) -> np.ndarray:
    """'#rrggbb' (or any PIL color string) -> float32 RGB in [0, 1]."""
    r, g, b = ImageColor.getrgb(color)[:3]
    return np.array([r, g, b], dtype=np.float32) / 255.0


def lerp_colors(a, b, t) -> np.ndarray:
    """Blend anchor a toward anchor b. t may be scalar or (N,); returns (3,) or (N, 3)."""
    a = hex_to_rgb(a) if isinstance(a, str) else np.asarray(a, dtype=np.float32)
    b = hex_to_rgb(b) if isinstance(b, str) else np.asarray(b, dtype=np.float32)
    t = np.asarray(t, dtype=np.float32)
    return (a + (b - a) * t[..., None]).astype(np.float32)


def diverging_colors(values, negative=EMBEDDING_NEGATIVE, zero=EMBEDDING_ZERO,
                     positive=EMBEDDING_POSITIVE) -> np.ndarray:
    """Two-sided ramp: |v| blends from the zero anchor toward the signed anchor.

    Values are expected in [-1, 1]; no clamping is applied.
    """
    values = np.asarray(values, dtype=np.float32)
    mag = np.abs(values)
    to_neg = lerp_colors(zero, negative, mag)
    to_pos = lerp_colors(zero, positive, mag)
    return np.where((values < 0)[..., None], to_neg, to_pos)


def sequential_colors(values, low=ATTENTION_ZERO, high=ATTENTION_HIGH) -> np.ndarray:
    """Single-direction ramp, blend factor = value (expected in [0, 1])."""
    return lerp_colors(low, high, values)


def two_stage_colors(values, low=LOGIT_LOW, mid=LOGIT_MID, high=LOGIT_HIGH,
                     threshold: float = LOGIT_THRESHOLD) -> np.ndarray:
    """low -> mid below the threshold, mid -> high above it."""
    values = np.asarray(values, dtype=np.float32)
    s_low = values / threshold
    s_high = (values - threshold) / (1.0 - threshold)
    below = lerp_colors(low, mid, s_low)
    above = lerp_colors(mid, high, s_high)
    return np.where((values < threshold)[..., None], below, above)


def relevance_color(relevance: float) -> str:
    if relevance < -0.2:
        return RELEVANCE_NEGATIVE
    if relevance > 0.2:
        return RELEVANCE_POSITIVE
    return RELEVANCE_NEUTRAL
