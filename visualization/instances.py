"""Tensor cell -> instanced box (position, scale, color).

Each mapper turns one dataset into a dense InstanceBuffer with exactly one
entry per cell. The mapping is a pure function of the dataset, so a buffer
only has to be rebuilt when the dataset itself changes.

Mappers write into a caller-owned buffer when one is given and report
whether its contents actually changed; the buffer's `version` is bumped on
every changing write so a renderer can tell a stale upload from a fresh one.
"""
import logging
from dataclasses import dataclass
import numpy as np

from visualization.colormap import (
    diverging_colors, sequential_colors, two_stage_colors, hex_to_rgb,
    LOGIT_TARGET,
)
from visualization.layout import (
    EMBEDDING_STEP, ATTENTION_STEP, LOGIT_STEP,
    grid_xy, centered_coords, square_grid_xz,
)

logger = logging.getLogger(__name__)

EMBEDDING_MIN_DEPTH = 0.1
ATTENTION_MIN_DEPTH = 0.05
LOGIT_MIN_HEIGHT = 0.2
LOGIT_HEIGHT_SCALE = 15.0
LABEL_MIN_PROBABILITY = 0.1


class InstanceBuffer:
    """Owned per-instance arrays handed to an instanced draw call.

    positions: (N, 3)   scales: (N, 3)   colors: (N * 3,) flat RGB
    """

    def __init__(self, count: int = 0):
        self.positions = np.zeros((count, 3), dtype=np.float32)
        self.scales = np.ones((count, 3), dtype=np.float32)
        self.colors = np.zeros(count * 3, dtype=np.float32)
        self.version = 0

    @property
    def count(self) -> int:
        return self.positions.shape[0]

    def __len__(self):
        return self.count

    def mark_changed(self):
        self.version += 1

    def write(self, positions, scales, colors) -> bool:
        """Copy new contents in place. Returns True if anything differs."""
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        scales = np.asarray(scales, dtype=np.float32).reshape(-1, 3)
        colors = np.asarray(colors, dtype=np.float32).reshape(-1)
        n = positions.shape[0]
        if scales.shape[0] != n or colors.shape[0] != n * 3:
            raise ValueError(
                f"instance arrays disagree: {n} positions, {scales.shape[0]} scales, "
                f"{colors.shape[0]} color floats")

        if n != self.count:
            self.positions = positions.copy()
            self.scales = scales.copy()
            self.colors = colors.copy()
            self.mark_changed()
            return True

        changed = not (np.array_equal(self.positions, positions)
                       and np.array_equal(self.scales, scales)
                       and np.array_equal(self.colors, colors))
        if changed:
            self.positions[...] = positions
            self.scales[...] = scales
            self.colors[...] = colors
            self.mark_changed()
        return changed

    def rgb(self) -> np.ndarray:
        return self.colors.reshape(-1, 3)

    def to_instance_array(self, alpha: float = 1.0) -> np.ndarray:
        """(N, 10) rows of pos(3), rgba(4), scale(3) for the box renderer."""
        n = self.count
        out = np.empty((n, 10), dtype=np.float32)
        out[:, 0:3] = self.positions
        out[:, 3:6] = self.rgb()
        out[:, 6] = alpha
        out[:, 7:10] = self.scales
        return out


@dataclass(frozen=True)
class Label:
    text: str
    position: tuple
    style: str = 'token'


def _commit(buffer, positions, scales, colors):
    if buffer is None:
        buffer = InstanceBuffer()
    changed = buffer.write(positions, scales, colors)
    return buffer, changed


def _stack(x, y, z):
    return np.column_stack([x, y, z]).astype(np.float32)


# ── Embedding matrix ──────────────────────────────────────────────
def map_embedding(data, buffer: InstanceBuffer = None):
    """Token -> row, dimension -> column; depth and color from the value."""
    rows, cols = len(data.tokens), data.embedding_dim
    values = np.asarray(data.values, dtype=np.float32)
    x, y = grid_xy(rows, cols, EMBEDDING_STEP)
    n = values.shape[0]

    positions = _stack(x, y, np.zeros(n))
    depth = np.maximum(EMBEDDING_MIN_DEPTH, np.abs(values) * 2.0)
    scales = _stack(np.ones(n), np.ones(n), depth)
    colors = diverging_colors(values).reshape(-1)

    buffer, changed = _commit(buffer, positions, scales, colors)
    if changed:
        logger.debug("Embedding instances rewritten: %d cells (v%d)", n, buffer.version)
    return buffer, changed


def embedding_labels(data) -> list[Label]:
    """Token names to the left of each row."""
    rows, cols = len(data.tokens), data.embedding_dim
    if rows == 0:
        return []
    ys = -centered_coords(rows, EMBEDDING_STEP)
    x = float(centered_coords(cols, EMBEDDING_STEP)[0]) - 2.0
    return [Label(tok.text, (x, float(ys[i]), 0.0), 'token')
            for i, tok in enumerate(data.tokens)]


# ── Attention heatmap ─────────────────────────────────────────────
def map_attention(data, buffer: InstanceBuffer = None):
    """Query token -> row, key token -> column; taller and brighter with weight."""
    n_tok = len(data.tokens)
    weights = np.asarray(data.weights, dtype=np.float32)
    x, y = grid_xy(n_tok, n_tok, ATTENTION_STEP)
    n = weights.shape[0]

    positions = _stack(x, y, np.zeros(n))
    depth = np.maximum(ATTENTION_MIN_DEPTH, weights * 4.0)
    scales = _stack(np.ones(n), np.ones(n), depth)
    colors = sequential_colors(weights).reshape(-1)

    buffer, changed = _commit(buffer, positions, scales, colors)
    if changed:
        logger.debug("Attention instances rewritten: %d cells (v%d)", n, buffer.version)
    return buffer, changed


def attention_labels(data) -> list[Label]:
    """Query names left of the rows, key names above the columns."""
    n = len(data.tokens)
    if n == 0:
        return []
    coords = centered_coords(n, ATTENTION_STEP)
    left = float(coords[0]) - 1.0
    top = float(-coords[0]) + 1.0
    labels = [Label(tok.text, (left, float(-coords[i]), 0.0), 'query')
              for i, tok in enumerate(data.tokens)]
    labels += [Label(tok.text, (float(coords[i]), top, 0.0), 'key')
               for i, tok in enumerate(data.tokens)]
    return labels


# ── Logit terrain ─────────────────────────────────────────────────
def logit_heights(probabilities) -> np.ndarray:
    return np.maximum(LOGIT_MIN_HEIGHT, np.asarray(probabilities, dtype=np.float32) * LOGIT_HEIGHT_SCALE)


def map_logits(data, buffer: InstanceBuffer = None):
    """Vocabulary on a square ground grid; bar height follows probability.

    Bars are scaled along y and lifted by half their height so every base sits
    on the ground plane. The target word is painted with a fixed highlight.
    """
    probs = data.probabilities
    n = probs.shape[0]
    x, z = square_grid_xz(n, LOGIT_STEP)
    heights = logit_heights(probs)

    positions = _stack(x, heights / 2.0, z)
    scales = _stack(np.ones(n), heights, np.ones(n))
    colors = two_stage_colors(probs)
    target = data.target_index
    if target is not None:
        colors[target] = hex_to_rgb(LOGIT_TARGET)

    buffer, changed = _commit(buffer, positions, scales, colors.reshape(-1))
    if changed:
        logger.debug("Logit instances rewritten: %d bars (v%d)", n, buffer.version)
    return buffer, changed


def logit_labels(data) -> list[Label]:
    """Words floating above their bars; unnamed and low-probability cells are skipped."""
    probs = data.probabilities
    x, z = square_grid_xz(probs.shape[0], LOGIT_STEP)
    heights = logit_heights(probs)
    labels = []
    for i, pred in enumerate(data.predictions):
        if not pred.word or pred.probability < LABEL_MIN_PROBABILITY:
            continue
        style = 'target' if pred.is_target else 'logit'
        labels.append(Label(pred.word, (float(x[i]), float(heights[i]) + 0.5, float(z[i])), style))
    return labels
