"""Grid layout shared by the instance mappers.

Cells are laid out on a fixed step (box size + gap) and centered so that
cell centers are symmetric about the group origin.
"""
import math
import numpy as np

BOX_SIZE = 0.8
EMBEDDING_GAP = 0.2
ATTENTION_GAP = 0.1
LOGIT_GAP = 0.2

EMBEDDING_STEP = BOX_SIZE + EMBEDDING_GAP
ATTENTION_STEP = BOX_SIZE + ATTENTION_GAP
LOGIT_STEP = BOX_SIZE + LOGIT_GAP

# Where each stage's group sits in world space
STAGE_ORIGIN = {
    'embedding': np.array([-30.0, 0.0, 0.0], dtype=np.float32),
    'attention': np.array([0.0, 0.0, 0.0], dtype=np.float32),
    'logits': np.array([35.0, -5.0, 0.0], dtype=np.float32),
}


def centered_coords(count: int, step: float) -> np.ndarray:
    """Positions of `count` cells along one axis, symmetric around 0."""
    return (np.arange(count, dtype=np.float32) - (count - 1) / 2.0) * step


def grid_xy(rows: int, cols: int, step: float):
    """Row-major (x, y) of every cell; row 0 on top, column 0 on the left."""
    xs = centered_coords(cols, step)
    ys = -centered_coords(rows, step)
    x = np.tile(xs, rows)
    y = np.repeat(ys, cols)
    return x, y


def square_side(count: int) -> int:
    return int(math.ceil(math.sqrt(count))) if count > 0 else 0


def square_grid_xz(count: int, step: float):
    """Row-major (x, z) for `count` cells on a ceil(sqrt(count)) square."""
    side = square_side(count)
    idx = np.arange(count)
    rows = idx // max(side, 1)
    cols = idx % max(side, 1)
    offset = (side - 1) / 2.0
    x = ((cols - offset) * step).astype(np.float32)
    z = ((rows - offset) * step).astype(np.float32)
    return x, z
