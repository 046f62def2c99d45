"""Synthetic embedding / attention / logit / latent-space datasets.

None of these come from a real model. Values are drawn so the resulting
geometry reads well on screen: embeddings pushed toward +/-1, attention
rows with a visible diagonal, and a logit terrain with one dominant peak.

Every generator takes either an explicit `rng` (np.random.RandomState) or a
`seed`. With neither, output varies from call to call.
"""
import logging
from dataclasses import dataclass
import numpy as np

from synthetic.vocab import (
    tokenize, CONTEXT_WORDS, OFF_CONTEXT_WORDS, CANDIDATE_WORDS, TARGET_WORD,
    LATENT_WORDS, LATENT_OFF_CONTEXT, LATENT_ON_CONTEXT,
)

logger = logging.getLogger(__name__)

SELF_ATTENTION_BIAS = 1.0
TARGET_PROBABILITY = 0.95
OFF_CONTEXT_PROBABILITY = 0.01
CONTEXT_BAND = (0.3, 0.7)
NOISE_CEILING = 0.1
SHELL_RADIUS = (10.0, 30.0)


# ── Data model ────────────────────────────────────────────────────
@dataclass(frozen=True)
class TokenNode:
    id: str
    text: str
    is_input: bool = True


@dataclass(frozen=True, eq=False)
class EmbeddingData:
    tokens: tuple
    embedding_dim: int
    values: np.ndarray     # (len(tokens) * embedding_dim,) float32, row-major by token

    def matrix(self) -> np.ndarray:
        """Values as a (tokens, embedding_dim) view."""
        return self.values.reshape(len(self.tokens), self.embedding_dim)


@dataclass(frozen=True, eq=False)
class AttentionData:
    tokens: tuple
    weights: np.ndarray    # (n * n,) float32, row r = query token r

    def matrix(self) -> np.ndarray:
        n = len(self.tokens)
        return self.weights.reshape(n, n)


@dataclass(frozen=True)
class VocabLogit:
    id: str
    word: str
    probability: float
    is_target: bool = False


@dataclass(frozen=True)
class LogitData:
    vocab_size: int
    predictions: tuple

    @property
    def probabilities(self) -> np.ndarray:
        return np.array([p.probability for p in self.predictions], dtype=np.float32)

    @property
    def target_index(self):
        for i, p in enumerate(self.predictions):
            if p.is_target:
                return i
        return None


@dataclass(frozen=True)
class WordNode:
    id: str
    word: str
    position: tuple        # (x, y, z)
    relevance: float       # -1 (discarded) .. 1 (selected)


# ── Helpers ───────────────────────────────────────────────────────
def _resolve_rng(rng=None, seed=None) -> np.random.RandomState:
    if rng is not None and seed is not None:
        raise TypeError("pass either rng or seed, not both")
    if rng is not None:
        return rng
    return np.random.RandomState(seed)


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


def bias_to_extremes(values):
    """sign(v) * |v|^0.5: pushes magnitudes toward 1 for visual contrast.

    Sign is preserved and the result is zero exactly when the input is.
    """
    values = np.asarray(values)
    return np.sign(values) * np.sqrt(np.abs(values))


def softmax_surrogate(matrix: np.ndarray) -> np.ndarray:
    """Row-normalize a non-negative matrix so every row sums to 1.

    Negative entries are clamped to 0 first. Rows whose sum is not positive
    stay all-zero rather than dividing by zero.
    """
    m = np.maximum(np.asarray(matrix, dtype=np.float64), 0.0)
    sums = m.sum(axis=-1, keepdims=True)
    out = np.zeros_like(m)
    np.divide(m, sums, out=out, where=sums > 0)
    return out


def make_tokens(input_text: str) -> tuple:
    return tuple(TokenNode(id=f"token-{i}", text=t) for i, t in enumerate(tokenize(input_text)))


# ── Generators ────────────────────────────────────────────────────
def generate_embedding_data(input_text: str, embedding_dim: int = 64,
                            rng=None, seed=None) -> EmbeddingData:
    if embedding_dim < 1:
        raise ValueError(f"embedding_dim must be >= 1, got {embedding_dim}")
    rng = _resolve_rng(rng, seed)
    tokens = make_tokens(input_text)

    raw = rng.uniform(-1.0, 1.0, size=len(tokens) * embedding_dim)
    values = bias_to_extremes(raw).astype(np.float32)
    logger.debug("Generated embeddings: %d tokens x %d dims", len(tokens), embedding_dim)
    return EmbeddingData(tokens=tokens, embedding_dim=embedding_dim, values=_frozen(values))


def generate_attention_data(tokens, rng=None, seed=None) -> AttentionData:
    """Random row-stochastic attention with a self-attention diagonal.

    The +1 diagonal bias keeps every row sum >= 1, so normalization never
    divides by zero.
    """
    rng = _resolve_rng(rng, seed)
    tokens = tuple(tokens)
    n = len(tokens)

    scores = rng.uniform(0.0, 1.0, size=(n, n))
    scores[np.arange(n), np.arange(n)] += SELF_ATTENTION_BIAS
    weights = softmax_surrogate(scores).astype(np.float32)
    logger.debug("Generated attention: %dx%d", n, n)
    return AttentionData(tokens=tokens, weights=_frozen(weights.reshape(-1)))


def generate_logit_data(vocab_size: int = 100, rng=None, seed=None) -> LogitData:
    """One-peak vocabulary distribution.

    Probabilities are deliberately not normalized: a true softmax would
    flatten the target bar that the terrain is built around.
    """
    if vocab_size < len(CANDIDATE_WORDS):
        raise ValueError(
            f"vocab_size must hold the {len(CANDIDATE_WORDS)} candidate words, got {vocab_size}")
    rng = _resolve_rng(rng, seed)

    predictions = []
    for i in range(vocab_size):
        word = CANDIDATE_WORDS[i] if i < len(CANDIDATE_WORDS) else ""
        if word in CONTEXT_WORDS:
            prob = rng.uniform(*CONTEXT_BAND)
        elif word in OFF_CONTEXT_WORDS:
            prob = OFF_CONTEXT_PROBABILITY
        else:
            prob = rng.uniform(0.0, NOISE_CEILING)
        if word == TARGET_WORD:
            predictions.append(VocabLogit(f"vocab-{i}", word, TARGET_PROBABILITY, True))
        else:
            predictions.append(VocabLogit(f"vocab-{i}", word, float(prob), False))

    logger.debug("Generated logits: vocab_size=%d target=%r", vocab_size, TARGET_WORD)
    return LogitData(vocab_size=vocab_size, predictions=tuple(predictions))


def generate_word_nodes(count: int, rng=None, seed=None) -> list[WordNode]:
    """Scatter words on a spherical shell with a relevance score each.

    Polar angle is arccos(2u - 1) so points are uniform over solid angle
    rather than bunched at the poles.
    """
    rng = _resolve_rng(rng, seed)
    nodes = []
    for i in range(count):
        radius = rng.uniform(*SHELL_RADIUS)
        theta = rng.uniform(0.0, 2.0 * np.pi)
        phi = np.arccos(2.0 * rng.uniform() - 1.0)
        position = (
            float(radius * np.sin(phi) * np.cos(theta)),
            float(radius * np.sin(phi) * np.sin(theta)),
            float(radius * np.cos(phi)),
        )

        word = LATENT_WORDS[rng.randint(len(LATENT_WORDS))]
        if word in LATENT_OFF_CONTEXT:
            relevance = -0.5 - rng.uniform() * 0.5
        elif word in LATENT_ON_CONTEXT:
            relevance = 0.5 + rng.uniform() * 0.5
        else:
            relevance = rng.uniform() * 0.4 - 0.2
        nodes.append(WordNode(f"node-{i}", word, position, float(relevance)))
    logger.debug("Generated %d word nodes", count)
    return nodes
