from dataclasses import dataclass, asdict
from synthetic.vocab import DEFAULT_SENTENCE, CANDIDATE_WORDS


@dataclass(frozen=True)
class GenerationConfig:
    """Inputs that fully determine the synthetic datasets of one composition.

    seed=None draws fresh values on every generation; any integer makes the
    datasets reproducible.
    """
    sentence: str = DEFAULT_SENTENCE
    embedding_dim: int = 64
    vocab_size: int = 100
    word_count: int = 30
    seed: int = None

    def __post_init__(self):
        if self.embedding_dim < 1:
            raise ValueError(f"embedding_dim must be >= 1, got {self.embedding_dim}")
        if self.vocab_size < len(CANDIDATE_WORDS):
            raise ValueError(
                f"vocab_size must hold the {len(CANDIDATE_WORDS)} candidate words, "
                f"got {self.vocab_size}")
        if self.word_count < 0:
            raise ValueError(f"word_count must be >= 0, got {self.word_count}")

    def to_dict(self) -> dict:
        return asdict(self)
