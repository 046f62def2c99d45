"""Word lists and tokenization for the synthetic datasets.

The scene narrates a next-word prediction for a sentence spoken at a
memorial, so the curated words are split into ones that fit that context
and ones that clearly do not.
"""

DEFAULT_SENTENCE = "we gathered here in silence"

# Words the logit terrain should favour (probability band 0.3-0.7)
CONTEXT_WORDS = ("sorrow", "memory", "comfort", "longing", "eternity", "peace")
# Words that are out of place in the context (fixed probability 0.01)
OFF_CONTEXT_WORDS = ("party", "celebration", "joy", "luck", "hurry")
CANDIDATE_WORDS = CONTEXT_WORDS + OFF_CONTEXT_WORDS
# The prediction the terrain pops up; must be one of CANDIDATE_WORDS
TARGET_WORD = "comfort"

# Latent space cloud: 30 words, relevance biased by the two subsets below
LATENT_WORDS = (
    "sorrow", "memory", "time", "together", "eternity",
    "comfort", "peace", "heart", "tears", "rest",
    "congratulations", "party", "joy", "delight", "luck",
    "tomorrow", "hurry", "forgotten", "end", "beginning",
    "sudden", "fate", "pain", "longing", "star",
    "wind", "light", "darkness", "sound", "silence",
)
LATENT_OFF_CONTEXT = frozenset(
    ("congratulations", "party", "joy", "delight", "luck", "hurry", "forgotten"))
LATENT_ON_CONTEXT = frozenset(("sorrow", "memory", "comfort", "longing", "eternity"))


def tokenize(text: str) -> list[str]:
    """Split on whitespace; empty fragments are dropped."""
    return text.split()
