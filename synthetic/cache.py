"""Content-keyed cache for generated datasets.

Generation runs once per distinct GenerationConfig, never per frame. Keys are
a CRC32 of the config's fields; a hit is only returned when the stored
config compares equal, so a hash collision just costs a rebuild.
"""
import logging
import zlib
from collections import OrderedDict
from dataclasses import dataclass
import numpy as np

from synthetic.parameters import GenerationConfig
from synthetic.tensors import (
    EmbeddingData, AttentionData, LogitData,
    generate_embedding_data, generate_attention_data,
    generate_logit_data, generate_word_nodes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class DatasetBundle:
    config: GenerationConfig
    embedding: EmbeddingData
    attention: AttentionData
    logits: LogitData
    word_nodes: tuple


def config_key(config: GenerationConfig) -> int:
    items = sorted(config.to_dict().items())
    return zlib.crc32(repr(items).encode('utf-8')) & 0xFFFFFFFF


def build_datasets(config: GenerationConfig) -> DatasetBundle:
    """Generate every dataset of a composition from one random stream."""
    rng = np.random.RandomState(config.seed)
    embedding = generate_embedding_data(config.sentence, config.embedding_dim, rng=rng)
    attention = generate_attention_data(embedding.tokens, rng=rng)
    logits = generate_logit_data(config.vocab_size, rng=rng)
    nodes = generate_word_nodes(config.word_count, rng=rng)
    return DatasetBundle(config, embedding, attention, logits, tuple(nodes))


class DatasetCache:
    def __init__(self, max_entries: int = 8, builder=build_datasets):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self.builder = builder
        self._entries = OrderedDict()  # key -> DatasetBundle
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._entries)

    def __contains__(self, config):
        entry = self._entries.get(config_key(config))
        return entry is not None and entry.config == config

    def get(self, config: GenerationConfig) -> DatasetBundle:
        key = config_key(config)
        entry = self._entries.get(key)
        if entry is not None and entry.config == config:
            self.hits += 1
            self._entries.move_to_end(key)
            logger.debug("Dataset cache hit (key=%08x)", key)
            return entry

        self.misses += 1
        logger.debug("Dataset cache miss (key=%08x), generating", key)
        entry = self.builder(config)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted dataset (key=%08x)", evicted)
        return entry

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0
