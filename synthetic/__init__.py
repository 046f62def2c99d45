"""Synthetic tensors that look like a transformer's internals."""

from synthetic.parameters import GenerationConfig
from synthetic.tensors import (
    generate_embedding_data, generate_attention_data,
    generate_logit_data, generate_word_nodes,
)
from synthetic.cache import DatasetCache
