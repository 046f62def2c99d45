"""
Tests for tensor -> instance mapping and the owned instance buffers.
"""

import numpy as np
import pytest

from synthetic.tensors import (
    EmbeddingData, AttentionData, LogitData, VocabLogit, TokenNode,
    generate_embedding_data, generate_attention_data, generate_logit_data, make_tokens,
)
from visualization.colormap import (
    hex_to_rgb, lerp_colors, two_stage_colors,
    EMBEDDING_NEGATIVE, EMBEDDING_ZERO, EMBEDDING_POSITIVE,
    ATTENTION_ZERO, ATTENTION_HIGH, LOGIT_LOW, LOGIT_MID, LOGIT_HIGH, LOGIT_TARGET,
)
from visualization.instances import (
    InstanceBuffer, map_embedding, map_attention, map_logits,
    embedding_labels, attention_labels, logit_labels,
)
from visualization.layout import square_side, EMBEDDING_STEP


def _embedding(values, dim):
    values = np.asarray(values, dtype=np.float32)
    n_tok = len(values) // dim
    tokens = tuple(TokenNode(f"token-{i}", f"t{i}") for i in range(n_tok))
    return EmbeddingData(tokens=tokens, embedding_dim=dim, values=values)


def _logits(probs, words=None, target=None):
    words = words or [""] * len(probs)
    preds = tuple(VocabLogit(f"vocab-{i}", w, p, i == target)
                  for i, (w, p) in enumerate(zip(words, probs)))
    return LogitData(vocab_size=len(preds), predictions=preds)


class TestColormap:

    def test_hex_to_rgb(self):
        np.testing.assert_allclose(hex_to_rgb("#2563eb"), np.array([0x25, 0x63, 0xeb]) / 255.0, atol=1e-6)
        np.testing.assert_allclose(hex_to_rgb("#fff"), [1.0, 1.0, 1.0])

    def test_lerp_endpoints(self):
        np.testing.assert_allclose(lerp_colors("#000000", "#ffffff", 0.0), [0, 0, 0])
        np.testing.assert_allclose(lerp_colors("#000000", "#ffffff", 0.5), [0.5, 0.5, 0.5])

    def test_two_stage_threshold(self):
        out = two_stage_colors([0.0, 0.1, 0.2, 1.0])
        np.testing.assert_allclose(out[0], hex_to_rgb(LOGIT_LOW), atol=1e-6)
        np.testing.assert_allclose(out[1], lerp_colors(LOGIT_LOW, LOGIT_MID, 0.5), atol=1e-6)
        np.testing.assert_allclose(out[2], hex_to_rgb(LOGIT_MID), atol=1e-6)
        np.testing.assert_allclose(out[3], hex_to_rgb(LOGIT_HIGH), atol=1e-6)


class TestEmbeddingMapper:

    def test_one_entry_per_cell(self):
        data = generate_embedding_data("we gathered here in silence", 64, seed=0)
        buf, changed = map_embedding(data)
        assert changed
        assert len(buf) == 320
        assert buf.colors.shape == (960,)

    @pytest.mark.parametrize("tokens,dim", [(1, 1), (3, 7), (5, 64), (8, 3)])
    def test_grid_is_centered(self, tokens, dim):
        data = generate_embedding_data(" ".join(["w"] * tokens), dim, seed=1)
        buf, _ = map_embedding(data)
        assert buf.positions[:, 0].sum() == pytest.approx(0.0, abs=1e-3)
        assert buf.positions[:, 1].sum() == pytest.approx(0.0, abs=1e-3)
        np.testing.assert_array_equal(buf.positions[:, 2], 0.0)

    def test_rows_are_tokens(self):
        data = _embedding([0.1, 0.2, 0.3, 0.4, 0.5, 0.6], dim=3)
        buf, _ = map_embedding(data)
        # first token on top, dims left to right
        assert buf.positions[0, 1] > buf.positions[3, 1]
        assert buf.positions[0, 0] < buf.positions[1, 0] < buf.positions[2, 0]
        assert buf.positions[1, 0] - buf.positions[0, 0] == pytest.approx(EMBEDDING_STEP)

    def test_depth_and_colors(self):
        data = _embedding([-1.0, 0.0, 0.02, 1.0], dim=4)
        buf, _ = map_embedding(data)
        np.testing.assert_allclose(buf.scales[:, 2], [2.0, 0.1, 0.1, 2.0])
        np.testing.assert_array_equal(buf.scales[:, :2], 1.0)
        rgb = buf.rgb()
        np.testing.assert_allclose(rgb[0], hex_to_rgb(EMBEDDING_NEGATIVE), atol=1e-6)
        np.testing.assert_allclose(rgb[1], hex_to_rgb(EMBEDDING_ZERO), atol=1e-6)
        np.testing.assert_allclose(rgb[3], hex_to_rgb(EMBEDDING_POSITIVE), atol=1e-6)

    def test_empty_dataset(self):
        data = generate_embedding_data("", 64, seed=0)
        buf, _ = map_embedding(data)
        assert len(buf) == 0
        assert embedding_labels(data) == []

    def test_labels_left_of_rows(self):
        data = generate_embedding_data("a b", 4, seed=0)
        buf, _ = map_embedding(data)
        labels = embedding_labels(data)
        assert [l.text for l in labels] == ["a", "b"]
        assert labels[0].position[0] == pytest.approx(buf.positions[0, 0] - 2.0)
        assert labels[0].position[1] == pytest.approx(buf.positions[0, 1])
        assert labels[1].position[1] == pytest.approx(buf.positions[4, 1])


class TestAttentionMapper:

    def test_depth_and_color(self):
        tokens = make_tokens("a b")
        data = AttentionData(tokens=tokens, weights=np.array([1.0, 0.0, 0.25, 0.75], dtype=np.float32))
        buf, _ = map_attention(data)
        np.testing.assert_allclose(buf.scales[:, 2], [4.0, 0.05, 1.0, 3.0])
        rgb = buf.rgb()
        np.testing.assert_allclose(rgb[0], hex_to_rgb(ATTENTION_HIGH), atol=1e-6)
        np.testing.assert_allclose(rgb[1], hex_to_rgb(ATTENTION_ZERO), atol=1e-6)

    def test_square_centered(self):
        data = generate_attention_data(make_tokens("a b c d e"), seed=2)
        buf, _ = map_attention(data)
        assert len(buf) == 25
        assert buf.positions[:, 0].sum() == pytest.approx(0.0, abs=1e-3)

    def test_labels(self):
        data = generate_attention_data(make_tokens("a b c"), seed=2)
        labels = attention_labels(data)
        assert [l.style for l in labels].count('query') == 3
        assert [l.style for l in labels].count('key') == 3


class TestLogitMapper:

    def test_bars_sit_on_ground(self):
        data = _logits([0.0, 0.5, 0.95], target=2)
        buf, _ = map_logits(data)
        heights = buf.scales[:, 1]
        np.testing.assert_allclose(heights, [0.2, 7.5, 14.25], rtol=1e-6)
        np.testing.assert_allclose(buf.positions[:, 1], heights / 2.0)
        np.testing.assert_array_equal(buf.scales[:, [0, 2]], 1.0)

    def test_target_color_override(self):
        data = _logits([0.0, 0.5, 0.95], target=2)
        buf, _ = map_logits(data)
        np.testing.assert_allclose(buf.rgb()[2], hex_to_rgb(LOGIT_TARGET), atol=1e-6)

    def test_square_grid(self):
        data = generate_logit_data(100, seed=0)
        buf, _ = map_logits(data)
        assert square_side(100) == 10
        assert len(np.unique(buf.positions[:, 0].round(4))) == 10
        assert len(np.unique(buf.positions[:, 2].round(4))) == 10
        # row-major: index 1 is next column, index 10 next row
        assert buf.positions[1, 2] == pytest.approx(buf.positions[0, 2])
        assert buf.positions[10, 0] == pytest.approx(buf.positions[0, 0])
        assert buf.positions[10, 2] > buf.positions[0, 2]

    def test_non_square_vocab(self):
        data = _logits([0.05] * 11)
        buf, _ = map_logits(data)
        assert len(buf) == 11
        assert square_side(11) == 4

    def test_labels_suppressed_below_threshold(self):
        data = _logits([0.5, 0.05, 0.1, 0.95], words=["", "quiet", "rest", "comfort"], target=3)
        labels = logit_labels(data)
        assert [l.text for l in labels] == ["rest", "comfort"]
        assert labels[1].style == 'target'
        assert labels[1].position[1] == pytest.approx(0.95 * 15 + 0.5)


class TestInstanceBuffer:

    def test_rewrite_same_data_is_not_a_change(self):
        data = generate_embedding_data("a b c", 8, seed=0)
        buf, changed = map_embedding(data)
        assert changed
        version = buf.version
        same, changed = map_embedding(data, buf)
        assert same is buf
        assert not changed
        assert buf.version == version

    def test_new_data_marks_changed(self):
        buf = InstanceBuffer()
        map_embedding(generate_embedding_data("a b c", 8, seed=0), buf)
        version = buf.version
        _, changed = map_embedding(generate_embedding_data("a b c", 8, seed=1), buf)
        assert changed
        assert buf.version == version + 1

    def test_resize(self):
        buf = InstanceBuffer(4)
        _, changed = map_embedding(generate_embedding_data("a", 2, seed=0), buf)
        assert changed
        assert len(buf) == 2

    def test_mismatched_arrays(self):
        buf = InstanceBuffer()
        with pytest.raises(ValueError):
            buf.write(np.zeros((2, 3)), np.ones((3, 3)), np.zeros(6))

    def test_instance_array_layout(self):
        data = _logits([0.5], words=["x"])
        buf, _ = map_logits(data)
        arr = buf.to_instance_array(alpha=0.5)
        assert arr.shape == (1, 10)
        np.testing.assert_allclose(arr[0, 0:3], buf.positions[0])
        np.testing.assert_allclose(arr[0, 3:6], buf.rgb()[0])
        assert arr[0, 6] == 0.5
        np.testing.assert_allclose(arr[0, 7:10], buf.scales[0])

    def test_mapping_is_pure(self):
        data = generate_logit_data(100, seed=3)
        a, _ = map_logits(data)
        b, _ = map_logits(data)
        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.colors, b.colors)
