"""
Tests for per-frame scene assembly and the composition registry.
"""

import numpy as np
import pytest

from animation.timeline import AnimationTimeline
from synthetic.cache import DatasetCache
from synthetic.parameters import GenerationConfig
from synthetic.vocab import TARGET_WORD
from visualization.compositions import (
    COMPOSITIONS, PropsValidationError, get_composition, build_scene,
)
from visualization.scene import TransformerScene, LatentSpaceScene, euler_xyz
from visualization.colormap import RELEVANCE_NEGATIVE, RELEVANCE_NEUTRAL, RELEVANCE_POSITIVE


@pytest.fixture
def scene():
    return TransformerScene(GenerationConfig(seed=42))


def _target_label(state):
    return next(l for l in state.labels if l.style == 'target')


class TestTransformerScene:

    def test_buffers_built_once(self, scene):
        versions = {k: b.version for k, b in scene.buffers.items()}
        for f in range(0, 300, 10):
            scene.update(f)
        assert {k: b.version for k, b in scene.buffers.items()} == versions
        assert len(scene.buffers['embedding']) == 5 * 64
        assert len(scene.buffers['attention']) == 25
        assert len(scene.buffers['logits']) == 100

    def test_same_config_does_not_rebuild(self, scene):
        assert scene.set_config(GenerationConfig(seed=42)) is False

    def test_new_config_rebuilds(self, scene):
        version = scene.buffers['embedding'].version
        assert scene.set_config(GenerationConfig(sentence="a b c", seed=42)) is True
        assert scene.buffers['embedding'].version == version + 1
        assert len(scene.buffers['embedding']) == 3 * 64

    def test_shared_cache(self):
        cache = DatasetCache()
        a = TransformerScene(GenerationConfig(seed=1), cache=cache)
        b = TransformerScene(GenerationConfig(seed=1), cache=cache)
        assert a.datasets is b.datasets
        assert a.buffers['embedding'] is not b.buffers['embedding']

    def test_shared_cache_starts_empty(self):
        cache = DatasetCache()
        assert len(cache) == 0
        a = build_scene('TransformerPipeline', cache=cache, seed=5)
        b = build_scene('TransformerPipeline', cache=cache, seed=5)
        assert a.cache is cache and b.cache is cache
        assert a.datasets is b.datasets
        assert (cache.misses, cache.hits) == (1, 1)

    def test_captions_cross_fade_without_jumps(self, scene):
        def shown(f):
            return dict(scene.update(f).captions)

        for f in range(0, 299):
            now, nxt = shown(f), shown(f + 1)
            for text in set(now) | set(nxt):
                assert abs(now.get(text, 0.0) - nxt.get(text, 0.0)) < 0.2, (f, text)
        at79 = shown(79)
        assert at79['Each token becomes a vector'] == pytest.approx(1 / 15)
        assert at79['Tokens attend to each other'] == pytest.approx(14 / 15)

    def test_camera_follows_custom_timeline(self):
        timeline = AnimationTimeline(400, breakpoints=(0, 100, 200, 300))
        scene = TransformerScene(GenerationConfig(seed=1), timeline=timeline)
        assert scene.camera.breakpoints == [0, 100, 200, 300, 400]
        np.testing.assert_array_equal(scene.update(200).camera.position, [0.0, 40.0, 40.0])
        assert scene.target_pop(260) == 0.0
        assert scene.target_pop(270) > 0.0

    def test_first_frame(self, scene):
        state = scene.update(0)
        assert state.stage == 'embedding'
        np.testing.assert_array_equal(state.camera.position, [-50.0, 20.0, 30.0])
        assert state.groups['embedding'].opacity == 1.0
        assert state.groups['attention'].opacity == 0.0
        assert state.groups['logits'].opacity == 0.0
        assert [l.style for l in state.labels] == ['token'] * 5
        assert state.caption_opacity == 1.0

    def test_frames_are_independent(self, scene):
        a = scene.update(231)
        scene.update(17)
        b = scene.update(231)
        np.testing.assert_array_equal(a.camera.position, b.camera.position)
        assert [l.text for l in a.labels] == [l.text for l in b.labels]
        for la, lb in zip(a.labels, b.labels):
            np.testing.assert_array_equal(la.position, lb.position)

    def test_target_label_pops(self, scene):
        before = _target_label(scene.update(220))
        assert before.text == TARGET_WORD
        assert before.font_size == 16.0
        # logit group only rotates about y, so label height is origin + bar + pop
        assert before.position[1] == pytest.approx(-5.0 + 0.95 * 15 + 0.5)

        settled = _target_label(scene.update(2000))
        assert settled.position[1] == pytest.approx(-5.0 + 0.95 * 15 + 0.5 + 5.0, abs=1e-3)
        assert settled.font_size == pytest.approx(26.0, abs=1e-3)

    def test_target_pop_overshoots(self, scene):
        values = [scene.target_pop(f) for f in range(220, 300)]
        assert values[0] == 0.0
        assert max(values) > 1.0

    def test_group_rotation(self, scene):
        np.testing.assert_allclose(scene.group_rotation('logits', 100), [0.0, -0.2, 0.0])
        np.testing.assert_array_equal(scene.group_rotation('attention', 100), 0.0)
        assert np.all(np.abs(scene.group_rotation('embedding', 1234)) <= 0.1)

    def test_model_matrix(self, scene):
        group = scene.update(0).groups['logits']
        m = group.model_matrix()
        np.testing.assert_allclose(m[:3, 3], [35.0, -5.0, 0.0])

    def test_empty_sentence_renders_nothing(self):
        scene = TransformerScene(GenerationConfig(sentence="", seed=0))
        state = scene.update(120)
        assert len(state.groups['embedding'].instances) == 0
        assert len(state.groups['attention'].instances) == 0
        assert all(l.style in ('logit', 'target') for l in state.labels)


class TestEuler:

    def test_identity(self):
        np.testing.assert_allclose(euler_xyz((0, 0, 0)), np.eye(3))

    def test_y_rotation(self):
        r = euler_xyz((0, np.pi / 2, 0))
        np.testing.assert_allclose(r @ [1, 0, 0], [0, 0, -1], atol=1e-12)


class TestLatentSpaceScene:

    def test_staggered_reveal(self):
        scene = build_scene('LatentSpace', seed=1)
        assert isinstance(scene, LatentSpaceScene)
        state = scene.update(10)
        assert len(state.nodes) == 30
        assert state.nodes[0].opacity == pytest.approx(0.5)
        assert state.nodes[5].opacity == 0.0
        assert scene.update(200).nodes[29].opacity == 1.0

    def test_progress_and_rotation(self):
        scene = build_scene('LatentSpace', seed=1)
        state = scene.update(150)
        assert state.progress == pytest.approx(0.5)
        np.testing.assert_allclose(state.rotation, [0.075, 0.15, 0.0])
        np.testing.assert_array_equal(state.camera.position, [0.0, 0.0, 40.0])

    def test_colors_follow_relevance(self):
        scene = build_scene('LatentSpace', seed=3, word_count=100)
        for node, ns in zip(scene.nodes, scene.update(0).nodes):
            if node.relevance < -0.2:
                assert ns.color == RELEVANCE_NEGATIVE
            elif node.relevance > 0.2:
                assert ns.color == RELEVANCE_POSITIVE
            else:
                assert ns.color == RELEVANCE_NEUTRAL


class TestCompositions:

    def test_registry(self):
        comp = get_composition('LatentSpace')
        assert (comp.duration_in_frames, comp.fps, comp.width, comp.height) == (300, 30, 1920, 1080)
        assert comp.duration_seconds == 10.0
        assert set(COMPOSITIONS) == {'LatentSpace', 'TransformerPipeline'}

    def test_unknown_composition(self):
        with pytest.raises(KeyError):
            get_composition('HelloWorld')

    def test_defaults_and_overrides(self):
        comp = get_composition('TransformerPipeline')
        props = comp.resolve_props(title_color='#abc')
        assert props['title_color'] == '#abc'
        assert props['embedding_dim'] == 64

    @pytest.mark.parametrize("overrides", [
        {'title_color': 'red'},
        {'title_color': '#12345'},
        {'embedding_dim': 0},
        {'embedding_dim': True},
        {'sentence': 5},
        {'seed': 'abc'},
        {'colour': '#ffffff'},
    ])
    def test_invalid_props(self, overrides):
        with pytest.raises(PropsValidationError):
            get_composition('TransformerPipeline').resolve_props(**overrides)

    def test_build_transformer_scene(self):
        scene = build_scene('TransformerPipeline', sentence="one two three", embedding_dim=8, seed=2)
        assert isinstance(scene, TransformerScene)
        assert len(scene.datasets.embedding.tokens) == 3
        assert len(scene.buffers['embedding']) == 24

    def test_title_props_reach_frame_state(self):
        scene = build_scene('TransformerPipeline', seed=2, title_text='Next word', title_color='#ff00aa')
        state = scene.update(0)
        assert state.title == 'Next word'
        assert state.title_color == '#ff00aa'


class TestRenderFramesCli:

    def test_describe_frame(self):
        from render_frames import describe_frame
        line = describe_frame(build_scene('TransformerPipeline', seed=0), 100)
        assert 'attention' in line
        line = describe_frame(build_scene('LatentSpace', seed=0), 100)
        assert 'nodes' in line
