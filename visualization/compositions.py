"""Registered compositions and their typed default props.

A composition pairs timing/resolution with a props schema. `resolve_props`
merges caller overrides over the defaults and validates the result before
any scene is built from it.
"""
import re
from dataclasses import dataclass, field

from animation.timeline import AnimationTimeline
from synthetic.cache import DatasetCache
from synthetic.parameters import GenerationConfig
from synthetic.tensors import generate_word_nodes
from synthetic.vocab import DEFAULT_SENTENCE
from visualization.scene import TransformerScene, LatentSpaceScene

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class PropsValidationError(ValueError):
    pass


def hex_color(value):
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise PropsValidationError(f"expected a #rgb or #rrggbb color, got {value!r}")
    return value


def positive_int(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise PropsValidationError(f"expected a positive integer, got {value!r}")
    return value


def optional_int(value):
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise PropsValidationError(f"expected an integer or None, got {value!r}")
    return value


def text(value):
    if not isinstance(value, str):
        raise PropsValidationError(f"expected a string, got {value!r}")
    return value


@dataclass(frozen=True)
class Composition:
    id: str
    duration_in_frames: int
    fps: int
    width: int
    height: int
    default_props: dict = field(default_factory=dict)
    schema: dict = field(default_factory=dict)   # prop name -> validator

    @property
    def duration_seconds(self) -> float:
        return self.duration_in_frames / self.fps

    def resolve_props(self, **overrides) -> dict:
        unknown = set(overrides) - set(self.schema)
        if unknown:
            raise PropsValidationError(
                f"unknown props for {self.id}: {', '.join(sorted(unknown))}")
        props = dict(self.default_props)
        props.update(overrides)
        missing = set(self.schema) - set(props)
        if missing:
            raise PropsValidationError(
                f"missing props for {self.id}: {', '.join(sorted(missing))}")
        for name, validator in self.schema.items():
            try:
                validator(props[name])
            except PropsValidationError as e:
                raise PropsValidationError(f"{self.id}.{name}: {e}") from None
        return props


COMPOSITIONS = {
    'LatentSpace': Composition(
        id='LatentSpace', duration_in_frames=300, fps=30, width=1920, height=1080,
        default_props={'word_count': 30, 'seed': None},
        schema={'word_count': positive_int, 'seed': optional_int},
    ),
    'TransformerPipeline': Composition(
        id='TransformerPipeline', duration_in_frames=300, fps=30, width=1920, height=1080,
        default_props={
            'sentence': DEFAULT_SENTENCE,
            'embedding_dim': 64,
            'seed': None,
            'title_text': 'Inside a Transformer',
            'title_color': '#ffffff',
        },
        schema={
            'sentence': text,
            'embedding_dim': positive_int,
            'seed': optional_int,
            'title_text': text,
            'title_color': hex_color,
        },
    ),
}


def get_composition(composition_id: str) -> Composition:
    try:
        return COMPOSITIONS[composition_id]
    except KeyError:
        raise KeyError(
            f"unknown composition {composition_id!r}; "
            f"available: {', '.join(sorted(COMPOSITIONS))}") from None


def build_scene(composition_id: str, cache: DatasetCache = None, **overrides):
    """Validate props and construct the scene object for a composition."""
    comp = get_composition(composition_id)
    props = comp.resolve_props(**overrides)
    if composition_id == 'LatentSpace':
        nodes = generate_word_nodes(props['word_count'], seed=props['seed'])
        return LatentSpaceScene(nodes, duration_in_frames=comp.duration_in_frames)

    config = GenerationConfig(
        sentence=props['sentence'],
        embedding_dim=props['embedding_dim'],
        seed=props['seed'],
    )
    timeline = AnimationTimeline(comp.duration_in_frames, comp.fps)
    return TransformerScene(config, timeline=timeline, cache=cache,
                            title=props["title_text"], title_color=props["title_color"])
