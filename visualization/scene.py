"""Per-frame scene state for the transformer and latent-space compositions.

Datasets and instance buffers are built once per GenerationConfig (through
the DatasetCache); `update(frame)` only evaluates curves, so every frame is
independent of the frames rendered before it.
"""
import logging
from dataclasses import dataclass, field
import numpy as np

from animation.easing import interpolate, spring, SpringConfig
from animation.timeline import AnimationTimeline
from core.camera import CameraPath, CameraPose
from synthetic.cache import DatasetCache
from synthetic.parameters import GenerationConfig
from visualization.colormap import relevance_color
from visualization.instances import (
    InstanceBuffer, map_embedding, map_attention, map_logits,
    embedding_labels, attention_labels, logit_labels,
)
from visualization.layout import STAGE_ORIGIN

logger = logging.getLogger(__name__)

GROUP_FADE = 20                     # frames a stage group takes to fade in
TARGET_POP_DELAY = 60               # frames after the logit stage starts
TARGET_POP_SPRING = SpringConfig(damping=10.0, mass=0.5, stiffness=100.0)

_LABEL_FONT = {'token': 18.0, 'query': 14.0, 'key': 14.0, 'logit': 12.0, 'target': 16.0}
_LABEL_ALPHA = {'token': 1.0, 'query': 0.8, 'key': 0.8, 'logit': 1.0, 'target': 1.0}


def euler_xyz(rotation) -> np.ndarray:
    """Rotation matrix for intrinsic X, then Y, then Z angles (radians)."""
    rx, ry, rz = rotation
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)
    mx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    my = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    mz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    return mx @ my @ mz


@dataclass
class GroupState:
    name: str
    position: np.ndarray
    rotation: np.ndarray            # euler XYZ, radians
    opacity: float
    instances: InstanceBuffer

    def model_matrix(self) -> np.ndarray:
        m = np.eye(4, dtype=np.float32)
        m[:3, :3] = euler_xyz(self.rotation)
        m[:3, 3] = self.position
        return m

    def to_world(self, local) -> np.ndarray:
        return euler_xyz(self.rotation) @ np.asarray(local, dtype=np.float64) + self.position


@dataclass
class LabelState:
    text: str
    position: np.ndarray            # world space
    opacity: float
    font_size: float
    style: str


@dataclass
class FrameState:
    frame: int
    stage: str
    camera: CameraPose
    groups: dict = field(default_factory=dict)
    labels: list = field(default_factory=list)
    caption: str = ""
    caption_opacity: float = 0.0
    captions: list = field(default_factory=list)   # (text, opacity), cross-fading
    title: str = ""
    title_color: str = "#ffffff"


class TransformerScene:
    """Embedding matrix -> attention heatmap -> logit terrain, one camera sweep."""

    def __init__(self, config: GenerationConfig = None, timeline: AnimationTimeline = None,
                 camera_path: CameraPath = None, cache: DatasetCache = None,
                 title: str = "", title_color: str = "#ffffff"):
        self.timeline = timeline if timeline is not None else AnimationTimeline()
        if camera_path is None:
            camera_path = CameraPath.default(self.timeline.duration_in_frames,
                                             breakpoints=self.timeline.breakpoints)
        self.camera = camera_path
        self.cache = cache if cache is not None else DatasetCache()
        self.title = title
        self.title_color = title_color
        self.buffers = {
            'embedding': InstanceBuffer(),
            'attention': InstanceBuffer(),
            'logits': InstanceBuffer(),
        }
        self.datasets = None
        self._labels = {}
        self.set_config(config if config is not None else GenerationConfig())

    def set_config(self, config: GenerationConfig) -> bool:
        """Rebuild datasets and geometry if the inputs changed. Returns True if rebuilt."""
        datasets = self.cache.get(config)
        if datasets is self.datasets:
            return False
        self.datasets = datasets

        map_embedding(datasets.embedding, self.buffers['embedding'])
        map_attention(datasets.attention, self.buffers['attention'])
        map_logits(datasets.logits, self.buffers['logits'])
        self._labels = {
            'embedding': embedding_labels(datasets.embedding),
            'attention': attention_labels(datasets.attention),
            'logits': logit_labels(datasets.logits),
        }
        logger.info("Scene built: %d tokens, %d dims, vocab %d",
                    len(datasets.embedding.tokens), datasets.embedding.embedding_dim,
                    datasets.logits.vocab_size)
        return True

    @property
    def config(self) -> GenerationConfig:
        return self.datasets.config

    # ── Per-frame curves ──────────────────────────────────────────
    def group_opacity(self, name: str, frame: float) -> float:
        stage = self.timeline.get_stage_by_name(name)
        if stage.start_frame == 0:
            return 1.0
        return interpolate(frame, [stage.start_frame - GROUP_FADE, stage.start_frame], [0.0, 1.0])

    def group_rotation(self, name: str, frame: float) -> np.ndarray:
        if name == 'embedding':
            # slow sway so the matrix reads as a 3D object
            return np.array([np.sin(frame * 0.003) * 0.05, np.sin(frame * 0.005) * 0.1, 0.0])
        if name == 'logits':
            return np.array([0.0, frame * -0.002, 0.0])
        return np.zeros(3)

    def target_pop(self, frame: float) -> float:
        trigger = self.timeline.get_stage_by_name('logits').start_frame + TARGET_POP_DELAY
        return spring(frame - trigger, fps=self.timeline.fps, config=TARGET_POP_SPRING)

    def update(self, frame: int) -> FrameState:
        stage = self.timeline.get_stage(frame)
        state = FrameState(
            frame=frame,
            stage=stage.stage_name,
            camera=self.camera.pose_at(frame),
            caption=stage.caption,
            caption_opacity=self.timeline.caption_opacity(stage.stage_name, frame),
            captions=self.timeline.visible_captions(frame),
            title=self.title,
            title_color=self.title_color,
        )

        for name, buffer in self.buffers.items():
            state.groups[name] = GroupState(
                name=name,
                position=STAGE_ORIGIN[name].astype(np.float64),
                rotation=self.group_rotation(name, frame),
                opacity=self.group_opacity(name, frame),
                instances=buffer,
            )

        pop = self.target_pop(frame)
        for name, labels in self._labels.items():
            group = state.groups[name]
            if group.opacity <= 0.0:
                continue
            for lbl in labels:
                local = np.array(lbl.position, dtype=np.float64)
                font = _LABEL_FONT[lbl.style]
                if lbl.style == 'target':
                    local[1] += pop * 5.0
                    font += pop * 10.0
                state.labels.append(LabelState(
                    text=lbl.text,
                    position=group.to_world(local),
                    opacity=group.opacity * _LABEL_ALPHA[lbl.style],
                    font_size=font,
                    style=lbl.style,
                ))
        return state


# ── Latent space variant ──────────────────────────────────────────
LATENT_CAMERA = CameraPose(np.array([0.0, 0.0, 40.0]), np.zeros(3))
NODE_STAGGER = 2          # frames between successive node reveals
NODE_FADE = 20


@dataclass
class NodeState:
    id: str
    word: str
    position: np.ndarray
    color: str
    opacity: float


@dataclass
class LatentFrameState:
    frame: int
    progress: float
    rotation: np.ndarray
    camera: CameraPose
    nodes: list = field(default_factory=list)


class LatentSpaceScene:
    """Word cloud on a spherical shell around a wireframe core."""

    def __init__(self, nodes, duration_in_frames: int = 300):
        self.nodes = list(nodes)
        self.duration_in_frames = duration_in_frames

    def node_opacity(self, index: int, frame: float) -> float:
        return interpolate(frame - index * NODE_STAGGER, [0, NODE_FADE], [0.0, 1.0])

    def update(self, frame: int) -> LatentFrameState:
        state = LatentFrameState(
            frame=frame,
            progress=interpolate(frame, [0, self.duration_in_frames], [0.0, 1.0]),
            rotation=np.array([0.0005 * frame, 0.001 * frame, 0.0]),
            camera=LATENT_CAMERA,
        )
        for i, node in enumerate(self.nodes):
            state.nodes.append(NodeState(
                id=node.id,
                word=node.word,
                position=np.array(node.position, dtype=np.float64),
                color=relevance_color(node.relevance),
                opacity=self.node_opacity(i, frame),
            ))
        return state
