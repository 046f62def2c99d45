from dataclasses import dataclass

from animation.easing import interpolate

DURATION_IN_FRAMES = 300   # 10 s at 30 fps
FPS = 30
CAPTION_FADE = 15

# Narrative stage boundaries; the camera waypoints use the same frames
STAGE_BREAKPOINTS = (0, 80, 160, 240)


@dataclass(frozen=True)
class TimelineStage:
    stage_name: str
    start_frame: int
    end_frame: int
    caption: str

    @property
    def duration(self) -> int:
        return self.end_frame - self.start_frame


class AnimationTimeline:
    """Fixed stage table over a frame counter.

    Stages cover [0, duration) without gaps. Frames past the end map to the
    last stage and frames before 0 to the first.
    """

    CAPTIONS = (
        ('embedding', 'Each token becomes a vector'),
        ('attention', 'Tokens attend to each other'),
        ('logits', 'Scoring every word in the vocabulary'),
        ('settle', 'The most likely next word'),
    )

    def __init__(self, duration_in_frames: int = DURATION_IN_FRAMES, fps: int = FPS,
                 breakpoints=STAGE_BREAKPOINTS):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        if list(breakpoints) != sorted(set(breakpoints)) or breakpoints[0] != 0:
            raise ValueError(f"breakpoints must start at 0 and strictly ascend: {breakpoints}")
        if duration_in_frames <= breakpoints[-1]:
            raise ValueError(
                f"duration_in_frames ({duration_in_frames}) must exceed the last "
                f"breakpoint ({breakpoints[-1]})")
        self.duration_in_frames = duration_in_frames
        self.fps = fps
        self.breakpoints = tuple(breakpoints)

        ends = list(self.breakpoints[1:]) + [duration_in_frames]
        self.stages = [
            TimelineStage(name, start, end, caption)
            for (name, caption), start, end in zip(self.CAPTIONS, self.breakpoints, ends)
        ]

    @property
    def total_seconds(self) -> float:
        return self.duration_in_frames / self.fps

    def seconds(self, frame: float) -> float:
        return frame / self.fps

    def get_stage(self, frame: float) -> TimelineStage:
        for stage in self.stages:
            if frame < stage.end_frame:
                return stage
        return self.stages[-1]

    def get_stage_by_name(self, name: str) -> TimelineStage:
        for stage in self.stages:
            if stage.stage_name == name:
                return stage
        raise KeyError(name)

    def stage_progress(self, frame: float) -> float:
        """0 -> 1 across the current stage."""
        stage = self.get_stage(frame)
        return interpolate(frame, [stage.start_frame, stage.end_frame], [0.0, 1.0])

    def caption_opacity(self, stage_name: str, frame: float, fade: int = CAPTION_FADE) -> float:
        """Cross-fading caption opacity for one stage.

        A caption fades in over the `fade` frames leading up to its stage and
        fades out over its own last `fade` frames, so neighbouring captions
        overlap at every boundary. The first caption is visible from the
        start and the last one holds to the end.
        """
        stage = self.get_stage_by_name(stage_name)
        fade = min(fade, stage.duration / 2.0)
        start, end = stage.start_frame, stage.end_frame
        if fade <= 0:
            return 1.0 if start <= frame < end else 0.0
        first = stage is self.stages[0]
        last = stage is self.stages[-1]
        return interpolate(
            frame,
            [start - fade, start, end - fade, end],
            [1.0 if first else 0.0, 1.0, 1.0, 1.0 if last else 0.0],
        )

    def visible_captions(self, frame: float, fade: int = CAPTION_FADE) -> list:
        """(caption, opacity) for every stage caption showing at `frame`, in stage order."""
        captions = []
        for stage in self.stages:
            opacity = self.caption_opacity(stage.stage_name, frame, fade)
            if opacity > 0.0:
                captions.append((stage.caption, opacity))
        return captions
