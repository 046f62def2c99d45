"""Evaluate composition frames and log what the renderer would receive.

Usage:
    python render_frames.py
    python render_frames.py --composition TransformerPipeline --seed 7 --step 20
    python render_frames.py --frame 225 --sentence "we gathered here in silence" -v
"""
import os
import sys
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.logging_setup import setup_logging
from visualization.compositions import COMPOSITIONS, get_composition, build_scene
from visualization.scene import TransformerScene


def describe_frame(scene, frame: int) -> str:
    state = scene.update(frame)
    pos = state.camera.position
    if isinstance(scene, TransformerScene):
        visible = sum(len(g.instances) for g in state.groups.values() if g.opacity > 0.0)
        return (f"frame {frame:4d} | {state.stage:<9s} | cam ({pos[0]:6.1f}, {pos[1]:6.1f}, "
                f"{pos[2]:6.1f}) | instances {visible:5d} | labels {len(state.labels):3d} | "
                f"caption {state.caption_opacity:.2f} | pop {scene.target_pop(frame):.3f}")
    shown = sum(1 for n in state.nodes if n.opacity > 0.0)
    return (f"frame {frame:4d} | progress {state.progress:.2f} | nodes {shown:3d}/"
            f"{len(state.nodes)} | rot y {state.rotation[1]:.3f}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate visualizer frames")
    parser.add_argument("--composition", default="TransformerPipeline",
                        choices=sorted(COMPOSITIONS))
    parser.add_argument("--frame", type=int, default=None,
                        help="Single frame to evaluate (default: sweep the whole composition)")
    parser.add_argument("--step", type=int, default=30, help="Frame step for the sweep")
    parser.add_argument("--sentence", type=str, default=None)
    parser.add_argument("--embedding-dim", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-dir", type=str, default=None)
    parser.add_argument("--json-log", action="store_true",
                        help="Also write render.jsonl into --log-dir")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    log = setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_dir=args.log_dir,
                        json_file=args.json_log)

    comp = get_composition(args.composition)
    overrides = {}
    if args.seed is not None:
        overrides['seed'] = args.seed
    if args.composition == 'TransformerPipeline':
        if args.sentence is not None:
            overrides['sentence'] = args.sentence
        if args.embedding_dim is not None:
            overrides['embedding_dim'] = args.embedding_dim
    elif args.sentence is not None or args.embedding_dim is not None:
        parser.error("--sentence/--embedding-dim only apply to TransformerPipeline")

    try:
        scene = build_scene(args.composition, **overrides)
    except ValueError as e:
        parser.error(str(e))

    log.info("%s: %d frames @ %d fps (%dx%d)", comp.id, comp.duration_in_frames,
             comp.fps, comp.width, comp.height)
    if args.frame is not None:
        frames = [args.frame]
    else:
        frames = list(range(0, comp.duration_in_frames, max(args.step, 1)))
        if frames[-1] != comp.duration_in_frames - 1:
            frames.append(comp.duration_in_frames - 1)
    for frame in frames:
        log.info(describe_frame(scene, frame))


if __name__ == "__main__":
    main()
