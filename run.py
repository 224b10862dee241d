#!/usr/bin/env python3
"""
Missile Guidance Demo - Entry Point

Run this file to fly the demo engagements:
    python run.py              # print results only
    python run.py --frames     # also write scene_N-frame_M.png images
    python run.py --plot       # plot trajectories when each scene ends
    python run.py --animate    # animate each scene when it ends
"""

import logging
import sys

from missile_guidance.simulation import DEFAULT_SCENES, run_scene


def main(argv):
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    progress = sys.stdout.isatty()

    for scene_num, scene in enumerate(DEFAULT_SCENES):
        if "--frames" in argv:
            from missile_guidance.visualization import save_frames
            result, _ = save_frames(scene, ".", scene_num=scene_num, progress=progress)
        else:
            result = run_scene(scene, progress=progress)
        print(f"{scene_num}: {result}")

        if "--plot" in argv:
            from missile_guidance.visualization import plot_result
            plot_result(result)
        elif "--animate" in argv:
            from missile_guidance.visualization import animate_result
            animate_result(result)


if __name__ == "__main__":
    main(sys.argv[1:])
