"""
Plotting and frame rendering for demo engagements.

Everything is drawn in the xy plane.
"""

import os
from typing import List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.figure import Figure

from .simulation import STEPS_PER_FRAME, Body, Scene, Sim, SimResult, run_scene

WIDTH = 1920
HEIGHT = 1080
DPI = 100

MISSILE_COLOR = (1.0, 0.5, 0.5)
TARGET_COLOR = (0.5, 0.5, 1.0)


def _dim(rgb):
    return tuple(c * 0.5 for c in rgb)


def draw_body(ax, rgb, body: Body, trail: List[np.ndarray]):
    """Trail, position marker and a short velocity tick for one body."""
    if trail:
        path = np.array(trail + [body.position])
        ax.plot(path[:, 0], path[:, 1], '-', color=_dim(rgb), linewidth=1.5)

    ax.plot(body.position[0], body.position[1], 'o', color=rgb, markersize=6)
    tip = body.position + body.velocity * 0.05
    ax.plot([body.position[0], tip[0]], [body.position[1], tip[1]], '-',
            color=rgb, linewidth=1.5)


def draw_frame(ax, missile_path: List[np.ndarray], target_path: List[np.ndarray],
               missile: Body, target: Body):
    """Draw both bodies with their trails onto `ax`."""
    draw_body(ax, MISSILE_COLOR, missile, missile_path)
    draw_body(ax, TARGET_COLOR, target, target_path)


class FrameRenderer:
    """
    Writes one PNG per rendered frame while a scene runs.

    Pass an instance as `on_step` to `run_scene`. Files are named
    scene_{scene_num}-frame_{frame_num}.png.
    """

    def __init__(self, out_dir: str, scene_num: int = 0,
                 steps_per_frame: int = STEPS_PER_FRAME, extent: float = 1.5e4):
        self.out_dir = out_dir
        self.scene_num = scene_num
        self.steps_per_frame = steps_per_frame
        self.extent = extent
        self.missile_log: List[np.ndarray] = []
        self.target_log: List[np.ndarray] = []
        self.written: List[str] = []
        os.makedirs(out_dir, exist_ok=True)

    def __call__(self, sim: Sim):
        if sim.steps % self.steps_per_frame == 0:
            self.draw(sim.steps // self.steps_per_frame, sim)

    def draw(self, frame_num: int, sim: Sim) -> str:
        fig = Figure(figsize=(WIDTH / DPI, HEIGHT / DPI), dpi=DPI, facecolor='black')
        ax = fig.add_axes([0, 0, 1, 1])
        ax.set_facecolor('black')
        ax.set_xlim(0, self.extent * WIDTH / HEIGHT)
        ax.set_ylim(0, self.extent)
        ax.set_axis_off()

        draw_frame(ax, self.missile_log, self.target_log, sim.missile, sim.target)

        path = os.path.join(self.out_dir, f"scene_{self.scene_num}-frame_{frame_num}.png")
        fig.savefig(path, facecolor=fig.get_facecolor())
        self.written.append(path)

        self.missile_log.append(sim.missile.position.copy())
        self.target_log.append(sim.target.position.copy())
        return path


def save_frames(scene: Scene, out_dir: str, scene_num: int = 0,
                progress: bool = False) -> Tuple[SimResult, List[str]]:
    """Run `scene`, writing a PNG every STEPS_PER_FRAME steps. Returns the result and the files."""
    renderer = FrameRenderer(out_dir, scene_num=scene_num)
    result = run_scene(scene, on_step=renderer, progress=progress)
    return result, renderer.written


def plot_result(result: SimResult, save_path: Optional[str] = None, show: bool = True):
    """
    Plot a finished engagement.

    Shows:
    - Missile and target paths with start/end markers
    - Range over time
    """
    fig, axes = plt.subplots(1, 2, figsize=(16, 7))

    missile_path = np.array(result.missile_path)
    target_path = np.array(result.target_path)

    ax1 = axes[0]
    ax1.plot(missile_path[:, 0], missile_path[:, 1], '-', color=MISSILE_COLOR,
             linewidth=2, label='Missile')
    ax1.plot(target_path[:, 0], target_path[:, 1], '-', color=TARGET_COLOR,
             linewidth=2, label='Target')
    ax1.plot(missile_path[0, 0], missile_path[0, 1], 'o', color=MISSILE_COLOR, markersize=10)
    ax1.plot(target_path[0, 0], target_path[0, 1], 'o', color=TARGET_COLOR, markersize=10)
    ax1.plot(missile_path[-1, 0], missile_path[-1, 1], 'g*', markersize=18,
             label=f'End (miss {result.miss:.1f}m)', zorder=10)
    ax1.set_xlabel('X Position (meters)')
    ax1.set_ylabel('Y Position (meters)')
    ax1.set_title(f'Engagement - {result.status.upper()}')
    ax1.legend(loc='upper left')
    ax1.grid(True, alpha=0.3)
    ax1.set_aspect('equal')

    ax2 = axes[1]
    ranges = np.linalg.norm(target_path - missile_path, axis=1)
    ax2.plot(np.arange(len(ranges)), ranges, 'g-', linewidth=2)
    ax2.set_xlabel('Step')
    ax2.set_ylabel('Range (meters)')
    ax2.set_title('Range to Target')
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Plot saved to: {save_path}")

    if show:
        plt.show()
    return fig


def animate_result(result: SimResult, interval: int = 50, save_path: Optional[str] = None,
                   stride: int = STEPS_PER_FRAME, show: bool = True):
    """
    Animate a finished engagement, one frame every `stride` steps.

    Args:
        result: A finished SimResult
        interval: Milliseconds between frames
        save_path: Optional path to save the animation (requires ffmpeg)
    """
    missile_path = np.array(result.missile_path)[::stride]
    target_path = np.array(result.target_path)[::stride]

    fig, ax = plt.subplots(figsize=(14, 8))
    both = np.concatenate([missile_path, target_path])
    margin = 0.05 * max(np.ptp(both[:, 0]), np.ptp(both[:, 1]), 1.0)
    ax.set_xlim(both[:, 0].min() - margin, both[:, 0].max() + margin)
    ax.set_ylim(both[:, 1].min() - margin, both[:, 1].max() + margin)
    ax.set_aspect('equal')
    ax.grid(True, alpha=0.3)

    missile_trail, = ax.plot([], [], '-', color=_dim(MISSILE_COLOR), linewidth=1.5)
    target_trail, = ax.plot([], [], '-', color=_dim(TARGET_COLOR), linewidth=1.5)
    missile_dot, = ax.plot([], [], 'o', color=MISSILE_COLOR, markersize=8)
    target_dot, = ax.plot([], [], 'o', color=TARGET_COLOR, markersize=8)

    def update(frame):
        missile_trail.set_data(missile_path[:frame + 1, 0], missile_path[:frame + 1, 1])
        target_trail.set_data(target_path[:frame + 1, 0], target_path[:frame + 1, 1])
        missile_dot.set_data([missile_path[frame, 0]], [missile_path[frame, 1]])
        target_dot.set_data([target_path[frame, 0]], [target_path[frame, 1]])
        return missile_trail, target_trail, missile_dot, target_dot

    anim = FuncAnimation(fig, update, frames=len(missile_path),
                         interval=interval, blit=True)

    if save_path:
        anim.save(save_path, writer='ffmpeg', fps=1000 // interval)
        print(f"Animation saved to: {save_path}")
    elif show:
        plt.show()
    return anim
