import argparse
import logging

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation
from matplotlib.collections import LineCollection

from .config import DisplayMode, FluidParams
from .presets import PRESETS, get_preset, preset_names
from .render import to_rgba8
from .simulation import Simulation

# ==============================================================================
# Interactive Fluid Viewer
# ==============================================================================
# Drag with the mouse to stir the fluid:
# 1. Each drag sample injects force (from pointer motion) and dye.
# 2. Tracer particles are spawned under the pointer and follow the flow.
# 3. Releasing the button ends the gesture, so the next press starts with
#    zero force.
#
# Keys: r = reset, m = next display mode, 1-9 = presets.
# ==============================================================================

DEFAULT_WINDOW = (800, 800)
FRAME_INTERVAL_MS = 16  # ~60 Hz


class FluidViewer:
    """
    matplotlib front end: drives ``Simulation.tick`` from a FuncAnimation and
    turns mouse events into forces and particles.

    The axes use window coordinates (origin top-left, y down), the same space
    the simulation receives interaction positions in.
    """

    def __init__(self, simulation, window_size=DEFAULT_WINDOW, interval=FRAME_INTERVAL_MS,
                 frames=None):
        self.sim = simulation
        self.frames = frames
        self.window_size = (float(window_size[0]), float(window_size[1]))
        self.interval = interval
        self.dragging = False
        self.anim = None

        w, h = self.window_size
        self.fig, self.ax = plt.subplots(figsize=(8, 8 * h / w))
        self.fig.patch.set_facecolor("black")
        self.ax.set_xlim(0, w)
        self.ax.set_ylim(h, 0)
        self.ax.set_axis_off()
        self._update_title()

        # 1. Fluid display buffer
        self.im = self.ax.imshow(to_rgba8(self.sim.display), extent=[0, w, h, 0],
                                 interpolation="bilinear")

        # 2. Particle trails, one segment per particle
        self.lines = LineCollection([], linewidths=self.sim.particle_params.particle_size)
        self.ax.add_collection(self.lines)

        canvas = self.fig.canvas
        canvas.mpl_connect("button_press_event", self.on_press)
        canvas.mpl_connect("motion_notify_event", self.on_motion)
        canvas.mpl_connect("button_release_event", self.on_release)
        canvas.mpl_connect("key_press_event", self.on_key)

    def _update_title(self):
        self.ax.set_title(f"Stable Fluids ({self.sim.params.display_mode.label})", color="white")

    # --- Input ---

    def _interact(self, event):
        if event.inaxes is not self.ax or event.xdata is None or event.ydata is None:
            return
        pos = (event.xdata, event.ydata)
        self.sim.add_force(pos, self.window_size)
        self.sim.add_particles(pos, self.sim.particle_params.spawn_count, self.window_size)

    def on_press(self, event):
        self.dragging = True
        self._interact(event)

    def on_motion(self, event):
        if self.dragging:
            self._interact(event)

    def on_release(self, event):
        self.dragging = False
        self.sim.end_interaction()

    def on_key(self, event):
        key = event.key
        if key == "r":
            self.sim.reset()
        elif key == "m":
            modes = list(DisplayMode)
            current = modes.index(self.sim.params.display_mode)
            self.sim.update_params(display_mode=modes[(current + 1) % len(modes)])
            self._update_title()
        elif key is not None and key.isdigit() and 1 <= int(key) <= min(9, len(PRESETS)):
            self.sim.apply_preset(PRESETS[int(key) - 1])

    # --- Frame update ---

    def update(self, frame):
        result = self.sim.tick()
        self.im.set_data(to_rgba8(result.display))

        particles = result.particles
        colors = np.ones((len(particles), 4))
        colors[:, 3] = np.clip(particles.alpha, 0.0, 1.0)
        self.lines.set_segments(particles.segments)
        self.lines.set_color(colors)
        return self.im, self.lines

    def run(self, frames=None):
        frames = self.frames if frames is None else frames
        self.anim = FuncAnimation(self.fig, self.update, frames=frames,
                                  interval=self.interval, blit=False, repeat=frames is None,
                                  cache_frame_data=False)
        plt.show()


def build_viewer(argv=None):
    """Parse command-line options and build a viewer around a new Simulation."""
    parser = argparse.ArgumentParser(description="Interactive 2D stable-fluids viewer")
    parser.add_argument("--resolution", type=int, default=128, help="grid cells per side")
    parser.add_argument("--preset", choices=preset_names(), default=None)
    parser.add_argument("--mode", default=DisplayMode.DENSITY.value,
                        choices=[m.value for m in DisplayMode])
    parser.add_argument("--frames", type=int, default=None, help="stop after this many frames")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    sim = Simulation(args.resolution, params=FluidParams(display_mode=args.mode),
                     viewport=DEFAULT_WINDOW)
    if args.preset:
        sim.apply_preset(get_preset(args.preset))

    print(f"Simulation initialized on a {args.resolution}x{args.resolution} grid.")
    return FluidViewer(sim, frames=args.frames)


def main(argv=None):
    viewer = build_viewer(argv)
    try:
        print("Running visualization... Close window to stop.")
        viewer.run()
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
