import numpy as np
import pytest

from stable_fluids.config import DisplayMode, FluidParams
from stable_fluids.fields import zero_boundary
from stable_fluids.forces import apply_force
from stable_fluids.projection import compute_divergence, project
from stable_fluids.solver import FluidSolver


def divergence_of(fields):
    out = np.zeros(fields.shape, dtype=np.float32)
    compute_divergence(fields.velocity.current, out)
    return out


def gaussian_potential_flow(solver, sigma=3.0, amplitude=1.0):
    """Velocity = grad of a Gaussian bump centred in the grid (purely divergent)."""
    h, w = solver.height, solver.width
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    dx = xs - w / 2.0
    dy = ys - h / 2.0
    phi = amplitude * np.exp(-(dx * dx + dy * dy) / (2 * sigma * sigma))
    vel = solver.fields.velocity.current
    vel[..., 0] = -dx / sigma ** 2 * phi
    vel[..., 1] = -dy / sigma ** 2 * phi
    zero_boundary(vel)


def test_solver():
    solver = FluidSolver(32, 32)
    params = FluidParams(delta_time=0.5, viscosity=0.0001, vorticity_strength=5.0,
                         solver_iterations=20)

    # A block of velocity and dye
    solver.fields.velocity.current[10:20, 10:20] = (1.0, 0.5)
    solver.fields.density.current[10:20, 10:20] = (1.0, 0.2, 0.1, 1.0)

    solver.step(params)
    solver.step(params)

    assert solver.tick_count == 2
    assert solver.check_finite()
    assert np.abs(solver.fields.density.current).sum() > 0


def test_rest_state_stays_at_rest():
    solver = FluidSolver(16, 12)
    params = FluidParams(viscosity=0.001, diffusion=0.0001, vorticity_strength=10.0,
                         fade_speed=0.01, solver_iterations=5)
    for _ in range(25):
        solver.step(params)
    for name in ("velocity", "density", "pressure", "divergence", "vorticity"):
        assert not solver.fields[name].current.any(), name


def test_projection_reduces_smooth_divergence():
    solver = FluidSolver(32, 32)
    gaussian_potential_flow(solver)
    initial = np.abs(divergence_of(solver.fields)).max()
    assert initial > 0

    project(solver.fields, 20)
    after_20 = np.abs(divergence_of(solver.fields)).max()

    solver = FluidSolver(32, 32)
    gaussian_potential_flow(solver)
    project(solver.fields, 100)
    after_100 = np.abs(divergence_of(solver.fields)).max()

    assert after_20 < initial
    assert after_20 < 0.08
    assert after_100 < after_20
    assert after_100 < 0.2 * initial


def test_injected_force_ring_is_projected_away():
    solver = FluidSolver(8, 8)
    f = solver.fields
    apply_force(f.velocity.current, f.density.current, (4.0, 4.0), (1.0, 0.0),
                (0.0, 0.0, 0.0, 0.0), 3.0, 1.0)

    before = divergence_of(f)
    ring = np.abs(before) > 1e-6
    assert ring.any()
    # Push along +x: fluid piles up on the leading edge and thins out behind
    assert before[4, 2] < 0 < before[4, 6]
    assert abs(before[4, 4]) < 1e-6

    project(f, 20)
    after = divergence_of(f)
    assert np.linalg.norm(after[ring]) < 0.7 * np.linalg.norm(before[ring])


def test_vorticity_stage_skipped_without_strength():
    solver = FluidSolver(16, 16)
    vel = solver.fields.velocity.current
    ys, xs = np.mgrid[0:16, 0:16].astype(np.float32)
    vel[..., 0] = -(ys - 8) * 0.01
    vel[..., 1] = (xs - 8) * 0.01

    solver.step(FluidParams(vorticity_strength=0.0))
    assert not solver.fields.vorticity.current.any()

    solver.step(FluidParams(vorticity_strength=1.0))
    assert solver.fields.vorticity.current.any()


def test_step_is_deterministic():
    params = FluidParams(vorticity_strength=12.0, viscosity=0.0005, diffusion=0.0001,
                         solver_iterations=8)
    results = []
    for _ in range(2):
        solver = FluidSolver(24, 24)
        solver.add_force((10, 10), (24, 24), params)
        solver.add_force((14, 12), (24, 24), params)
        for _ in range(5):
            solver.step(params)
        results.append((solver.fields.velocity.current.copy(),
                        solver.fields.density.current.copy()))
    np.testing.assert_array_equal(results[0][0], results[1][0])
    np.testing.assert_array_equal(results[0][1], results[1][1])


def test_add_force_uses_window_coordinates():
    solver = FluidSolver(20, 10)
    params = FluidParams(force_multiplier=2.0, force_radius=2.0, delta_time=1.0)

    first = solver.add_force((100, 50), (200, 100), params)
    np.testing.assert_array_equal(first, (0.0, 0.0))
    # Window (100, 50) of (200, 100) maps to grid (10, 5)
    assert solver.fields.density.current[5, 10, 3] > 0

    second = solver.add_force((110, 50), (200, 100), params)
    np.testing.assert_allclose(second, (2.0, 0.0))
    assert solver.fields.velocity.current[5, 11, 0] > 0

    solver.end_interaction()
    third = solver.add_force((150, 50), (200, 100), params)
    np.testing.assert_array_equal(third, (0.0, 0.0))


def test_display_mode_rendered_each_tick():
    solver = FluidSolver(12, 12)
    solver.fields.density.current[...] = (0.5, 0.25, 1.0, 1.0)

    solver.step(FluidParams(display_mode=DisplayMode.DENSITY, brightness=2.0, fade_speed=0.0))
    np.testing.assert_allclose(solver.display[6, 6], (1.0, 0.5, 2.0, 1.0))

    solver.step(FluidParams(display_mode=DisplayMode.PARTICLES_ONLY))
    assert not solver.display.any()


def test_non_finite_guard_resets_fields():
    solver = FluidSolver(10, 10)
    solver.fields.velocity.current[5, 5] = (np.nan, 0.0)

    report = solver.step(FluidParams(guard_non_finite=True))
    assert report.recovered
    assert solver.check_finite()
    assert not solver.fields.velocity.current.any()


def test_non_finite_values_propagate_without_guard():
    solver = FluidSolver(10, 10)
    solver.fields.velocity.current[5, 5] = (np.inf, 0.0)

    report = solver.step(FluidParams())
    assert not report.recovered
    assert not solver.check_finite()
    with pytest.raises(FloatingPointError):
        solver.check_finite(raise_on_error=True)


def test_velocity_query_samples_the_grid():
    solver = FluidSolver(10, 20)
    solver.fields.velocity.current[...] = (2.0, -4.0)

    sampled = solver.velocity_at([[0.5, 0.5], [0.0, 1.0]], dt=0.5)
    # displacement per tick in normalised units: v * dt / (w, h)
    np.testing.assert_allclose(sampled, [[0.1, -0.1], [0.1, -0.1]])


def test_reallocate_clears_fields():
    solver = FluidSolver(10, 10)
    solver.fields.density.current[...] = 1.0
    solver.reallocate(12, 8)
    assert solver.fields.shape == (8, 12)
    assert not solver.fields.density.current.any()


if __name__ == "__main__":
    test_solver()
    test_projection_reduces_smooth_divergence()
    print("Solver checks passed.")
