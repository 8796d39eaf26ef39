"""
Projection Solver.

Removes the divergent part of the velocity field:

1. divergence:  div = -0.5 * (du/dx + dv/dy)    (central differences)
2. pressure:    Jacobi relaxation of  4p - sum(neighbor p) = div
3. gradient:    v -= 0.5 * grad(p)

The grid spacing cancels between steps 1 and 3, so no ``h`` appears.
Boundary pressure and divergence are held at zero; boundary velocity is never
touched.
"""

from .fields import interior, neighbors, zero_boundary


def compute_divergence(velocity, out):
    """Write the (negative half) divergence of ``velocity`` into ``out``."""
    left, right, top, bottom = neighbors(velocity)
    interior(out)[...] = -0.5 * ((right[..., 0] - left[..., 0]) + (bottom[..., 1] - top[..., 1]))
    zero_boundary(out)


def pressure_step(divergence, src, dst):
    left, right, top, bottom = neighbors(src)
    interior(dst)[...] = (interior(divergence) + left + right + top + bottom) * 0.25
    zero_boundary(dst)


def solve_pressure(divergence, pressure, iterations):
    """Run ``iterations`` Jacobi sweeps on the FieldPair ``pressure``."""
    for _ in range(iterations):
        pressure_step(divergence, pressure.current, pressure.temp)
        pressure.swap()


def subtract_gradient(pressure, velocity):
    """Subtract the pressure gradient from the interior of ``velocity`` in place."""
    left, right, top, bottom = neighbors(pressure)
    v = interior(velocity)
    v[..., 0] -= 0.5 * (right - left)
    v[..., 1] -= 0.5 * (bottom - top)


def project(fields, iterations):
    """
    Make ``fields.velocity.current`` approximately divergence free.

    Stages: divergence, clear pressure, Jacobi solve, subtract gradient.
    """
    compute_divergence(fields.velocity.current, fields.divergence.current)
    fields.clear("pressure")
    solve_pressure(fields.divergence.current, fields.pressure, iterations)
    subtract_gradient(fields.pressure.current, fields.velocity.current)
