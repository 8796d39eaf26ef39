"""
Diffusion Solver.

Implicit diffusion (I - a * Laplacian) x = x0 relaxed with Jacobi iterations.
Each iteration reads the previous iteration's output in ``pair.current`` and
writes ``pair.temp``, then the pair is swapped.
"""

from .fields import copy_boundary, interior, neighbors


def diffuse_step(src, dst, a):
    """One Jacobi sweep from src into dst; boundary cells are copied."""
    left, right, top, bottom = neighbors(src)
    interior(dst)[...] = (interior(src) + a * (left + right + top + bottom)) / (1.0 + 4.0 * a)
    copy_boundary(src, dst)


def diffuse(pair, rate, dt, iterations):
    """
    Diffuse the field held by ``pair`` in place (through swaps).

    Args:
        pair: FieldPair of any channel count.
        rate: viscosity for velocity, diffusion for density.
        dt: timestep.
        iterations: number of Jacobi sweeps.

    With ``rate == 0`` every sweep reproduces its input exactly.
    """
    h, w = pair.shape[:2]
    a = dt * rate * w * h
    for _ in range(iterations):
        diffuse_step(pair.current, pair.temp, a)
        pair.swap()
