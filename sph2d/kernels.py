import numpy as np
from numba import njit


@njit
def density_kernel(radius, dist):
    """
    Spiky-like 2D smoothing kernel, normalised so that it integrates to 1
    over the disk of the given radius.
    """
    if dist >= radius:
        return 0.0
    vol = np.pi * radius**4 / 6.0
    return (radius - dist) * (radius - dist) / vol


@njit
def density_kernel_derivative(dist, radius):
    # Negative inside the support.
    if dist >= radius:
        return 0.0
    scale = 12.0 / (np.pi * radius**4)
    return (dist - radius) * scale


@njit
def viscosity_kernel(dist, radius):
    vol = np.pi * radius**8 / 4.0
    value = max(0.0, radius * radius - dist * dist)
    return value * value * value / vol
