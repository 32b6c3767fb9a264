"""
Interpolation and layer lookup kernels for radial models.

"""

import numba
import numpy as np


@numba.jit(nopython=True)
def find_layer_index(radii: np.ndarray, r: float) -> int:
    """
    Find the layer of a layered (stepped or polynomial) model containing r.

    Parameters
    ----------
    radii : np.ndarray
        Radii of the top of each layer, increasing.
    r : float
        The radius to locate.

    Returns
    -------
    int
        Index of the first layer whose top lies above r, or the last layer
        when r is at the surface.
    """
    n = radii.shape[0]
    for i in range(n):
        if r < radii[i]:
            return i
    return n - 1


@numba.jit(nopython=True)
def find_node_interval(radii: np.ndarray, r: float) -> int:
    """
    Find the interval of a linear model containing r.

    Intervals of zero width (discontinuities) are never returned for radii
    inside the model because r must lie strictly below the upper node.

    Parameters
    ----------
    radii : np.ndarray
        Radii of the nodes, non-decreasing and starting at 0.
    r : float
        The radius to locate.

    Returns
    -------
    int
        Index i of the lower node of the interval [radii[i], radii[i+1]).
    """
    n = radii.shape[0] - 1
    for i in range(n):
        if r < radii[i + 1]:
            return i
    return n - 1


@numba.jit(nopython=True)
def linear_interpolation(r1: float, r2: float, v1: float, v2: float, r: float):
    """
    Interpolate between the values of two nodes.

    Parameters
    ----------
    r1, r2 : float
        Radii of the lower and upper node, r1 < r2.
    v1, v2 : float
        Values at the two nodes.
    r : float
        Radius at which to interpolate.

    Returns
    -------
    float
        The value at r on the line through (r1, v1) and (r2, v2).
    """
    return v1 + (v2 - v1) * (r - r1) / (r2 - r1)


@numba.jit(nopython=True)
def evaluate_polynomial(coeffs: np.ndarray, layer: int, x: float) -> float:
    """
    Evaluate the polynomial of one layer at normalised radius x.

    Parameters
    ----------
    coeffs : np.ndarray
        Coefficient matrix of shape (order + 1, n_layers), constant term first.
    layer : int
        Column (layer) to evaluate.
    x : float
        Radius normalised by the surface radius.

    Returns
    -------
    float
        c[0] + c[1]*x + c[2]*x**2 + ...
    """
    order = coeffs.shape[0] - 1
    val = coeffs[order, layer]
    for k in range(order - 1, -1, -1):
        val = val * x + coeffs[k, layer]
    return val
