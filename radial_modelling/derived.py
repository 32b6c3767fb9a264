"""
Derived physical quantities of radial models.

Mass is integrated in closed form for each parameterisation; pressure and
moment of inertia are integrated numerically with scipy's adaptive
quadrature, layer by layer so that no discontinuity falls inside a
quadrature interval.

Units: radius km, mass kg, gravity m/s^2, pressure Pa, moduli GPa,
moment of inertia kg m^2.
"""

from typing import Optional

import numpy as np
from scipy import integrate

from radial_modelling.constants import NEWTON_G, QUADRATURE_LIMIT, QUADRATURE_RTOL
from radial_modelling.exceptions import UndefinedPropertyError
from radial_modelling.model import RadialModel
from radial_modelling.properties import (
    density,
    radius_of,
    vectorize_radius,
    vp,
    vs,
)


def _require_density(model: RadialModel) -> None:
    if not model.has_density:
        raise UndefinedPropertyError("model does not contain density")


def _integrate_layers(model: RadialModel, func, r0: float, r1: float) -> float:
    """
    Integrate func(r) over [r0, r1] km, one model layer at a time.

    Parameters
    ----------
    model : RadialModel
        The model whose layer boundaries split the integral.
    func : callable
        Integrand taking a radius in km.
    r0, r1 : float
        Integration limits in km, r0 <= r1.

    Returns
    -------
    float
        The integral, in the units of func times km.
    """
    total = 0.0
    for bottom, top in model.integration_intervals():
        lower = max(bottom, r0)
        upper = min(top, r1)
        if upper <= lower:
            continue
        value, _ = integrate.quad(
            func,
            lower,
            upper,
            epsabs=0.0,
            epsrel=QUADRATURE_RTOL,
            limit=QUADRATURE_LIMIT,
        )
        total += value
    return total


def mass(model: RadialModel, r: Optional[float] = None, depth: bool = False):
    """
    Mass in kg between the centre of the model and radius ``r`` km.

    Parameters
    ----------
    model : RadialModel
        Model with density.
    r : float or array_like, optional
        Radius in km (depth if ``depth`` is True). Defaults to the surface,
        giving the mass of the whole body.
    depth : bool, optional
        Treat ``r`` as a depth in km.

    Returns
    -------
    float or np.ndarray
        Mass in kg.

    Raises
    ------
    UndefinedPropertyError
        If the model does not contain density.
    """
    _require_density(model)
    if r is None:
        return model.mass_within(model.surface_radius)
    return _mass(model, r, depth=depth)


@vectorize_radius
def _mass(model: RadialModel, r: float, depth: bool = False) -> float:
    if depth:
        r = radius_of(model, r)
    return model.mass_within(r)


@vectorize_radius
def surface_mass(model: RadialModel, r: float, depth: bool = False) -> float:
    """Mass in kg between radius ``r`` km (or depth) and the surface."""
    _require_density(model)
    if depth:
        r = radius_of(model, r)
    return model.mass_within(model.surface_radius) - model.mass_within(r)


@vectorize_radius
def gravity(model: RadialModel, r: float, depth: bool = False) -> float:
    """
    Acceleration due to gravity in m/s^2 at radius ``r`` km.

    If ``depth`` is True, ``r`` is a depth in km. Gravity is zero at the centre.
    """
    _require_density(model)
    if depth:
        r = radius_of(model, r)
    if r == 0:
        model.find_layer(r)
        return 0.0
    return NEWTON_G * model.mass_within(r) / (r * 1e3) ** 2


@vectorize_radius
def pressure(model: RadialModel, r: float, depth: bool = False) -> float:
    """
    Hydrostatic pressure in Pa at radius ``r`` km.

    The pressure is the integral of density times gravity from ``r`` to the
    surface. If ``depth`` is True, ``r`` is a depth in km.
    """
    _require_density(model)
    if depth:
        r = radius_of(model, r)
    model.find_layer(r)

    def integrand(radius: float) -> float:
        # kg/m^3 * m/s^2, integrated over km
        return 1e3 * density(model, radius) * gravity(model, radius)

    return 1e3 * _integrate_layers(model, integrand, float(r), model.surface_radius)


@vectorize_radius
def shear_modulus(model: RadialModel, r: float, depth: bool = False) -> float:
    """
    Shear modulus mu (often also called G) in GPa at radius ``r`` km.

    Uses the isotropic average S-wave velocity.
    """
    _require_density(model)
    if depth:
        r = radius_of(model, r)
    return vs(model, r) ** 2 * density(model, r)


@vectorize_radius
def bulk_modulus(model: RadialModel, r: float, depth: bool = False) -> float:
    """Bulk modulus K in GPa at radius ``r`` km."""
    _require_density(model)
    if depth:
        r = radius_of(model, r)
    return density(model, r) * vp(model, r) ** 2 - 4 / 3 * shear_modulus(model, r)


@vectorize_radius
def poissons_ratio(model: RadialModel, r: float, depth: bool = False) -> float:
    """
    Poisson's ratio at radius ``r`` km, from the isotropic average velocities.
    """
    if depth:
        r = radius_of(model, r)
    g = shear_modulus(model, r)
    k = bulk_modulus(model, r)
    return (3 * k - 2 * g) / (6 * k + 2 * g)


@vectorize_radius
def youngs_modulus(model: RadialModel, r: float, depth: bool = False) -> float:
    """Young's modulus E in GPa at radius ``r`` km."""
    if depth:
        r = radius_of(model, r)
    return 2 * shear_modulus(model, r) * (1 + poissons_ratio(model, r))


def moment_of_inertia(
    model: RadialModel,
    r0: float = 0.0,
    r1: Optional[float] = None,
    depth: bool = False,
) -> float:
    """
    Moment of inertia in kg m^2 of the shell between radii ``r0`` and ``r1``.

    Parameters
    ----------
    model : RadialModel
        Model with density.
    r0 : float, optional
        Inner radius in km (default the centre).
    r1 : float, optional
        Outer radius in km (default the surface).
    depth : bool, optional
        Treat ``r0`` and ``r1`` as depths in km; the default bounds then
        still span the whole body.

    Returns
    -------
    float
        Moment of inertia in kg m^2.
    """
    _require_density(model)
    if depth:
        lower = radius_of(model, r1) if r1 is not None else 0.0
        upper = radius_of(model, r0)
    else:
        lower = r0
        upper = model.surface_radius if r1 is None else r1
    model.find_layer(lower)
    model.find_layer(upper)
    if upper < lower:
        raise ValueError(
            f"lower radius {lower} km is above upper radius {upper} km"
        )

    def integrand(radius: float) -> float:
        # kg/m^3 * m^4, integrated over km
        return 1e3 * density(model, radius) * (radius * 1e3) ** 4

    return 8 / 3 * np.pi * 1e3 * _integrate_layers(model, integrand, lower, upper)
