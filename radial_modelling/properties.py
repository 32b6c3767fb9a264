"""
Evaluation of model properties at a radius or depth.

All properties go through ``evaluate``, which locates the layer, evaluates
the model's table according to its parameterisation and optionally corrects
velocities for attenuation. The named accessors (``vp``, ``density``, ...)
are thin wrappers around it.

Scalar radii return floats; array-like radii return np.ndarray.
"""

import functools
from typing import Optional, Union

import numpy as np

from radial_modelling.constants import (
    PROPERTY_ALIASES,
    VELOCITY_PAIRS,
    ModelProperty,
)
from radial_modelling.exceptions import UndefinedPropertyError
from radial_modelling.model import RadialModel

PropertyLike = Union[ModelProperty, str]


def as_property(prop: PropertyLike) -> ModelProperty:
    """
    Convert a property or property name to a ModelProperty.

    Parameters
    ----------
    prop : ModelProperty or str
        The property, its name (e.g. "vp", "q_mu") or an alias ("rho",
        "Qmu", "Qμ", "Qkappa", "Qκ").

    Returns
    -------
    ModelProperty
        The matching property.

    Raises
    ------
    UndefinedPropertyError
        If the name does not match any property.
    """
    if isinstance(prop, ModelProperty):
        return prop
    if prop in PROPERTY_ALIASES:
        return PROPERTY_ALIASES[prop]
    try:
        return ModelProperty(prop)
    except ValueError:
        raise UndefinedPropertyError(f"unknown property '{prop}'") from None


def vectorize_radius(func):
    """Let a function of (model, r, ...) accept an array of radii."""

    @functools.wraps(func)
    def wrapper(model, r, *args, **kwargs):
        if np.ndim(r) > 0:
            return np.array(
                [
                    func(model, radius, *args, **kwargs)
                    for radius in np.asarray(r, dtype=np.float64).tolist()
                ]
            )
        return func(model, r, *args, **kwargs)

    return wrapper


def depth_of(model: RadialModel, radius):
    """Return the depth in km of a radius in km."""
    return model.surface_radius - radius


def radius_of(model: RadialModel, depth):
    """Return the radius in km of a depth in km."""
    return model.surface_radius - depth


def reference_frequency(model: RadialModel) -> float:
    """
    Return the reference frequency of the model in Hz.

    Raises
    ------
    UndefinedPropertyError
        If the model has no reference frequency.
    """
    if not model.has_reference_frequency:
        raise UndefinedPropertyError("model does not have a reference frequency")
    return model.reference_frequency


def _inverse_q(q: float) -> float:
    # Q = 0 marks a medium without attenuation (e.g. Qmu of a liquid)
    return 0.0 if q == 0 else 1.0 / q


def _correct_for_attenuation(
    model: RadialModel, prop: ModelProperty, r: float, value: float, freq: float
) -> float:
    """Rescale a velocity from the model's reference frequency to freq."""
    if not model.has_attenuation:
        raise UndefinedPropertyError(
            "cannot correct a non-attenuating model for attenuation"
        )
    fref = reference_frequency(model)
    freq = float(freq)
    if not freq > 0:
        raise ValueError(f"frequency must be positive, got {freq}")
    if freq == fref:
        return value

    p_prop, s_prop = VELOCITY_PAIRS[prop]
    q_mu_inv = _inverse_q(model.evaluate_table(model.q_mu, r))
    scale = np.log(fref / freq) / np.pi
    if prop is s_prop:
        return float(value * (1 - scale * q_mu_inv))

    vs_value = model.evaluate_table(model.table(s_prop), r)
    q_kappa_inv = _inverse_q(model.evaluate_table(model.q_kappa, r))
    e = 4 / 3 * (vs_value / value) ** 2
    return float(value * (1 - scale * ((1 - e) * q_kappa_inv + e * q_mu_inv)))


def evaluate(
    model: RadialModel,
    prop: PropertyLike,
    r,
    depth: bool = False,
    freq: Optional[float] = None,
):
    """
    Evaluate a property of a model at a radius.

    Parameters
    ----------
    model : RadialModel
        The model to evaluate.
    prop : ModelProperty or str
        The property to evaluate.
    r : float or array_like
        Radius in km (or depth in km if ``depth`` is True).
    depth : bool, optional
        Treat ``r`` as a depth below the surface.
    freq : float, optional
        Frequency (Hz) to which velocities are corrected for attenuation.
        Requires the model to have attenuation and a reference frequency.
        Only valid for velocity properties.

    Returns
    -------
    float or np.ndarray
        The property value(s).

    Raises
    ------
    UndefinedPropertyError
        If the model does not define the property, or a frequency correction
        is requested but cannot be made.
    DomainError
        If the radius lies outside the model.
    """
    prop = as_property(prop)
    if np.ndim(r) > 0:
        return np.array(
            [
                evaluate(model, prop, radius, depth=depth, freq=freq)
                for radius in np.asarray(r, dtype=np.float64).tolist()
            ]
        )
    values = model.table(prop)
    if values is None:
        raise UndefinedPropertyError(f"'{prop.value}' not defined for model")
    if depth:
        r = radius_of(model, r)
    value = model.evaluate_table(values, r)
    if freq is None:
        return value
    if prop not in VELOCITY_PAIRS:
        raise UndefinedPropertyError(
            f"attenuation correction is not defined for '{prop.value}'"
        )
    return _correct_for_attenuation(model, prop, r, value, freq)


def vp(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """
    Isotropic average P-wave velocity (km/s) at radius ``r`` km.

    If ``depth`` is True, ``r`` is a depth in km. If ``freq`` is given the
    velocity is corrected for attenuation to that frequency (Hz).
    """
    return evaluate(model, ModelProperty.vp, r, depth=depth, freq=freq)


def vs(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """Isotropic average S-wave velocity (km/s); see ``vp``."""
    return evaluate(model, ModelProperty.vs, r, depth=depth, freq=freq)


def vph(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """Horizontal P-wave velocity (km/s); see ``vp``."""
    return evaluate(model, ModelProperty.vph, r, depth=depth, freq=freq)


def vpv(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """Vertical P-wave velocity (km/s); see ``vp``."""
    return evaluate(model, ModelProperty.vpv, r, depth=depth, freq=freq)


def vsh(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """Horizontally polarised S-wave velocity (km/s); see ``vp``."""
    return evaluate(model, ModelProperty.vsh, r, depth=depth, freq=freq)


def vsv(model: RadialModel, r, depth: bool = False, freq: Optional[float] = None):
    """Vertically polarised S-wave velocity (km/s); see ``vp``."""
    return evaluate(model, ModelProperty.vsv, r, depth=depth, freq=freq)


def density(model: RadialModel, r, depth: bool = False):
    """Density (g/cm^3) at radius ``r`` km, or depth if ``depth`` is True."""
    return evaluate(model, ModelProperty.density, r, depth=depth)


def eta(model: RadialModel, r, depth: bool = False):
    """Radial anisotropy parameter eta, the ratio F/(A - 2L) of Love parameters."""
    return evaluate(model, ModelProperty.eta, r, depth=depth)


def q_mu(model: RadialModel, r, depth: bool = False):
    """Shear quality factor."""
    return evaluate(model, ModelProperty.q_mu, r, depth=depth)


def q_kappa(model: RadialModel, r, depth: bool = False):
    """Bulk quality factor."""
    return evaluate(model, ModelProperty.q_kappa, r, depth=depth)


# Alternative names
rho = density
Qmu = Qμ = q_mu
Qkappa = Qκ = q_kappa
