"""
Conversion between the parameterisations of radial models.

Six conversions are provided between stepped, linear and polynomial models:

- stepped -> linear: exact, two nodes per layer.
- polynomial -> linear: nodes at layer boundaries and at most ``spacing``
  km apart inside each layer.
- linear / polynomial -> stepped: layer tops every ``spacing`` km plus every
  layer top (or node) of the source, valued at each new layer's midpoint.
- stepped -> polynomial: constant polynomials, zero-padded to ``order``.
- linear -> polynomial: one straight line per segment of non-zero width.

Only the tables present on the source model are carried to the new one.
"""

import logging
from logging import Logger
from typing import Optional, Union

import numpy as np

from radial_modelling.constants import (
    DEFAULT_LINEAR_SPACING,
    DEFAULT_STEPPED_SPACING,
    ModelVariant,
)
from radial_modelling.exceptions import ValidationError
from radial_modelling.model import (
    LinearLayeredModel,
    PolynomialModel,
    RadialModel,
    SteppedLayeredModel,
)

_DEFAULT_LOGGER = logging.getLogger("radial_modelling.conversion")


def _tables_at(model: RadialModel, radii: np.ndarray) -> dict:
    """Evaluate every table of the model at the given radii."""
    return {
        prop.value: np.array([model.evaluate_table(values, r) for r in radii.tolist()])
        for prop, values in model.tables()
    }


def _check_spacing(spacing: float) -> float:
    spacing = float(spacing)
    if not spacing > 0:
        raise ValidationError(f"spacing must be positive, got {spacing}")
    return spacing


def as_linear(
    model: RadialModel,
    spacing: float = DEFAULT_LINEAR_SPACING,
    logger: Optional[Logger] = None,
) -> LinearLayeredModel:
    """
    Convert a model to a LinearLayeredModel.

    A SteppedLayeredModel is converted exactly by placing a node at the
    bottom and top of each layer. A PolynomialModel is sampled with nodes at
    the bottom and top of each layer and at most ``spacing`` km apart in
    between; nodes on a layer boundary are evaluated just inside their layer
    so that discontinuities are preserved.

    Parameters
    ----------
    model : RadialModel
        The model to convert.
    spacing : float, optional
        Maximum node spacing in km for polynomial models.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    LinearLayeredModel
        The converted model; ``model`` itself if it is already linear.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger

    if isinstance(model, LinearLayeredModel):
        return model

    if isinstance(model, SteppedLayeredModel):
        bottoms = np.concatenate(([0.0], model.radii[:-1]))
        radii = np.column_stack((bottoms, model.radii)).ravel()
        tables = {
            prop.value: np.repeat(values, 2) for prop, values in model.tables()
        }
        logger.log(
            logging.DEBUG,
            f"Converted {model.layer_count} stepped layers to {radii.size} nodes",
        )
        return LinearLayeredModel(
            r=radii, reference_frequency=model.reference_frequency, **tables
        )

    if isinstance(model, PolynomialModel):
        spacing = _check_spacing(spacing)
        surface = model.surface_radius
        radii = []
        eval_radii = []
        for layer, top in enumerate(model.radii.tolist()):
            bottom = 0.0 if layer == 0 else float(model.radii[layer - 1])
            radii.append(bottom)
            eval_radii.append(bottom if layer == 0 else np.nextafter(bottom, np.inf))
            r = bottom + spacing
            while r < top:
                radii.append(r)
                eval_radii.append(r)
                r += spacing
            radii.append(top)
            eval_radii.append(top if top == surface else np.nextafter(top, -np.inf))
        tables = _tables_at(model, np.array(eval_radii))
        logger.log(
            logging.DEBUG,
            f"Sampled {model.layer_count} polynomial layers onto {len(radii)} "
            f"nodes at {spacing} km spacing",
        )
        return LinearLayeredModel(
            r=radii, reference_frequency=model.reference_frequency, **tables
        )

    raise TypeError(f"cannot convert {type(model).__name__} to a linear model")


def as_stepped(
    model: RadialModel,
    spacing: float = DEFAULT_STEPPED_SPACING,
    logger: Optional[Logger] = None,
) -> SteppedLayeredModel:
    """
    Convert a model to a SteppedLayeredModel.

    Layer tops are placed every ``spacing`` km down from the surface, with the
    source's own layer tops (or node radii) inserted, so layer tops always
    coincide with the discontinuities of the source. Each layer takes the
    value of the source at the layer's midpoint.

    Parameters
    ----------
    model : RadialModel
        The model to convert.
    spacing : float, optional
        Maximum layer thickness in km.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    SteppedLayeredModel
        The converted model; ``model`` itself if it is already stepped.

    Raises
    ------
    ValidationError
        If ``spacing`` is not positive.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger
    spacing = _check_spacing(spacing)

    if isinstance(model, SteppedLayeredModel):
        return model
    if not isinstance(model, (LinearLayeredModel, PolynomialModel)):
        raise TypeError(f"cannot convert {type(model).__name__} to a stepped model")

    surface = model.surface_radius
    spaced_radii = surface - spacing * np.arange(int(np.ceil(surface / spacing)))
    radii = np.unique(np.concatenate((model.radii, spaced_radii)))
    radii = radii[radii > 0]
    bottoms = np.concatenate(([0.0], radii[:-1]))
    tables = _tables_at(model, (bottoms + radii) / 2)
    logger.log(
        logging.DEBUG,
        f"Resampled {type(model).__name__} onto {radii.size} layers at "
        f"{spacing} km spacing",
    )
    return SteppedLayeredModel(
        r=radii, reference_frequency=model.reference_frequency, **tables
    )


def _fit_line(
    surface_radius: float, r1: float, r2: float, v1: np.ndarray, v2: np.ndarray
):
    """
    Coefficients (constant, linear) of the line through (r1, v1) and (r2, v2).

    The line is in radius normalised by the surface radius.
    """
    x1, x2 = r1 / surface_radius, r2 / surface_radius
    slope = (v2 - v1) / (x2 - x1)
    return v1 - slope * x1, slope


def as_polynomial(
    model: RadialModel,
    order: Optional[int] = None,
    reference_frequency: Optional[float] = None,
    logger: Optional[Logger] = None,
) -> PolynomialModel:
    """
    Convert a model to a PolynomialModel.

    Parameters
    ----------
    model : RadialModel
        The model to convert.
    order : int, optional
        Polynomial order of the new model. Defaults to 0 for stepped models,
        which is exact, and 1 for linear models, the minimum allowed. Has no
        effect if ``model`` is already polynomial.
    reference_frequency : float, optional
        Reference frequency (Hz) for the new model. Defaults to the source's.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    PolynomialModel
        The converted model.

    Raises
    ------
    ValidationError
        If ``order`` is negative for a stepped model or below 1 for a linear model.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger
    if reference_frequency is None:
        reference_frequency = model.reference_frequency

    if isinstance(model, PolynomialModel):
        if order is not None:
            logger.log(
                logging.WARNING,
                f"order {order} is ignored when converting a polynomial model",
            )
        if reference_frequency == model.reference_frequency:
            return model
        return PolynomialModel(
            r=model.radii,
            reference_frequency=reference_frequency,
            **{prop.value: values for prop, values in model.tables()},
        )

    if isinstance(model, SteppedLayeredModel):
        order = 0 if order is None else int(order)
        if order < 0:
            raise ValidationError(
                "cannot construct polynomials with negative order"
            )
        tables = {}
        for prop, values in model.tables():
            coeffs = np.zeros((order + 1, model.layer_count))
            coeffs[0] = values
            tables[prop.value] = coeffs
        logger.log(
            logging.DEBUG,
            f"Converted {model.layer_count} stepped layers to order {order} polynomials",
        )
        return PolynomialModel(
            r=model.radii, reference_frequency=reference_frequency, **tables
        )

    if isinstance(model, LinearLayeredModel):
        order = 1 if order is None else int(order)
        if order < 1:
            raise ValidationError(
                "minimum polynomial order is 1 when converting linear models"
            )
        # Nodes at the top of each layer of non-zero thickness
        tops = np.flatnonzero(np.diff(model.radii) > 0) + 1
        r1 = model.radii[tops - 1]
        r2 = model.radii[tops]
        tables = {}
        for prop, values in model.tables():
            coeffs = np.zeros((order + 1, tops.size))
            coeffs[0], coeffs[1] = _fit_line(
                model.surface_radius, r1, r2, values[tops - 1], values[tops]
            )
            tables[prop.value] = coeffs
        logger.log(
            logging.DEBUG,
            f"Fitted {tops.size} linear segments with order {order} polynomials",
        )
        return PolynomialModel(
            r=r2, reference_frequency=reference_frequency, **tables
        )

    raise TypeError(f"cannot convert {type(model).__name__} to a polynomial model")


def convert(
    model: RadialModel, variant: Union[ModelVariant, str], **params
) -> RadialModel:
    """
    Convert a model to the given parameterisation.

    Parameters
    ----------
    model : RadialModel
        The model to convert.
    variant : ModelVariant or str
        The target parameterisation, or its name ("stepped", "linear" or
        "polynomial", case-insensitive).
    **params
        Passed to ``as_stepped``, ``as_linear`` or ``as_polynomial``.

    Returns
    -------
    RadialModel
        The converted model.

    Raises
    ------
    ValueError
        If ``variant`` is a string that names no parameterisation.
    """
    converters = {
        ModelVariant.STEPPED: as_stepped,
        ModelVariant.LINEAR: as_linear,
        ModelVariant.POLYNOMIAL: as_polynomial,
    }
    if isinstance(variant, str):
        try:
            variant = ModelVariant[variant.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown model variant '{variant}'. "
                f"Must be one of {', '.join(v.name.lower() for v in ModelVariant)}"
            ) from None
    return converters[ModelVariant(variant)](model, **params)
