"""
Location of discontinuities and core boundaries in radial models.

"""

import numpy as np

from radial_modelling.constants import ZERO_VS_TOLERANCE
from radial_modelling.exceptions import StructuralAssumptionError
from radial_modelling.model import LinearLayeredModel, RadialModel
from radial_modelling.properties import depth_of, vs


def discontinuities(
    model: RadialModel, depths: bool = False
) -> tuple[np.ndarray, np.ndarray]:
    """
    Find the radii (or depths) of the discontinuities of a model.

    In a LinearLayeredModel a discontinuity is two nodes at the same radius;
    each is reported once, with the index of the lower of the two nodes, so
    ``indices`` gives the properties below the discontinuity and
    ``indices + 1`` those above. For layered models every internal layer
    top is reported, with the index of the layer below it.

    Parameters
    ----------
    model : RadialModel
        The model.
    depths : bool, optional
        Return depths below the surface (shallowest first) instead of radii
        (deepest first).

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        (radii or depths in km, 0-based indices)
    """
    if isinstance(model, LinearLayeredModel):
        radii = []
        indices = []
        for i in range(1, model.radii.size):
            if model.radii[i] == model.radii[i - 1] and (
                not radii or radii[-1] != model.radii[i]
            ):
                radii.append(float(model.radii[i]))
                indices.append(i - 1)
        radii = np.array(radii, dtype=np.float64)
        indices = np.array(indices, dtype=np.int64)
    else:
        radii = model.boundaries()
        indices = np.arange(radii.size, dtype=np.int64)

    if depths:
        return depth_of(model, radii)[::-1], indices[::-1]
    return radii, indices


def core_interface_layers(model: RadialModel) -> tuple[int, int]:
    """
    Find the layers at the top of the inner and outer core of a layered model.

    The search assumes that, from the centre outwards, there is:

    1. a single solid inner core with Vs > 0,
    2. a single liquid outer core with Vs = 0,
    3. a solid mantle with Vs > 0.

    A liquid layer at the very surface (an ocean) is not part of this
    structure and is ignored. Vs is sampled at the middle of each layer.

    Parameters
    ----------
    model : RadialModel
        A SteppedLayeredModel or PolynomialModel.

    Returns
    -------
    tuple[int, int]
        0-based indices of the top layer of the inner core and of the
        outer core.

    Raises
    ------
    TypeError
        If called with a LinearLayeredModel.
    StructuralAssumptionError
        If the model does not have the assumed solid/liquid/solid layering.
    """
    if isinstance(model, LinearLayeredModel):
        raise TypeError("core interface layers are defined for layered models only")

    bottoms = np.concatenate(([0.0], model.radii[:-1]))
    liquid = np.asarray(vs(model, (bottoms + model.radii) / 2)) <= ZERO_VS_TOLERANCE

    if liquid[0]:
        raise StructuralAssumptionError("unexpectedly found Vs = 0 at centre of model")
    liquid_layers = np.flatnonzero(liquid)
    if liquid_layers.size == 0:
        raise StructuralAssumptionError("no liquid outer core found in model")

    i_icb = int(liquid_layers[0]) - 1
    solid_above = np.flatnonzero(~liquid[i_icb + 1 :])
    if solid_above.size == 0:
        raise StructuralAssumptionError("liquid outer core extends to the surface")
    i_cmb = i_icb + int(solid_above[0])

    mantle = liquid[i_cmb + 1 :]
    if liquid[-1]:
        # Ocean layers at the surface
        n_ocean = mantle.size - np.flatnonzero(~mantle)[-1] - 1
        mantle = mantle[: mantle.size - n_ocean]
    if np.any(mantle):
        raise StructuralAssumptionError(
            "more than one liquid region found below the surface"
        )
    return i_icb, i_cmb
