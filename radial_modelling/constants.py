"""
Constants for the radial modelling package.

"""

import os
from enum import Enum, auto
from pathlib import Path

import numpy as np

NEWTON_G = 6.67428e-11  # Newton's gravitational constant (m^3 kg^-1 s^-2)

QUADRATURE_RTOL = 1e-8  # relative error tolerance for pressure / moment of inertia
QUADRATURE_LIMIT = 200  # maximum number of quadrature subintervals per layer

DEFAULT_LINEAR_SPACING = 20.0  # km between nodes when sampling onto a linear model
DEFAULT_STEPPED_SPACING = 10.0  # km between layer tops when resampling to stepped

ZERO_VS_TOLERANCE = float(np.finfo(float).eps)  # Vs at or below this is liquid

MINEOS_MAX_TITLE_LENGTH = 80
MINEOS_MAX_LAYERS = 350

PACKAGE_ROOT = Path(__file__).parent
DEFAULT_REGISTRY_PATH = PACKAGE_ROOT / "model_registry.yaml"
REGISTRY_ENV_VAR = "RADIAL_MODELLING_REGISTRY"


def get_registry_path(cli_override: str | Path | None = None) -> Path:
    """
    Resolve the built-in model registry file.

    Precedence is: explicit override, then the RADIAL_MODELLING_REGISTRY
    environment variable, then the registry shipped with the package.

    Parameters
    ----------
    cli_override : str | Path | None
        If provided, this path takes highest precedence.

    Returns
    -------
    Path
        Resolved path to the model registry YAML file.

    """
    if cli_override:
        return Path(cli_override).expanduser().resolve()
    env_value = os.environ.get(REGISTRY_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return DEFAULT_REGISTRY_PATH


class ModelVariant(Enum):
    """
    Enum for the parameterisation of a radial model.

    STEPPED: constant properties within each layer
    LINEAR: properties interpolated linearly between nodes
    POLYNOMIAL: polynomial in normalised radius within each layer
    """

    STEPPED = auto()
    LINEAR = auto()
    POLYNOMIAL = auto()


class ModelProperty(Enum):
    """
    Enum for the physical properties held by a radial model.

    The value of each member is the attribute name of its table on the model.
    """

    vp = "vp"
    vs = "vs"
    density = "density"
    vph = "vph"
    vpv = "vpv"
    vsh = "vsh"
    vsv = "vsv"
    eta = "eta"
    q_mu = "q_mu"
    q_kappa = "q_kappa"


VELOCITY_PROPERTIES = (
    ModelProperty.vp,
    ModelProperty.vs,
    ModelProperty.vph,
    ModelProperty.vpv,
    ModelProperty.vsh,
    ModelProperty.vsv,
)

ANISOTROPIC_PROPERTIES = (
    ModelProperty.vph,
    ModelProperty.vpv,
    ModelProperty.vsh,
    ModelProperty.vsv,
    ModelProperty.eta,
)

ATTENUATION_PROPERTIES = (ModelProperty.q_mu, ModelProperty.q_kappa)

# (P, S) velocity pair used when correcting each velocity for attenuation
VELOCITY_PAIRS = {
    ModelProperty.vp: (ModelProperty.vp, ModelProperty.vs),
    ModelProperty.vs: (ModelProperty.vp, ModelProperty.vs),
    ModelProperty.vph: (ModelProperty.vph, ModelProperty.vsh),
    ModelProperty.vsh: (ModelProperty.vph, ModelProperty.vsh),
    ModelProperty.vpv: (ModelProperty.vpv, ModelProperty.vsv),
    ModelProperty.vsv: (ModelProperty.vpv, ModelProperty.vsv),
}

# Alternative spellings accepted wherever a property is named by string
PROPERTY_ALIASES = {
    "rho": ModelProperty.density,
    "Qmu": ModelProperty.q_mu,
    "Qμ": ModelProperty.q_mu,
    "Qkappa": ModelProperty.q_kappa,
    "Qκ": ModelProperty.q_kappa,
}
