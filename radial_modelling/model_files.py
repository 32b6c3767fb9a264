"""
Reading and writing radial models in plain text formats.

Two formats are supported:

1. Mineos tabular model files, read as and written from SteppedLayeredModel:
   - Line 1: title
   - Line 2: anisotropy flag (0 or 1), reference frequency (Hz), tabular flag (1)
   - Line 3: number of layers, inner core boundary index, core mantle boundary index
   - Following lines: radius (m), density (kg/m^3), Vpv (m/s), Vsv (m/s),
     Qkappa, Qmu, Vph (m/s), Vsh (m/s), eta; one line per layer top.

2. TauP "tvel" files, read as and written from LinearLayeredModel:
   - Lines 1 and 2: comments
   - Following lines: depth (km), Vp (km/s), Vs (km/s) and optionally
     density (g/cm^3); a repeated depth marks a discontinuity.

Reference: https://geodynamics.org/cig/software/mineos/mineos-manual.pdf
"""

import logging
from logging import Logger
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from radial_modelling.constants import MINEOS_MAX_LAYERS, MINEOS_MAX_TITLE_LENGTH
from radial_modelling.discontinuities import core_interface_layers
from radial_modelling.exceptions import UndefinedPropertyError
from radial_modelling.model import LinearLayeredModel, SteppedLayeredModel

MINEOS_COLUMNS = ["radius", "rho", "vpv", "vsv", "qkappa", "qmu", "vph", "vsh", "eta"]
TVEL_COLUMNS = ["depth", "vp", "vs", "rho"]

_DEFAULT_LOGGER = logging.getLogger("radial_modelling.model_files")


def read_mineos(
    model_path: Path, logger: Optional[Logger] = None
) -> SteppedLayeredModel:
    """Read a SteppedLayeredModel from a Mineos tabular model file.

    Parameters
    ----------
    model_path : Path
        Path to the Mineos model file.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    SteppedLayeredModel
        The model. For anisotropic files, vp and vs are the Voigt averages.
        If every Q value is zero the model has no attenuation and no
        reference frequency.

    Raises
    ------
    ValueError
        If the header is malformed, the file is not in tabular format, or the
        number of layers does not match the header.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger
    model_path = Path(model_path)

    with open(model_path, "r") as model_file:
        title = model_file.readline().rstrip("\n")
        try:
            ifanis, tref, ifdeck = model_file.readline().split()
            ifanis, tref, ifdeck = int(ifanis), float(tref), int(ifdeck)
            n_layers, _, _ = (int(value) for value in model_file.readline().split())
        except ValueError as e:
            raise ValueError(f"Invalid Mineos header in {model_path}") from e

        if ifdeck != 1:
            raise ValueError(
                f"File '{model_path}' is not in tabular format (ifdeck is {ifdeck})"
            )

        try:
            model_df = pd.read_csv(
                model_file, header=None, delimiter=r"\s+", names=MINEOS_COLUMNS
            )
        except pd.errors.ParserError:
            raise ValueError(
                "Invalid data format. Expected 9 space-separated numeric values per line."
            )

    if len(model_df) != n_layers:
        raise ValueError("Number of model layers does not match the header.")
    if model_df.isna().any().any():
        raise ValueError(f"Missing values in Mineos model file {model_path}")

    fields = {
        "r": model_df["radius"].values / 1e3,
        "density": model_df["rho"].values / 1e3,
    }
    if ifanis == 1:
        for column in ("vpv", "vsv", "vph", "vsh"):
            fields[column] = model_df[column].values / 1e3
        fields["eta"] = model_df["eta"].values
    else:
        fields["vp"] = model_df["vpv"].values / 1e3
        fields["vs"] = model_df["vsv"].values / 1e3

    q_kappa = model_df["qkappa"].values
    q_mu = model_df["qmu"].values
    if np.any(q_kappa != 0) or np.any(q_mu != 0):
        fields["q_kappa"] = q_kappa
        fields["q_mu"] = q_mu
        if tref > 0:
            fields["reference_frequency"] = tref

    logger.log(
        logging.DEBUG, f"Read Mineos model '{title}' with {n_layers} layers from {model_path}"
    )
    return SteppedLayeredModel(**fields)


def write_mineos(
    model: SteppedLayeredModel,
    output_path: Path,
    freq: Optional[float] = None,
    title: str = "Model from radial_modelling",
    logger: Optional[Logger] = None,
) -> None:
    """Write a SteppedLayeredModel to a Mineos tabular model file.

    Parameters
    ----------
    model : SteppedLayeredModel
        The model to write. It must contain density and have a solid inner
        core, liquid outer core and solid mantle.
    output_path : Path
        Path where the output file will be written.
    freq : float, optional
        Reference frequency in Hz written to the header. Defaults to the
        model's reference frequency, or 1 Hz if it has none.
    title : str, optional
        Title written on the first line.
    logger : Logger, optional
        Logger instance for logging messages.

    Raises
    ------
    TypeError
        If the model is not a SteppedLayeredModel.
    UndefinedPropertyError
        If the model does not contain density.
    StructuralAssumptionError
        If the core boundaries cannot be found.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger

    if not isinstance(model, SteppedLayeredModel):
        raise TypeError("Mineos files can only be written from a SteppedLayeredModel")
    if not model.has_density:
        raise UndefinedPropertyError("model does not contain density")
    if len(title) > MINEOS_MAX_TITLE_LENGTH:
        logger.log(
            logging.WARNING,
            f"Mineos model files can have titles only {MINEOS_MAX_TITLE_LENGTH} "
            f"characters long ('{title}' is {len(title)} characters)",
        )
    if model.layer_count > MINEOS_MAX_LAYERS:
        logger.log(
            logging.WARNING,
            f"Mineos model files are limited to {MINEOS_MAX_LAYERS} layers "
            f"(have {model.layer_count} layers)",
        )

    if freq is None:
        freq = model.reference_frequency if model.has_reference_frequency else 1.0
    i_icb, i_cmb = core_interface_layers(model)
    n = model.layer_count

    if model.is_anisotropic:
        vpv, vsv, vph, vsh = (
            model.vpv * 1e3,
            model.vsv * 1e3,
            model.vph * 1e3,
            model.vsh * 1e3,
        )
        eta = model.eta
    else:
        vpv = vph = model.vp * 1e3
        vsv = vsh = model.vs * 1e3
        eta = np.ones(n)

    if model.has_attenuation:
        q_kappa, q_mu = model.q_kappa, model.q_mu
    else:
        q_kappa = q_mu = np.zeros(n)

    model_df = pd.DataFrame(
        {
            "radius": model.radii * 1e3,
            "rho": model.density * 1e3,
            "vpv": vpv,
            "vsv": vsv,
            "qkappa": q_kappa,
            "qmu": q_mu,
            "vph": vph,
            "vsh": vsh,
            "eta": eta,
        },
        columns=MINEOS_COLUMNS,
    )

    with open(output_path, "w") as output_file:
        output_file.write(f"{title}\n")
        output_file.write(f"{int(model.is_anisotropic)} {freq} 1\n")
        # Mineos indices are 1-based
        output_file.write(f"{n} {i_icb + 1} {i_cmb + 1}\n")
        model_df.to_csv(output_file, sep=" ", header=False, index=False)
    logger.log(logging.INFO, f"Wrote Mineos model with {n} layers to {output_path}")


def read_tvel(model_path: Path, logger: Optional[Logger] = None) -> LinearLayeredModel:
    """Read a LinearLayeredModel from a TauP tvel file.

    Parameters
    ----------
    model_path : Path
        Path to the tvel file.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    LinearLayeredModel
        The model, with density if the file has a fourth column.

    Raises
    ------
    ValueError
        If the data cannot be parsed or does not extend from the surface to
        the centre.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger
    model_path = Path(model_path)

    try:
        model_df = pd.read_csv(
            model_path, header=None, skiprows=2, delimiter=r"\s+", comment="#"
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError):
        raise ValueError(f"Invalid data format for tvel file {model_path}.")

    if model_df.shape[1] not in (3, 4):
        raise ValueError(
            f"Expected 3 or 4 columns in tvel file {model_path}, got {model_df.shape[1]}"
        )
    model_df.columns = TVEL_COLUMNS[: model_df.shape[1]]
    if model_df.isna().any().any():
        raise ValueError(f"Missing values in tvel file {model_path}")
    if model_df["depth"].iloc[0] != 0:
        raise ValueError("The first depth in a tvel file must be 0 km")

    surface_radius = model_df["depth"].iloc[-1]
    # Reverse to run from the centre to the surface
    model_df = model_df.iloc[::-1]
    fields = {
        "r": surface_radius - model_df["depth"].values,
        "vp": model_df["vp"].values,
        "vs": model_df["vs"].values,
    }
    if "rho" in model_df.columns:
        fields["density"] = model_df["rho"].values

    logger.log(
        logging.DEBUG, f"Read tvel model with {len(model_df)} nodes from {model_path}"
    )
    return LinearLayeredModel(**fields)


def write_tvel(
    model: LinearLayeredModel,
    output_path: Path,
    comment1: str = "Model from radial_modelling",
    comment2: str = "depth(km) vp(km/s) vs(km/s) density(g/cm^3)",
    logger: Optional[Logger] = None,
) -> None:
    """Write a LinearLayeredModel to a TauP tvel file.

    Parameters
    ----------
    model : LinearLayeredModel
        The model to write. Density is written if the model has it.
    output_path : Path
        Path where the output file will be written.
    comment1, comment2 : str, optional
        The two comment lines at the top of the file.
    logger : Logger, optional
        Logger instance for logging messages.

    Raises
    ------
    TypeError
        If the model is not a LinearLayeredModel.
    """
    logger = _DEFAULT_LOGGER if logger is None else logger

    if not isinstance(model, LinearLayeredModel):
        raise TypeError("tvel files can only be written from a LinearLayeredModel")

    columns = {
        "depth": model.surface_radius - model.radii[::-1],
        "vp": model.vp[::-1],
        "vs": model.vs[::-1],
    }
    if model.has_density:
        columns["rho"] = model.density[::-1]
    model_df = pd.DataFrame(columns)

    with open(output_path, "w") as output_file:
        output_file.write(f"{comment1}\n")
        output_file.write(f"{comment2}\n")
        model_df.to_csv(output_file, sep=" ", header=False, index=False)
    logger.log(
        logging.INFO, f"Wrote tvel model with {len(model_df)} nodes to {output_path}"
    )
