"""
generate_profile.py

This script tabulates the properties of a radial model on a regular depth grid.
The model is either a built-in model from the registry (e.g. PREM) or a
Mineos or tvel model file. For each depth it writes the radius, P and S wave
velocities and, if the model contains density, the density, gravity and
pressure.

Usage:
    python generate_profile.py <model> [options]

Example:
    python generate_profile.py PREM --zmin 0 --zmax 2900 --spacing 100 --freq 0.01 --out prem.csv

Sample output: prem.csv
```
depth,radius,vp,vs,density,gravity,pressure
0.000000,6371.000000,1.450000,0.000000,1.020000,...
...
```
"""

import logging
import sys
import time
from pathlib import Path
from typing import Annotated, Optional

import numpy as np
import pandas as pd
import typer

from radial_modelling import derived, properties
from radial_modelling.model import RadialModel
from radial_modelling.registry import load_model

# Configure logging at the module level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("radial_modelling")

app = typer.Typer(pretty_exceptions_enable=False)


def depth_grid(zmin: float, zmax: float, spacing: float) -> np.ndarray:
    """
    Depths from zmin to zmax (inclusive when it falls on the grid) every spacing km.

    Parameters
    ----------
    zmin, zmax : float
        Shallowest and deepest depth in km.
    spacing : float
        Depth interval in km.

    Returns
    -------
    np.ndarray
        The depths.

    Raises
    ------
    ValueError
        If zmin >= zmax or spacing is not positive.
    """
    if zmin >= zmax:
        raise ValueError(f"zmin ({zmin}) must be less than zmax ({zmax})")
    if spacing <= 0:
        raise ValueError(f"spacing ({spacing}) must be positive")
    n = int(np.floor((zmax - zmin) / spacing + 1e-9)) + 1
    return zmin + spacing * np.arange(n)


def build_profile(
    model: RadialModel,
    depths: np.ndarray,
    freq: Optional[float] = None,
    with_pressure: bool = True,
) -> pd.DataFrame:
    """
    Tabulate the properties of a model at the given depths.

    Parameters
    ----------
    model : RadialModel
        The model.
    depths : np.ndarray
        Depths in km.
    freq : float, optional
        Frequency (Hz) to which velocities are corrected for attenuation.
    with_pressure : bool, optional
        Include pressure, which needs a numerical integral for every depth.

    Returns
    -------
    pd.DataFrame
        One row per depth with depth, radius, vp and vs, plus density and
        gravity (and pressure) if the model contains density.
    """
    depths = np.asarray(depths, dtype=np.float64)
    profile = {
        "depth": depths,
        "radius": properties.radius_of(model, depths),
        "vp": properties.vp(model, depths, depth=True, freq=freq),
        "vs": properties.vs(model, depths, depth=True, freq=freq),
    }
    if model.has_density:
        profile["density"] = properties.density(model, depths, depth=True)
        profile["gravity"] = derived.gravity(model, depths, depth=True)
        if with_pressure:
            profile["pressure"] = derived.pressure(model, depths, depth=True)
    return pd.DataFrame(profile)


@app.command(help="Tabulate the properties of a radial model against depth.")
def generate_profile(
    model: Annotated[
        str,
        typer.Argument(help="Name of a built-in model, or path to a model file."),
    ],
    zmin: Annotated[float, typer.Option(help="Shallowest depth (km).")] = 0.0,
    zmax: Annotated[
        Optional[float], typer.Option(help="Deepest depth (km), default the centre.")
    ] = None,
    spacing: Annotated[float, typer.Option(help="Depth interval (km).")] = 10.0,
    freq: Annotated[
        Optional[float],
        typer.Option(help="Correct velocities for attenuation to this frequency (Hz)."),
    ] = None,
    model_format: Annotated[
        Optional[str], typer.Option(help="Model file format: mineos or tvel.")
    ] = None,
    model_registry: Annotated[
        Optional[Path],
        typer.Option(exists=False, dir_okay=False, help="Model registry YAML file."),
    ] = None,
    pressure: Annotated[
        bool, typer.Option(help="Include hydrostatic pressure in the profile.")
    ] = True,
    out: Annotated[
        Optional[Path],
        typer.Option(dir_okay=False, help="Output CSV file, default stdout."),
    ] = None,
    log_level: str = "INFO",
) -> None:
    """
    Tabulate the properties of a radial model against depth.

    Parameters
    ----------
    model : str
        Name of a model in the registry, or path to a Mineos or tvel file.
    zmin : float, optional
        Shallowest depth in km (default: 0).
    zmax : float, optional
        Deepest depth in km (default: the centre of the model).
    spacing : float, optional
        Depth interval in km (default: 10).
    freq : float, optional
        Frequency (Hz) to which velocities are corrected for attenuation.
    model_format : str, optional
        Format of the model file, if ``model`` is a path.
    model_registry : Path, optional
        Path to the model registry file.
    pressure : bool, optional
        Include hydrostatic pressure (default: True).
    out : Path, optional
        Output CSV file. The profile is printed if not given.
    log_level : str, optional
        Logging level for the script (default: "INFO").

    Raises
    ------
    ValueError
        If the depth grid is invalid or extends below the centre of the model.
    KeyError
        If the model is not found.
    """
    start_time = time.time()

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.log(logging.DEBUG, f"Logger initialized with level {log_level}")

    radial_model = load_model(model, model_format, model_registry, logger)
    logger.log(logging.INFO, f"Using model {model}: {radial_model!r}")

    if zmax is None:
        zmax = radial_model.surface_radius
    if zmin < 0 or zmax > radial_model.surface_radius:
        logger.log(
            logging.ERROR,
            f"Depths must lie between 0 and {radial_model.surface_radius} km",
        )
        raise ValueError(
            f"Depths must lie between 0 and {radial_model.surface_radius} km "
            f"(got zmin={zmin}, zmax={zmax})"
        )
    depths = depth_grid(zmin, zmax, spacing)
    logger.log(logging.INFO, f"Evaluating model at {depths.size} depths")

    profile = build_profile(radial_model, depths, freq=freq, with_pressure=pressure)

    if out is None:
        typer.echo(profile.to_csv(index=False, float_format="%.6f"))
    else:
        out = out.expanduser().resolve()
        out.parent.mkdir(exist_ok=True, parents=True)
        profile.to_csv(out, index=False, float_format="%.6f")
        logger.log(logging.INFO, f"Wrote profile to {out}")

    elapsed_time = time.time() - start_time
    logger.log(
        logging.INFO, f"Profile generation completed in {elapsed_time:.2f} seconds"
    )


if __name__ == "__main__":
    app()
