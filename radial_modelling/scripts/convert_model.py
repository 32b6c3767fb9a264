"""
convert_model.py

This script converts a radial model to another parameterisation and writes it
to disk. Stepped models are written as Mineos tabular files and linear models
as TauP tvel files by default; any model can also be written as a registry
YAML file, which can be passed back to the other scripts with
--model-registry.

Usage:
    python convert_model.py <model> <output_file> --to <stepped|linear|polynomial> [options]

Example:
    python convert_model.py PREM prem.txt --to stepped --spacing 20
    python convert_model.py PREM prem.tvel --to linear
    python convert_model.py prem.tvel prem_poly.yaml --to polynomial --order 1
"""

import logging
import sys
import time
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from radial_modelling.constants import ModelVariant
from radial_modelling.conversion import convert
from radial_modelling.model import RadialModel
from radial_modelling.model_files import write_mineos, write_tvel
from radial_modelling.registry import load_model, model_to_entry

# Configure logging at the module level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("radial_modelling")

app = typer.Typer(pretty_exceptions_enable=False)


class Variant(StrEnum):
    "Target parameterisation."

    STEPPED = "stepped"
    LINEAR = "linear"
    POLYNOMIAL = "polynomial"


class OutputFormat(StrEnum):
    "Output file formats."

    MINEOS = "mineos"
    TVEL = "tvel"
    YAML = "yaml"


DEFAULT_FORMATS = {
    Variant.STEPPED: OutputFormat.MINEOS,
    Variant.LINEAR: OutputFormat.TVEL,
    Variant.POLYNOMIAL: OutputFormat.YAML,
}


def write_model(
    model: RadialModel,
    output_path: Path,
    output_format: OutputFormat,
    name: str,
    logger: logging.Logger,
) -> None:
    """
    Write a model in the given format.

    Parameters
    ----------
    model : RadialModel
        The model to write.
    output_path : Path
        Output file.
    output_format : OutputFormat
        Format to write. Mineos files need a stepped model and tvel files a
        linear one.
    name : str
        Model name, used as the Mineos title or registry entry name.
    logger : logging.Logger
        Logger instance for logging messages.

    Raises
    ------
    ValueError
        If the format cannot hold the model's parameterisation.
    """
    if output_format is OutputFormat.YAML:
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                {"model": [model_to_entry(model, name)]}, f, sort_keys=False
            )
        logger.log(logging.INFO, f"Wrote registry entry {name} to {output_path}")
        return

    required = {
        OutputFormat.MINEOS: ModelVariant.STEPPED,
        OutputFormat.TVEL: ModelVariant.LINEAR,
    }[output_format]
    if model.variant is not required:
        logger.log(
            logging.ERROR,
            f"{output_format} files need a {required.name.lower()} model",
        )
        raise ValueError(
            f"Cannot write a {model.variant.name.lower()} model as {output_format}"
        )
    if output_format is OutputFormat.MINEOS:
        write_mineos(model, output_path, title=name, logger=logger)
    else:
        write_tvel(model, output_path, comment1=name, logger=logger)


@app.command(help="Convert a radial model to another parameterisation.")
def convert_model(
    model: Annotated[
        str,
        typer.Argument(help="Name of a built-in model, or path to a model file."),
    ],
    output_file: Annotated[
        Path, typer.Argument(dir_okay=False, help="File to write the model to.")
    ],
    to: Annotated[Variant, typer.Option(help="Target parameterisation.")],
    output_format: Annotated[
        Optional[OutputFormat],
        typer.Option(help="Output file format, default by parameterisation."),
    ] = None,
    spacing: Annotated[
        Optional[float],
        typer.Option(help="Node or layer spacing (km) for linear/stepped models."),
    ] = None,
    order: Annotated[
        Optional[int], typer.Option(help="Polynomial order for polynomial models.")
    ] = None,
    model_format: Annotated[
        Optional[str], typer.Option(help="Input model file format: mineos or tvel.")
    ] = None,
    model_registry: Annotated[
        Optional[Path],
        typer.Option(exists=False, dir_okay=False, help="Model registry YAML file."),
    ] = None,
    name: Annotated[
        Optional[str], typer.Option(help="Name (title) of the written model.")
    ] = None,
    log_level: str = "INFO",
) -> None:
    """
    Convert a radial model to another parameterisation and write it.

    Parameters
    ----------
    model : str
        Name of a model in the registry, or path to a Mineos or tvel file.
    output_file : Path
        File to write the converted model to.
    to : Variant
        Target parameterisation.
    output_format : OutputFormat, optional
        Output format. Defaults to mineos for stepped, tvel for linear and
        yaml for polynomial models.
    spacing : float, optional
        Node spacing (linear) or layer spacing (stepped) in km.
    order : int, optional
        Polynomial order (polynomial).
    model_format : str, optional
        Format of the input model file, if ``model`` is a path.
    model_registry : Path, optional
        Path to the model registry file.
    name : str, optional
        Name of the written model (default: the input model name).
    log_level : str, optional
        Logging level for the script (default: "INFO").

    Raises
    ------
    ValueError
        If the conversion parameters or output format are invalid.
    KeyError
        If the model is not found.
    """
    start_time = time.time()

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.log(logging.DEBUG, f"Logger initialized with level {log_level}")

    to = Variant(to)
    output_format = (
        DEFAULT_FORMATS[to] if output_format is None else OutputFormat(output_format)
    )
    if name is None:
        name = Path(model).stem if Path(model).is_file() else model

    radial_model = load_model(model, model_format, model_registry, logger)
    logger.log(logging.INFO, f"Converting {radial_model!r} to a {to} model")

    params = {"logger": logger}
    if to is Variant.POLYNOMIAL:
        if spacing is not None:
            logger.log(logging.WARNING, "--spacing is ignored for polynomial models")
        params["order"] = order
    else:
        if order is not None:
            logger.log(logging.WARNING, f"--order is ignored for {to} models")
        if spacing is not None:
            params["spacing"] = spacing
    converted = convert(radial_model, ModelVariant[to.name], **params)

    output_file = output_file.expanduser().resolve()
    output_file.parent.mkdir(exist_ok=True, parents=True)
    write_model(converted, output_file, output_format, name, logger)

    elapsed_time = time.time() - start_time
    logger.log(logging.INFO, f"Model conversion completed in {elapsed_time:.2f} seconds")


if __name__ == "__main__":
    app()
