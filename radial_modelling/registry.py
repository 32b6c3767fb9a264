"""
Radial Model Registry Module.

This module provides the ModelRegistry class giving access to the built-in
named models (PREM, IASP91, MOON_WEBER_2011, ...). Model definitions are
read from a YAML registry file; each model is built the first time it is
requested and cached afterwards.

A registry entry either holds the model inline (``radii`` and ``tables``) or
points to a Mineos or tvel file with ``path`` and ``format``.
"""

import logging
from logging import Logger
from pathlib import Path
from typing import Optional

import numpy as np
import yaml

from radial_modelling.constants import ModelVariant, get_registry_path
from radial_modelling.model import (
    LinearLayeredModel,
    PolynomialModel,
    RadialModel,
    SteppedLayeredModel,
)
from radial_modelling.model_files import read_mineos, read_tvel

MODEL_CLASSES = {
    ModelVariant.STEPPED: SteppedLayeredModel,
    ModelVariant.LINEAR: LinearLayeredModel,
    ModelVariant.POLYNOMIAL: PolynomialModel,
}

FILE_READERS = {
    "mineos": read_mineos,
    "tvel": read_tvel,
}


def polynomial_coefficients(per_layer: list) -> np.ndarray:
    """
    Arrange per-layer coefficient lists as an (order + 1, n_layers) matrix.

    Parameters
    ----------
    per_layer : list
        One list of coefficients per layer, constant term first. A bare
        number is taken as a constant.

    Returns
    -------
    np.ndarray
        Coefficient matrix, zero-padded to the highest order of any layer.
    """
    layers = [np.atleast_1d(np.asarray(c, dtype=np.float64)) for c in per_layer]
    n_coeffs = max(layer.size for layer in layers)
    coeffs = np.zeros((n_coeffs, len(layers)))
    for i, layer in enumerate(layers):
        coeffs[: layer.size, i] = layer
    return coeffs


class ModelRegistry:
    """
    Registry of named radial models.

    Attributes
    ----------
    registry_path : Path
        Path of the YAML registry file.
    registry : dict
        Loaded registry data.
    logger : Logger
        Logger for logging information and errors.
    cache : dict
        Models already built, keyed by upper-case name.

    Parameters
    ----------
    registry_path : Path, optional
        Path to the registry YAML file. Resolved with ``get_registry_path``
        if not given.
    logger : Logger, optional
        Logger instance for logging; created if not provided.

    Raises
    ------
    FileNotFoundError
        If the registry file does not exist.
    ValueError
        If the registry file has no models.
    """

    def __init__(
        self,
        registry_path: Optional[Path] = None,
        logger: Optional[Logger] = None,
    ):
        self.logger = (
            logger if logger is not None else logging.getLogger("radial_modelling.registry")
        )
        self.registry_path = get_registry_path(registry_path)

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                self.registry = yaml.safe_load(f)
        except FileNotFoundError:
            self.logger.log(
                logging.ERROR, f"Error: Registry file {self.registry_path} not found."
            )
            raise FileNotFoundError(f"Registry file {self.registry_path} not found")

        if not self.registry or not self.registry.get("model"):
            raise ValueError(f"No models defined in registry {self.registry_path}")

        self._entries = {}
        for entry in self.registry["model"]:
            assert "name" in entry, "Error: Model entry lacks a 'name' field."
            self._entries[entry["name"].upper()] = entry
        self.cache = {}

    def list_models(self) -> list[str]:
        """Names of the models in the registry, in registry order."""
        return [entry["name"] for entry in self.registry["model"]]

    def get_info(self, name: str) -> dict:
        """
        Get the registry entry of a model.

        Parameters
        ----------
        name : str
            Model name (case-insensitive).

        Returns
        -------
        dict
            The registry entry.

        Raises
        ------
        KeyError
            If no model of that name is in the registry.
        """
        try:
            return self._entries[name.upper()]
        except KeyError:
            self.logger.log(logging.ERROR, f"Error: {name} not found in registry")
            raise KeyError(
                f"Model {name} not found. Available models: {', '.join(self.list_models())}"
            ) from None

    def get_model(self, name: str) -> RadialModel:
        """
        Get a model by name, building it on first use.

        Parameters
        ----------
        name : str
            Model name (case-insensitive).

        Returns
        -------
        RadialModel
            The model.

        Raises
        ------
        KeyError
            If no model of that name is in the registry.
        ValueError
            If the registry entry is invalid.
        """
        key = name.upper()
        if key in self.cache:
            self.logger.log(logging.DEBUG, f"{key} loaded from CACHE")
            return self.cache[key]

        info = self.get_info(name)
        if "path" in info:
            model = self._load_model_file(info)
        else:
            model = self._build_model(info)
        self.cache[key] = model
        self.logger.log(logging.INFO, f"Loaded model {info['name']}: {model!r}")
        return model

    def _load_model_file(self, info: dict) -> RadialModel:
        model_format = info.get("format", "mineos").lower()
        if model_format not in FILE_READERS:
            raise ValueError(
                f"Unknown model file format '{model_format}' for {info['name']}"
            )
        path = Path(info["path"])
        if not path.is_absolute():
            path = self.registry_path.parent / path
        return FILE_READERS[model_format](path, logger=self.logger)

    def _build_model(self, info: dict) -> RadialModel:
        try:
            variant = ModelVariant[info["variant"].upper()]
        except KeyError:
            raise ValueError(
                f"Invalid variant '{info.get('variant')}' for model {info['name']}"
            ) from None

        tables = dict(info.get("tables", {}))
        if variant is ModelVariant.POLYNOMIAL:
            tables = {
                prop: polynomial_coefficients(values)
                for prop, values in tables.items()
            }
        return MODEL_CLASSES[variant](
            r=info["radii"],
            reference_frequency=info.get("reference_frequency"),
            **tables,
        )


_DEFAULT_REGISTRY = None


def get_model(name: str) -> RadialModel:
    """
    Get a built-in model from the default registry.

    Parameters
    ----------
    name : str
        Model name (case-insensitive), e.g. "PREM".

    Returns
    -------
    RadialModel
        The model.
    """
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = ModelRegistry()
    return _DEFAULT_REGISTRY.get_model(name)


def model_to_entry(
    model: RadialModel, name: str, description: Optional[str] = None
) -> dict:
    """
    Describe a model as a registry entry, the inverse of ``get_model``.

    Parameters
    ----------
    model : RadialModel
        The model.
    name : str
        Name of the entry.
    description : str, optional
        Free-text description.

    Returns
    -------
    dict
        Entry ready to be dumped to YAML under the ``model`` key.
    """
    entry = {"name": name, "variant": model.variant.name.lower()}
    if description:
        entry["description"] = description
    if model.has_reference_frequency:
        entry["reference_frequency"] = model.reference_frequency
    entry["radii"] = model.radii.tolist()
    if isinstance(model, PolynomialModel):
        entry["tables"] = {
            prop.value: values.T.tolist() for prop, values in model.tables()
        }
    else:
        entry["tables"] = {prop.value: values.tolist() for prop, values in model.tables()}
    return entry


def load_model(
    source: str,
    model_format: Optional[str] = None,
    registry_path: Optional[Path] = None,
    logger: Optional[Logger] = None,
) -> RadialModel:
    """
    Load a model given either a registry name or the path of a model file.

    Parameters
    ----------
    source : str
        Name of a model in the registry, or path to a Mineos or tvel file.
    model_format : str, optional
        "mineos" or "tvel". If not given, files ending in ``.tvel`` are read
        as tvel and any other file as Mineos.
    registry_path : Path, optional
        Registry to look names up in.
    logger : Logger, optional
        Logger instance for logging messages.

    Returns
    -------
    RadialModel
        The model.

    Raises
    ------
    KeyError
        If ``source`` is neither an existing file nor a model in the registry.
    ValueError
        If the file format is unknown.
    """
    path = Path(source).expanduser()
    if path.is_file():
        if model_format is None:
            model_format = "tvel" if path.suffix.lower() == ".tvel" else "mineos"
        model_format = model_format.lower()
        if model_format not in FILE_READERS:
            raise ValueError(
                f"Unknown model file format '{model_format}'. "
                f"Must be one of {', '.join(FILE_READERS)}"
            )
        return FILE_READERS[model_format](path, logger=logger)
    return ModelRegistry(registry_path, logger).get_model(source)
