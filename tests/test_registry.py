import logging
from pathlib import Path

import pytest
import yaml

from radial_modelling.constants import (
    DEFAULT_REGISTRY_PATH,
    REGISTRY_ENV_VAR,
    get_registry_path,
)
from radial_modelling.conversion import as_linear
from radial_modelling.model import PolynomialModel, SteppedLayeredModel
from radial_modelling.model_files import write_mineos, write_tvel
from radial_modelling.registry import (
    ModelRegistry,
    load_model,
    model_to_entry,
    polynomial_coefficients,
)


def write_registry(path: Path, entries: list) -> Path:
    with open(path, "w") as f:
        yaml.safe_dump({"model": entries}, f, sort_keys=False)
    return path


def test_list_models(registry: ModelRegistry):
    models = registry.list_models()
    for name in ("PREM", "IASP91", "MOON_WEBER_2011"):
        assert name in models


def test_get_model_is_cached(registry: ModelRegistry, caplog: pytest.LogCaptureFixture):
    """Test that names are case-insensitive and models are built once."""
    prem = registry.get_model("PREM")
    with caplog.at_level(logging.DEBUG, logger="radial_modelling.registry"):
        assert registry.get_model("prem") is prem
    assert "loaded from CACHE" in caplog.text
    assert isinstance(prem, PolynomialModel)


def test_get_info(registry: ModelRegistry):
    info = registry.get_info("iasp91")
    assert info["name"] == "IASP91"
    assert info["variant"] == "polynomial"
    with pytest.raises(KeyError, match="Available models"):
        registry.get_info("AK135X")
    with pytest.raises(KeyError):
        registry.get_model("AK135X")


def test_missing_registry(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        ModelRegistry(tmp_path / "missing.yaml")


def test_empty_registry(tmp_path: Path):
    path = tmp_path / "registry.yaml"
    path.write_text("model: []\n")
    with pytest.raises(ValueError, match="No models"):
        ModelRegistry(path)


def test_invalid_variant(tmp_path: Path):
    path = write_registry(
        tmp_path / "registry.yaml",
        [{"name": "BAD", "variant": "spline", "radii": [1.0], "tables": {}}],
    )
    with pytest.raises(ValueError, match="Invalid variant"):
        ModelRegistry(path).get_model("BAD")


def test_registry_file_entries(moon, tmp_path: Path):
    """Test entries that refer to Mineos and tvel files next to the registry."""
    write_mineos(moon, tmp_path / "moon.txt")
    linear = as_linear(moon)
    write_tvel(linear, tmp_path / "moon.tvel")
    path = write_registry(
        tmp_path / "registry.yaml",
        [
            {"name": "MOON_MINEOS", "path": "moon.txt", "format": "mineos"},
            {"name": "MOON_TVEL", "path": "moon.tvel", "format": "tvel"},
        ],
    )
    registry = ModelRegistry(path)
    assert registry.get_model("MOON_MINEOS").isapprox(moon)
    assert registry.get_model("MOON_TVEL").isapprox(linear)


def test_registry_path_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(REGISTRY_ENV_VAR, raising=False)
    assert get_registry_path() == DEFAULT_REGISTRY_PATH

    env_path = tmp_path / "env.yaml"
    monkeypatch.setenv(REGISTRY_ENV_VAR, str(env_path))
    assert get_registry_path() == env_path.resolve()

    override = tmp_path / "override.yaml"
    assert get_registry_path(override) == override.resolve()


def test_polynomial_coefficients():
    coeffs = polynomial_coefficients([[1.0, 2.0, 3.0], [4.0], 5.0])
    assert coeffs.shape == (3, 3)
    assert coeffs[:, 0].tolist() == [1.0, 2.0, 3.0]
    assert coeffs[:, 1].tolist() == [4.0, 0.0, 0.0]
    assert coeffs[:, 2].tolist() == [5.0, 0.0, 0.0]


@pytest.mark.parametrize("name", ["PREM", "IASP91", "MOON_WEBER_2011"])
def test_model_to_entry_round_trip(registry: ModelRegistry, tmp_path: Path, name: str):
    """Test that a model written as a registry entry is read back unchanged."""
    model = registry.get_model(name)
    path = write_registry(tmp_path / "registry.yaml", [model_to_entry(model, "COPY")])
    assert ModelRegistry(path).get_model("COPY") == model


def test_load_model(moon, tmp_path: Path):
    """Test that models are loaded from names or from files."""
    assert isinstance(load_model("moon_weber_2011"), SteppedLayeredModel)

    write_mineos(moon, tmp_path / "moon.txt")
    assert load_model(str(tmp_path / "moon.txt")).isapprox(moon)
    write_tvel(as_linear(moon), tmp_path / "moon.tvel")
    assert load_model(str(tmp_path / "moon.tvel")).isapprox(as_linear(moon))

    with pytest.raises(ValueError, match="Unknown model file format"):
        load_model(str(tmp_path / "moon.txt"), model_format="nd")
    with pytest.raises(KeyError):
        load_model("NOT_A_MODEL")
