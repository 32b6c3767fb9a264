from pathlib import Path

import pytest

from radial_modelling.constants import get_registry_path
from radial_modelling.model import RadialModel
from radial_modelling.registry import ModelRegistry


def pytest_addoption(parser: pytest.Parser) -> None:
    # Keep default None; resolve later in fixture with get_registry_path()
    parser.addoption(
        "--model-registry",
        action="store",
        type=Path,
        default=None,
        help="Path to a model registry YAML file (overrides env/defaults).",
    )


@pytest.fixture(scope="session")
def registry_path(pytestconfig: pytest.Config) -> Path:
    """Resolve the model registry with precedence:
    1) --model-registry (this option)
    2) RADIAL_MODELLING_REGISTRY env var
    3) the registry shipped with the package
    """
    cli_value: Path | None = pytestconfig.getoption("--model-registry")
    rp = get_registry_path(cli_value)
    if not rp.exists():
        raise FileNotFoundError(f"Model registry file not found: {rp}")
    return rp


@pytest.fixture(scope="session")
def registry(registry_path: Path) -> ModelRegistry:
    return ModelRegistry(registry_path)


@pytest.fixture(scope="session")
def prem(registry: ModelRegistry) -> RadialModel:
    return registry.get_model("PREM")


@pytest.fixture(scope="session")
def iasp91(registry: ModelRegistry) -> RadialModel:
    return registry.get_model("IASP91")


@pytest.fixture(scope="session")
def moon(registry: ModelRegistry) -> RadialModel:
    return registry.get_model("MOON_WEBER_2011")
