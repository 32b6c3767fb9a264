import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from radial_modelling import properties
from radial_modelling.constants import ModelProperty
from radial_modelling.exceptions import DomainError, UndefinedPropertyError
from radial_modelling.model import (
    LinearLayeredModel,
    PolynomialModel,
    SteppedLayeredModel,
)


@pytest.fixture
def attenuating() -> SteppedLayeredModel:
    """Single-layer stepped model with attenuation, defined at 1 Hz."""
    return SteppedLayeredModel(
        r=[10.0],
        vp=[10.0],
        vs=[5.0],
        q_mu=[100.0],
        q_kappa=[1000.0],
        reference_frequency=1.0,
    )


def test_stepped_evaluation():
    """Test that a stepped model is constant within layers."""
    model = SteppedLayeredModel(r=[0.25, 1.0], vp=[2.0, 1.0], vs=[1.0, 0.5])
    assert properties.vp(model, 0.0) == 2.0
    assert properties.vp(model, 0.1) == 2.0
    assert properties.vp(model, 0.25) == 1.0
    assert properties.vp(model, 1.0) == 1.0
    assert properties.vs(model, 0.9) == 0.5


def test_linear_evaluation():
    """Test that a linear model interpolates between nodes."""
    model = LinearLayeredModel(r=[0.0, 1.0], vp=[2.0, 4.0], vs=[1.0, 2.0])
    assert properties.vp(model, 0.5) == pytest.approx(3.0)
    assert properties.vp(model, 0.0) == 2.0
    assert properties.vp(model, 1.0) == 4.0


def test_linear_evaluation_at_discontinuity():
    """Test that the value above a discontinuity is used at its radius."""
    model = LinearLayeredModel(
        r=[0.0, 1.0, 1.0, 2.0], vp=[4.0, 3.0, 2.0, 1.0], vs=[2.0, 1.5, 1.0, 0.5]
    )
    assert properties.vp(model, 1.0) == 2.0
    assert properties.vp(model, np.nextafter(1.0, 0.0)) == pytest.approx(3.0)
    assert properties.vp(model, 1.5) == pytest.approx(1.5)


def test_polynomial_evaluation():
    """Test that polynomials use the radius normalised by the surface radius."""
    model = PolynomialModel(
        r=[1.0, 2.0],
        vp=[[3.0, 1.0], [1.0, 2.0], [0.0, 1.0]],
        vs=[1.0, 1.0],
    )
    # x = r/2 in both layers
    assert properties.vp(model, 0.5) == pytest.approx(3.0 + 0.25)
    assert properties.vp(model, 1.5) == pytest.approx(1.0 + 2.0 * 0.75 + 0.75**2)
    assert properties.vs(model, 1.5) == 1.0


def test_array_evaluation():
    """Test that arrays of radii give arrays of values."""
    model = LinearLayeredModel(r=[0.0, 1.0], vp=[2.0, 4.0], vs=[1.0, 2.0])
    result = properties.vp(model, [0.0, 0.25, 0.5, 1.0])
    assert isinstance(result, np.ndarray)
    np.testing.assert_allclose(result, [2.0, 2.5, 3.0, 4.0])
    assert isinstance(properties.vp(model, 0.5), float)


def test_depth_evaluation():
    model = LinearLayeredModel(r=[0.0, 1.0], vp=[2.0, 4.0], vs=[1.0, 2.0])
    assert properties.vp(model, 0.0, depth=True) == 4.0
    assert properties.vp(model, 0.25, depth=True) == pytest.approx(3.5)
    assert properties.depth_of(model, 0.25) == 0.75
    assert properties.radius_of(model, 0.25) == 0.75


def test_evaluate_by_name():
    """Test that properties may be named by their aliases."""
    model = SteppedLayeredModel(r=[1.0], vp=[2.0], vs=[1.0], density=[3.0], Qμ=[50.0], Qκ=[500.0])
    assert properties.evaluate(model, "vp", 0.5) == 2.0
    assert properties.evaluate(model, "rho", 0.5) == 3.0
    assert properties.evaluate(model, "Qμ", 0.5) == 50.0
    assert properties.evaluate(model, "Qkappa", 0.5) == 500.0
    assert properties.evaluate(model, ModelProperty.density, 0.5) == 3.0
    assert properties.rho(model, 0.5) == properties.density(model, 0.5)
    assert properties.Qmu(model, 0.5) == properties.Qμ(model, 0.5) == 50.0
    assert properties.Qkappa(model, 0.5) == properties.Qκ(model, 0.5) == 500.0
    with pytest.raises(UndefinedPropertyError, match="unknown property"):
        properties.evaluate(model, "vq", 0.5)


def test_undefined_properties():
    """Test that absent tables cannot be evaluated."""
    model = SteppedLayeredModel(r=[1.0], vp=[2.0], vs=[1.0])
    with pytest.raises(UndefinedPropertyError):
        properties.density(model, 0.5)
    with pytest.raises(UndefinedPropertyError):
        properties.eta(model, 0.5)
    with pytest.raises(UndefinedPropertyError):
        properties.q_mu(model, 0.5)
    with pytest.raises(UndefinedPropertyError):
        properties.reference_frequency(model)
    with pytest.raises(UndefinedPropertyError):
        properties.vp(model, 0.5, freq=1.0)


@pytest.mark.parametrize("r", [-0.1, 1.1])
def test_evaluation_outside_model(r: float):
    model = SteppedLayeredModel(r=[1.0], vp=[2.0], vs=[1.0])
    with pytest.raises(DomainError):
        properties.vp(model, r)
    with pytest.raises(DomainError):
        properties.vp(model, [0.5, r])


def test_attenuation_at_reference_frequency(attenuating: SteppedLayeredModel):
    """Test that no correction is made at the reference frequency."""
    assert properties.reference_frequency(attenuating) == 1.0
    assert properties.vp(attenuating, 5.0, freq=1.0) == 10.0
    assert properties.vs(attenuating, 5.0, freq=1.0) == 5.0


def test_attenuation_correction(attenuating: SteppedLayeredModel):
    """Test the physical dispersion correction of P and S velocities."""
    scale = np.log(1.0 / 0.1) / np.pi
    expected_vs = 5.0 * (1 - scale / 100.0)
    e = 4 / 3 * (5.0 / 10.0) ** 2
    expected_vp = 10.0 * (1 - scale * ((1 - e) / 1000.0 + e / 100.0))

    assert properties.vs(attenuating, 5.0, freq=0.1) == pytest.approx(expected_vs)
    assert properties.vp(attenuating, 5.0, freq=0.1) == pytest.approx(expected_vp)
    # Velocities are lower at lower frequencies
    assert properties.vs(attenuating, 5.0, freq=0.1) < 5.0
    assert properties.vs(attenuating, 5.0, freq=10.0) > 5.0


def test_attenuation_correction_errors(attenuating: SteppedLayeredModel):
    with pytest.raises(UndefinedPropertyError, match="not defined"):
        properties.evaluate(attenuating, "q_mu", 5.0, freq=0.1)
    with pytest.raises(ValueError, match="positive"):
        properties.vp(attenuating, 5.0, freq=0.0)

    no_fref = SteppedLayeredModel(r=[10.0], vp=[10.0], vs=[5.0], q_mu=[100.0], q_kappa=[1000.0])
    with pytest.raises(UndefinedPropertyError, match="reference frequency"):
        properties.vp(no_fref, 5.0, freq=0.1)


def test_zero_q_means_no_attenuation():
    """Test that a Q of zero leaves the velocities unchanged."""
    model = SteppedLayeredModel(
        r=[10.0], vp=[10.0], vs=[0.0], q_mu=[0.0], q_kappa=[0.0], reference_frequency=1.0
    )
    assert properties.vp(model, 5.0, freq=0.01) == 10.0
    assert properties.vs(model, 5.0, freq=0.01) == 0.0


def test_prem_values(prem):
    """Test values of PREM against the published model."""
    assert properties.vp(prem, 0) == pytest.approx(11.2622)
    assert properties.Qμ(prem, 1000) == pytest.approx(84.6)
    assert properties.q_kappa(prem, 1000) == pytest.approx(1327.7)
    # Liquid outer core and ocean
    assert properties.vs(prem, 3000) == 0.0
    assert properties.vs(prem, 0.0, depth=True) == 0.0
    assert properties.density(prem, 0.0, depth=True) == pytest.approx(1.02)
    # Anisotropic upper mantle at 6300 km
    x = 6300 / 6371
    assert properties.vpv(prem, 6300) == pytest.approx(0.8317 + 7.2180 * x)
    assert properties.vph(prem, 6300) == pytest.approx(3.5908 + 4.6172 * x)
    assert properties.vsv(prem, 6300) == pytest.approx(5.8582 - 1.4678 * x)
    assert properties.vsh(prem, 6300) == pytest.approx(-1.0839 + 5.7176 * x)
    assert properties.eta(prem, 6300) == pytest.approx(3.3687 - 2.4778 * x)
    assert properties.eta(prem, 3000) == 1.0


def test_prem_attenuation(prem):
    """Test that PREM velocities are lower at long periods."""
    assert properties.vs(prem, 5000, freq=0.01) < properties.vs(prem, 5000)
    assert properties.vp(prem, 5000, freq=0.01) < properties.vp(prem, 5000)
    assert properties.vsh(prem, 6300, freq=0.01) < properties.vsh(prem, 6300)


def test_iasp91_values(iasp91):
    assert properties.vp(iasp91, 0) == pytest.approx(11.24094)
    assert properties.vs(iasp91, 6371) == pytest.approx(3.36)
    with pytest.raises(UndefinedPropertyError):
        properties.density(iasp91, 0)


@given(depth=st.floats(min_value=0.0, max_value=6371.0))
@settings(max_examples=50, deadline=None)
def test_depth_radius_duality(prem, depth: float):
    """Test that evaluating at a depth equals evaluating at its radius."""
    radius = properties.radius_of(prem, depth)
    assert properties.depth_of(prem, radius) == pytest.approx(depth, abs=1e-9)
    assert properties.vp(prem, depth, depth=True) == properties.vp(prem, radius)
    assert properties.density(prem, depth, depth=True) == properties.density(prem, radius)


@pytest.mark.parametrize(
    "accessor",
    [
        properties.vp,
        properties.vs,
        properties.vph,
        properties.vpv,
        properties.vsh,
        properties.vsv,
        properties.density,
        properties.eta,
        properties.q_mu,
        properties.q_kappa,
    ],
)
@given(depth=st.floats(min_value=0.0, max_value=6371.0))
@settings(max_examples=30, deadline=None)
def test_accessor_depth_radius_duality(prem, accessor, depth: float):
    """Test that every accessor gives the same value by depth and by radius."""
    radius = properties.radius_of(prem, depth)
    assert accessor(prem, depth, depth=True) == accessor(prem, radius)


@pytest.mark.parametrize(
    "accessor",
    [
        properties.vp,
        properties.vs,
        properties.vph,
        properties.vpv,
        properties.vsh,
        properties.vsv,
    ],
)
@given(depth=st.floats(min_value=0.0, max_value=6371.0))
@settings(max_examples=30, deadline=None)
def test_attenuated_depth_radius_duality(prem, accessor, depth: float):
    """Test that corrected velocities are the same by depth and by radius."""
    radius = properties.radius_of(prem, depth)
    assert accessor(prem, depth, depth=True, freq=0.02) == accessor(
        prem, radius, freq=0.02
    )
