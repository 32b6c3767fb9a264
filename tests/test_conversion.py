import logging

import numpy as np
import pytest

from radial_modelling import derived, properties
from radial_modelling.constants import ModelVariant
from radial_modelling.conversion import as_linear, as_polynomial, as_stepped, convert
from radial_modelling.discontinuities import discontinuities
from radial_modelling.exceptions import ValidationError
from radial_modelling.model import (
    LinearLayeredModel,
    PolynomialModel,
    SteppedLayeredModel,
)

# Radii (km) away from any PREM discontinuity
PREM_SAMPLE_RADII = [100.0, 1000.0, 2000.0, 3550.0, 4000.0, 5000.0, 5650.0, 6000.0, 6200.0]


@pytest.fixture(scope="module")
def prem_linear(prem) -> LinearLayeredModel:
    return as_linear(prem)


@pytest.fixture(scope="module")
def prem_stepped(prem) -> SteppedLayeredModel:
    return as_stepped(prem)


def test_stepped_to_linear_is_exact():
    model = SteppedLayeredModel(r=[1.0, 2.0], vp=[2.0, 1.0], vs=[1.0, 0.5], density=[3.0, 2.0])
    linear = as_linear(model)
    np.testing.assert_array_equal(linear.radii, [0.0, 1.0, 1.0, 2.0])
    np.testing.assert_array_equal(linear.vp, [2.0, 2.0, 1.0, 1.0])
    np.testing.assert_array_equal(linear.density, [3.0, 3.0, 2.0, 2.0])
    assert linear.eta is None
    assert derived.mass(linear) == pytest.approx(derived.mass(model), rel=1e-12)


def test_unchanged_variants(moon, prem):
    """Test that converting to a model's own variant returns the model."""
    assert as_stepped(moon) is moon
    linear = as_linear(moon)
    assert as_linear(linear) is linear
    assert as_polynomial(prem) is prem


def test_polynomial_reference_frequency(prem):
    converted = as_polynomial(prem, reference_frequency=2.0)
    assert converted.reference_frequency == 2.0
    expected = PolynomialModel(
        r=prem.radii,
        reference_frequency=2.0,
        **{prop.value: values for prop, values in prem.tables()},
    )
    assert converted == expected


def test_invalid_conversion_parameters(moon):
    linear = as_linear(moon)
    with pytest.raises(ValidationError):
        as_stepped(linear, spacing=0.0)
    with pytest.raises(ValidationError):
        as_stepped(moon, spacing=-1.0)
    with pytest.raises(ValidationError):
        as_polynomial(moon, order=-1)
    with pytest.raises(ValidationError):
        as_polynomial(linear, order=0)


def test_stepped_to_polynomial(moon):
    polynomial = as_polynomial(moon, order=2)
    assert polynomial.radii.tolist() == moon.radii.tolist()
    assert polynomial.vp.shape == (3, moon.layer_count)
    np.testing.assert_array_equal(polynomial.vp[0], moon.vp)
    np.testing.assert_array_equal(polynomial.vp[1:], 0.0)
    radii = np.linspace(0.0, moon.surface_radius, 50)
    np.testing.assert_allclose(
        properties.vs(polynomial, radii), properties.vs(moon, radii)
    )
    assert as_polynomial(moon).vp.shape == (1, moon.layer_count)


def test_linear_to_polynomial():
    """Test that each segment becomes a line and discontinuities are kept."""
    model = LinearLayeredModel(r=[0.0, 1.0, 1.0, 2.0], vp=[1.0, 2.0, 3.0, 5.0], vs=[1.0, 1.0, 1.0, 1.0])
    polynomial = as_polynomial(model)
    np.testing.assert_array_equal(polynomial.radii, [1.0, 2.0])
    assert polynomial.vp.shape == (2, 2)
    assert properties.vp(polynomial, 0.5) == pytest.approx(1.5)
    assert properties.vp(polynomial, 1.0) == pytest.approx(3.0)
    assert properties.vp(polynomial, 1.5) == pytest.approx(4.0)
    assert properties.vp(polynomial, 2.0) == pytest.approx(5.0)
    assert as_polynomial(model, order=3).vp.shape == (4, 2)


def test_linear_to_stepped_midpoints():
    """Test that stepped layers take the value at their midpoints."""
    model = LinearLayeredModel(r=[0.0, 10.0], vp=[0.0, 10.0], vs=[0.0, 10.0])
    stepped = as_stepped(model, spacing=4.0)
    np.testing.assert_allclose(stepped.radii, [2.0, 6.0, 10.0])
    np.testing.assert_allclose(stepped.vp, [1.0, 4.0, 8.0])


def test_stepped_round_trip_through_linear(moon):
    """Test that stepped -> linear -> stepped keeps the original layers."""
    stepped = as_stepped(as_linear(moon), spacing=50.0)
    for r in moon.radii:
        assert r in stepped.radii
    radii = np.linspace(0.0, moon.surface_radius, 200)
    np.testing.assert_array_equal(properties.vp(stepped, radii), properties.vp(moon, radii))
    assert derived.mass(stepped) == pytest.approx(derived.mass(moon), rel=1e-10)


def test_polynomial_to_linear_keeps_discontinuities(prem, prem_linear):
    radii, indices = discontinuities(prem_linear)
    for r in prem.boundaries():
        assert r in radii
    # Values either side of the core-mantle boundary
    i = indices[radii == 3480.0][0]
    assert prem_linear.vs[i] == pytest.approx(0.0)
    assert prem_linear.vs[i + 1] == pytest.approx(properties.vs(prem, 3480.0))
    assert np.all(np.diff(prem_linear.radii) <= 20.0 + 1e-9)
    assert prem_linear.is_anisotropic
    assert prem_linear.has_attenuation
    assert prem_linear.reference_frequency == prem.reference_frequency


@pytest.mark.parametrize("converted_name", ["prem_linear", "prem_stepped"])
def test_prem_conversion_accuracy(prem, converted_name: str, request):
    """Test that converted models reproduce PREM within 1 %."""
    converted = request.getfixturevalue(converted_name)
    a = prem.surface_radius
    assert derived.mass(converted) == pytest.approx(derived.mass(prem), rel=0.01)
    assert derived.gravity(converted, a) == pytest.approx(derived.gravity(prem, a), rel=0.01)
    assert derived.pressure(converted, 0.0) == pytest.approx(
        derived.pressure(prem, 0.0), rel=0.01
    )
    np.testing.assert_allclose(
        properties.vp(converted, PREM_SAMPLE_RADII),
        properties.vp(prem, PREM_SAMPLE_RADII),
        rtol=0.01,
    )
    np.testing.assert_allclose(
        properties.vs(converted, PREM_SAMPLE_RADII),
        properties.vs(prem, PREM_SAMPLE_RADII),
        rtol=0.01,
    )


def test_prem_round_trip_to_polynomial(prem, prem_linear):
    """Test polynomial -> linear -> polynomial."""
    polynomial = as_polynomial(prem_linear)
    assert polynomial.reference_frequency == prem.reference_frequency
    np.testing.assert_allclose(
        properties.vp(polynomial, PREM_SAMPLE_RADII),
        properties.vp(prem, PREM_SAMPLE_RADII),
        rtol=0.01,
    )
    assert derived.mass(polynomial) == pytest.approx(derived.mass(prem), rel=0.01)


def test_convert_dispatch(moon):
    assert isinstance(convert(moon, ModelVariant.LINEAR), LinearLayeredModel)
    assert isinstance(convert(moon, ModelVariant.POLYNOMIAL, order=1), PolynomialModel)
    linear = convert(moon, ModelVariant.LINEAR)
    assert isinstance(convert(linear, ModelVariant.STEPPED, spacing=100.0), SteppedLayeredModel)


def test_convert_by_name(moon):
    """Test that the target may be given by name."""
    assert convert(moon, "linear") == convert(moon, ModelVariant.LINEAR)
    assert isinstance(convert(moon, "POLYNOMIAL"), PolynomialModel)
    with pytest.raises(ValueError, match="Unknown model variant"):
        convert(moon, "spline")


def test_polynomial_order_ignored(prem, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="radial_modelling.conversion"):
        assert as_polynomial(prem, order=3) is prem
    assert "order 3 is ignored" in caplog.text
