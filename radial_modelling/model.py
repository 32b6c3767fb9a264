"""
Radial (1D) Planet Model Module.

This module provides the RadialModel base class and its three concrete
parameterisations of a radially symmetric planet:

1. SteppedLayeredModel: properties are constant within each layer.
2. LinearLayeredModel: properties are defined at nodes and vary linearly
   between them; a discontinuity is two nodes at the same radius.
3. PolynomialModel: properties are polynomials in the radius normalised by
   the surface radius, one polynomial per layer (as in PREM).

Radii are in km, velocities in km/s, densities in g/cm^3 and frequencies in Hz.
Models are immutable once constructed and are validated on construction.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numba
import numpy as np

from radial_modelling.constants import (
    ANISOTROPIC_PROPERTIES,
    ATTENUATION_PROPERTIES,
    ModelProperty,
    ModelVariant,
)
from radial_modelling.exceptions import DomainError, ValidationError
from radial_modelling.interpolate import (
    evaluate_polynomial,
    find_layer_index,
    find_node_interval,
    linear_interpolation,
)

# Accepted spellings of the attenuation keyword arguments
_Q_ALIASES = {
    "q_mu": ("Qmu", "Qμ"),
    "q_kappa": ("Qkappa", "Qκ"),
}


def voigt_kappa_mu(A, C, L, N, F):
    """
    Voigt average bulk and shear moduli of a transversely isotropic medium.

    If the Love parameters contain density then the moduli are true moduli;
    if they are squared velocities the result is density-normalised.

    Parameters
    ----------
    A, C, L, N, F : float or np.ndarray
        Love parameters.

    Returns
    -------
    tuple
        (kappa, mu)
    """
    kappa = (4 * A + C + 4 * F - 4 * N) / 9
    mu = (A + C - 2 * F + 5 * N + 6 * L) / 15
    return kappa, mu


def voigt_velocities(vpv, vsv, vph, vsh, eta):
    """
    Voigt average isotropic velocities from radially anisotropic ones.

    Parameters
    ----------
    vpv, vsv, vph, vsh : float or np.ndarray
        Vertical and horizontal P and S velocities.
    eta : float or np.ndarray
        Radial anisotropy parameter.

    Returns
    -------
    tuple
        (vp, vs) in the same units as the input velocities.
    """
    vpv, vsv, vph, vsh, eta = (
        np.asarray(v, dtype=np.float64) for v in (vpv, vsv, vph, vsh, eta)
    )
    A = vph**2
    C = vpv**2
    L = vsv**2
    N = vsh**2
    F = eta * (A - 2 * L)
    kappa, mu = voigt_kappa_mu(A, C, L, N, F)
    return np.sqrt(kappa + 4 / 3 * mu), np.sqrt(mu)


def _resolve_aliases(name: str, supplied: dict):
    """Pick the one value given for a quantity that has several keyword spellings."""
    given = {key: value for key, value in supplied.items() if value is not None}
    if not given:
        return None
    values = [np.asarray(value, dtype=np.float64) for value in given.values()]
    for value in values[1:]:
        if not np.array_equal(value, values[0]):
            raise ValidationError(
                f"conflicting values given for {name} via {', '.join(given)}"
            )
    return next(iter(given.values()))


def _read_only(values: np.ndarray) -> np.ndarray:
    values = np.array(values, dtype=np.float64)
    values.setflags(write=False)
    return values


def _arrays_isapprox(a: np.ndarray, b: np.ndarray, rtol: float, atol: float) -> bool:
    if a.shape != b.shape:
        return False
    scale = max(np.linalg.norm(a), np.linalg.norm(b))
    return bool(np.linalg.norm(a - b) <= max(atol, rtol * scale))


@numba.jit(nopython=True)
def _stepped_mass(radii: np.ndarray, density: np.ndarray, layer: int, r: float):
    mass = 0.0
    for i in range(layer + 1):
        r0 = 0.0 if i == 0 else radii[i - 1] * 1e3
        r1 = radii[i] * 1e3 if i < layer else r * 1e3
        mass += 1e3 * density[i] * (r1**3 - r0**3)
    return 4.0 / 3.0 * np.pi * mass


@numba.jit(nopython=True)
def _linear_mass(radii: np.ndarray, density: np.ndarray, interval: int, r: float):
    mass = 0.0
    for i in range(interval + 1):
        if radii[i] == radii[i + 1]:
            continue
        r0 = radii[i] * 1e3
        r1 = r * 1e3 if i == interval else radii[i + 1] * 1e3
        # density in kg/m^3 is rho0 + slope*r, passing through both nodes
        slope = 1e3 * (density[i + 1] - density[i]) / (radii[i + 1] * 1e3 - r0)
        rho0 = 1e3 * density[i] - slope * r0
        mass += rho0 * (r1**3 - r0**3) / 3 + slope * (r1**4 - r0**4) / 4
    return 4.0 * np.pi * mass


@numba.jit(nopython=True)
def _polynomial_mass(
    radii: np.ndarray, density: np.ndarray, a: float, layer: int, r: float
):
    mass = 0.0
    for i in range(layer + 1):
        r0 = 0.0 if i == 0 else radii[i - 1] * 1e3
        r1 = radii[i] * 1e3 if i < layer else r * 1e3
        for k in range(density.shape[0]):
            # undo the x = r/a normalisation with r in metres
            coeff = density[k, i] / a**k * 1e3 ** (1 - k) / (k + 3)
            mass += coeff * (r1 ** (k + 3) - r0 ** (k + 3))
    return 4.0 * np.pi * mass


class RadialModel(ABC):
    """
    Abstract base class of radially symmetric planet models.

    Parameters
    ----------
    r : array_like
        Radii in km. For layered models, the top of each layer; for linear
        models, the radius of each node. This is the only mandatory argument.
    vp, vs : array_like, optional
        P- and S-wave velocities (km/s). Required unless all anisotropic
        velocities are given and the variant can form Voigt averages.
    density : array_like, optional
        Density (g/cm^3).
    vph, vpv, vsh, vsv, eta : array_like, optional
        Radially anisotropic velocities and the anisotropy parameter eta.
        Either all five or none must be given.
    q_mu, q_kappa : array_like, optional
        Shear and bulk quality factors. Also accepted as ``Qmu``/``Qμ`` and
        ``Qkappa``/``Qκ``. Either both or neither must be given.
    reference_frequency : float, optional
        Frequency (Hz) at which the velocities are defined.

    Attributes
    ----------
    radii : np.ndarray
        Read-only radii in km.
    surface_radius : float
        Radius of the surface (km), the last entry of ``radii``.
    reference_frequency : float or None
        Reference frequency in Hz, None when undefined.

    Raises
    ------
    ValidationError
        If the radii or tables are inconsistent, or unknown arguments are given.
    """

    variant: ModelVariant

    def __init__(
        self,
        r=None,
        vp=None,
        vs=None,
        density=None,
        vph=None,
        vpv=None,
        vsh=None,
        vsv=None,
        eta=None,
        q_mu=None,
        q_kappa=None,
        reference_frequency: Optional[float] = None,
        **kwargs,
    ):
        if r is None:
            raise ValidationError("radius argument r is mandatory")
        q_values = {"q_mu": q_mu, "q_kappa": q_kappa}
        for name, aliases in _Q_ALIASES.items():
            supplied = {name: q_values[name]}
            for alias in aliases:
                supplied[alias] = kwargs.pop(alias, None)
            q_values[name] = _resolve_aliases(name, supplied)
        if kwargs:
            raise ValidationError(f"unknown model field(s): {', '.join(kwargs)}")

        radii = np.asarray(r, dtype=np.float64)
        if radii.ndim != 1 or radii.size == 0:
            raise ValidationError("radii must be a non-empty one-dimensional array")
        if not np.all(np.isfinite(radii)):
            raise ValidationError("radii must be finite")
        self._validate_radii(radii)
        n = radii.size

        tables = {
            ModelProperty.vp: vp,
            ModelProperty.vs: vs,
            ModelProperty.density: density,
            ModelProperty.vph: vph,
            ModelProperty.vpv: vpv,
            ModelProperty.vsh: vsh,
            ModelProperty.vsv: vsv,
            ModelProperty.eta: eta,
            ModelProperty.q_mu: q_values["q_mu"],
            ModelProperty.q_kappa: q_values["q_kappa"],
        }

        n_aniso = sum(tables[prop] is not None for prop in ANISOTROPIC_PROPERTIES)
        if 0 < n_aniso < len(ANISOTROPIC_PROPERTIES):
            raise ValidationError(
                "all of vph, vpv, vsh, vsv and eta must be given for an anisotropic model"
            )
        n_atten = sum(tables[prop] is not None for prop in ATTENUATION_PROPERTIES)
        if n_atten == 1:
            raise ValidationError("both q_mu and q_kappa must be given")

        for prop, value in tables.items():
            if value is not None:
                tables[prop] = self._check_table(prop, value, n)

        if n_aniso and (tables[ModelProperty.vp] is None or tables[ModelProperty.vs] is None):
            voigt_vp, voigt_vs = self._voigt_defaults(tables)
            if tables[ModelProperty.vp] is None:
                tables[ModelProperty.vp] = voigt_vp
            if tables[ModelProperty.vs] is None:
                tables[ModelProperty.vs] = voigt_vs
        if tables[ModelProperty.vp] is None or tables[ModelProperty.vs] is None:
            raise ValidationError("vp and vs must be given")

        if reference_frequency is not None:
            reference_frequency = float(reference_frequency)
            if not np.isfinite(reference_frequency) or reference_frequency <= 0:
                raise ValidationError(
                    f"reference frequency must be positive, got {reference_frequency}"
                )

        object.__setattr__(self, "radii", _read_only(radii))
        for prop, value in tables.items():
            object.__setattr__(
                self, prop.value, None if value is None else _read_only(value)
            )
        object.__setattr__(self, "reference_frequency", reference_frequency)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @abstractmethod
    def _validate_radii(self, radii: np.ndarray) -> None:
        """Raise ValidationError if the radii are not valid for this variant."""

    def _check_table(self, prop: ModelProperty, value, n: int) -> np.ndarray:
        """Convert one property table to an array of the right shape."""
        values = np.asarray(value, dtype=np.float64)
        if values.ndim != 1 or values.size != n:
            raise ValidationError(
                f"{prop.value} must have one value per {self._table_entry}: "
                f"expected {n}, got shape {values.shape}"
            )
        return values

    _table_entry = "layer"

    def _voigt_defaults(self, tables: dict):
        return voigt_velocities(
            tables[ModelProperty.vpv],
            tables[ModelProperty.vsv],
            tables[ModelProperty.vph],
            tables[ModelProperty.vsh],
            tables[ModelProperty.eta],
        )

    @property
    def surface_radius(self) -> float:
        """Surface radius of the model in km."""
        return float(self.radii[-1])

    @property
    @abstractmethod
    def layer_count(self) -> int:
        """Number of layers in the model."""

    @property
    def is_anisotropic(self) -> bool:
        return all(self.table(prop) is not None for prop in ANISOTROPIC_PROPERTIES)

    @property
    def has_attenuation(self) -> bool:
        return all(self.table(prop) is not None for prop in ATTENUATION_PROPERTIES)

    @property
    def has_density(self) -> bool:
        return self.density is not None

    @property
    def has_reference_frequency(self) -> bool:
        return self.reference_frequency is not None

    def table(self, prop: ModelProperty) -> Optional[np.ndarray]:
        """
        Get the table holding one property.

        Parameters
        ----------
        prop : ModelProperty
            The property.

        Returns
        -------
        np.ndarray or None
            The read-only table, or None if the model does not define it.
        """
        return getattr(self, prop.value)

    def tables(self) -> Iterator[tuple[ModelProperty, np.ndarray]]:
        """Iterate over (property, table) for every property the model defines."""
        for prop in ModelProperty:
            values = self.table(prop)
            if values is not None:
                yield prop, values

    def find_layer(self, r: float) -> int:
        """
        Find the index of the layer containing radius r.

        Parameters
        ----------
        r : float
            Radius in km.

        Returns
        -------
        int
            0-based layer index.

        Raises
        ------
        DomainError
            If r is negative or greater than the surface radius.
        """
        if np.isnan(r):
            raise DomainError(r, "radius must be a number")
        if r < 0:
            raise DomainError(r, "radius cannot be negative")
        if r > self.surface_radius:
            raise DomainError(
                r,
                f"radius is greater than the surface radius of the model "
                f"({self.surface_radius} km)",
            )
        return self._locate(float(r))

    @abstractmethod
    def _locate(self, r: float) -> int:
        pass

    @abstractmethod
    def evaluate_table(self, values: np.ndarray, r: float) -> float:
        """Evaluate a property table of this model at radius r km."""

    @abstractmethod
    def mass_within(self, r: float) -> float:
        """Mass in kg inside radius r km, assuming density is defined."""

    @abstractmethod
    def integration_intervals(self) -> list[tuple[float, float]]:
        """Radial intervals (km) of non-zero width within which properties are smooth."""

    def boundaries(self) -> np.ndarray:
        """Radii (km) of the internal boundaries between layers."""
        return self.radii[:-1].copy()

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        if self.reference_frequency != other.reference_frequency:
            return False
        if not np.array_equal(self.radii, other.radii):
            return False
        for prop in ModelProperty:
            a, b = self.table(prop), other.table(prop)
            if (a is None) != (b is None):
                return False
            if a is not None and not np.array_equal(a, b):
                return False
        return True

    __hash__ = None

    def isapprox(
        self,
        other: "RadialModel",
        rtol: float = float(np.sqrt(np.finfo(float).eps)),
        atol: float = 0.0,
    ) -> bool:
        """
        Compare two models of the same variant within a tolerance.

        Each pair of arrays a, b is considered equal when
        ``norm(a - b) <= max(atol, rtol * max(norm(a), norm(b)))``.

        Parameters
        ----------
        other : RadialModel
            Model to compare with.
        rtol : float, optional
            Relative tolerance.
        atol : float, optional
            Absolute tolerance.

        Returns
        -------
        bool
            True if the models are approximately equal.
        """
        if type(other) is not type(self):
            return False
        if (self.reference_frequency is None) != (other.reference_frequency is None):
            return False
        if self.reference_frequency is not None and not np.isclose(
            self.reference_frequency, other.reference_frequency, rtol=rtol, atol=atol
        ):
            return False
        if not _arrays_isapprox(self.radii, other.radii, rtol, atol):
            return False
        for prop in ModelProperty:
            a, b = self.table(prop), other.table(prop)
            if (a is None) != (b is None):
                return False
            if a is not None and not _arrays_isapprox(a, b, rtol, atol):
                return False
        return True

    def __repr__(self):
        flags = []
        if self.has_density:
            flags.append("density")
        if self.is_anisotropic:
            flags.append("anisotropic")
        if self.has_attenuation:
            flags.append("attenuation")
        return (
            f"{type(self).__name__}(surface_radius={self.surface_radius}, "
            f"layer_count={self.layer_count}, "
            f"reference_frequency={self.reference_frequency}, "
            f"tables=[{', '.join(flags)}])"
        )


class SteppedLayeredModel(RadialModel):
    """
    A model of layers each with constant properties.

    ``r`` gives the top of each layer; the last value is the surface radius.
    A radius exactly on a layer top belongs to the layer above it.
    """

    variant = ModelVariant.STEPPED

    def _validate_radii(self, radii: np.ndarray) -> None:
        if radii[0] <= 0:
            raise ValidationError("the first layer top must be above the centre")
        if np.any(np.diff(radii) <= 0):
            raise ValidationError("radii must increase monotonically")

    @property
    def layer_count(self) -> int:
        return self.radii.size

    def _locate(self, r: float) -> int:
        return find_layer_index(self.radii, r)

    def evaluate_table(self, values: np.ndarray, r: float) -> float:
        return float(values[self.find_layer(r)])

    def mass_within(self, r: float) -> float:
        return _stepped_mass(self.radii, self.density, self.find_layer(r), float(r))

    def integration_intervals(self) -> list[tuple[float, float]]:
        bottoms = np.concatenate(([0.0], self.radii[:-1]))
        return list(zip(bottoms.tolist(), self.radii.tolist()))


class LinearLayeredModel(RadialModel):
    """
    A model defined at nodes with linear interpolation between them.

    ``r`` gives the radius of each node from the centre (0 km) to the
    surface. A radius repeated twice introduces a discontinuity there, and
    there are ``len(r) - 1`` layers.
    """

    variant = ModelVariant.LINEAR
    _table_entry = "node"

    def _validate_radii(self, radii: np.ndarray) -> None:
        if radii.size < 2:
            raise ValidationError("a linear model needs at least two nodes")
        if radii[0] != 0:
            raise ValidationError("the first node radius must be 0 km")
        steps = np.diff(radii)
        if np.any(steps < 0):
            raise ValidationError("radii must increase monotonically")
        if np.any((steps[:-1] == 0) & (steps[1:] == 0)):
            raise ValidationError("no more than two nodes may share a radius")
        if steps[-1] == 0:
            raise ValidationError("the topmost layer must have non-zero thickness")

    @property
    def layer_count(self) -> int:
        return self.radii.size - 1

    def _locate(self, r: float) -> int:
        return find_node_interval(self.radii, r)

    def evaluate_table(self, values: np.ndarray, r: float) -> float:
        i = self.find_layer(r)
        return float(
            linear_interpolation(
                self.radii[i], self.radii[i + 1], values[i], values[i + 1], float(r)
            )
        )

    def mass_within(self, r: float) -> float:
        return _linear_mass(self.radii, self.density, self.find_layer(r), float(r))

    def integration_intervals(self) -> list[tuple[float, float]]:
        return [
            (float(r0), float(r1))
            for r0, r1 in zip(self.radii[:-1], self.radii[1:])
            if r1 > r0
        ]

    def boundaries(self) -> np.ndarray:
        inner = self.radii[1:-1]
        return np.unique(inner[np.diff(self.radii)[:-1] == 0])


class PolynomialModel(RadialModel):
    """
    A model whose properties are polynomials of normalised radius in each layer.

    Each property is an array of shape ``(order + 1, n_layers)``, and within
    layer ``i`` at radius ``r`` km, for a surface radius ``a`` km, its value is

        c[0, i] + c[1, i]*(r/a) + c[2, i]*(r/a)**2 + ...

    Different properties may use different orders. A vector of length
    ``n_layers`` is accepted as an order-0 (constant) polynomial. Isotropic
    ``vp`` and ``vs`` must always be given.
    """

    variant = ModelVariant.POLYNOMIAL

    def _validate_radii(self, radii: np.ndarray) -> None:
        if radii[0] <= 0:
            raise ValidationError("the first layer top must be above the centre")
        if np.any(np.diff(radii) <= 0):
            raise ValidationError("radii must increase monotonically")

    def _check_table(self, prop: ModelProperty, value, n: int) -> np.ndarray:
        coeffs = np.asarray(value, dtype=np.float64)
        if coeffs.ndim == 1:
            if coeffs.size != n:
                raise ValidationError(
                    f"vector of {prop.value} coefficients must have length {n}"
                )
            return coeffs.reshape(1, n)
        if coeffs.ndim != 2 or coeffs.shape[0] == 0 or coeffs.shape[1] != n:
            raise ValidationError(
                f"{prop.value} coefficients must have shape (order + 1, {n}), "
                f"got {coeffs.shape}"
            )
        return coeffs

    def _voigt_defaults(self, tables: dict):
        raise ValidationError(
            "vp and vs must be given explicitly for a polynomial model"
        )

    @property
    def layer_count(self) -> int:
        return self.radii.size

    def _locate(self, r: float) -> int:
        return find_layer_index(self.radii, r)

    def evaluate_table(self, values: np.ndarray, r: float) -> float:
        layer = self.find_layer(r)
        return float(evaluate_polynomial(values, layer, float(r) / self.surface_radius))

    def mass_within(self, r: float) -> float:
        return _polynomial_mass(
            self.radii, self.density, self.surface_radius, self.find_layer(r), float(r)
        )

    def integration_intervals(self) -> list[tuple[float, float]]:
        bottoms = np.concatenate(([0.0], self.radii[:-1]))
        return list(zip(bottoms.tolist(), self.radii.tolist()))
