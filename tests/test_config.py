import pytest
from sph2d.config import PRESETS, SimulationParams
from sph2d.errors import ConfigError


def test_defaults_are_valid():
    params = SimulationParams()
    assert params.validate() is params
    assert params.use_spatial_grid is True
    assert params.viscosity_strength == 0.0


@pytest.mark.parametrize("name", sorted(PRESETS))
def test_presets_are_valid(name):
    params = SimulationParams.from_preset(name)
    params.validate()
    for key, value in PRESETS[name].items():
        assert getattr(params, key) == value


def test_preset_overrides():
    params = SimulationParams.from_preset("plate", smoothing_radius=0.5)
    assert params.smoothing_radius == 0.5
    assert params.gravity == 0.0


def test_unknown_preset():
    with pytest.raises(ConfigError, match="Unknown preset"):
        SimulationParams.from_preset("ocean")


def test_copy_overrides_and_rejects_unknown_fields():
    params = SimulationParams()
    other = params.copy(gravity=0.0)
    assert other.gravity == 0.0
    assert params.gravity == 5.0
    assert other != params
    assert params.copy() == params
    with pytest.raises(ConfigError):
        params.copy(temperature=3.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"smoothing_radius": 0.0},
        {"smoothing_radius": -0.35},
        {"smoothing_radius": float("nan")},
        {"particle_mass": 0.0},
        {"collision_damping": 1.5},
        {"collision_damping": -0.1},
        {"particle_radius": -0.01},
        {"viscosity_strength": -1.0},
        {"gravity": float("inf")},
    ],
)
def test_invalid_parameters(overrides):
    with pytest.raises(ConfigError):
        SimulationParams(**overrides).validate()


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)
