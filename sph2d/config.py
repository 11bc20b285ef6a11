import math

from sph2d.errors import ConfigError

PRESETS = {
    "default": {
        "particle_radius": 0.05,
        "gravity": 5.0,
        "collision_damping": 0.85,
        "smoothing_radius": 0.35,
        "particle_mass": 1.0,
        "target_density": 36.0,
        "pressure_multiplier": 26.0,
        "viscosity_strength": 2.0,
        "interaction_strength": 330.0,
        "interaction_radius": 6.3,
        "slope_size": 0.0,
    },
    "tank": {
        "particle_radius": 0.1,
        "gravity": 5.0,
        "collision_damping": 0.85,
        "smoothing_radius": 0.35,
        "particle_mass": 1.0,
        "target_density": 36.0,
        "pressure_multiplier": 26.0,
        "viscosity_strength": 2.0,
        "interaction_strength": 330.0,
        "interaction_radius": 6.3,
        "slope_size": 0.0,
    },
    "plate": {
        "particle_radius": 0.05,
        "gravity": 0.0,
        "collision_damping": 0.85,
        "smoothing_radius": 0.35,
        "particle_mass": 1.0,
        "target_density": 6.6,
        "pressure_multiplier": 18.0,
        "viscosity_strength": 0.5,
        "interaction_strength": 250.0,
        "interaction_radius": 2.8,
        "slope_size": 0.0,
    },
}


class SimulationParams:

    def __init__(self,
                 gravity=5.0,
                 collision_damping=0.85,
                 smoothing_radius=0.35,
                 particle_mass=1.0,
                 target_density=36.0,
                 pressure_multiplier=26.0,
                 use_spatial_grid=True,
                 particle_radius=0.05,
                 viscosity_strength=0.0,
                 interaction_strength=0.0,
                 interaction_radius=0.0,
                 slope_size=0.0):
        """
        Live parameter set read by every simulation step.

        :param gravity: Magnitude of the downward acceleration.
        :param collision_damping: Fraction of the normal velocity kept after
        bouncing off a wall, in [0, 1].
        :param smoothing_radius: SPH interaction radius, also the grid cell
        size.
        :param particle_mass: Mass given to every particle.
        :param target_density: Rest density of the linear equation of state.
        :param pressure_multiplier: Stiffness of the equation of state.
        :param use_spatial_grid: Use the hash grid for neighbour search. When
        False every particle is visited (reference path used in tests).
        :param particle_radius: Collision radius kept between particles and
        the domain walls.
        :param viscosity_strength: Scale of the viscosity force (0 disables).
        :param interaction_strength: Strength of the external interaction
        point, positive attracts and negative repels.
        :param interaction_radius: Reach of the interaction point.
        :param slope_size: Leg length of the 45 degree slope in the
        bottom-left corner (0 disables).
        """
        self.gravity = gravity
        self.collision_damping = collision_damping
        self.smoothing_radius = smoothing_radius
        self.particle_mass = particle_mass
        self.target_density = target_density
        self.pressure_multiplier = pressure_multiplier
        self.use_spatial_grid = use_spatial_grid
        self.particle_radius = particle_radius
        self.viscosity_strength = viscosity_strength
        self.interaction_strength = interaction_strength
        self.interaction_radius = interaction_radius
        self.slope_size = slope_size

    @classmethod
    def from_preset(cls, name, **overrides):
        if name not in PRESETS:
            raise ConfigError(f"Unknown preset: {name}")
        values = dict(PRESETS[name])
        values.update(overrides)
        return cls(**values)

    def copy(self, **overrides):
        values = vars(self).copy()
        for key in overrides:
            if key not in values:
                raise ConfigError(f"Unknown parameter: {key}")
        values.update(overrides)
        return SimulationParams(**values)

    def validate(self):
        """
        Check every parameter and raise ConfigError on the first invalid one.
        Returns self so calls can be chained.
        """
        for name in ("gravity", "collision_damping", "smoothing_radius",
                     "particle_mass", "target_density",
                     "pressure_multiplier", "particle_radius",
                     "viscosity_strength", "interaction_strength",
                     "interaction_radius", "slope_size"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigError(f"{name} must be finite, got {value}")
        if self.smoothing_radius <= 0:
            raise ConfigError(
                f"smoothing_radius must be positive, got "
                f"{self.smoothing_radius}")
        if self.particle_mass <= 0:
            raise ConfigError(
                f"particle_mass must be positive, got {self.particle_mass}")
        if not 0.0 <= self.collision_damping <= 1.0:
            raise ConfigError(
                f"collision_damping must be in [0, 1], got "
                f"{self.collision_damping}")
        for name in ("particle_radius", "viscosity_strength",
                     "interaction_radius", "slope_size"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be non-negative")
        return self

    def __eq__(self, other):
        if not isinstance(other, SimulationParams):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"SimulationParams({fields})"
