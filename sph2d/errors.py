class ConfigError(ValueError):
    """Raised when a parameter set or an initial layout cannot be used."""


class NumericAnomaly:

    def __init__(self, particle_index, density, step):
        """
        Record of a particle whose density was not positive when its pressure
        force was evaluated. Its pressure term is skipped for that step.

        :param particle_index: Index of the particle in the particle store.
        :param density: The offending density value.
        :param step: Step counter at which the anomaly happened.
        """
        self.particle_index = particle_index
        self.density = density
        self.step = step

    def __repr__(self):
        return (f"NumericAnomaly(particle_index={self.particle_index}, "
                f"density={self.density}, step={self.step})")
