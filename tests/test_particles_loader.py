import numpy as np
import pytest
from sph2d.particles import Particles
from sph2d.particles_loader import (SnapshotExporter, import_snapshot,
                                    simulation_times, snapshot_frame)


@pytest.fixture
def particles():
    store = Particles.from_positions([[0.0, 0.0], [0.5, -0.5], [1.0, 1.0]],
                                     mass=2.0,
                                     velocities=[[1, 0], [0, 1], [1, 1]])
    store.density[:] = [10.0, 11.0, 12.0]
    return store


def test_snapshot_frame(particles):
    df = snapshot_frame(particles, 0.5)
    assert list(df.columns) == [
        "sim_time", "particle_index", "x", "y", "vx", "vy", "density", "mass"
    ]
    assert len(df) == 3
    assert (df["sim_time"] == 0.5).all()


def test_export_and_import_roundtrip(tmp_path, particles):
    """
    Two snapshots are written; importing picks the closest time.
    """
    path = str(tmp_path / "run")
    with SnapshotExporter(path) as exporter:
        assert exporter.file_path.endswith(".parquet")
        assert exporter.export(particles, 0.0)
        moved = particles.copy()
        moved.position += 1.0
        # too soon after the previous snapshot
        assert not exporter.export(moved, 0.01)
        assert exporter.export(moved, 0.1)

    np.testing.assert_allclose(simulation_times(path), [0.0, 0.1])

    first = import_snapshot(path, sim_time=0.02)
    np.testing.assert_allclose(first.position, particles.position)
    np.testing.assert_allclose(first.velocity, particles.velocity)
    np.testing.assert_allclose(first.density, particles.density)
    np.testing.assert_allclose(first.mass, particles.mass)

    last = import_snapshot(path + ".parquet", sim_time=5.0)
    np.testing.assert_allclose(last.position, particles.position + 1.0)


def test_exporter_replaces_existing_file(tmp_path, particles):
    path = str(tmp_path / "run.parquet")
    with SnapshotExporter(path) as exporter:
        exporter.export(particles, 1.0)
    with SnapshotExporter(path) as exporter:
        exporter.export(particles, 2.0)
    np.testing.assert_allclose(simulation_times(path), [2.0])


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        import_snapshot(str(tmp_path / "nothing"), 0.0)


def test_empty_path():
    with pytest.raises(ValueError):
        SnapshotExporter("")
