import logging
import os

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from sph2d.particles import Particles

logger = logging.getLogger(__name__)


def _parquet_path(export_path):
    if not export_path:
        raise ValueError("Export path is empty.")
    if not export_path.endswith(".parquet"):
        return export_path + ".parquet"
    return export_path


def snapshot_frame(particles, sim_time):
    """One row per particle, tagged with the simulation time."""
    num_particles = particles.num_particles
    data = {
        "sim_time": np.full(num_particles, sim_time, dtype=np.float64),
        "particle_index": np.arange(num_particles, dtype=np.int32),
        "x": particles.position[:, 0],
        "y": particles.position[:, 1],
        "vx": particles.velocity[:, 0],
        "vy": particles.velocity[:, 1],
        "density": particles.density,
        "mass": particles.mass,
    }
    return pd.DataFrame(data)


class SnapshotExporter:

    def __init__(self, export_path, interval=0.033):
        """
        Append particle snapshots to a single Parquet file.

        :param export_path: File name, ".parquet" is appended if missing. An
        existing file is replaced.
        :param interval: Minimum simulated time between two snapshots.
        """
        self.file_path = _parquet_path(export_path)
        self.interval = interval
        self.last_export_time = None
        self._writer = None
        if os.path.exists(self.file_path):
            os.remove(self.file_path)
        logger.info("[Export] Initialized binary export file: %s",
                    self.file_path)

    def export(self, particles, sim_time, force=False):
        """
        Write a snapshot if ``interval`` has elapsed since the previous one.
        Returns True when a snapshot was written.
        """
        if (not force and self.last_export_time is not None and
                sim_time - self.last_export_time < self.interval):
            return False
        table = pa.Table.from_pandas(snapshot_frame(particles, sim_time),
                                     preserve_index=False)
        if self._writer is None:
            self._writer = pq.ParquetWriter(self.file_path,
                                            table.schema,
                                            compression="snappy")
        self._writer.write_table(table)
        self.last_export_time = sim_time
        return True

    def close(self):
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def simulation_times(export_path):
    """Sorted distinct simulation times stored in the file."""
    file_path = _parquet_path(export_path)
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Export file '{file_path}' not found.")
    table = pq.read_table(file_path, columns=["sim_time"])
    return np.unique(table["sim_time"].to_numpy())


def _find_closest_time(available_times, target_time):
    """
    Uses binary search to quickly find the closest simulation time.
    """
    idx = np.searchsorted(available_times, target_time, side="left")
    if idx == 0:
        return available_times[0]
    elif idx == len(available_times):
        return available_times[-1]
    else:
        before = available_times[idx - 1]
        after = available_times[idx]
        return before if abs(before -
                             target_time) < abs(after - target_time) else after


def import_snapshot(export_path, sim_time):
    """
    Rebuild a Particles store from the snapshot closest to ``sim_time``.

    :param export_path: Parquet file written by SnapshotExporter.
    :param sim_time: Target simulation time.
    :return: Particles ordered by particle index.
    """
    file_path = _parquet_path(export_path)
    available_times = simulation_times(file_path)
    closest_time = _find_closest_time(available_times, sim_time)

    table = pq.read_table(file_path,
                          filters=[("sim_time", "==", closest_time)])
    df = table.to_pandas()
    if df.empty:
        raise ValueError(f"No data found for sim_time = {closest_time:.3f}")

    df = df.sort_values("particle_index")
    particles = Particles(len(df))
    particles.position[:] = df[["x", "y"]].to_numpy(dtype=np.float64)
    particles.velocity[:] = df[["vx", "vy"]].to_numpy(dtype=np.float64)
    particles.density[:] = df["density"].to_numpy(dtype=np.float64)
    particles.mass[:] = df["mass"].to_numpy(dtype=np.float64)
    return particles
