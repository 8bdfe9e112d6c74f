"""Provenance tracking for simulation runs."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ProvenanceTracker:
    """
    Tracks provenance metadata for simulation runs.

    Records package version, config hash, the seed and key parameters, and
    the processing steps of a run.
    """

    def __init__(self, package_version: str, config: "SimulationConfig"):
        """
        Initialize provenance tracker.

        Args:
            package_version: pathway_sim version string (e.g., "0.1.0")
            config: SimulationConfig instance
        """
        self.package_version = package_version
        self.config_hash = config.config_hash()
        self.parameters = {
            "seed": config.seed,
            "sample_sizes": list(config.sample_sizes),
            "truth_pathway_id": config.truth_pathway_id,
            "split_fraction": config.split_fraction,
            "overlap_threshold": config.overlap_threshold,
            "model": config.model.model_dump(),
        }
        self.processing_steps = []
        self.created_at = datetime.now(timezone.utc)

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """
        Record a processing step.

        Args:
            step_name: Name of the processing step
            details: Optional dictionary of additional details
        """
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        """
        Create full provenance metadata dictionary.

        Returns:
            Dictionary with all provenance information
        """
        return {
            "package_version": self.package_version,
            "config_hash": self.config_hash,
            "parameters": self.parameters,
            "created_at": self.created_at.isoformat(),
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Save provenance metadata as a JSON sidecar file.

        Args:
            output_path: Path to the main output file.
                         Sidecar will be saved as {path}.provenance.json

        Returns:
            Path of the written sidecar
        """
        sidecar_path = output_path.with_suffix(".provenance.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)

        with open(sidecar_path, "w") as f:
            json.dump(self.create_metadata(), f, indent=2, default=str)
        return sidecar_path

    def save_to_store(self, store: "ResultStore") -> None:
        """
        Append this run's provenance record to the store.

        Args:
            store: ResultStore instance
        """
        metadata = self.create_metadata()

        store.conn.execute("""
            CREATE TABLE IF NOT EXISTS _provenance (
                version VARCHAR,
                config_hash VARCHAR,
                created_at TIMESTAMP,
                parameters_json VARCHAR,
                steps_json VARCHAR
            )
        """)

        store.conn.execute("""
            INSERT INTO _provenance (version, config_hash, created_at, parameters_json, steps_json)
            VALUES (?, ?, ?, ?, ?)
        """, [
            metadata["package_version"],
            metadata["config_hash"],
            metadata["created_at"],
            json.dumps(metadata["parameters"]),
            json.dumps(metadata["processing_steps"], default=str),
        ])

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        with open(sidecar_path) as f:
            return json.load(f)

    @classmethod
    def from_config(
        cls,
        config: "SimulationConfig",
        version: Optional[str] = None
    ) -> "ProvenanceTracker":
        """
        Create ProvenanceTracker from a SimulationConfig.

        Args:
            config: SimulationConfig instance
            version: Version string. If None, uses pathway_sim.__version__

        Returns:
            ProvenanceTracker instance
        """
        if version is None:
            from pathway_sim import __version__
            version = __version__

        return cls(version, config)
