"""DuckDB-based storage for simulation result checkpoints."""

from pathlib import Path
from typing import Optional

import duckdb
import polars as pl

from pathway_sim.modeling.models import OVERLAP_SCHEMA, RESULT_SCHEMA

RESULTS_TABLE = "simulation_results"
OVERLAPS_TABLE = "pathway_overlaps"
FAILURES_TABLE = "task_failures"

FAILURE_SCHEMA = {
    "pathway_id": pl.Utf8,
    "sample_size": pl.Int64,
    "error_type": pl.Utf8,
    "message": pl.Utf8,
}


class ResultStore:
    """
    DuckDB-backed store for ResultTable, OverlapTable and failure records.

    A run is expensive (hundreds of pathways x repeated CV), so its tables
    are checkpointed and a later invocation can skip straight to reporting.
    """

    def __init__(self, db_path: Path):
        """
        Open (or create) the store.

        Args:
            db_path: Path to DuckDB database file. Parent directories
                     are created automatically.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path))

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS _checkpoints (
                table_name VARCHAR PRIMARY KEY,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                row_count INTEGER,
                config_hash VARCHAR
            )
        """)

    def save_dataframe(
        self,
        df: pl.DataFrame,
        table_name: str,
        config_hash: str = "",
    ) -> None:
        """
        Save a polars DataFrame as a table, replacing any previous version.

        Args:
            df: DataFrame to save
            table_name: Name for the DuckDB table
            config_hash: Hash of the config that produced df
        """
        # DuckDB resolves `df` from the local scope (replacement scan)
        self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM df")

        self.conn.execute("""
            INSERT OR REPLACE INTO _checkpoints (table_name, row_count, config_hash, created_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
        """, [table_name, df.height, config_hash])

    def load_dataframe(self, table_name: str) -> Optional[pl.DataFrame]:
        """
        Load a table as a polars DataFrame.

        Returns:
            DataFrame or None if table doesn't exist
        """
        try:
            return self.conn.execute(f"SELECT * FROM {table_name}").pl()
        except duckdb.CatalogException:
            return None

    def has_checkpoint(self, table_name: str, config_hash: Optional[str] = None) -> bool:
        """
        Check if a checkpoint exists.

        Args:
            table_name: Name of the table to check
            config_hash: If given, only a checkpoint written with this
                         config hash counts

        Returns:
            True if a matching checkpoint exists
        """
        if config_hash is None:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _checkpoints WHERE table_name = ?",
                [table_name],
            ).fetchone()
        else:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _checkpoints WHERE table_name = ? AND config_hash = ?",
                [table_name, config_hash],
            ).fetchone()
        return result[0] > 0

    def delete_checkpoint(self, table_name: str) -> None:
        """Drop a table and its checkpoint metadata."""
        self.conn.execute(f"DROP TABLE IF EXISTS {table_name}")
        self.conn.execute(
            "DELETE FROM _checkpoints WHERE table_name = ?",
            [table_name],
        )

    def save_run(
        self,
        results: pl.DataFrame,
        overlaps: pl.DataFrame,
        failures: list,
        config_hash: str,
    ) -> None:
        """
        Checkpoint the tables of one simulation run.

        Args:
            results: ResultTable
            overlaps: OverlapTable
            failures: TaskFailure records
            config_hash: Hash of the run's SimulationConfig
        """
        failures_df = pl.DataFrame(
            [
                {
                    "pathway_id": f.pathway_id,
                    "sample_size": f.sample_size,
                    "error_type": f.error_type,
                    "message": f.message,
                }
                for f in failures
            ],
            schema=FAILURE_SCHEMA,
        )
        self.save_dataframe(results.cast(RESULT_SCHEMA), RESULTS_TABLE, config_hash)
        self.save_dataframe(overlaps.cast(OVERLAP_SCHEMA), OVERLAPS_TABLE, config_hash)
        self.save_dataframe(failures_df, FAILURES_TABLE, config_hash)

    def load_run(self) -> Optional[tuple[pl.DataFrame, pl.DataFrame]]:
        """
        Load checkpointed (results, overlaps), sorted by key.

        Returns:
            Tuple of DataFrames or None if no run has been saved
        """
        results = self.load_dataframe(RESULTS_TABLE)
        overlaps = self.load_dataframe(OVERLAPS_TABLE)
        if results is None or overlaps is None:
            return None
        return (
            results.sort(["pathway_id", "sample_size"]),
            overlaps.sort(["sample_size", "pathway_id"]),
        )

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @classmethod
    def from_config(cls, config: "SimulationConfig") -> "ResultStore":
        """Create a ResultStore at config.duckdb_path."""
        return cls(config.duckdb_path)
