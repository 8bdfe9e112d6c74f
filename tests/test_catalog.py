"""Tests for the pathway catalog, gene universe and column projection."""

import polars as pl
import pytest

from pathway_sim.catalog import (
    CLASS_COLUMN,
    PathwayCatalog,
    build_gene_universe,
    project_columns,
    read_gmt,
)
from pathway_sim.errors import InvalidConfiguration, PathwayNotApplicable


@pytest.fixture
def catalog():
    return PathwayCatalog.from_mapping({
        "TRUTH": ["G1", "G2", "G3"],
        "DECOY": ["G4", "G5"],
        "MIXED": ["G1", "G2", "G9"],
    })


@pytest.fixture
def wide_table():
    return pl.DataFrame({
        "G1": [0.1, 0.2, 0.3, 0.4],
        "G2": [1.0, 2.0, 3.0, 4.0],
        "G4": [0.0, 0.0, 1.0, 1.0],
        CLASS_COLUMN: ["Group1", "Group1", "Group2", "Group2"],
    })


def test_catalog_is_read_only_mapping(catalog):
    assert len(catalog) == 3
    assert catalog["TRUTH"] == frozenset({"G1", "G2", "G3"})
    assert isinstance(catalog["DECOY"], frozenset)

    with pytest.raises(TypeError):
        catalog["NEW"] = frozenset({"G1"})


def test_catalog_rejects_empty_gene_set():
    with pytest.raises(InvalidConfiguration) as exc_info:
        PathwayCatalog.from_mapping({"OK": ["G1"], "EMPTY": []})

    assert exc_info.value.pathway_id == "EMPTY"


def test_catalog_rejects_empty_mapping():
    with pytest.raises(InvalidConfiguration):
        PathwayCatalog.from_mapping({})


def test_truth_genes(catalog):
    assert catalog.truth_genes("TRUTH") == frozenset({"G1", "G2", "G3"})

    with pytest.raises(InvalidConfiguration, match="not found"):
        catalog.truth_genes("MISSING")


def test_gene_universe_is_sorted_union(catalog):
    universe = build_gene_universe(catalog)

    assert universe == ["G1", "G2", "G3", "G4", "G5", "G9"]


def test_project_columns_keeps_table_order(wide_table):
    projected = project_columns(wide_table, ["G4", "G1"])

    assert projected.columns == ["G1", "G4", CLASS_COLUMN]
    assert projected.height == wide_table.height


def test_project_columns_drops_absent_genes(wide_table):
    projected = project_columns(wide_table, {"G2", "G9"})

    assert projected.columns == ["G2", CLASS_COLUMN]


def test_project_columns_no_genes_present(wide_table):
    with pytest.raises(PathwayNotApplicable) as exc_info:
        project_columns(wide_table, ["G7", "G8"], pathway_id="P", sample_size=10)

    assert exc_info.value.pathway_id == "P"
    assert exc_info.value.sample_size == 10
    assert "pathway_id=P" in str(exc_info.value)


def test_project_columns_class_column_is_not_a_gene(wide_table):
    with pytest.raises(PathwayNotApplicable):
        project_columns(wide_table, [CLASS_COLUMN])


def test_project_columns_missing_target(wide_table):
    with pytest.raises(KeyError):
        project_columns(wide_table.drop(CLASS_COLUMN), ["G1"])


def test_read_gmt(tmp_path):
    gmt = tmp_path / "pathways.gmt"
    gmt.write_text(
        "TRUTH\thttp://example.org/truth\tG1\tG2\tG3\n"
        "\n"
        "DECOY\tna\tG4\tG5\t\n"
    )

    catalog = read_gmt(gmt)

    assert set(catalog) == {"TRUTH", "DECOY"}
    assert catalog["DECOY"] == frozenset({"G4", "G5"})


def test_read_gmt_duplicate_term(tmp_path):
    gmt = tmp_path / "dup.gmt"
    gmt.write_text("A\tna\tG1\nA\tna\tG2\n")

    with pytest.raises(InvalidConfiguration, match="Duplicate"):
        read_gmt(gmt)


def test_read_gmt_malformed_line(tmp_path):
    gmt = tmp_path / "bad.gmt"
    gmt.write_text("A\tna\n")

    with pytest.raises(InvalidConfiguration, match="Malformed"):
        read_gmt(gmt)
