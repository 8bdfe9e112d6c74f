"""Pathway catalog: an immutable mapping of term -> gene set."""

from collections.abc import Iterable, Iterator, Mapping

from pathway_sim.errors import InvalidConfiguration


class PathwayCatalog(Mapping):
    """
    Read-only catalog of pathways keyed by term identifier.

    Gene sets are stored as frozensets, so a catalog can be shared with
    worker processes without any risk of tasks mutating it.
    """

    def __init__(self, pathways: Mapping[str, frozenset[str]]):
        self._pathways = dict(pathways)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "PathwayCatalog":
        """
        Build a catalog from an externally loaded term -> gene list mapping.

        Args:
            mapping: Term identifier to gene symbols

        Returns:
            PathwayCatalog with frozenset gene sets

        Raises:
            InvalidConfiguration: If the mapping is empty, a term is blank,
                                  or a gene set is empty
        """
        if not mapping:
            raise InvalidConfiguration("Pathway catalog is empty")

        pathways: dict[str, frozenset[str]] = {}
        for term, genes in mapping.items():
            if not term:
                raise InvalidConfiguration("Pathway catalog contains a blank term")
            gene_set = frozenset(g for g in genes if g)
            if not gene_set:
                raise InvalidConfiguration(
                    "Pathway has an empty gene set", pathway_id=term
                )
            pathways[term] = gene_set

        return cls(pathways)

    def __getitem__(self, term: str) -> frozenset[str]:
        return self._pathways[term]

    def __iter__(self) -> Iterator[str]:
        return iter(self._pathways)

    def __len__(self) -> int:
        return len(self._pathways)

    def __repr__(self) -> str:
        return f"PathwayCatalog({len(self)} pathways)"

    def truth_genes(self, truth_pathway_id: str) -> frozenset[str]:
        """Gene set of the pathway designated as the simulated signal."""
        if truth_pathway_id not in self._pathways:
            raise InvalidConfiguration(
                "Truth pathway not found in catalog", pathway_id=truth_pathway_id
            )
        return self._pathways[truth_pathway_id]
