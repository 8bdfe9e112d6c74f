"""Reader for pathway catalogs in GMT format.

Each line is ``term<TAB>description<TAB>gene1<TAB>gene2...``.
"""

from pathlib import Path

import structlog

from pathway_sim.catalog.models import PathwayCatalog
from pathway_sim.errors import InvalidConfiguration

logger = structlog.get_logger(__name__)


def read_gmt(path: Path | str) -> PathwayCatalog:
    """
    Load a GMT file into a PathwayCatalog.

    Args:
        path: Path to the GMT file

    Returns:
        PathwayCatalog keyed by term

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidConfiguration: On malformed lines or duplicate terms
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    mapping: dict[str, list[str]] = {}
    with open(path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.rstrip("\n\r")
            if not line.strip():
                continue
            fields = line.split("\t")
            if len(fields) < 3:
                raise InvalidConfiguration(
                    f"Malformed GMT line {line_no} in {path}: expected term, "
                    "description and at least one gene"
                )
            term = fields[0].strip()
            if term in mapping:
                raise InvalidConfiguration(
                    f"Duplicate term on GMT line {line_no}", pathway_id=term
                )
            mapping[term] = [g.strip() for g in fields[2:] if g.strip()]

    logger.info("read_gmt_done", path=str(path), pathways=len(mapping))
    return PathwayCatalog.from_mapping(mapping)
