"""Run configuration.

A single immutable :class:`RunConfig` is built once from the command line and
handed to every component that needs it.
"""

from dataclasses import dataclass
from typing import Optional

from .core.types import SimplifyAlgorithm
from .wkb import DEFAULT_SRID


@dataclass(frozen=True)
class RunConfig:
    """Release years, store connection and simplification settings.

    Attributes:
        poa_release: Release year of the postal area dataset
        lga_release: Release year of the local government area dataset
        sed_release: Release year of the state electoral division dataset
        ced_release: Release year of the commonwealth electoral division dataset
        db_url: libpq connection string or URL
        db_user: Database user
        db_password: Database password
        srid: Spatial reference of stored geometry
        tolerance: Edge simplification tolerance (degrees for GDA94)
        algorithm: Edge simplification algorithm
        node_precision: Grid spacing for node identity (None = exact)
    """
    poa_release: str
    lga_release: str
    sed_release: str
    ced_release: str
    db_url: str
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    srid: int = DEFAULT_SRID
    tolerance: float = 0.001
    algorithm: SimplifyAlgorithm = SimplifyAlgorithm.RDP
    node_precision: Optional[float] = None

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")
        if self.node_precision is not None and self.node_precision <= 0:
            raise ValueError(f"node_precision must be positive, got {self.node_precision}")

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        """Build a config from an ``argparse.Namespace``."""
        algorithm = getattr(args, 'algorithm', SimplifyAlgorithm.RDP.value)
        return cls(
            poa_release=args.poa_release,
            lga_release=args.lga_release,
            sed_release=args.sed_release,
            ced_release=args.ced_release,
            db_url=args.db_url,
            db_user=args.db_user,
            db_password=args.db_password,
            tolerance=getattr(args, 'tolerance', 0.001),
            algorithm=SimplifyAlgorithm(algorithm),
            node_precision=getattr(args, 'node_precision', None),
        )


__all__ = [
    'RunConfig',
]
