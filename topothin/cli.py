"""Command line entry point.

    topothin thin POA LGA SED CED DB_URL DB_USER DB_PASSWORD [--tolerance T]
    topothin relate POA LGA SED CED DB_URL DB_USER DB_PASSWORD

``thin`` replaces display geometry with seamless simplified polygons and
writes state outlines; ``relate`` fills the postcode table.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import RunConfig
from .core.errors import TopothinError
from .core.types import SimplifyAlgorithm
from .pipeline import run_relate, run_thin
from .store import GeometryStore

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('poa_release', help='postal area release year')
    parser.add_argument('lga_release', help='local government area release year')
    parser.add_argument('sed_release', help='state electoral division release year')
    parser.add_argument('ced_release', help='commonwealth electoral division release year')
    parser.add_argument('db_url', help='database connection string')
    parser.add_argument('db_user', help='database user')
    parser.add_argument('db_password', help='database password')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug output')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='topothin',
        description='Seamless boundary thinning and postcode relationships for ABS datasets.',
    )
    commands = parser.add_subparsers(dest='command', required=True)

    thin = commands.add_parser('thin', help='simplify display geometry across all layers')
    _add_common_arguments(thin)
    thin.add_argument('--tolerance', type=float, default=0.001,
                      help='simplification tolerance (default: %(default)s)')
    thin.add_argument('--algorithm', choices=[a.value for a in SimplifyAlgorithm],
                      default=SimplifyAlgorithm.RDP.value,
                      help='edge simplification algorithm (default: %(default)s)')
    thin.add_argument('--node-precision', type=float, default=None,
                      help='grid spacing for matching node coordinates (default: exact)')

    relate = commands.add_parser('relate', help='assign postal areas to parent regions')
    _add_common_arguments(relate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = RunConfig.from_args(args)
        with GeometryStore.connect(config) as store:
            if args.command == 'thin':
                run_thin(config, store)
            else:
                run_relate(config, store)
    except (TopothinError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
