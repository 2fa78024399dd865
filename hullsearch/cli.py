import argparse
import logging
import os
import sys

from crhs.errors import ShardError
from hullsearch.analyse import analyse, analyse_batch
from hullsearch.enumerator import UPPER_LIMIT
from hullsearch.settings import RunConfig, soft_limit
from spn.catalog import cipher_names

"""

Kommandozeile. Die Unterbefehle differential und linear analysieren eine
Chiffre, cg analysiert alle Chiffren eines Batches mit ihrer Standardanzahl
Runden.

"""

log = logging.getLogger(__name__)


def _add_common(parser):
    parser.add_argument('-o', '--out', required=True, help="Ausgabeverzeichnis")
    parser.add_argument('-f', '--from', dest='in_dir', default=None,
                        help="Verzeichnis mit bereits gelösten Mastern (.bdd)")
    parser.add_argument('-s', '--silent', action='store_true', help="Keine Fortschrittsbalken, nur Warnungen")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug-Ausgaben")
    parser.add_argument('--enumeration', choices=('all', 'targeted', 'semi'), default='all',
                        help="Aufzählung der inneren Pfade")
    parser.add_argument('--upper_limit', type=int, default=UPPER_LIMIT,
                        help="Höchstens so viele innere Pfade werden bewertet")
    parser.add_argument('--plot', action='store_true', help="Diagramme erstellen")
    parser.add_argument('--bound', action='store_true', help="Schranke für einzelne Charakteristiken (z3)")


def build_parser():
    parser = argparse.ArgumentParser(prog='hullsearch',
                                     description="Suche nach differentiellen und linearen Hulls in SPN-Chiffren")
    sub = parser.add_subparsers(dest='command', required=True)

    for name in ('differential', 'linear'):
        p = sub.add_parser(name, help=f"{name.capitalize()} Hull einer Chiffre")
        p.add_argument('-c', '--cipher', required=True, choices=cipher_names())
        lim = p.add_mutually_exclusive_group(required=True)
        lim.add_argument('--soft_lim', type=int, help="Weiche Grenze für die Grösse des Masters")
        lim.add_argument('-e', '--exponent', type=int, help="Weiche Grenze als Exponent zur Basis 2")
        p.add_argument('-r', '--rounds', type=int, default=None, help="Anzahl Runden")
        _add_common(p)

    p = sub.add_parser('cg', help="Alle Chiffren eines Batches")
    p.add_argument('-e', '--exponent', type=int, required=True, help="Weiche Grenze als Exponent zur Basis 2")
    p.add_argument('-b', '--batch', type=int, required=True, help="Nummer des Batches")
    p.add_argument('-l', '--linear', action='store_true', help="Lineare Hulls")
    p.add_argument('-d', '--differential', action='store_true', help="Differentielle Hulls")
    _add_common(p)
    return parser


def setup_logging(args):
    if args.verbose:
        level = logging.DEBUG
    elif args.silent:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def make_config(args, **kwargs):
    return RunConfig(
        cipher=kwargs.get('cipher', getattr(args, 'cipher', None)),
        mode=kwargs.get('mode', args.command),
        soft_lim=soft_limit(getattr(args, 'soft_lim', None), args.exponent),
        rounds=getattr(args, 'rounds', None),
        out_dir=args.out,
        in_dir=args.in_dir,
        silent=args.silent,
        upper_limit=args.upper_limit,
        enumeration=args.enumeration,
        plot=args.plot,
        bound=args.bound,
    )


def _report_failure(args, err):
    log.error("Run failed: %s", err)
    os.makedirs(args.out, exist_ok=True)
    with open(os.path.join(args.out, "hullsearch_trace.txt"), "a") as f:
        f.write(f"ERROR {type(err).__name__}: {err}\n")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args)

    try:
        if args.command == 'cg':
            modes = []
            if args.differential or not args.linear:
                modes.append('differential')
            if args.linear:
                modes.append('linear')
            analyse_batch(args.batch, make_config(args, cipher=None, mode=modes[0]), modes,
                          show_results=not args.silent)
        else:
            analyse(make_config(args), show_results=not args.silent)
    except (ShardError, AssertionError) as err:
        _report_failure(args, err)
        return 1
    except ValueError as err:
        parser.error(str(err))
    return 0


if __name__ == '__main__':
    sys.exit(main())
