#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TEMPER – Algebra dei temperamenti regolari / Regular temperament algebra (IT/EN)
Copyright (c) 2025 Luca Bimbi
Distribuito secondo la licenza MIT - vedi il file LICENSE per i dettagli /
Distributed under the MIT license – see the LICENSE file for details

Nome programma: TEMPER / Program name: TEMPER
Autore / Author: LUCA BIMBI
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

import consts
import tables
import utils
from consts import __author__, __date__, __license__, __program_name__, __version__
from subgroup import Subgroup
from temperament import Temperament

# Localizzazione semplice / Simple localization (IT/EN)
_LANG = consts.DEFAULT_LANG

logger = logging.getLogger("temper")


def L(it_msg: str, en_msg: str) -> str:
    """Restituisce il messaggio nella lingua selezionata / Return message in selected language."""
    return it_msg if _LANG == "it" else en_msg


def _detect_lang_from_argv(argv: Optional[List[str]] = None) -> str:
    """Pre-scan di argv per estrarre --lang prima del parsing argparse."""
    av = list(argv if argv is not None else sys.argv[1:])
    # Support both "--lang it" and "--lang=it"
    for i, tok in enumerate(av):
        if tok == "--lang" and i + 1 < len(av):
            lang_val = av[i + 1].lower()
            if lang_val in ("it", "en"):
                return lang_val
        elif tok.startswith("--lang="):
            lang_val2 = tok.split("=", 1)[1].strip().lower()
            if lang_val2 in ("it", "en"):
                return lang_val2
    return consts.DEFAULT_LANG


def print_banner() -> None:
    """Stampa sempre le info di programma: nome, versione, data, autore, licenza."""
    lbl_ver = L("Versione", "Version")
    lbl_date = L("Rilascio", "Release")
    lbl_auth = L("Autore", "Author")
    lbl_lic = L("Licenza", "License")
    print(f"{__program_name__}  |  {lbl_ver}: {__version__}  |  {lbl_date}: {__date__}  |  "
          f"{lbl_auth}: {__author__}  |  {lbl_lic}: {__license__}")


def comma_token(value: str):
    """Parser per virgole: frazione ('81/80') o monzo ('[-4,4,-1]')."""
    if "," in value:
        return utils.int_list(value)
    return value


def parse_prefix(values: List[str]) -> Tuple[int, List[int]]:
    """Converte RANK e INTS di --prefix / Convert the RANK and INTS of --prefix."""
    try:
        rank = int(values[0])
    except ValueError:
        raise argparse.ArgumentTypeError(L(f"Rango non valido: {values[0]}", f"Invalid rank: {values[0]}"))
    return rank, utils.int_list(values[1])


def build_temperament(args: argparse.Namespace) -> Optional[Temperament]:
    """Costruisce il temperamento richiesto / Build the requested temperament."""
    if args.prefix:
        rank, prefix = parse_prefix(args.prefix)
        return Temperament.from_prefix(rank, prefix, args.subgroup)
    if args.vals:
        return Temperament.from_vals(args.vals, args.subgroup)
    if args.commas:
        subgroup = None if args.infer_subgroup else args.subgroup
        return Temperament.from_commas(args.commas, subgroup)
    return None


def enumerate_temperaments(subgroup: Subgroup, min_divisions: int, max_divisions: int) -> List[Tuple[str, Temperament]]:
    """Temperamenti di rango 2 da coppie di val patent / Rank 2 temperaments from pairs of patent vals."""
    found: List[Tuple[str, Temperament]] = []
    for d1 in range(min_divisions, max_divisions + 1):
        for d2 in range(d1 + 1, max_divisions + 1):
            temperament = Temperament.from_vals([d1, d2], subgroup)
            if temperament.rank != 2:
                continue
            temperament.canonize()
            if any(temperament.equals(other) for _, other in found):
                continue
            found.append((f"{d1} & {d2}", temperament))
    logger.info(f"Enumerated {len(found)} temperaments in {subgroup}")
    return found


def report_temperament(temperament: Temperament, args: argparse.Namespace) -> None:
    """Stampa il riepilogo di un temperamento / Print a temperament summary."""
    temperament.canonize()
    rank = temperament.rank
    units = args.units
    print(L("Sottogruppo", "Subgroup") + f": {temperament.subgroup}")
    print(L("Rango", "Rank") + f": {rank}")
    print("Wedgie: " + str(temperament))

    mapping = temperament.get_mapping(units, args.temper_equaves, args.prime_mapping, constraints=args.pure)
    label = L("Mappatura CTE", "CTE mapping") if args.pure else L("Mappatura TE", "TE mapping")
    print(f"{label} ({units}): " + ", ".join(f"{m:.3f}" for m in mapping))

    if rank:
        try:
            pg = temperament.period_generator(units, args.temper_equaves, constraints=args.pure)
            print(L("Periodo", "Period") + f": {pg[0]:.3f}")
            if len(pg) > 1:
                print(L("Generatori", "Generators") + ": " + ", ".join(f"{g:.3f}" for g in pg[1:]))
        except ValueError as e:
            print(L(f"Periodo/generatori non disponibili: {e}", f"Period/generators unavailable: {e}"))

        prefix = temperament.rank_prefix(rank)
        recoverable = L("sì", "yes") if temperament.is_recoverable() else L("no", "no")
        print(L("Prefisso", "Prefix") + f": {prefix}  ({L('recuperabile', 'recoverable')}: {recoverable})")

    if args.factorize == "vals":
        vals = temperament.val_factorize(args.strategy, args.max_divisions, args.radius)
        print("Vals: " + " & ".join(temperament.subgroup.to_warts(v) for v in vals))
        for val in vals:
            print(f"  {val}")
    elif args.factorize == "commas":
        commas = temperament.comma_factorize(args.strategy, args.max_divisions, args.radius)
        print(L("Virgole", "Commas") + ": " + ", ".join(str(temperament.subgroup.to_fraction(c)) for c in commas))


def main(argv: Optional[List[str]] = None) -> int:
    """Punto di ingresso principale / Main entry point (IT/EN)."""
    global _LANG
    _LANG = _detect_lang_from_argv(argv)
    print_banner()

    class TemperHelpFormatter(argparse.RawTextHelpFormatter):
        def __init__(self, prog: str):
            super().__init__(prog, max_help_position=28, width=100)

    parser = argparse.ArgumentParser(
        prog="temper",
        formatter_class=TemperHelpFormatter,
        description=(
            "IT: TEMPER – Algebra dei temperamenti regolari.\n"
            "Costruisce temperamenti da val o virgole, calcola mappature TE/CTE, periodo e generatori,\n"
            "prefissi del wedgie e fattorizzazioni; export testo/Excel.\n"
            "EN: TEMPER – Regular temperament algebra.\n"
            "Builds temperaments from vals or commas, computes TE/CTE mappings, period and generators,\n"
            "wedgie prefixes and factorizations; text/Excel export.\n"
        ),
        epilog=(
            "Esempi / Examples:\n"
            "  temper.py --subgroup 2.3.5 --vals 12 19\n"
            "  temper.py --subgroup 7 --commas 225/224 1029/1024 --factorize vals\n"
            "  temper.py --subgroup 2.3.5 --prefix 2 1,4\n"
            "  temper.py --subgroup 2.3.5 --commas 81/80 --pure 2 5/4\n"
            "  temper.py --lang en --subgroup 2.3.7 --enumerate 5 31 out\n"
        )
    )

    grp_base = parser.add_argument_group(L("Base", "Base"))
    grp_temp = parser.add_argument_group(L("Temperamento", "Temperament"))
    grp_tuning = parser.add_argument_group(L("Accordatura", "Tuning"))
    grp_search = parser.add_argument_group(L("Ricerca", "Search"))
    grp_out = parser.add_argument_group(L("Output", "Output"))

    grp_base.add_argument("--lang", choices=["it", "en"], default=consts.DEFAULT_LANG,
                          help="Lingua dell'interfaccia / Interface language")
    grp_base.add_argument("-v", "--version", action="version",
                          version=f"%(prog)s {__version__}")
    grp_base.add_argument("--log-file", default=None,
                          help="File di log (default: stderr) / Log file (default: stderr)")
    grp_base.add_argument("--debug", action="store_true",
                          help="Log dettagliato delle ricerche / Verbose search logging")

    grp_temp.add_argument("--subgroup", default="2.3.5",
                          help=("Sottogruppo: limite primo (7) o fattori separati da punti (2.3.13/5) / "
                                "Subgroup: prime limit (7) or period-separated factors (2.3.13/5)"))
    grp_temp.add_argument("--vals", nargs="+", type=utils.val_token,
                          help="Val: 12, 17c oppure 12,19,28 / Vals: 12, 17c or 12,19,28")
    grp_temp.add_argument("--commas", nargs="+", type=comma_token,
                          help="Virgole: 81/80 oppure [-4,4,-1] / Commas: 81/80 or [-4,4,-1]")
    grp_temp.add_argument("--infer-subgroup", action="store_true",
                          help="Deduce il sottogruppo primo dalle virgole / Infer the prime subgroup from the commas")
    grp_temp.add_argument("--prefix", nargs=2, metavar=("RANK", "INTS"),
                          help="Ricostruisce dal prefisso del wedgie / Rebuild from a wedgie prefix")

    grp_tuning.add_argument("--units", choices=consts.PITCH_UNITS, default=consts.DEFAULT_UNITS,
                            help=f"Unità di misura (default: {consts.DEFAULT_UNITS}) / Pitch units")
    grp_tuning.add_argument("--temper-equaves", action="store_true",
                            help="Tempera anche l'equave / Temper the equave too")
    grp_tuning.add_argument("--pure", nargs="+", type=comma_token, default=None, metavar="INTERVAL",
                            help="Intervalli puri (CTE) / Intervals kept pure (CTE)")
    grp_tuning.add_argument("--prime-mapping", action="store_true",
                            help="Mappatura sui numeri primi consecutivi / Mapping over consecutive primes")

    grp_search.add_argument("--factorize", choices=["vals", "commas"], default=None,
                            help="Fattorizza in val o virgole / Factorize into vals or commas")
    grp_search.add_argument("--strategy", choices=consts.FACTORIZATION_STRATEGIES, default=consts.DEFAULT_STRATEGY,
                            help=f"Strategia di ricerca (default: {consts.DEFAULT_STRATEGY}) / Search strategy")
    grp_search.add_argument("--max-divisions", type=int, default=consts.DEFAULT_MAX_DIVISIONS,
                            help=f"Divisioni massime (default: {consts.DEFAULT_MAX_DIVISIONS}) / Maximum divisions")
    grp_search.add_argument("--radius", type=int, default=consts.DEFAULT_WART_RADIUS,
                            help=f"Raggio delle varianti (default: {consts.DEFAULT_WART_RADIUS}) / Wart variant radius")
    grp_search.add_argument("--enumerate", nargs=2, type=int, metavar=("MIN", "MAX"), default=None,
                            help="Enumera i temperamenti di rango 2 / Enumerate rank 2 temperaments")

    grp_out.add_argument("output_file", nargs="?", default=None,
                         help="Base dei file di output (.txt/.xlsx) / Output file base (.txt/.xlsx)")

    args = parser.parse_args(argv)
    _LANG = args.lang

    utils.setup_logging(args.log_file, logging.DEBUG if args.debug else logging.WARNING)

    try:
        subgroup = Subgroup(args.subgroup)
        args.subgroup = subgroup

        if args.enumerate:
            low, high = args.enumerate
            found = enumerate_temperaments(subgroup, low, high)
            summaries = [tables.summarize_temperament(label, t, args.units, args.temper_equaves, args.pure)
                         for label, t in found]
            tables.print_temperament_table(summaries)
            if args.output_file:
                tables.export_temperament_tables(args.output_file, summaries)
            return 0

        temperament = build_temperament(args)
        if temperament is None:
            print(L("Specificare --vals, --commas, --prefix o --enumerate",
                    "Specify --vals, --commas, --prefix or --enumerate"))
            return 1

        report_temperament(temperament, args)
        if args.output_file:
            summary = tables.summarize_temperament(
                "temperament", temperament, args.units, args.temper_equaves, args.pure,
                factorize=args.factorize == "vals", strategy=args.strategy, max_divisions=args.max_divisions)
            tables.export_temperament_tables(args.output_file, [summary])
    except (ValueError, TypeError, argparse.ArgumentTypeError) as e:
        logger.error(str(e))
        print(L(f"Errore: {e}", f"Error: {e}"))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
