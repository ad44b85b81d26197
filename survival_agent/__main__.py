"""CLI entry point: python -m survival_agent"""

import argparse
import logging
import sys

from survival_agent import config
from survival_agent.agent import SurvivalAnalysisAgent
from survival_agent.utils import set_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survival_agent",
        description=(
            "One-Year Survival Analysis Agent - "
            "LOOCV random forest on merged clinical, genomic and lab data."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m survival_agent --data-dir ./data\n"
            "  python -m survival_agent --data-dir ./data --n-estimators 1000 --seed 7\n"
            "  python -m survival_agent --clinical c.csv --genomics g.csv --labs l.csv --onc o.csv\n"
            "  python -m survival_agent --data-dir ./data --no-plots --output-dir ./results\n"
        ),
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=str(config.DEFAULT_DATA_DIR),
        help="Directory holding clinical.csv, genomics.csv, labs.csv and onc.csv (default: data)",
    )
    for name in ("clinical", "genomics", "labs", "onc"):
        parser.add_argument(
            f"--{name}",
            type=str,
            default=None,
            help=f"Path to the {name} table (overrides --data-dir)",
        )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(config.DEFAULT_OUTPUT_DIR),
        help="Directory for figures and report.json (default: survival_agent_output)",
    )
    parser.add_argument(
        "--n-estimators",
        type=int,
        default=config.N_ESTIMATORS,
        help=f"Trees per random forest (default: {config.N_ESTIMATORS})",
    )
    parser.add_argument(
        "--impute-iterations",
        type=int,
        default=config.IMPUTE_ITERATIONS,
        help=f"Proximity imputation iterations (default: {config.IMPUTE_ITERATIONS})",
    )
    parser.add_argument(
        "--impute-n-estimators",
        type=int,
        default=config.IMPUTE_N_ESTIMATORS,
        help=f"Trees per imputation forest (default: {config.IMPUTE_N_ESTIMATORS})",
    )
    parser.add_argument(
        "--gene-cutoff",
        type=float,
        default=config.GENE_CUTOFF_FRACTION,
        help="Keep genes mutated in more than this fraction of patients (default: 0.10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.RANDOM_STATE,
        help=f"Random seed (default: {config.RANDOM_STATE})",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=config.TOP_N_FEATURES,
        help=f"Number of top features to report (default: {config.TOP_N_FEATURES})",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip rendering figures",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.verbose:
        set_level(logging.DEBUG)

    agent = SurvivalAnalysisAgent(
        data_dir=args.data_dir,
        clinical_path=args.clinical,
        genomics_path=args.genomics,
        labs_path=args.labs,
        onc_path=args.onc,
        output_dir=args.output_dir,
        n_estimators=args.n_estimators,
        impute_iterations=args.impute_iterations,
        impute_n_estimators=args.impute_n_estimators,
        random_state=args.seed,
        cutoff_fraction=args.gene_cutoff,
        top_n=args.top_n,
        make_plots=not args.no_plots,
    )

    try:
        agent.run()
    except Exception as e:
        print(f"\nAgent failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
