import argparse
import json
import logging
import os
import sys
from typing import Any, Dict

import numpy as np

from motifem.alphabet import ALPHABET
from motifem.api import discover_motif
from motifem.evaluation import consensus, evaluate, information_content
from motifem.experiment import DEFAULT_TRUE_MOTIF, sweep
from motifem.io import read_pfm, write_fasta, write_meme, write_pfm
from motifem.sampler import sample_motif_data

BAR_WIDTH = 10


def setup_logging(verbose: bool):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if verbose:
        logging.getLogger("numba").setLevel(logging.WARNING)


def score_band(score: float) -> str:
    """Name the quality band of a similarity score."""
    if score > 0.8:
        return "high"
    if score > 0.5:
        return "medium"
    return "low"


def format_score_bar(score: float, width: int = BAR_WIDTH) -> str:
    """Render a score in [0, 1] as a fixed-width text bar."""
    filled = int(min(max(score, 0.0), 1.0) * width)
    return "[" + "=" * filled + " " * (width - filled) + "]"


def _add_inference_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand that runs inference."""
    group = parser.add_argument_group("Inference Options")
    group.add_argument(
        "--presence-prior",
        type=float,
        default=0.8,
        help="Prior probability that a sequence contains the motif. (default: %(default)s)",
    )
    group.add_argument(
        "--prior-strength",
        type=float,
        default=1.0,
        help="Dirichlet pseudo-count added to every symbol of every motif column. (default: %(default)s)",
    )
    group.add_argument(
        "--iterations",
        type=int,
        default=200,
        help="Maximum number of EM iterations per restart. (default: %(default)s)",
    )
    group.add_argument(
        "--tolerance",
        type=float,
        default=1e-6,
        help="Stop when the L1 change of the PFM between iterations falls below this. (default: %(default)s)",
    )
    group.add_argument(
        "--restarts",
        type=int,
        default=5,
        help="Number of independent random restarts. (default: %(default)s)",
    )
    group.add_argument(
        "--init",
        choices=["sites", "prior"],
        default="sites",
        help=(
            "Initial PFM: 'sites' seeds it from the best window of a random sequence, 'prior' draws "
            "every column from the Dirichlet prior. (default: %(default)s)"
        ),
    )
    group.add_argument(
        "--dominance-threshold",
        type=float,
        default=0.4,
        help=(
            "Truth probability a symbol needs to count as dominant when scoring against a known motif. "
            "(default: %(default)s)"
        ),
    )

    technical = parser.add_argument_group("Technical Options")
    technical.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging for detailed execution tracking.",
    )
    technical.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible restarts. Fresh entropy is used when omitted.",
    )
    technical.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of parallel restarts. Set to -1 to use all available CPU cores. (default: %(default)s)",
    )


def create_arg_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        description="motifem: discover a single nucleotide motif by expectation-maximisation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
 Examples:
   # Discover an 8 column motif in a FASTA file
   motifem discover sequences.fa --motif-length 8 --restarts 10 --seed 1337

   # Write 30 synthetic sequences of length 100 carrying the demo motif
   motifem sample --count 30 --length 100 --seed 1337 -o sequences.fa

   # Sweep sequence length at 30 sequences and print score bars
   motifem sweep --vary length --seed 1337
         """,
    )
    subparsers = parser.add_subparsers(dest="mode", help="Operation mode", required=True)

    discover_parser = subparsers.add_parser("discover", help="Infer a motif from sequences in a FASTA file.")
    discover_parser.add_argument("fasta", help="Path to a FASTA file with the observed sequences.")
    discover_io = discover_parser.add_argument_group("Input/Output Options")
    discover_io.add_argument("--motif-length", type=int, required=True, help="Number of motif columns.")
    discover_io.add_argument(
        "--truth",
        help="Path to a ground-truth PFM file; when given the result is scored against it.",
    )
    discover_io.add_argument(
        "--background",
        choices=["uniform", "estimate"],
        default="uniform",
        help="Background distribution: uniform or estimated from the input. (default: %(default)s)",
    )
    discover_io.add_argument("--output-pfm", help="Write the inferred PFM to this path (.pfm or .meme).")
    _add_inference_options(discover_parser)

    sample_parser = subparsers.add_parser("sample", help="Write synthetic sequences carrying a known motif.")
    sample_group = sample_parser.add_argument_group("Sampling Options")
    sample_group.add_argument("--count", type=int, default=30, help="Number of sequences. (default: %(default)s)")
    sample_group.add_argument("--length", type=int, default=100, help="Sequence length. (default: %(default)s)")
    sample_group.add_argument(
        "--presence-prior",
        type=float,
        default=0.8,
        help="Probability that a sequence carries the motif. (default: %(default)s)",
    )
    sample_group.add_argument("--motif", help="PFM file of the planted motif; the demo motif when omitted.")
    sample_group.add_argument("--seed", type=int, help="Random seed for sampling.")
    sample_group.add_argument("-o", "--output", required=True, help="Output FASTA path.")
    sample_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging for detailed execution tracking.",
    )

    sweep_parser = subparsers.add_parser(
        "sweep", help="Sample, discover and score the demo motif over a range of lengths or counts."
    )
    sweep_group = sweep_parser.add_argument_group("Sweep Options")
    sweep_group.add_argument(
        "--vary",
        choices=["length", "count"],
        default="length",
        help="Parameter to vary. (default: %(default)s)",
    )
    sweep_group.add_argument("--values", type=int, nargs="+", help="Settings of the varied parameter.")
    sweep_group.add_argument("--fixed", type=int, help="Value of the parameter held fixed.")
    sweep_group.add_argument("--csv", help="Also write the result table to this CSV file.")
    _add_inference_options(sweep_parser)

    return parser


def validate_inputs(args) -> None:
    """Validate input files and parameters."""
    logger = logging.getLogger(__name__)
    if args.mode == "discover":
        if not os.path.exists(args.fasta):
            logger.error(f"FASTA file not found: {args.fasta}")
            sys.exit(1)
        if args.truth and not os.path.exists(args.truth):
            logger.error(f"Truth PFM file not found: {args.truth}")
            sys.exit(1)
    elif args.mode == "sample":
        if args.motif and not os.path.exists(args.motif):
            logger.error(f"Motif file not found: {args.motif}")
            sys.exit(1)


def map_args_to_config_kwargs(args) -> Dict[str, Any]:
    """Map CLI arguments to MotifConfig keyword arguments."""
    return {
        "presence_prior": args.presence_prior,
        "prior_strength": args.prior_strength,
        "iteration_cap": args.iterations,
        "convergence_tolerance": args.tolerance,
        "restart_count": args.restarts,
        "random_seed": args.seed,
        "init_strategy": args.init,
        "n_jobs": args.jobs,
        "dominance_threshold": args.dominance_threshold,
    }


def pfm_to_records(pfm: np.ndarray) -> list:
    """JSON-friendly list of column dictionaries."""
    return [{sym: round(float(pfm[j, i]), 6) for j, sym in enumerate(ALPHABET)} for i in range(pfm.shape[1])]


def run_discover(args) -> Dict[str, Any]:
    """Execute the discover subcommand and return its JSON payload."""
    background = "estimate" if args.background == "estimate" else None
    outcome = discover_motif(
        args.fasta, motif_length=args.motif_length, background=background, **map_args_to_config_kwargs(args)
    )
    best = outcome.best

    result = {
        "consensus": consensus(best.pfm),
        "pfm": pfm_to_records(best.pfm),
        "information_content": [round(float(v), 4) for v in information_content(best.pfm)],
        "log_likelihood": best.log_likelihood,
        "converged": best.converged,
        "iterations": best.iterations,
        "restart": outcome.best_index,
        "entropy": str(outcome.entropy),
        "presence": [round(float(v), 4) for v in best.presence_probabilities],
    }

    if args.truth:
        evaluation = evaluate(best.pfm, read_pfm(args.truth), dominance_threshold=args.dominance_threshold)
        result["score"] = evaluation.score

    if args.output_pfm:
        if args.output_pfm.lower().endswith(".meme"):
            write_meme([best.pfm], ["motifem"], args.output_pfm)
        else:
            write_pfm(best.pfm, args.output_pfm, name="motifem")

    return result


def run_sample(args) -> Dict[str, Any]:
    """Execute the sample subcommand."""
    true_pfm = read_pfm(args.motif) if args.motif else DEFAULT_TRUE_MOTIF
    sampled = sample_motif_data(args.count, args.length, true_pfm, presence_prior=args.presence_prior, seed=args.seed)
    names = [f"seq_{i} position={pos}" for i, pos in enumerate(sampled.positions)]
    write_fasta(sampled.sequences, args.output, names=names)
    return {"output": args.output, "sequences": args.count, "with_motif": int(sampled.presence.sum())}


def run_sweep(args) -> None:
    """Execute the sweep subcommand and print one score bar per setting."""
    kwargs = map_args_to_config_kwargs(args)
    seed = kwargs.pop("random_seed")
    presence_prior = kwargs.pop("presence_prior")
    table = sweep(args.vary, values=args.values, fixed=args.fixed, seed=seed, presence_prior=presence_prior, **kwargs)

    label = "L" if args.vary == "length" else "N"
    for row in table.itertuples():
        value = row.sequence_length if args.vary == "length" else row.sequence_count
        print(
            f"{label} = {value:4d} ... {format_score_bar(row.score)} "
            f"Score: {row.score:0.2f} ({score_band(row.score)}) | Consensus: {row.consensus}"
        )

    if args.csv:
        table.to_csv(args.csv, index=False)


def main_cli():
    """Main CLI entry point."""
    parser = create_arg_parser()

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()

    setup_logging(args.verbose)
    validate_inputs(args)

    try:
        if args.mode == "discover":
            print(json.dumps(run_discover(args)))
        elif args.mode == "sample":
            print(json.dumps(run_sample(args)))
        elif args.mode == "sweep":
            run_sweep(args)
    except Exception as e:
        print(f"ERROR: {args.mode} failed: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
