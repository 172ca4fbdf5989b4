"""Command-line interface for PC-Teams."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pc_teams import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pc-teams",
        description="Point Cloud Player Clustering and Team Classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Unsupervised classification of the default input file
  pc-teams process

  # Process a given file with custom config
  pc-teams process field.txt --config config.yaml

  # Train the supervised model, then classify
  pc-teams process field.txt -s -t -T truth.txt

  # Write a JSON report and a cluster map
  pc-teams process field.txt -o output/ --plot
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Process command
    process_parser = subparsers.add_parser(
        "process",
        help="Find players and classify them into teams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    process_parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=None,
        help="Input point file with X Y Z R G B rows (default: from config)",
    )
    process_parser.add_argument(
        "--config",
        type=Path,
        help="Configuration YAML file",
    )
    process_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory for the JSON report and figures",
    )
    process_parser.add_argument(
        "--plot",
        action="store_true",
        help="Render a top-down cluster map (requires --output)",
    )
    process_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Input
    process_parser.add_argument(
        "-f", "--evaluation-fraction",
        type=float,
        default=None,
        metavar="F",
        help="Fraction of points used for evaluation (default: 0.2)",
    )
    process_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: 123)",
    )

    # Clustering
    process_parser.add_argument(
        "-p", "--skip-pre-clustering",
        action="store_true",
        help="Don't run pre-clustering",
    )
    process_parser.add_argument(
        "-P", "--pre-clustering-size",
        type=float,
        default=None,
        metavar="SIZE",
        help="Half-width of the pre-clustering box (default: 0.2)",
    )
    process_parser.add_argument(
        "-d", "--density-window",
        type=float,
        default=None,
        metavar="SIZE",
        help="Half-width of the window used to compute densities (default: 0.5)",
    )
    process_parser.add_argument(
        "-D", "--seed-density-threshold",
        type=float,
        default=None,
        metavar="D",
        help="Density threshold for seed selection, normalized to maximum density (default: 0.5)",
    )
    process_parser.add_argument(
        "-c", "--cluster-core-size",
        type=float,
        default=None,
        metavar="NSIGMA",
        help="Outlier cut in units of standard deviations (default: 2)",
    )

    # Classification
    process_parser.add_argument(
        "-s", "--supervised",
        action="store_true",
        help="Use supervised classification instead of PCA/k-means",
    )
    process_parser.add_argument(
        "-l", "--n-layers",
        type=int,
        default=None,
        metavar="N",
        help="Number of layers per cluster for color analysis (default: 5)",
    )
    process_parser.add_argument(
        "-K", "--max-kmeans-iterations",
        type=int,
        default=None,
        metavar="N",
        help="Maximum number of k-means iterations (default: 1000)",
    )

    # Supervised training
    process_parser.add_argument(
        "-t", "--train",
        action="store_true",
        help="Train the supervised model before classifying",
    )
    process_parser.add_argument(
        "-m", "--model",
        type=Path,
        default=None,
        help="Supervised model file to save to / load from",
    )
    process_parser.add_argument(
        "--training-report",
        type=Path,
        default=None,
        help="JSON file for supervised training metrics",
    )
    process_parser.add_argument(
        "-T", "--true-positions",
        type=Path,
        default=None,
        help="File with true player positions and teams (X Z ClassName rows)",
    )
    process_parser.add_argument(
        "-N", "--split-n",
        type=int,
        default=None,
        metavar="N",
        help="Number of bootstrap sub-clusters per training cluster (default: 300)",
    )
    process_parser.add_argument(
        "-F", "--split-f",
        type=float,
        default=None,
        metavar="F",
        help="Fraction of points in each bootstrap sub-cluster (default: 0.25)",
    )

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if parsed.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        if parsed.command == "process":
            return run_process(parsed)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def build_config(args):
    """Load the configuration and apply command-line overrides."""
    from pc_teams.config import TeamsConfig, load_config

    if args.config:
        config = load_config(args.config)
        if args.verbose:
            print(f"Loaded config from {args.config}")
    else:
        config = TeamsConfig()

    overrides = {
        "input_file": args.input,
        "evaluation_fraction": args.evaluation_fraction,
        "random_seed": args.seed,
        "pre_clustering_size": args.pre_clustering_size,
        "density_window": args.density_window,
        "seed_density_threshold": args.seed_density_threshold,
        "cluster_core_size": args.cluster_core_size,
        "n_layers_per_cluster": args.n_layers,
        "max_kmeans_iterations": args.max_kmeans_iterations,
        "model_path": args.model,
        "training_report_path": args.training_report,
        "true_positions_file": args.true_positions,
        "training_clusters_split_n": args.split_n,
        "training_clusters_split_f": args.split_f,
        "output_dir": args.output,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    if args.verbose:
        config.verbose = True
    if args.skip_pre_clustering:
        config.pre_clustering = False
    if args.supervised:
        config.unsupervised = False
    if args.train:
        config.run_training = True

    # Re-run range checks on the overridden values
    config.__post_init__()
    return config


def run_process(args) -> int:
    """Run processing command."""
    from pc_teams.classifier import TeamClassifier
    from pc_teams.reporting.report_writer import format_class_positions

    config = build_config(args)

    if not Path(config.input_file).is_file():
        print(f"Error: Input file not found: {config.input_file}", file=sys.stderr)
        return 1

    if args.plot and args.output is None:
        print("Error: --plot requires --output", file=sys.stderr)
        return 1

    classifier = TeamClassifier(config)
    result = classifier.process_file(
        config.input_file,
        output_dir=args.output,
        generate_report=args.output is not None,
        generate_plot=args.plot,
        verbose=config.verbose,
    )

    if config.verbose:
        _print_result_summary(result)

    for line in format_class_positions(result):
        print(line)

    return 0


def _print_result_summary(result) -> None:
    """Print a summary of processing results."""
    print(f"\n  Summary:")
    print(f"    Points: {result.n_training_points:,} (training), "
          f"{result.n_evaluation_points:,} (evaluation)")
    print(f"    Clusters: {result.training_clustering.n_clusters} (training), "
          f"{result.evaluation_clustering.n_clusters} (evaluation)")
    print(f"    Total time: {result.timing.get('total', 0):.2f}s")

    if result.mode == "unsupervised":
        pca = result.classification
        print(f"\n    PCA Classification:")
        print(f"      K-means iterations: {pca.n_iterations}")
        print(f"      Variance explained (3 components): "
              f"{sum(pca.explained_variance_ratio[:3]) * 100:.1f}%")
        print(f"\n      Group distribution:")
        _print_groups(pca)
    else:
        mva = result.classification
        print(f"\n    Supervised Classification:")
        if mva.test_accuracy is not None:
            print(f"      Held-out accuracy: {mva.test_accuracy * 100:.1f}%")
        for name, count in mva.class_counts.items():
            print(f"      {name:10s} {count:4d}")
    print()


def _print_groups(pca_result) -> None:
    """Print k-means group distribution."""
    for group_id in sorted(pca_result.group_stats):
        stats = pca_result.group_stats[group_id]
        print(f"        {group_id}: {stats['n_objects']:8,} ({stats['percentage']:5.1f}%) "
              f"- {stats['class_name']}")


if __name__ == "__main__":
    sys.exit(main())
