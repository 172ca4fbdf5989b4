"""
Team Classifier - Main processing pipeline for player team classification.

Provides a unified interface for the complete workflow:
ingestion → clustering (training and evaluation) → classification → positions.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pc_teams.classification.dispatch import classify_clusters
from pc_teams.classification.supervised import MVAEngine
from pc_teams.clustering.pipeline import ClusteringResult, run_clustering
from pc_teams.config import TeamsConfig
from pc_teams.core.dataset import DataSet, RunContext
from pc_teams.io.point_reader import read_point_file
from pc_teams.reporting.report_writer import generate_config_summary, write_json_report
from pc_teams.reporting.statistics import calculate_cluster_statistics


@dataclass
class TeamsResult:
    """Container for team classification results.

    Attributes
    ----------
    source_file : str
        Name of input file.
    mode : str
        'unsupervised' or 'supervised'.
    n_training_points : int
        Points in the training data set.
    n_evaluation_points : int
        Points in the evaluation data set.
    class_names : list of str
        Class name per class id, in output order.
    class_positions : dict
        Class name to ``(x, z)`` core centers of mass of the evaluation
        clusters assigned to it.
    training_clustering : ClusteringResult
        Clustering summary of the training data.
    evaluation_clustering : ClusteringResult
        Clustering summary of the evaluation data.
    classification : PCAClassificationResult or MVAClassificationResult
        Summary of the classification path that ran.
    statistics : dict
        Cluster statistics of the evaluation data.
    timing : dict
        Processing timing information.
    """

    source_file: str
    mode: str
    n_training_points: int
    n_evaluation_points: int
    class_names: List[str]
    class_positions: Dict[str, List[Tuple[float, float]]]
    training_clustering: ClusteringResult
    evaluation_clustering: ClusteringResult
    classification: Any = None
    statistics: Dict = field(default_factory=dict)
    timing: Dict = field(default_factory=dict)

    @property
    def n_kmeans_iterations(self) -> Optional[int]:
        """K-means iterations of an unsupervised run, None otherwise."""
        return getattr(self.classification, "n_iterations", None)


def collect_class_positions(
    ds: DataSet,
    class_names: List[str],
) -> Dict[str, List[Tuple[float, float]]]:
    """
    Group the core centers of mass of a data set's clusters by class.

    Parameters
    ----------
    ds : DataSet
        Classified data set.
    class_names : list of str
        Class name per class id.

    Returns
    -------
    dict
        Class name to ``(x, z)`` positions, in class order and cluster order.
    """
    positions: Dict[str, List[Tuple[float, float]]] = {name: [] for name in class_names}
    for cl in ds.clusters:
        core = cl.core if cl.has_core else cl
        if 0 <= core.class_id < len(class_names):
            positions[class_names[core.class_id]].append((core.com.x, core.com.z))
    return positions


class TeamClassifier:
    """Main class for player clustering and team classification.

    Parameters
    ----------
    config : TeamsConfig, optional
        Configuration parameters. Uses defaults if not provided.

    Examples
    --------
    >>> from pc_teams import TeamClassifier
    >>> classifier = TeamClassifier()
    >>> result = classifier.process_file("point_cloud_data.txt")
    >>> print(result.class_positions["Referees"])
    """

    def __init__(self, config: Optional[TeamsConfig] = None):
        self.config = config or TeamsConfig()

    def process(
        self,
        training_ds: DataSet,
        evaluation_ds: DataSet,
        context: Optional[RunContext] = None,
        engine: Optional[MVAEngine] = None,
        source_file: str = "unknown",
        verbose: Optional[bool] = None,
    ) -> TeamsResult:
        """
        Cluster both data sets and classify their clusters.

        Parameters
        ----------
        training_ds : DataSet
            Training points.
        evaluation_ds : DataSet
            Evaluation points.
        context : RunContext, optional
            Run context. A new one seeded from the configuration is used
            if omitted.
        engine : MVAEngine, optional
            Supervised backend (supervised mode only).
        source_file : str
            Name of the input, for reporting.
        verbose : bool, optional
            Print progress information. Defaults to ``config.verbose``.

        Returns
        -------
        TeamsResult
            Class positions, clustering summaries, statistics and timing.
        """
        if verbose is None:
            verbose = self.config.verbose
        if context is None:
            context = RunContext.from_seed(self.config.random_seed)

        timing = {}
        total_start = time.time()

        # Step 1: Cluster training data
        t0 = time.time()
        if verbose:
            print(f"\nRunning clustering on training data ({training_ds.n_points:,} points)")
        training_clustering = run_clustering(training_ds, self.config, verbose=verbose)
        timing["training_clustering"] = time.time() - t0

        # Step 2: Cluster evaluation data
        t0 = time.time()
        if verbose:
            print(f"\nRunning clustering on evaluation data ({evaluation_ds.n_points:,} points)")
        evaluation_clustering = run_clustering(evaluation_ds, self.config, verbose=verbose)
        timing["evaluation_clustering"] = time.time() - t0

        # Step 3: Classify clusters
        t0 = time.time()
        mode = "unsupervised" if self.config.unsupervised else "supervised"
        if verbose:
            print(f"\nRunning {mode} classification")
        classification = classify_clusters(
            training_ds,
            evaluation_ds,
            self.config,
            rng=context.rng,
            engine=engine,
            verbose=verbose,
        )
        timing["classification"] = time.time() - t0

        # Step 4: Positions and statistics
        class_names = list(classification.class_names)
        class_positions = collect_class_positions(evaluation_ds, class_names)
        statistics = calculate_cluster_statistics(evaluation_ds, class_names)

        timing["total"] = time.time() - total_start

        if verbose:
            print(f"\nDone in {timing['total']:.2f}s")

        return TeamsResult(
            source_file=source_file,
            mode=mode,
            n_training_points=training_ds.n_points,
            n_evaluation_points=evaluation_ds.n_points,
            class_names=class_names,
            class_positions=class_positions,
            training_clustering=training_clustering,
            evaluation_clustering=evaluation_clustering,
            classification=classification,
            statistics=statistics,
            timing=timing,
        )

    def process_file(
        self,
        input_path: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        engine: Optional[MVAEngine] = None,
        generate_report: bool = True,
        generate_plot: bool = False,
        verbose: Optional[bool] = None,
    ) -> TeamsResult:
        """
        Process a single point file end-to-end.

        Reads and splits the input, runs the pipeline, and optionally
        writes a JSON report and a cluster map to ``output_dir``.

        Parameters
        ----------
        input_path : Path, optional
            Point file. Defaults to ``config.input_file``.
        output_dir : Path, optional
            Directory for report and figure. Nothing is written if None.
        engine : MVAEngine, optional
            Supervised backend (supervised mode only).
        generate_report : bool
            Write ``<stem>_teams.json`` to ``output_dir``.
        generate_plot : bool
            Write ``<stem>_cluster_map.png`` to ``output_dir``.
        verbose : bool, optional
            Print progress information. Defaults to ``config.verbose``.

        Returns
        -------
        TeamsResult
            Processing results.
        """
        if verbose is None:
            verbose = self.config.verbose

        input_path = Path(input_path) if input_path is not None else Path(self.config.input_file)
        context = RunContext.from_seed(self.config.random_seed)

        t0 = time.time()
        if verbose:
            print(f"Loading {input_path}...")
        training_ds, evaluation_ds = read_point_file(
            input_path, context, self.config.evaluation_fraction
        )
        load_time = time.time() - t0
        if verbose:
            print(f"  Loaded {training_ds.n_points:,} training and "
                  f"{evaluation_ds.n_points:,} evaluation points")

        result = self.process(
            training_ds,
            evaluation_ds,
            context=context,
            engine=engine,
            source_file=input_path.name,
            verbose=verbose,
        )
        result.timing = {"load": load_time, **result.timing}
        result.timing["total"] += load_time

        if output_dir is not None:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            basename = input_path.stem

            if generate_report:
                report_path = write_json_report(
                    result,
                    output_dir / f"{basename}_teams.json",
                    generate_config_summary(self.config),
                )
                if verbose:
                    print(f"  Report written to {report_path}")

            if generate_plot:
                self._generate_cluster_map(evaluation_ds, result, output_dir, basename)
                if verbose:
                    print(f"  Cluster map written to {output_dir / f'{basename}_cluster_map.png'}")

        return result

    def _generate_cluster_map(
        self,
        evaluation_ds: DataSet,
        result: TeamsResult,
        output_dir: Path,
        basename: str,
    ) -> None:
        """Render the evaluation clusters to ``<basename>_cluster_map.png``."""
        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        from pc_teams.visualization.cluster_map import render_cluster_map

        fig = render_cluster_map(
            evaluation_ds,
            result.class_names,
            title=f"{basename} - {result.mode} classification",
            output_path=str(output_dir / f"{basename}_cluster_map.png"),
        )
        plt.close(fig)
