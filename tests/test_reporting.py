"""Tests for reporting module."""

import json

import numpy as np
import pytest


def _result(class_names, class_positions, classification=None):
    from pc_teams.classifier import TeamsResult
    from pc_teams.clustering.pipeline import ClusteringResult

    clustering = ClusteringResult(
        dataset_name="evaluation",
        n_points=10,
        n_pre_clusters=4,
        n_clusters=2,
        n_outliers=2,
    )
    return TeamsResult(
        source_file="field.txt",
        mode="unsupervised",
        n_training_points=40,
        n_evaluation_points=10,
        class_names=class_names,
        class_positions=class_positions,
        training_clustering=clustering,
        evaluation_clustering=clustering,
        classification=classification,
        timing={"total": 0.123456},
    )


class TestFormatClassPositions:
    """Tests for format_class_positions."""

    def test_two_decimals(self):
        from pc_teams.reporting.report_writer import format_class_positions

        result = _result(
            ["TeamA", "TeamB", "Referees"],
            {
                "TeamA": [(1.234, 4.567), (-0.5, 10.0)],
                "TeamB": [(3.0, 3.0)],
                "Referees": [(0.004, 2.996)],
            },
        )

        assert format_class_positions(result) == [
            "TeamA: [[1.23, 4.57], [-0.50, 10.00]]",
            "TeamB: [[3.00, 3.00]]",
            "Referees: [[0.00, 3.00]]",
        ]

    def test_empty_class(self):
        from pc_teams.reporting.report_writer import format_class_positions

        result = _result(["TeamA", "Referees"], {"TeamA": [(1.0, 2.0)], "Referees": []})

        assert format_class_positions(result)[1] == "Referees: []"

    def test_class_order(self):
        from pc_teams.reporting.report_writer import format_class_positions

        result = _result(["Referees", "TeamA"], {"TeamA": [], "Referees": []})
        lines = format_class_positions(result)

        assert [line.split(":")[0] for line in lines] == ["Referees", "TeamA"]


class TestStatistics:
    """Tests for statistics functions."""

    def test_size_stats(self):
        from pc_teams.reporting.statistics import calculate_size_stats

        stats = calculate_size_stats(np.array([10, 20, 30, 40]), "cluster_size")

        assert stats["count"] == 4
        assert stats["mean"] == pytest.approx(25.0)
        assert stats["min"] == 10.0
        assert stats["max"] == 40.0
        assert stats["percentiles"][50] == pytest.approx(25.0)

    def test_size_stats_empty(self):
        from pc_teams.reporting.statistics import calculate_size_stats

        stats = calculate_size_stats(np.array([]), "core_size")

        assert stats["count"] == 0
        assert stats["mean"] is None

    def test_class_stats(self):
        from pc_teams.reporting.statistics import calculate_class_stats

        stats = calculate_class_stats(np.array([0, 0, 1, 2, -1]))

        assert stats["total"] == 5
        assert stats["unclassified"] == 1
        assert stats["by_class"][0]["name"] == "TeamA"
        assert stats["by_class"][0]["count"] == 2
        assert stats["by_class"][0]["percent"] == 40.0
        assert stats["by_class"][2]["name"] == "Referees"

    def test_class_stats_custom_names(self):
        from pc_teams.reporting.statistics import calculate_class_stats

        stats = calculate_class_stats(np.array([1, 1]), ["Referees", "TeamA", "TeamB"])

        assert stats["by_class"][1] == {"name": "TeamA", "count": 2, "percent": 100.0}

    def test_cluster_statistics(self, field_dataset, fast_config):
        from pc_teams.clustering.pipeline import run_clustering
        from pc_teams.reporting.statistics import calculate_cluster_statistics

        run_clustering(field_dataset, fast_config)
        stats = calculate_cluster_statistics(field_dataset)

        assert stats["dataset"] == "field"
        assert stats["n_points"] == field_dataset.n_points
        assert stats["n_clusters"] == 8
        assert stats["n_core_points"] + stats["n_outliers"] == stats["n_clustered_points"]
        assert stats["cluster_size"]["count"] == 8
        # nothing is classified yet
        assert stats["classification"]["unclassified"] == 8


class TestJSONReport:
    """Tests for write_json_report."""

    def test_write_report(self, tmp_path, default_config):
        from pc_teams.reporting.report_writer import (
            generate_config_summary,
            write_json_report,
        )

        result = _result(["TeamA", "TeamB"], {"TeamA": [(1.0, 2.0)], "TeamB": []})
        path = write_json_report(
            result,
            tmp_path / "reports" / "field_teams.json",
            generate_config_summary(default_config),
        )

        report = json.loads(path.read_text())
        assert report["mode"] == "unsupervised"
        assert report["class_positions"] == {"TeamA": [[1.0, 2.0]], "TeamB": []}
        assert report["training_clustering"]["n_clusters"] == 2
        assert report["timing"]["total"] == 0.1235
        assert report["config"]["density_window"] == 0.5
        assert report["config"]["model_path"] == "outputs/weights/teams_bdt.joblib"

    def test_numpy_values(self, tmp_path):
        from pc_teams.classification.pca_classifier import KMeansResult
        from pc_teams.reporting.report_writer import write_json_report

        kmeans = KMeansResult(
            groups=[[], [], []],
            labels=np.array([0, 1], dtype=np.int64),
            seeds=np.zeros((3, 3)),
            n_iterations=np.int64(4),
            converged=True,
        )
        result = _result(["TeamA"], {"TeamA": []}, classification=kmeans)
        path = write_json_report(result, tmp_path / "report.json")

        report = json.loads(path.read_text())
        assert report["classification"]["n_iterations"] == 4
        assert report["classification"]["seeds"] == [[0.0] * 3] * 3
        assert "config" not in report
