"""Tests for the full clustering chain."""

import numpy as np
import pytest


class TestRunClustering:
    """Tests for run_clustering."""

    def test_one_cluster_per_player(self, field_dataset, synthetic_field, default_config):
        from pc_teams.clustering.pipeline import run_clustering

        result = run_clustering(field_dataset, default_config)

        assert result.n_clusters == len(synthetic_field["truth"])
        assert result.n_points == field_dataset.n_points

    def test_clusters_sit_on_players(self, field_dataset, synthetic_field, default_config):
        from pc_teams.clustering.pipeline import run_clustering

        run_clustering(field_dataset, default_config)

        truth = np.array([(x, z) for x, z, _ in synthetic_field["truth"]])
        for cl in field_dataset.clusters:
            d = np.sqrt(((truth - [cl.core.com.x, cl.core.com.z]) ** 2).sum(axis=1))
            assert d.min() < 0.1

    def test_conserves_points(self, field_dataset, default_config):
        from pc_teams.clustering.pipeline import run_clustering

        result = run_clustering(field_dataset, default_config)

        assert field_dataset.clustered_point_count() == field_dataset.n_points
        core_points = sum(len(cl.core) for cl in field_dataset.clusters)
        assert core_points + result.n_outliers == field_dataset.n_points

    def test_without_pre_clustering(self, two_blob_dataset):
        from pc_teams.clustering.pipeline import run_clustering
        from pc_teams.config import TeamsConfig

        config = TeamsConfig(pre_clustering=False)
        result = run_clustering(two_blob_dataset, config)

        assert result.n_pre_clusters == two_blob_dataset.n_points
        assert result.n_clusters == 2

    def test_timing_and_verbose_output(self, two_blob_dataset, default_config, capsys):
        from pc_teams.clustering.pipeline import run_clustering

        result = run_clustering(two_blob_dataset, default_config, verbose=True)

        for step in ("pre_clustering", "densities", "seeded_clustering", "cleanup", "total"):
            assert step in result.timing
        assert "Clustering done" in capsys.readouterr().out

    def test_empty_dataset(self, default_config):
        from pc_teams.clustering.pipeline import run_clustering
        from pc_teams.core.dataset import DataSet

        result = run_clustering(DataSet(), default_config)
        assert result.n_clusters == 0
        assert result.n_outliers == 0
