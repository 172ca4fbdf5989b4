"""Tests for pc_teams.core.cluster module."""

import logging

import numpy as np
import pytest

from conftest import make_points


class TestCenterOfMass:
    """Tests for the running center of mass."""

    def test_empty_cluster(self):
        from pc_teams.core.cluster import UNCLASSIFIED, Cluster
        from pc_teams.core.point import Point

        cl = Cluster()
        assert len(cl) == 0
        assert cl.com == Point()
        assert cl.class_id == UNCLASSIFIED
        assert cl.xyz.shape == (0, 3)

    def test_add_point_running_mean(self, simple_points):
        from pc_teams.core.cluster import Cluster

        cl = Cluster()
        for cp in simple_points:
            cl.add_point(cp)

        expected = np.array([(p.x, p.y, p.z) for p in simple_points]).mean(axis=0)
        np.testing.assert_allclose(cl.com.as_array(), expected, atol=1e-9)

    def test_com_is_order_independent(self, simple_points):
        from pc_teams.core.cluster import Cluster

        forward = Cluster(simple_points)
        backward = Cluster()
        for cp in reversed(simple_points):
            backward.add_point(cp)

        np.testing.assert_allclose(
            forward.com.as_array(), backward.com.as_array(), atol=1e-9
        )

    def test_add_points_matches_add_point(self, simple_points):
        from pc_teams.core.cluster import Cluster

        one_by_one = Cluster()
        for cp in simple_points:
            one_by_one.add_point(cp)

        batched = Cluster(simple_points[:30])
        batched.add_points(Cluster(simple_points[30:]))

        assert len(batched) == len(one_by_one)
        np.testing.assert_allclose(
            batched.com.as_array(), one_by_one.com.as_array(), atol=1e-9
        )

    def test_add_points_keeps_order(self, simple_points):
        from pc_teams.core.cluster import Cluster

        cl = Cluster(simple_points[:10])
        cl.add_points(simple_points[10:20])
        assert cl.points == simple_points[:20]

    def test_add_empty_is_noop(self, simple_cluster):
        com = simple_cluster.com
        simple_cluster.add_points([])
        assert simple_cluster.com == com


class TestCore:
    """Tests for the core sub-cluster."""

    def test_no_core_by_default(self, simple_cluster):
        assert simple_cluster.core is None
        assert not simple_cluster.has_core
        with pytest.raises(ValueError, match="no core"):
            simple_cluster.require_core()

    def test_set_core(self, simple_cluster, simple_points):
        from pc_teams.core.cluster import Cluster

        core = Cluster(simple_points[:50])
        simple_cluster.core = core
        assert simple_cluster.has_core
        assert simple_cluster.require_core() is core

    def test_cluster_cannot_be_own_core(self, simple_cluster):
        with pytest.raises(ValueError):
            simple_cluster.core = simple_cluster


class TestLayers:
    """Tests for Cluster.layers."""

    def test_layer_count_and_position(self, simple_cluster):
        from pc_teams.core.point import Point

        simple_cluster.seed = Point(7.0, 0.0, -3.0)
        layers = simple_cluster.layers(5)

        assert len(layers) == 5
        for layer in layers:
            assert layer.x == 7.0
            assert layer.z == -3.0

    def test_layer_means(self):
        from pc_teams.core.cluster import Cluster

        # Two points per layer, y_max = 2.0 -> bins of height 1.0
        xyz = np.array([
            [0.0, 0.2, 0.0],
            [0.0, 0.4, 0.0],
            [0.0, 1.5, 0.0],
            [0.0, 2.0, 0.0],
        ])
        rgb = np.array([
            [10, 0, 0],
            [20, 0, 0],
            [0, 100, 0],
            [0, 200, 50],
        ])
        cl = Cluster(make_points(xyz, rgb))
        bottom, top = cl.layers(2)

        assert bottom.y == pytest.approx(0.3)
        assert bottom.color == pytest.approx((15.0, 0.0, 0.0))
        assert top.y == pytest.approx(1.75)
        assert top.color == pytest.approx((0.0, 150.0, 25.0))

    def test_highest_point_goes_to_top_layer(self):
        from pc_teams.core.cluster import Cluster

        xyz = np.array([[0.0, 0.0, 0.0], [0.0, 3.0, 0.0]])
        rgb = np.array([[1, 1, 1], [9, 9, 9]])
        layers = Cluster(make_points(xyz, rgb)).layers(3)

        assert layers[2].color == pytest.approx((9.0, 9.0, 9.0))
        assert layers[0].color == pytest.approx((1.0, 1.0, 1.0))

    def test_empty_layer_is_zero_and_logged(self, caplog):
        from pc_teams.core.cluster import Cluster
        from pc_teams.core.point import CloudPoint

        xyz = np.array([[0.0, 0.1, 0.0], [0.0, 2.0, 0.0]])
        rgb = np.array([[50, 50, 50], [60, 60, 60]])
        cl = Cluster(make_points(xyz, rgb))

        with caplog.at_level(logging.WARNING, logger="pc_teams.core.cluster"):
            layers = cl.layers(4)

        assert layers[1] == CloudPoint()
        assert layers[2] == CloudPoint()
        assert "has no points" in caplog.text

    def test_non_positive_height_uses_bottom_layer(self):
        from pc_teams.core.cluster import Cluster

        xyz = np.array([[0.0, -1.0, 0.0], [0.0, 0.0, 0.0]])
        rgb = np.array([[10, 10, 10], [30, 30, 30]])
        layers = Cluster(make_points(xyz, rgb)).layers(3)

        assert layers[0].color == pytest.approx((20.0, 20.0, 20.0))

    def test_layers_are_memoized(self, simple_cluster):
        assert simple_cluster.layers(5) is simple_cluster.layers(5)
        assert simple_cluster.layers(5) is not simple_cluster.layers(4)

    def test_add_point_invalidates_layers(self, simple_cluster):
        from pc_teams.core.point import CloudPoint, Point

        before = simple_cluster.layers(5)
        simple_cluster.add_point(CloudPoint(Point(0.5, 0.1, 0.5), (255, 255, 255)))
        after = simple_cluster.layers(5)

        assert after is not before

    def test_invalid_layer_count(self, simple_cluster):
        with pytest.raises(ValueError):
            simple_cluster.layers(0)


class TestRandomSplit:
    """Tests for Cluster.random_split."""

    def test_full_fraction_copies_everything(self, simple_cluster, rng):
        splits = simple_cluster.random_split(5, 1.0, rng)

        assert len(splits) == 5
        for sub in splits:
            assert sub.points == simple_cluster.points

    def test_zero_fraction_gives_empty_clusters(self, simple_cluster, rng):
        splits = simple_cluster.random_split(3, 0.0, rng)
        assert all(len(sub) == 0 for sub in splits)

    def test_subsets_of_parent(self, simple_cluster, rng):
        parent_ids = {id(p) for p in simple_cluster}
        for sub in simple_cluster.random_split(10, 0.25, rng):
            assert {id(p) for p in sub} <= parent_ids

    def test_average_size(self, simple_cluster, rng):
        splits = simple_cluster.random_split(200, 0.25, rng)
        mean_size = np.mean([len(sub) for sub in splits])
        assert mean_size == pytest.approx(25, abs=2)

    def test_memoized_per_parameters(self, simple_cluster, rng):
        first = simple_cluster.random_split(4, 0.5, rng)
        assert simple_cluster.random_split(4, 0.5, rng) is first
        assert simple_cluster.random_split(4, 0.4, rng) is not first

    def test_add_point_invalidates_splits(self, simple_cluster, rng):
        from pc_teams.core.point import CloudPoint, Point

        first = simple_cluster.random_split(4, 0.5, rng)
        simple_cluster.add_point(CloudPoint(Point(), (0, 0, 0)))
        assert simple_cluster.random_split(4, 0.5, rng) is not first

    def test_seeded_generator_is_reproducible(self, simple_points):
        from pc_teams.core.cluster import Cluster

        a = Cluster(simple_points).random_split(5, 0.3, np.random.default_rng(1))
        b = Cluster(simple_points).random_split(5, 0.3, np.random.default_rng(1))
        assert [s.points for s in a] == [s.points for s in b]

    def test_invalidate_caches(self, simple_cluster, rng):
        layers = simple_cluster.layers(5)
        splits = simple_cluster.random_split(4, 0.5, rng)

        simple_cluster.invalidate_caches()

        assert simple_cluster.layers(5) is not layers
        assert simple_cluster.random_split(4, 0.5, rng) is not splits
