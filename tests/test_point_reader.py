"""Tests for pc_teams.io.point_reader module."""

import numpy as np
import pytest


class TestReadPointFile:
    """Tests for read_point_file."""

    def test_reads_all_points(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        training, evaluation = read_point_file(small_point_file, RunContext.from_seed(1))

        assert training.n_points + evaluation.n_points == 4

    def test_fraction_zero_sends_all_to_training(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        training, evaluation = read_point_file(
            small_point_file, RunContext.from_seed(1), evaluation_fraction=0.0
        )
        assert training.n_points == 4
        assert evaluation.n_points == 0

    def test_fraction_one_sends_all_to_evaluation(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        training, evaluation = read_point_file(
            small_point_file, RunContext.from_seed(1), evaluation_fraction=1.0
        )
        assert training.n_points == 0
        assert evaluation.n_points == 4

    def test_values_and_ids(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.core.point import FIRST_POINT_ID
        from pc_teams.io.point_reader import read_point_file

        training, _ = read_point_file(
            small_point_file, RunContext.from_seed(1), evaluation_fraction=0.0
        )
        first = training.points[0]

        assert (first.x, first.y, first.z) == (0.0, 0.5, 0.0)
        assert first.color == (10, 20, 30)
        assert [p.id for p in training.points] == list(
            range(FIRST_POINT_ID, FIRST_POINT_ID + 4)
        )

    def test_ids_unique_across_files(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        ctx = RunContext.from_seed(1)
        a, b = read_point_file(small_point_file, ctx)
        c, d = read_point_file(small_point_file, ctx)

        ids = [p.id for ds in (a, b, c, d) for p in ds.points]
        assert len(set(ids)) == 8

    def test_bounds_on_both_sets(self, small_point_file):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        training, evaluation = read_point_file(small_point_file, RunContext.from_seed(1))

        for ds in (training, evaluation):
            assert ds.bounds["x"] == (-3.0, 2.5)
            assert ds.bounds["y"] == (0.1, 1.7)
            assert ds.bounds["r"] == (0.0, 255.0)

    def test_split_is_reproducible(self, field_files):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        point_path, _ = field_files
        t1, e1 = read_point_file(point_path, RunContext.from_seed(5))
        t2, e2 = read_point_file(point_path, RunContext.from_seed(5))

        assert t1.n_points == t2.n_points
        assert [p.position for p in e1.points] == [p.position for p in e2.points]

    def test_split_fraction(self, field_files, synthetic_field):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        point_path, _ = field_files
        _, evaluation = read_point_file(point_path, RunContext.from_seed(5), 0.2)

        n = len(synthetic_field["xyz"])
        assert evaluation.n_points == pytest.approx(0.2 * n, rel=0.2)

    def test_missing_file(self, tmp_path):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        with pytest.raises(FileNotFoundError):
            read_point_file(tmp_path / "missing.txt", RunContext.from_seed(1))

    def test_color_out_of_range(self, tmp_path):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        filepath = tmp_path / "bad.txt"
        filepath.write_text("0.0 0.0 0.0 10 10 10\n1.0 1.0 1.0 256 0 0\n")

        with pytest.raises(ValueError, match="Invalid data"):
            read_point_file(filepath, RunContext.from_seed(1))

    def test_negative_color(self, tmp_path):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        filepath = tmp_path / "bad.txt"
        filepath.write_text("0.0 0.0 0.0 10 -1 10\n")

        with pytest.raises(ValueError):
            read_point_file(filepath, RunContext.from_seed(1))

    @pytest.mark.parametrize(
        "content",
        [
            "0.0 0.0 0.0 10 10\n",
            "0.0 0.0 0.0 10 10 10\n1.0 abc 1.0 10 10 10\n",
            "0.0 0.0 0.0 10.5 10 10\n",
        ],
    )
    def test_malformed_rows(self, tmp_path, content):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        filepath = tmp_path / "bad.txt"
        filepath.write_text(content)

        with pytest.raises(ValueError):
            read_point_file(filepath, RunContext.from_seed(1))

    def test_empty_file(self, tmp_path):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file

        filepath = tmp_path / "empty.txt"
        filepath.write_text("")

        training, evaluation = read_point_file(filepath, RunContext.from_seed(1))
        assert training.n_points == 0
        assert evaluation.n_points == 0


class TestReadTruePositions:
    """Tests for read_true_positions."""

    def test_grouped_and_sorted(self, tmp_path):
        from pc_teams.core.point import Point
        from pc_teams.io.point_reader import read_true_positions

        filepath = tmp_path / "truth.txt"
        filepath.write_text(
            "1.0 2.0 TeamB\n"
            "3.0 4.0 Referees\n"
            "5.0 6.0 TeamB\n"
            "7.0 8.0 TeamA\n"
        )
        truth = read_true_positions(filepath)

        assert list(truth) == ["Referees", "TeamA", "TeamB"]
        assert truth["TeamB"] == [Point(1.0, 0.0, 2.0), Point(5.0, 0.0, 6.0)]

    def test_missing_file(self, tmp_path):
        from pc_teams.io.point_reader import read_true_positions

        with pytest.raises(FileNotFoundError):
            read_true_positions(tmp_path / "missing.txt")


class TestWritePointFile:
    """Tests for write_point_file."""

    def test_written_file_reads_back(self, tmp_path):
        from pc_teams.core.dataset import RunContext
        from pc_teams.io.point_reader import read_point_file, write_point_file

        xyz = np.array([[0.5, 1.0, -2.0], [3.25, 0.0, 4.0]])
        rgb = np.array([[1, 2, 3], [250, 251, 252]])
        filepath = tmp_path / "out" / "points.txt"
        write_point_file(filepath, xyz, rgb)

        training, _ = read_point_file(filepath, RunContext.from_seed(1), 0.0)
        assert [p.color for p in training.points] == [(1, 2, 3), (250, 251, 252)]
        assert training.points[1].x == pytest.approx(3.25)

    def test_shape_mismatch(self, tmp_path):
        from pc_teams.io.point_reader import write_point_file

        with pytest.raises(ValueError):
            write_point_file(tmp_path / "p.txt", np.zeros((2, 3)), np.zeros((3, 3)))
