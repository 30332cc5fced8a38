import numpy as np
import pandas as pd
import pytest

from src.ride_analysis.recording import ParseError, parse_frame, read_recording


def test_columns_match_case_insensitively():
    df = pd.DataFrame({"AX": [1.0, 2.0], " Ay": [3.0, 4.0], "az": [5.0, 6.0]})
    rec = parse_frame(df, 100.0)
    np.testing.assert_array_equal(rec.ay, [3.0, 4.0])
    assert len(rec) == 2


def test_time_column_is_ignored():
    df = pd.DataFrame({"time": [0.0, 0.7, 0.9], "ax": [0, 0, 0], "ay": [0, 0, 0], "az": [1, 2, 3]})
    rec = parse_frame(df, 10.0)
    np.testing.assert_allclose(rec.time, [0.0, 0.1, 0.2])


def test_missing_column_is_named():
    df = pd.DataFrame({"ax": [1.0], "ay": [1.0]})
    with pytest.raises(ParseError) as exc:
        parse_frame(df, 100.0)
    assert exc.value.missing_columns == ["az"]


def test_non_numeric_cell():
    df = pd.DataFrame({"ax": [1.0, 2.0], "ay": [1.0, 2.0], "az": ["1.0", "abc"]})
    with pytest.raises(ParseError):
        parse_frame(df, 100.0)


def test_read_csv_file(tmp_path):
    path = tmp_path / "ride.csv"
    path.write_text("Time,Ax,Ay,Az\n0,0.1,0.2,1.5\n0.01,0.2,0.1,-2.5\n0.02,0.0,0.0,3.0\n")

    rec = read_recording(str(path), 1600.0)

    assert len(rec) == 3
    assert rec.sample_rate == 1600.0
    np.testing.assert_array_equal(rec.az, [1.5, -2.5, 3.0])


def test_header_only_file(tmp_path):
    path = tmp_path / "header.csv"
    path.write_text("ax,ay,az\n")
    with pytest.raises(ParseError):
        read_recording(str(path), 100.0)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(ParseError):
        read_recording(str(path), 100.0)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_recording(str(tmp_path / "nope.csv"), 100.0)
