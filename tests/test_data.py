from __future__ import annotations

import io

import pytest

from biascf.data import Query, Rating, RecordParseError, load_stream, parse_records, read_stream


def test_stream_switches_from_training_to_queries() -> None:
    lines = [
        "train dataset",
        "1 10 4.0",
        "",
        "2 10 5",
        "train dataset",
        "1 11 3.5",
        "  test dataset  ",
        "1 10",
        "",
        "7 99",
    ]
    stream = read_stream(lines)

    assert stream.ratings == [Rating(1, 10, 4.0), Rating(2, 10, 5.0), Rating(1, 11, 3.5)]
    assert stream.queries == [Query(1, 10), Query(7, 99)]


def test_training_mode_is_the_default() -> None:
    records = list(parse_records(["3 4 2.5\n", "test dataset\n", "3 4\n"]))
    assert records == [Rating(3, 4, 2.5), Query(3, 4)]


def test_stream_without_queries() -> None:
    stream = read_stream(io.StringIO("train dataset\n1 1 5\n"))
    assert stream.ratings == [Rating(1, 1, 5.0)]
    assert stream.queries == []


@pytest.mark.parametrize(
    "lines, line_no",
    [
        (["1 2"], 1),
        (["1 2 3", "x 2 3"], 2),
        (["1 2 high"], 1),
        (["test dataset", "1"], 2),
        (["test dataset", "1 b"], 2),
        (["1 2 nan"], 1),
        (["1 2 3", "1 2 inf"], 2),
        (["1 2 -inf"], 1),
        (["-1 2 3"], 1),
        (["1 2 3", "1 -2 3"], 2),
    ],
)
def test_malformed_lines_report_their_line_number(lines, line_no) -> None:
    with pytest.raises(RecordParseError) as exc_info:
        list(parse_records(lines))
    assert exc_info.value.line_no == line_no
    assert isinstance(exc_info.value, ValueError)


def test_load_stream_from_path(tmp_path) -> None:
    p = tmp_path / "input.txt"
    p.write_text("train dataset\n1 1 4\ntest dataset\n1 1\n")
    stream = load_stream(p)
    assert stream.ratings == [Rating(1, 1, 4.0)]
    assert stream.queries == [Query(1, 1)]

    with pytest.raises(FileNotFoundError):
        load_stream(tmp_path / "missing.txt")


def test_negative_query_ids_are_accepted() -> None:
    # Queries degrade to the baseline instead of failing.
    assert list(parse_records(["test dataset", "-1 -5"])) == [Query(-1, -5)]


def test_non_finite_rating_names_the_line() -> None:
    text = "train dataset\n1 1 4\n2 2 5\n3 3 nan\ntest dataset\n1 1\n2 2\n9 9\n"
    with pytest.raises(RecordParseError, match="line 4: rating is not a finite number"):
        read_stream(io.StringIO(text))
