import random

from substudy.analysis.alignment import combine_files
from substudy.util.time import Time
from substudy.util.types import BilingualCue, Cue, SubtitleFile


def _file(*cues) -> SubtitleFile:
    return SubtitleFile([Cue(Time(s), Time(e), (text,)) for s, e, text in cues])


def _bi(start, end, foreign=None, native=None) -> BilingualCue:
    return BilingualCue(
        Time(start),
        Time(end),
        (foreign,) if foreign else (),
        (native,) if native else (),
    )


def _union(intervals):
    merged = []
    for start, end in sorted(i for i in intervals if i[1] > i[0]):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return merged


def test_partially_overlapping_cues_are_split() -> None:
    foreign = _file((1000, 3000, "Bonjour"))
    native = _file((1500, 4000, "Hello"))
    combined = combine_files(foreign, native)
    assert combined.cues == [
        _bi(1000, 1500, "Bonjour"),
        _bi(1500, 3000, "Bonjour", "Hello"),
        _bi(3000, 4000, native="Hello"),
    ]
    assert combined.to_srt() == (
        "1\n00:00:01,000 --> 00:00:01,500\nBonjour\n\n"
        "2\n00:00:01,500 --> 00:00:03,000\nBonjour\nHello\n\n"
        "3\n00:00:03,000 --> 00:00:04,000\nHello\n\n"
    )


def test_empty_native_reemits_foreign() -> None:
    foreign = _file((0, 1000, "Uno"), (1000, 2000, "Uno"), (3000, 4000, "Dos"))
    combined = combine_files(foreign, SubtitleFile([]))
    assert combined.cues == [_bi(0, 1000, "Uno"), _bi(1000, 2000, "Uno"), _bi(3000, 4000, "Dos")]


def test_single_track_overlaps_are_resolved() -> None:
    foreign = _file((0, 0, "zero"), (0, 1000, "Uno"), (500, 2000, "Dos"), (600, 700, "tres"))
    combined = combine_files(foreign, SubtitleFile([]))
    assert combined.cues == [
        _bi(0, 500, "Uno"),
        _bi(500, 600, "Dos"),
        _bi(600, 700, "tres"),
        _bi(700, 2000, "Dos"),
    ]
    for prev, cue in zip(combined.cues, combined.cues[1:]):
        assert prev.end <= cue.start


def test_empty_foreign_reemits_native() -> None:
    native = _file((0, 1000, "One"))
    assert combine_files(SubtitleFile([]), native).cues == [_bi(0, 1000, native="One")]


def test_both_empty() -> None:
    assert combine_files(SubtitleFile([]), SubtitleFile([])).cues == []


def test_cue_starting_where_other_ends() -> None:
    foreign = _file((0, 1000, "A"))
    native = _file((1000, 2000, "B"))
    assert combine_files(foreign, native).cues == [_bi(0, 1000, "A"), _bi(1000, 2000, native="B")]


def test_gaps_in_both_tracks_are_skipped() -> None:
    foreign = _file((0, 1000, "A"), (3000, 4000, "A2"))
    native = _file((500, 1500, "N"))
    assert combine_files(foreign, native).cues == [
        _bi(0, 500, "A"),
        _bi(500, 1000, "A", "N"),
        _bi(1000, 1500, native="N"),
        _bi(3000, 4000, "A2"),
    ]


def test_touching_identical_pairs_are_merged() -> None:
    foreign = _file((0, 1000, "Hi"), (1000, 2000, "Hi"))
    native = _file((0, 2000, "Salut"))
    assert combine_files(foreign, native).cues == [_bi(0, 2000, "Hi", "Salut")]


def test_identical_pairs_across_a_gap_stay_separate() -> None:
    foreign = _file((0, 1000, "Hi"), (2000, 3000, "Hi"))
    native = _file((0, 1000, "Salut"), (2000, 3000, "Salut"))
    assert combine_files(foreign, native).cues == [
        _bi(0, 1000, "Hi", "Salut"),
        _bi(2000, 3000, "Hi", "Salut"),
    ]


def test_latest_starting_cue_wins_within_a_track() -> None:
    foreign = _file((0, 4000, "long"), (1000, 2000, "short"))
    native = _file((0, 4000, "N"))
    assert combine_files(foreign, native).cues == [
        _bi(0, 1000, "long", "N"),
        _bi(1000, 2000, "short", "N"),
        _bi(2000, 4000, "long", "N"),
    ]


def test_zero_length_cue_never_shows() -> None:
    foreign = _file((0, 2000, "x"), (1000, 1000, "zero"))
    native = _file((0, 2000, "n"))
    assert combine_files(foreign, native).cues == [_bi(0, 2000, "x", "n")]


def test_metadata_records_sweep_statistics() -> None:
    metadata = {}
    combine_files(_file((1000, 3000, "Bonjour")), _file((1500, 4000, "Hello")), metadata)
    assert metadata["combine"] == {
        "foreign_cues": 1,
        "native_cues": 1,
        "intervals": 3,
        "output_cues": 3,
    }


def test_random_tracks_keep_ordering_coverage_and_no_fragmentation() -> None:
    rng = random.Random(1234)

    def random_track(prefix):
        cues = []
        for i in range(40):
            start = rng.randrange(0, 60_000, 100)
            end = start + rng.randrange(0, 5_000, 100)
            cues.append(Cue(Time(start), Time(end), (f"{prefix}{i % 7}",)))
        cues.sort(key=lambda c: c.start)
        return SubtitleFile(cues)

    for _ in range(20):
        foreign = random_track("f")
        native = random_track("n")
        combined = combine_files(foreign, native)

        for cue in combined:
            assert cue.start < cue.end
            assert cue.foreign_lines or cue.native_lines
        for prev, cue in zip(combined.cues, combined.cues[1:]):
            assert prev.end <= cue.start
            if prev.end == cue.start:
                assert (prev.foreign_lines, prev.native_lines) != (cue.foreign_lines, cue.native_lines)

        inputs = [(c.start.ms, c.end.ms) for c in foreign.cues + native.cues]
        outputs = [(c.start.ms, c.end.ms) for c in combined.cues]
        assert _union(outputs) == _union(inputs)

        for cue in combined:
            f = foreign.find(cue.start)
            n = native.find(cue.start)
            assert cue.foreign_lines == (f.lines if f else ())
            assert cue.native_lines == (n.lines if n else ())
