"""
Similarity Index Unit Tests

Ranking, thresholds and deterministic ordering of semantic search.
"""

from conftest import GROCERIES, HIKING, MOUNTAINS, SCENARIO_VECTORS, TRAILS

from notegraph.services.similarity import SimilarityIndex, embedded_notes


def scenario_notes(make_note):
    """Hiking (oldest), trails, groceries (newest)."""
    return [
        make_note(1, SCENARIO_VECTORS[HIKING], HIKING, age=3),
        make_note(2, SCENARIO_VECTORS[TRAILS], TRAILS, age=2),
        make_note(3, SCENARIO_VECTORS[GROCERIES], GROCERIES, age=1),
    ]


def test_mountains_query_returns_hiking_notes(make_note):
    index = SimilarityIndex(dimension=3)

    results = index.query(scenario_notes(make_note), SCENARIO_VECTORS[MOUNTAINS], k=5, min_threshold=0.5)

    assert [r.note_id for r in results] == [2, 1]
    assert [r.rank for r in results] == [1, 2]
    assert results[0].score > results[1].score >= 0.5
    assert results[0].note.content == TRAILS


def test_results_sorted_by_descending_score(make_note):
    notes = [
        make_note(1, [1.0, 0.0]),
        make_note(2, [0.0, 1.0]),
        make_note(3, [1.0, 1.0]),
        make_note(4, [-1.0, 0.2]),
    ]

    results = SimilarityIndex().query(notes, [1.0, 0.1], k=10)

    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert len(results) == 4  # default threshold keeps everything


def test_k_bounds_result_count(make_note):
    notes = [make_note(i, [1.0, i / 10]) for i in range(1, 8)]
    index = SimilarityIndex()

    assert len(index.query(notes, [1.0, 0.0], k=3)) == 3
    assert index.query(notes, [1.0, 0.0], k=0) == []


def test_threshold_filters_and_may_return_nothing(make_note):
    notes = scenario_notes(make_note)

    assert SimilarityIndex().query(notes, [0.0, 0.0, -1.0], k=5, min_threshold=0.5) == []


def test_equal_scores_prefer_newer_note(make_note):
    notes = [
        make_note(1, [1.0, 0.0], age=10),
        make_note(2, [2.0, 0.0], age=0),
        make_note(3, [3.0, 0.0], age=5),
    ]

    results = SimilarityIndex().query(notes, [1.0, 0.0], k=3)

    assert [r.note_id for r in results] == [2, 3, 1]


def test_notes_without_usable_embedding_are_skipped(make_note):
    notes = [
        make_note(1, [1.0, 0.0, 0.0]),
        make_note(2, None),
        make_note(3, [1.0, 0.0]),  # wrong dimension
    ]

    results = SimilarityIndex(dimension=3).query(notes, [1.0, 0.0, 0.0], k=5)

    assert [r.note_id for r in results] == [1]


def test_exclude_ids(make_note):
    notes = scenario_notes(make_note)

    results = SimilarityIndex().query(notes, SCENARIO_VECTORS[HIKING], k=5, exclude_ids={1})

    assert 1 not in [r.note_id for r in results]
    assert results[0].note_id == 2


def test_empty_collection(make_note):
    assert SimilarityIndex().query([], [1.0, 0.0], k=5) == []


def test_embedded_notes_filter(make_note):
    notes = [make_note(1, [1.0, 2.0]), make_note(2, None), make_note(3, [1.0])]

    assert [n.id for n in embedded_notes(notes)] == [1, 3]
    assert [n.id for n in embedded_notes(notes, dimension=2)] == [1]
