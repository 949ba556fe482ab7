from askvid.search import find_relevant_segments, score_segment, score_segments, search_transcript


def test_stopword_question_matches_nothing(segments):
    assert find_relevant_segments("what is the and", segments) == []


def test_score_is_twice_the_occurrence_count(segments):
    assert score_segment(["brand"], segments[2]) == 6
    assert score_segment(["brand", "consistency"], segments[2]) == 8
    assert score_segment(["pizza"], segments[2]) == 0


def test_at_most_three_segments_best_first(segments):
    found = find_relevant_segments("brand audience consistency", segments)

    assert len(found) == 3
    assert found[0] == segments[2]


def test_ties_keep_transcript_order(segments):
    # segments 0, 1 and 3 all score 2
    hits = score_segments("brand audience consistency", segments)

    assert [hit.index for hit in hits] == [2, 0, 1, 3]
    assert [hit.score for hit in hits] == [8, 2, 2, 2]


def test_no_segments():
    assert find_relevant_segments("brand", []) == []


def test_search_transcript_matches_phrase(segments):
    assert search_transcript(segments, "YOUR AUDIENCE") == [segments[1], segments[3]]
    assert search_transcript(segments, "missing phrase") == []
