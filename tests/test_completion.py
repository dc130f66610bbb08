from sift.core.completion import CompletionDetector
from sift.types import Turn, TurnRole


def _turn(text: str | None) -> Turn:
    return Turn(role=TurnRole.WORKER, sequence=1, text=text)


def test_default_markers_match_case_insensitively() -> None:
    detector = CompletionDetector()

    assert detector.is_complete(_turn("Here is the FINAL RESULT: 42"))
    assert detector.is_complete(_turn("... Analysis Complete."))


def test_turn_without_marker_or_text_is_not_complete() -> None:
    detector = CompletionDetector()

    assert not detector.is_complete(_turn("Loading the dataset"))
    assert not detector.is_complete(_turn(None))
    assert not detector.is_complete(_turn(""))


def test_substring_matching_accepts_negated_phrases() -> None:
    # Plain substring matching: a negated phrase still counts as a marker.
    assert CompletionDetector().is_complete(_turn("There is no final result yet"))


def test_custom_markers_replace_defaults() -> None:
    detector = CompletionDetector(["done.", "  "])

    assert detector.markers == ("done.",)
    assert detector.is_complete(_turn("All DONE."))
    assert not detector.is_complete(_turn("final result"))
