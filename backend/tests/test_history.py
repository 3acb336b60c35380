from speakassist.models.conversation import Role
from speakassist.services.history import HistoryWindow


def test_context_slice_keeps_last_three_user_turns() -> None:
    window = HistoryWindow(context_turns=3, display_turns=20)
    for i in range(5):
        window.add_user(f"utterance {i}")
        window.add_assistant(f"reply {i}")

    context = window.context_slice()
    assert [t.content for t in context] == ["utterance 2", "utterance 3", "utterance 4"]
    assert all(t.role == Role.USER for t in context)


def test_display_slice_is_capped_with_oldest_evicted_first() -> None:
    window = HistoryWindow(context_turns=3, display_turns=20)
    for i in range(25):
        window.add_user(f"u{i}")

    display = window.display_slice()
    assert len(display) == 20
    assert display[0].content == "u5"
    assert display[-1].content == "u24"


def test_clear_context_keeps_display_log() -> None:
    window = HistoryWindow()
    window.add_user("hi everyone")
    window.add_assistant("Good to see you all.")
    window.clear_context()

    assert window.context_slice() == []
    assert len(window.display_slice()) == 2


def test_clear_empties_both_views() -> None:
    window = HistoryWindow()
    window.add_user("hi everyone")
    window.clear()
    assert window.context_slice() == []
    assert window.display_slice() == []
    assert len(window) == 0


def test_slices_are_copies() -> None:
    window = HistoryWindow()
    window.add_user("hi everyone")
    window.display_slice().clear()
    assert len(window) == 1


def test_zero_context_turns_is_honoured() -> None:
    window = HistoryWindow(context_turns=0, display_turns=2)
    window.add_user("hi everyone")
    assert window.context_slice() == []
    assert len(window) == 1
