from speakassist.config import settings
from speakassist.models.conversation import ConversationTurn, Role


class HistoryWindow:
    """recent turns kept under two caps: request context (user utterances,
    session-scoped) and the display log (all turns, outlives a session)."""

    def __init__(self, context_turns: int | None = None, display_turns: int | None = None):
        self.context_turns = context_turns if context_turns is not None else settings.context_turns
        self.display_turns = display_turns if display_turns is not None else settings.display_turns
        self._context: list[ConversationTurn] = []
        self._display: list[ConversationTurn] = []

    def append(self, turn: ConversationTurn) -> None:
        if turn.role == Role.USER:
            self._context.append(turn)
            _enforce_window(self._context, self.context_turns)
        self._display.append(turn)
        _enforce_window(self._display, self.display_turns)

    def add_user(self, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role.USER, content=content)
        self.append(turn)
        return turn

    def add_assistant(self, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role.ASSISTANT, content=content)
        self.append(turn)
        return turn

    def context_slice(self) -> list[ConversationTurn]:
        return list(self._context)

    def display_slice(self) -> list[ConversationTurn]:
        return list(self._display)

    def clear_context(self) -> None:
        self._context = []

    def clear(self) -> None:
        self._context, self._display = [], []

    def __len__(self) -> int:
        return len(self._display)


def _enforce_window(turns: list[ConversationTurn], cap: int) -> None:
    while len(turns) > cap:
        turns.pop(0)
