import pytest

from taxvoice.core.errors import StateTransitionError
from taxvoice.state.message_log import MessageKind, MessageLog, Role, Source
from taxvoice.state.session import ConversationPhase as Phase
from taxvoice.state.session import Session, Status, check_phase_change, check_state


def test_session_defaults():
    session = Session()
    assert session.language == "cmn-Hant-TW"
    assert not session.has_started
    assert session.chat is None and session.inactivity_timer is None


@pytest.mark.parametrize(
    "phase,status",
    [
        (Phase.PRE_START, Status.LISTENING),
        (Phase.WELCOMING, Status.LISTENING),
        (Phase.LANG_SELECT, Status.THINKING),
        (Phase.ENDED, Status.LISTENING),
    ],
)
def test_forbidden_status(phase, status):
    with pytest.raises(StateTransitionError):
        check_state(phase, status)


def test_speaking_requires_capture_stopped():
    check_state(Phase.CHATTING, Status.SPEAKING)
    with pytest.raises(StateTransitionError):
        check_state(Phase.CHATTING, Status.SPEAKING, capture_active=True)


def test_phase_changes_move_forward():
    check_phase_change(Phase.PRE_START, Phase.WELCOMING)
    check_phase_change(Phase.LANG_SELECT, Phase.ENDED)
    check_phase_change(Phase.CHATTING, Phase.CHATTING)
    with pytest.raises(StateTransitionError):
        check_phase_change(Phase.CHATTING, Phase.LANG_SELECT)
    with pytest.raises(StateTransitionError):
        check_phase_change(Phase.ENDED, Phase.ENDED)


def test_welcome_message_replaces_previous_welcome():
    log = MessageLog()
    log.add(Role.MODEL, "歡迎", MessageKind.WELCOME)
    log.add(Role.USER, "英文")
    log.add(Role.MODEL, "Welcome", MessageKind.WELCOME)

    assert [m.text for m in log] == ["英文", "Welcome"]
    assert sum(1 for m in log if m.kind is MessageKind.WELCOME) == 1
    assert log.last.text == "Welcome"


def test_message_ids_are_unique():
    log = MessageLog()
    first = log.add(Role.USER, "a")
    second = log.add(Role.USER, "a")
    assert first.id != second.id
    assert len(log) == 2


def test_export_text_lists_sources():
    log = MessageLog()
    log.add(Role.USER, "What is VAT?")
    log.add(Role.MODEL, "5%.", sources=[Source("https://www.mof.gov.tw", "MOF")])

    exported = log.export_text("Sources")

    assert exported == (
        "User: What is VAT?\n\n"
        "Assistant: 5%.\n"
        "  Sources:\n"
        "  - MOF <https://www.mof.gov.tw>\n"
    )
    assert MessageLog().export_text() == ""
