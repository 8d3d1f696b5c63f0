from shoesign.runtime.session_manager import SessionStateManager
from shoesign.runtime.stores import PriorStore
from shoesign.transport.envelopes import envelopes_for_result
from shoesign.transport.framing import FrameDecoder, encode_frame


def test_update_envelope_carries_table_id():
    manager = SessionStateManager(store=PriorStore())
    (msg,) = envelopes_for_result(manager.process_report("bac-1", ["B", "P"]))
    assert msg["type"] == "strategy_update"
    assert msg["payload"]["tableId"] == "bac-1"
    assert msg["payload"]["round"] == 2


def test_unchanged_report_resends_last_log():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B", "P"])
    (msg,) = envelopes_for_result(manager.process_report("bac-1", ["B", "P"]))
    assert msg["type"] == "strategy_update"
    assert msg["payload"]["round"] == 2


def test_no_data_placeholder():
    manager = SessionStateManager(store=PriorStore())
    (msg,) = envelopes_for_result(manager.process_report("bac-1", [{"c": "?"}]))
    assert msg == {"type": "strategy_no_data", "payload": {"tableId": "bac-1", "round": 1}}


def test_boundary_emits_summary_first_and_frames_round_trip():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B", "P", "T"])
    messages = envelopes_for_result(manager.process_report("bac-1", ["P"]))
    assert [m["type"] for m in messages] == ["shoe_summary", "strategy_update"]
    assert "Rounds observed: 2" in messages[0]["payload"]["summary"]
    assert messages[0]["payload"]["metrics"]["outcomes_observed"] == 2

    stream = b"".join(encode_frame(m) for m in messages)
    assert FrameDecoder().feed(stream) == messages
