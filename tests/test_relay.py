from __future__ import annotations

import logging

import pytest
from fastapi import WebSocketDisconnect


def test_plain_get_returns_hello_world(make_client):
    with make_client() as client:
        resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Hello world!"
    assert resp.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
def test_any_plain_request_returns_hello_world(make_client, method):
    with make_client() as client:
        resp = client.request(method, "/")
    assert resp.status_code == 200
    assert resp.text == "Hello world!"


def test_head_request_is_ok(make_client):
    with make_client() as client:
        resp = client.head("/")
    assert resp.status_code == 200


def test_every_new_connection_gets_identical_initial_state(make_client, initial_state):
    with make_client() as client:
        with client.websocket_connect("/") as a, client.websocket_connect("/") as b:
            assert a.receive_text() == initial_state
            assert b.receive_text() == initial_state


def test_late_joiner_syncs_and_sender_is_not_echoed(make_client, initial_state):
    with make_client() as client:
        with client.websocket_connect("/") as observer:
            assert observer.receive_text() == initial_state

            with client.websocket_connect("/") as a:
                assert a.receive_text() == initial_state
                a.send_text("boardStateX")
                assert observer.receive_text() == "boardStateX"

                with client.websocket_connect("/") as b:
                    assert b.receive_text() == "boardStateX"

                    b.send_text("boardStateY")
                    assert a.receive_text() == "boardStateY"
                    assert observer.receive_text() == "boardStateY"

                    # b's next frame is a's update, not its own message
                    a.send_text("boardStateZ")
                    assert b.receive_text() == "boardStateZ"
                    assert observer.receive_text() == "boardStateZ"


def test_newcomer_receives_most_recent_of_many_messages(make_client):
    with make_client() as client:
        with client.websocket_connect("/") as observer, client.websocket_connect("/") as sender:
            observer.receive_text()
            sender.receive_text()
            for i in range(5):
                sender.send_text(f"state-{i}")
            for i in range(5):
                assert observer.receive_text() == f"state-{i}"

            with client.websocket_connect("/") as late:
                assert late.receive_text() == "state-4"


def test_binary_payloads_are_relayed_verbatim(make_client):
    blob = b"\x00\xffboard\x10"
    with make_client() as client:
        with client.websocket_connect("/") as observer, client.websocket_connect("/") as sender:
            observer.receive_text()
            sender.receive_text()
            sender.send_bytes(blob)
            assert observer.receive_bytes() == blob

            with client.websocket_connect("/") as late:
                assert late.receive_bytes() == blob


def test_ack_mode_replies_to_sender_only(make_client, initial_state):
    with make_client(mode="ack") as client:
        hub = client.app.state.hub
        with client.websocket_connect("/") as other, client.websocket_connect("/") as sender:
            assert other.receive_text() == initial_state
            assert sender.receive_text() == initial_state

            sender.send_text("ping")
            assert sender.receive_text() == "Ack: ping"
            sender.send_text("pong")
            assert sender.receive_text() == "Ack: pong"

            assert hub.stats().messages_relayed == 0
            assert hub.backlog() == 0
            assert hub.stats().subscribers == 2

            with client.websocket_connect("/") as late:
                assert late.receive_text() == "pong"


def test_closed_connection_leaves_registry_and_gets_no_broadcasts(make_client):
    with make_client() as client:
        hub = client.app.state.hub
        with client.websocket_connect("/") as survivor:
            survivor.receive_text()
            with client.websocket_connect("/") as leaver:
                leaver.receive_text()
                assert hub.subscriber_count() == 2
            assert hub.subscriber_count() == 1

            with client.websocket_connect("/") as sender:
                sender.receive_text()
                sender.send_text("after-close")
                assert survivor.receive_text() == "after-close"

            assert hub.subscriber_count() == 1
            assert hub.stats().messages_relayed == 1
            assert hub.backlog() == 0


def test_oversized_payload_closes_connection_and_keeps_cache(make_client, initial_state):
    with make_client(max_payload_bytes=8) as client:
        with client.websocket_connect("/") as sender:
            sender.receive_text()
            sender.send_text("x" * 9)
            with pytest.raises(WebSocketDisconnect) as exc:
                sender.receive_text()
            assert exc.value.code == 1009

        with client.websocket_connect("/") as late:
            assert late.receive_text() == initial_state


def test_payload_at_limit_is_accepted(make_client):
    with make_client(max_payload_bytes=8) as client:
        with client.websocket_connect("/") as observer, client.websocket_connect("/") as sender:
            observer.receive_text()
            sender.receive_text()
            sender.send_text("x" * 8)
            assert observer.receive_text() == "x" * 8


def test_oversized_payload_is_not_written_to_the_log(make_client, caplog):
    caplog.set_level(logging.INFO, logger="staterelay.lifecycle")
    with make_client(max_payload_bytes=8) as client:
        with client.websocket_connect("/") as sender:
            sender.receive_text()
            sender.send_text("secret-board-state")
            with pytest.raises(WebSocketDisconnect):
                sender.receive_text()
    assert "secret-board-state" not in caplog.text
    assert "exceeds limit of 8 bytes" in caplog.text
