import json

from mingjing.analyzers.pua_agent import TEXT_LABEL
from mingjing.api.services.analysis_service import EXAMPLES
from mingjing.api.services.session_registry import SessionRegistry
from mingjing.core.errors import ANALYSIS_FAILED_MESSAGE

from conftest import SAMPLE_TEXT, SAMPLE_VERDICT, make_png, png_data_url, wait_for_status


def _new_session(client) -> str:
    response = client.post("/api/sessions")
    assert response.status_code == 201
    body = response.json()
    assert body["state"] == {"status": "IDLE"}
    assert body["canSubmit"] is False
    return body["sessionId"]


# ── Service info ──────────────────────────────────────────────────────
def test_health_and_info(client):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/api").json()["endpoints"]["analyze"] == "/api/analysis/analyze"


def test_page_lists_examples(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "职场明镜 - 话术分析" in response.text
    assert EXAMPLES[0][:12] in response.text


def test_examples_endpoint(client):
    assert client.get("/api/analysis/examples").json() == {"examples": EXAMPLES}


# ── One-shot analysis ─────────────────────────────────────────────────
def test_one_shot_analysis_returns_verdict(client, provider):
    response = client.post("/api/analysis/analyze", json={"text": SAMPLE_TEXT})
    assert response.status_code == 200
    assert response.json() == SAMPLE_VERDICT
    assert len(provider.calls) == 1


def test_one_shot_empty_submission_makes_no_call(client, provider):
    response = client.post("/api/analysis/analyze", json={"text": "   "})
    assert response.status_code == 422
    assert provider.calls == []


def test_one_shot_failure_hides_provider_detail(client, provider):
    provider.error = RuntimeError("API key not valid. Please pass a valid API key.")
    response = client.post("/api/analysis/analyze", json={"text": "x"})
    assert response.status_code == 502
    assert response.json()["detail"] == ANALYSIS_FAILED_MESSAGE


# ── Session lifecycle ─────────────────────────────────────────────────
def test_text_submission_completes(client, provider):
    session_id = _new_session(client)

    response = client.post(f"/api/sessions/{session_id}/submit", json={"text": SAMPLE_TEXT})
    assert response.status_code == 202
    assert response.json()["state"]["status"] in ("ANALYZING", "COMPLETED")

    body = wait_for_status(client, session_id, "COMPLETED")
    assert body["state"] == {"status": "COMPLETED", "result": SAMPLE_VERDICT}
    assert len(provider.calls) == 1
    assert provider.calls[0]["parts"][1].text == f"{TEXT_LABEL}{SAMPLE_TEXT}"


def test_empty_session_submission_is_rejected(client, provider):
    session_id = _new_session(client)
    response = client.post(f"/api/sessions/{session_id}/submit", json={"text": ""})
    assert response.status_code == 422
    assert client.get(f"/api/sessions/{session_id}").json()["state"]["status"] == "IDLE"
    assert provider.calls == []


def test_submit_after_completion_conflicts(client, provider):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/submit", json={"text": "x"})
    wait_for_status(client, session_id, "COMPLETED")

    response = client.post(f"/api/sessions/{session_id}/submit", json={"text": "y"})
    assert response.status_code == 409
    assert len(provider.calls) == 1


def test_failure_then_reset(client, provider):
    provider.response = "definitely not json"
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/submit", json={"text": "x"})

    body = wait_for_status(client, session_id, "ERROR")
    assert body["state"] == {"status": "ERROR", "message": ANALYSIS_FAILED_MESSAGE}

    response = client.post(f"/api/sessions/{session_id}/reset")
    assert response.status_code == 200
    assert response.json()["state"] == {"status": "IDLE"}
    assert response.json()["hasImage"] is False


def test_uploaded_image_enables_image_only_submission(client, provider):
    session_id = _new_session(client)
    response = client.post(
        f"/api/sessions/{session_id}/image",
        files={"file": ("chat.png", make_png(), "image/png")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["hasImage"] is True
    assert body["imagePending"] is False
    assert body["canSubmit"] is True

    client.post(f"/api/sessions/{session_id}/submit", json={"text": ""})
    wait_for_status(client, session_id, "COMPLETED")
    parts = provider.calls[0]["parts"]
    assert len(parts) == 2
    assert parts[1].data == make_png()


def test_image_in_submit_payload(client, provider):
    session_id = _new_session(client)
    response = client.post(f"/api/sessions/{session_id}/submit", json={"image": png_data_url()})
    assert response.status_code == 202
    wait_for_status(client, session_id, "COMPLETED")
    assert provider.calls[0]["parts"][1].mime_type == "image/png"


def test_remove_staged_image(client):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/image", files={"file": ("a.png", make_png(), "image/png")})
    response = client.delete(f"/api/sessions/{session_id}/image")
    assert response.json()["hasImage"] is False
    assert response.json()["canSubmit"] is False


def test_non_image_upload_is_rejected(client):
    session_id = _new_session(client)
    response = client.post(
        f"/api/sessions/{session_id}/image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_unknown_session(client):
    assert client.get("/api/sessions/nope").status_code == 404
    assert client.post("/api/sessions/nope/reset").status_code == 404


def test_delete_session(client):
    session_id = _new_session(client)
    assert client.delete(f"/api/sessions/{session_id}").status_code == 204
    assert SessionRegistry.get(session_id) is None


# ── Report ────────────────────────────────────────────────────────────
def test_report_requires_completion(client):
    session_id = _new_session(client)
    assert client.get(f"/api/sessions/{session_id}/report").status_code == 409
    assert client.get(f"/api/sessions/{session_id}/report.png").status_code == 409


def test_report_view_and_exports(client):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/submit", json={"text": SAMPLE_TEXT})
    wait_for_status(client, session_id, "COMPLETED")

    view = client.get(f"/api/sessions/{session_id}/report").json()
    assert view["score"] == 75
    assert view["riskLevel"] == "danger"
    assert view["details"] == SAMPLE_VERDICT["details"]
    assert view["pngFilename"].startswith("职场明镜鉴定-")

    png = client.get(f"/api/sessions/{session_id}/report.png")
    assert png.status_code == 200
    assert png.headers["content-type"] == "image/png"
    assert "attachment" in png.headers["content-disposition"]
    assert png.content.startswith(b"\x89PNG")

    pdf = client.get(f"/api/sessions/{session_id}/report.pdf")
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    assert client.get(f"/api/sessions/{session_id}/report.gif").status_code == 404


def test_export_failure_leaves_state_untouched(client, reports, monkeypatch):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/submit", json={"text": "x"})
    wait_for_status(client, session_id, "COMPLETED")

    def boom(view):
        raise MemoryError("canvas too large")

    monkeypatch.setattr(reports, "_draw_card", boom)
    response = client.get(f"/api/sessions/{session_id}/report.png")
    assert response.status_code == 500
    assert response.json()["detail"] == "图片生成失败，请重试"
    assert client.get(f"/api/sessions/{session_id}").json()["state"]["status"] == "COMPLETED"


def test_session_state_serializes_result_verbatim(client, provider):
    provider.response = json.dumps({**SAMPLE_VERDICT, "score": 0}, ensure_ascii=False)
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/submit", json={"text": "x"})
    body = wait_for_status(client, session_id, "COMPLETED")
    assert body["state"]["result"]["score"] == 0


def test_rejected_inline_image_is_not_staged(client, provider):
    session_id = _new_session(client)
    bad = client.post(
        f"/api/sessions/{session_id}/submit",
        json={"text": "x", "image": "data:image/png;base64,@@bad@@"},
    )
    assert bad.status_code == 422
    body = client.get(f"/api/sessions/{session_id}").json()
    assert body["state"]["status"] == "IDLE"
    assert body["hasImage"] is False

    response = client.post(f"/api/sessions/{session_id}/submit", json={"text": SAMPLE_TEXT})
    assert response.status_code == 202
    wait_for_status(client, session_id, "COMPLETED")
    assert len(provider.calls) == 1


def test_rejected_inline_image_keeps_uploaded_one(client, provider):
    session_id = _new_session(client)
    client.post(f"/api/sessions/{session_id}/image", files={"file": ("a.png", make_png(), "image/png")})

    bad = client.post(f"/api/sessions/{session_id}/submit", json={"image": "@@bad@@"})
    assert bad.status_code == 422
    assert client.get(f"/api/sessions/{session_id}").json()["hasImage"] is True

    client.post(f"/api/sessions/{session_id}/submit", json={"text": ""})
    wait_for_status(client, session_id, "COMPLETED")
    assert provider.calls[0]["parts"][1].data == make_png()


def test_app_module_has_single_launcher():
    import inspect

    from mingjing.api import main

    assert "__main__" not in inspect.getsource(main)
