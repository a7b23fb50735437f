"""Integration tests for the weekly report cycle: report, archive, ask."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from httpx import AsyncClient

from backend.app.services.enrichment import enricher
from backend.app.websocket.manager import manager


@pytest.fixture
def gateways(keyword_embedding_service):
    """Keyword embeddings and a mock LLM wired into every service."""
    llm = Mock()
    llm.generate_report_teaser = AsyncMock(side_effect=lambda report: f"{report.nickname}の挑戦...")
    llm.answer_with_context = AsyncMock(
        side_effect=lambda question, documents: f"{len(documents)}件の報告から回答します"
    )
    with patch("backend.app.services.enrichment.get_llm_service", return_value=llm), \
         patch("backend.app.services.archive.get_embedding_service", return_value=keyword_embedding_service), \
         patch("backend.app.services.rag.get_embedding_service", return_value=keyword_embedding_service), \
         patch("backend.app.services.rag.get_llm_service", return_value=llm):
        yield llm


@pytest.fixture
def listener():
    """A fake WebSocket subscribed to the reports channel."""
    websocket = Mock()
    websocket.send_text = AsyncMock()
    manager.active_connections.setdefault("reports", []).append(websocket)
    yield websocket
    manager.disconnect(websocket, "reports")


@pytest.mark.asyncio
async def test_weekly_cycle(test_client_with_db: AsyncClient, gateways, listener, login_as):
    """Members report, teasers resolve, the week is archived and then searchable."""
    headers = await login_as("orange-admin")

    # Members
    for name in ("太郎", "花子"):
        response = await test_client_with_db.post("/api/members", json={"name": name}, headers=headers)
        assert response.status_code == 201

    # Weekly reports
    for nickname, trial in (("たろう", "Next.jsのApp Router"), ("はなこ", "Firebase Authentication")):
        response = await test_client_with_db.post(
            "/api/reports",
            json={"nickname": nickname, "current_trial": trial, "progress": "進行中"},
            headers=headers,
        )
        assert response.status_code == 201

    await enricher.drain()

    response = await test_client_with_db.get("/api/reports", headers=headers)
    assert sorted(r["teaser"] for r in response.json()["reports"]) == ["たろうの挑戦...", "はなこの挑戦..."]
    sent_types = [call.args[0] for call in listener.send_text.call_args_list]
    assert sum('"report_updated"' in message for message in sent_types) == 2

    # Archive the week; live reports are reset
    response = await test_client_with_db.post("/api/history", json={"week_id": "2026-W02"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["embedding_count"] == 2

    response = await test_client_with_db.get("/api/reports", headers=headers)
    assert all(r["teaser"] is None for r in response.json()["reports"])

    # Next week
    await test_client_with_db.put(
        f"/api/reports/{response.json()['reports'][0]['id']}",
        json={"nickname": "たろう", "current_trial": "Next.jsとデザインシステム"},
        headers=headers,
    )
    await enricher.drain()
    response = await test_client_with_db.post("/api/history", json={"week_id": "2026-W03"}, headers=headers)
    assert response.json()["embedding_count"] == 2

    # Search across both weeks
    response = await test_client_with_db.post(
        "/api/rag/search",
        json={"question": "Next.jsについて", "top_k": 3},
        headers=headers,
    )
    texts = [r["text"] for r in response.json()["results"]]
    assert texts[0].startswith("[2026-W02] メンバー: たろう")
    assert texts[1].startswith("[2026-W03] メンバー: たろう")

    response = await test_client_with_db.post(
        "/api/rag/ask",
        json={"question": "Next.jsについて"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["answer"] == "4件の報告から回答します"
