import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_raw_query_forwards_params_unmodified(
    client: AsyncClient, auth_headers, fake_db
):
    """SQL text and params reach the database exactly as sent"""
    fake_db.rows = [{"n": 1}]
    payload = {"query": "SELECT * FROM `t` WHERE a = ? AND b = ?", "params": ["x'", 2]}
    response = await client.post("/query", json=payload, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["results"] == [{"n": 1}]
    assert fake_db.calls == [("all", payload["query"], ["x'", 2])]


@pytest.mark.asyncio
async def test_raw_query_without_params(client: AsyncClient, auth_headers, fake_db):
    response = await client.post(
        "/query", json={"query": "SELECT 1"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert fake_db.calls == [("all", "SELECT 1", [])]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"query": "", "params": []}, {"params": [1]}, {}])
async def test_raw_query_missing_query(
    client: AsyncClient, auth_headers, fake_db, payload
):
    response = await client.post("/query", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "No query provided"}
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_raw_query_params_must_be_a_list(
    client: AsyncClient, auth_headers, fake_db
):
    response = await client.post(
        "/query", json={"query": "SELECT ?", "params": "oops"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("params")
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_raw_query_execution_error(client: AsyncClient, auth_headers, fake_db):
    fake_db.error = 'near "SELEC": syntax error'
    response = await client.post(
        "/query", json={"query": "SELEC 1"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json() == {"error": 'near "SELEC": syntax error'}
