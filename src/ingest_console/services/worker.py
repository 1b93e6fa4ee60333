from typing import Any

import httpx

SECRET_HEADER = "X-Worker-Secret"


class WorkerError(Exception):
    pass


class WorkerUnavailableError(WorkerError):
    pass


class WorkerStatusError(WorkerError):
    def __init__(self, status_code: int, text: str) -> None:
        super().__init__(f"Worker returned HTTP {status_code}: {text[:200]}")
        self.status_code = status_code
        self.text = text


def create_worker_client(
    secret: str = "", timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    headers = {"Content-Type": "application/json"}
    if secret:
        headers[SECRET_HEADER] = secret
    return httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)


async def trigger_ingestion(client: httpx.AsyncClient, url: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Hand a job to the external worker. Returns the decoded response body, `{}` when it is not JSON."""
    try:
        response = await client.post(url, json=payload)
    except httpx.RequestError as e:
        raise WorkerUnavailableError(str(e) or e.__class__.__name__) from e

    if response.status_code >= 400:
        raise WorkerStatusError(response.status_code, response.text)

    try:
        data = response.json()
    except ValueError:
        return {}

    return data if isinstance(data, dict) else {"body": data}
