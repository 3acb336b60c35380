import httpx

from speakassist.config import settings
from speakassist.errors import MalformedResponse, RequestFailure
from speakassist.models.suggestion import SuggestionRequest


class HttpCompletionBackend:
    """posts the request shape to a remote completion endpoint.

    the endpoint may answer with a structured JSON object or with bare text."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.completion_url
        self.api_key = api_key if api_key is not None else settings.completion_api_key
        self._transport = transport

    async def complete(self, request: SuggestionRequest) -> str | dict:
        if not self.url:
            raise RequestFailure("COMPLETION_URL is not set")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(
                timeout=settings.request_timeout_s, transport=self._transport,
            ) as client:
                resp = await client.post(
                    self.url, headers=headers, json=request.model_dump(by_alias=True),
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise RequestFailure(f"completion endpoint failed: {exc}") from exc

        if resp.headers.get("content-type", "").startswith("application/json"):
            try:
                return resp.json()
            except ValueError as exc:
                raise MalformedResponse("completion endpoint sent invalid JSON") from exc
        return resp.text
