"""HTTP test doubles shared by the client, service and store tests."""

import json
from typing import Any

import httpx

BASE_URL = "http://civic.test/api"


def json_response(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, json=payload)


class RecordingHandler:
    """
    MockTransport handler replaying canned responses.

    Each call consumes the next item; the last item repeats. Items may be
    responses, exceptions to raise, or callables taking the request.
    """

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)
