"""LegacyApiClient — the request/response game API.

An older surface of the server (roll, evaluate, next turn, new game) that
the live room client does not use. Kept as a parallel client and exposed
through ``dicepoker api``.
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class RestError(Exception):
    """Raised on API failures. Never let raw httpx exceptions propagate."""

    def __init__(self, message: str, endpoint: str, details: str = ""):
        self.endpoint = endpoint
        self.details = details
        super().__init__(message)


class LegacyApiClient:
    """Thin synchronous client over the ``/api`` endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_s)

    def __enter__(self) -> "LegacyApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def roll_dice(self, reroll: list[bool]) -> list[int]:
        data = self._post("/roll", "Failed to roll dice", {"rerollDice": list(reroll)})
        return _field(data, "/roll", "Failed to roll dice", "dice")

    def evaluate_dice(self) -> str:
        data = self._post("/evaluate", "Failed to evaluate dice")
        return _field(data, "/evaluate", "Failed to evaluate dice", "evaluation", "name")

    def next_turn(self) -> dict[str, Any]:
        return self._post("/next-turn", "Failed to proceed to next turn")

    def new_game(self) -> dict[str, Any]:
        return self._post("/new-game", "Failed to start new game")

    def _post(self, path: str, failure: str, body: dict | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = self._client.post(url, json=body)
        except httpx.HTTPError as e:
            raise RestError(failure, path, str(e)) from e
        if not response.is_success:
            logger.error("Error response from server (%s %d): %s",
                         path, response.status_code, response.text)
            raise RestError(failure, path, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise RestError(failure, path, "response is not JSON") from e


def _field(data: Any, path: str, failure: str, *keys: str) -> Any:
    try:
        for key in keys:
            data = data[key]
    except (KeyError, TypeError) as e:
        raise RestError(failure, path, f"missing {'.'.join(keys)}") from e
    return data
