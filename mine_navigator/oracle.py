"""Client side of the hint oracle contract.

The oracle is an external suggestion service (an LLM behind an HTTP
endpoint). It receives the serialized board and answers with one move.
Nothing it says is trusted: replies are parsed here and then checked against
the board by the hint arbiter.
"""
import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any, Callable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mine_navigator.errors import OracleMalformedError, OracleUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


class OracleRequest(BaseModel):
    """Input contract: the board string plus game parameters."""
    model_config = ConfigDict(populate_by_name=True)

    board_string: str = Field(alias='boardString')
    rows: int = Field(ge=1)
    cols: int = Field(ge=1)
    total_mines: int = Field(alias='totalMines', ge=1)


class OracleReply(BaseModel):
    """Output contract. Types are strict; bounds are checked against the board later."""
    model_config = ConfigDict(populate_by_name=True, strict=True)

    action_type: Literal['reveal', 'flag'] = Field(alias='actionType')
    row: int
    col: int
    reasoning: str
    is_confident: bool = Field(alias='isConfident')


# Anything that maps a request to the oracle's raw JSON reply.
HintOracle = Callable[[OracleRequest], Any]


def parse_oracle_reply(payload: Any) -> OracleReply:
    """Validate a raw oracle reply against the output contract."""
    if not isinstance(payload, Mapping):
        raise OracleMalformedError(f"Oracle reply must be a JSON object, got {type(payload).__name__}")
    try:
        return OracleReply.model_validate(dict(payload))
    except ValidationError as error:
        raise OracleMalformedError(f"Oracle reply does not match the contract: {error}") from error


class HttpHintOracle:
    """Posts the request as JSON and returns the decoded JSON reply."""

    def __init__(self, url: Optional[str], api_key: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "HttpHintOracle":
        raw_timeout = os.getenv("HINT_ORACLE_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)
        try:
            timeout = float(raw_timeout)
        except ValueError as error:
            raise OracleUnavailableError(
                f"HINT_ORACLE_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            ) from error
        if timeout <= 0:
            raise OracleUnavailableError(f"HINT_ORACLE_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            url=os.getenv("HINT_ORACLE_URL"),
            api_key=os.getenv("HINT_ORACLE_API_KEY"),
            timeout=timeout,
        )

    def __call__(self, request: OracleRequest) -> Any:
        if not self.url:
            raise OracleUnavailableError("HINT_ORACLE_URL is not configured")

        headers = {'Content-Type': 'application/json', 'Accept': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"
        body = json.dumps(request.model_dump(by_alias=True)).encode('utf-8')
        http_request = urllib.request.Request(self.url, data=body, headers=headers, method='POST')

        try:
            with urllib.request.urlopen(http_request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as error:
            raise OracleUnavailableError(f"Oracle returned HTTP {error.code}") from error
        except (urllib.error.URLError, TimeoutError, OSError) as error:
            raise OracleUnavailableError(f"Oracle request failed: {error}") from error

        try:
            return json.loads(raw)
        except ValueError as error:
            logger.warning(f"Oracle sent a non-JSON body ({len(raw)} bytes)")
            raise OracleMalformedError("Oracle reply is not valid JSON") from error
