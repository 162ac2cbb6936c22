"""
Unit tests for the hint oracle client
Tests the reply contract and the HTTP transport
"""

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from mine_navigator.errors import OracleMalformedError, OracleUnavailableError
from mine_navigator.oracle import HttpHintOracle, OracleRequest, parse_oracle_reply

VALID_REPLY = {"actionType": "flag", "row": 1, "col": 2, "reasoning": "Only hidden cell next to a 1", "isConfident": True}


@pytest.fixture
def oracle_request():
    return OracleRequest(board_string="1?\n??", rows=2, cols=2, total_mines=1)


def fake_response(body: bytes):
    response = MagicMock()
    response.__enter__.return_value = io.BytesIO(body)
    return response


class TestParseOracleReply:
    """Test cases for the oracle output contract"""

    def test_valid_reply(self):
        """Test a reply with every field is accepted"""
        reply = parse_oracle_reply(VALID_REPLY)

        assert reply.action_type == "flag"
        assert (reply.row, reply.col) == (1, 2)
        assert reply.is_confident is True

    @pytest.mark.parametrize("field", list(VALID_REPLY))
    def test_missing_field(self, field):
        """Test a reply missing any field is malformed"""
        payload = {key: value for key, value in VALID_REPLY.items() if key != field}

        with pytest.raises(OracleMalformedError):
            parse_oracle_reply(payload)

    @pytest.mark.parametrize("field,value", [
        ("actionType", "chord"),
        ("row", "1"),
        ("col", 2.5),
        ("isConfident", "yes"),
        ("reasoning", None),
    ])
    def test_wrong_types(self, field, value):
        """Test wrong types and unknown actions are malformed"""
        with pytest.raises(OracleMalformedError):
            parse_oracle_reply({**VALID_REPLY, field: value})

    def test_not_an_object(self):
        """Test a JSON array is not a valid reply"""
        with pytest.raises(OracleMalformedError):
            parse_oracle_reply([VALID_REPLY])


class TestHttpHintOracle:
    """Test cases for the HTTP oracle client"""

    def test_posts_contract_json(self, oracle_request):
        """Test the request body uses the contract field names"""
        oracle = HttpHintOracle("http://oracle.test/hint", api_key="secret", timeout=5)

        with patch("urllib.request.urlopen", return_value=fake_response(json.dumps(VALID_REPLY).encode())) as urlopen:
            result = oracle(oracle_request)

        assert result == VALID_REPLY
        sent = urlopen.call_args.args[0]
        assert urlopen.call_args.kwargs["timeout"] == 5
        assert sent.get_method() == "POST"
        assert sent.full_url == "http://oracle.test/hint"
        assert sent.get_header("Authorization") == "Bearer secret"
        assert json.loads(sent.data) == {"boardString": "1?\n??", "rows": 2, "cols": 2, "totalMines": 1}

    def test_missing_url(self, oracle_request):
        """Test an unconfigured oracle is unavailable"""
        with pytest.raises(OracleUnavailableError):
            HttpHintOracle(None)(oracle_request)

    def test_connection_error(self, oracle_request):
        """Test network failures surface as unavailable"""
        oracle = HttpHintOracle("http://oracle.test/hint")

        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
            with pytest.raises(OracleUnavailableError):
                oracle(oracle_request)

    def test_http_error(self, oracle_request):
        """Test HTTP error statuses surface as unavailable"""
        oracle = HttpHintOracle("http://oracle.test/hint")
        error = urllib.error.HTTPError("http://oracle.test/hint", 503, "Service Unavailable", {}, None)

        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(OracleUnavailableError, match="503"):
                oracle(oracle_request)

    def test_non_json_body(self, oracle_request):
        """Test a body that is not JSON is malformed"""
        oracle = HttpHintOracle("http://oracle.test/hint")

        with patch("urllib.request.urlopen", return_value=fake_response(b"<html>oops</html>")):
            with pytest.raises(OracleMalformedError):
                oracle(oracle_request)

    def test_from_env(self, monkeypatch):
        """Test settings are read from the environment"""
        monkeypatch.setenv("HINT_ORACLE_URL", "http://oracle.test/hint")
        monkeypatch.setenv("HINT_ORACLE_API_KEY", "k")
        monkeypatch.setenv("HINT_ORACLE_TIMEOUT", "7.5")

        oracle = HttpHintOracle.from_env()

        assert oracle.url == "http://oracle.test/hint"
        assert oracle.api_key == "k"
        assert oracle.timeout == 7.5

    @pytest.mark.parametrize("value", ["soon", "0", "-3"])
    def test_from_env_bad_timeout(self, monkeypatch, value):
        """Test an unusable timeout setting is reported as an oracle error"""
        monkeypatch.setenv("HINT_ORACLE_TIMEOUT", value)

        with pytest.raises(OracleUnavailableError, match="HINT_ORACLE_TIMEOUT"):
            HttpHintOracle.from_env()
