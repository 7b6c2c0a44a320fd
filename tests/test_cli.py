import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from service_codec.cli import _parse_params, main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliOperations:
    def test_lists_operations(self):
        runner = CliRunner()
        result = runner.invoke(main, ["operations", str(FIXTURES / "users.yaml")])

        assert result.exit_code == 0
        assert "GetUser\tGET\tusers/{id}" in result.output
        assert "CreateUser\tPOST\tusers" in result.output

    def test_broken_description_fails(self):
        runner = CliRunner()
        result = runner.invoke(main, ["operations", str(FIXTURES / "broken_ref.yaml")])

        assert result.exit_code != 0
        assert "Missing" in result.output


class TestCliSerialize:
    def test_serialize_get_user(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "serialize", str(FIXTURES / "users.yaml"), "GetUser",
            "-p", "id=42",
            "-p", "trace=abc",
        ])

        assert result.exit_code == 0
        assert "GET https://api.example.com/v1/users/42" in result.output
        assert "X-Trace: abc" in result.output

    def test_serialize_json_body(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "serialize", str(FIXTURES / "users.yaml"), "CreateUser",
            "-p", "name=Ann",
            "-p", "age=30",
        ])

        assert result.exit_code == 0
        assert "Content-Type: application/json" in result.output
        assert '{"name":"Ann","age":30}' in result.output

    def test_unknown_operation(self):
        runner = CliRunner()
        result = runner.invoke(main, ["serialize", str(FIXTURES / "users.yaml"), "doesNotExist"])

        assert result.exit_code == 1
        assert "doesNotExist" in result.output

    def test_bad_param_syntax(self):
        runner = CliRunner()
        result = runner.invoke(main, ["serialize", str(FIXTURES / "users.yaml"), "GetUser", "-p", "oops"])

        assert result.exit_code != 0
        assert "key=value" in result.output


class TestCliDeserialize:
    def test_deserialize_response(self, tmp_path):
        body = tmp_path / "body.json"
        body.write_text('{"id": 1, "name": "Ann"}', encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(main, [
            "deserialize", str(FIXTURES / "users.yaml"), "GetUser",
            "--body", str(body),
            "--status", "200",
            "-H", "X-Request-Id: r-9",
        ])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"id": 1, "name": "Ann", "requestId": "r-9", "status": 200}


class TestCliLogging:
    @patch("service_codec.cli.logging.basicConfig")
    def test_verbose_sets_debug(self, mock_config):
        runner = CliRunner()
        runner.invoke(main, ["-v", "operations", str(FIXTURES / "users.yaml")])

        assert mock_config.call_args[1]["level"] == 10

    @patch("service_codec.cli.logging.basicConfig")
    def test_quiet_sets_warning(self, mock_config):
        runner = CliRunner()
        runner.invoke(main, ["-q", "operations", str(FIXTURES / "users.yaml")])

        assert mock_config.call_args[1]["level"] == 30


class TestParseParams:
    def test_values_read_as_yaml(self):
        assert _parse_params(("id=42", "tags=[a, b]", "name=Ann", "empty=")) == {
            "id": 42,
            "tags": ["a", "b"],
            "name": "Ann",
            "empty": "",
        }
