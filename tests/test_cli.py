import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from netbridge.cli import app
from netbridge.core.errors import UnsupportedOperation

runner = CliRunner()

WIFI_PAYLOAD = {"isConnected": True, "isWifiOrEthernet": True, "networkType": "wifi", "timestamp": 1000}
DOWN_PAYLOAD = {"isConnected": False, "isWifiOrEthernet": False, "networkType": "none", "timestamp": 2000}


class TestCLI:
    @patch("netbridge.cli._init_core")
    def test_version(self, mock_init):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "netbridge CLI v" in result.stdout
        mock_init.assert_not_called()

    @patch("netbridge.cli._init_core")
    def test_status(self, mock_init):
        """Test status command prints a readable summary."""
        mock_bridge = MagicMock()
        mock_bridge.handle_call.return_value = WIFI_PAYLOAD
        mock_init.return_value = mock_bridge

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "Connectivity Status" in result.stdout
        assert "Connected" in result.stdout
        assert "type: wifi" in result.stdout
        mock_bridge.handle_call.assert_called_once_with("query")
        mock_bridge.dispose.assert_called_once()

    @patch("netbridge.cli._init_core")
    def test_status_json(self, mock_init):
        """Test status command JSON output."""
        mock_bridge = MagicMock()
        mock_bridge.handle_call.return_value = DOWN_PAYLOAD
        mock_init.return_value = mock_bridge

        result = runner.invoke(app, ["status", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == DOWN_PAYLOAD

    @patch("netbridge.cli._init_core")
    def test_call_method(self, mock_init):
        """Test call command prints the method result."""
        mock_bridge = MagicMock()
        mock_bridge.handle_call.return_value = "ethernet"
        mock_init.return_value = mock_bridge

        result = runner.invoke(app, ["call", "getNetworkType"])

        assert result.exit_code == 0
        assert result.stdout.strip() == '"ethernet"'
        mock_bridge.handle_call.assert_called_once_with("getNetworkType")

    @patch("netbridge.cli._init_core")
    def test_call_unknown_method(self, mock_init):
        """Test call command with an unsupported method."""
        mock_bridge = MagicMock()
        mock_bridge.handle_call.side_effect = UnsupportedOperation("getSignalStrength")
        mock_bridge.methods = ["getNetworkType", "query"]
        mock_init.return_value = mock_bridge

        result = runner.invoke(app, ["call", "getSignalStrength"])

        assert result.exit_code == 2
        assert "Not implemented: getSignalStrength" in result.output
        assert "getNetworkType, query" in result.output
        mock_bridge.dispose.assert_called_once()

    @patch("netbridge.cli._init_core")
    def test_watch_count(self, mock_init):
        """Test watch command exits after the requested number of events."""
        mock_bridge = MagicMock()
        sinks = []
        mock_bridge.on_listen.side_effect = sinks.append

        def _handle(method):
            if method == "startNetworkMonitoring":
                sinks[-1](WIFI_PAYLOAD)
                sinks[-1](DOWN_PAYLOAD)

        mock_bridge.handle_call.side_effect = _handle
        mock_init.return_value = mock_bridge

        result = runner.invoke(app, ["watch", "--json", "--count", "2"])

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
        assert lines == [WIFI_PAYLOAD, DOWN_PAYLOAD]
        mock_bridge.handle_call.assert_any_call("stopNetworkMonitoring")
        mock_bridge.dispose.assert_called_once()

    def test_watch_rejects_zero_count(self):
        result = runner.invoke(app, ["watch", "--count", "0"])
        assert result.exit_code != 0
