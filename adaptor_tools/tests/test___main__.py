from unittest.mock import patch

from adaptor_tools import __main__


class TestCmdFunctions:
    @patch("adaptor_tools.builder_codegen.main.main")
    def test_cmd_codegen_success(self, mock_main):
        result = __main__.cmd_codegen(["definitions/"])
        assert result == 0
        mock_main.assert_called_once_with(["definitions/"])

    @patch("adaptor_tools.builder_codegen.main.main")
    def test_cmd_codegen_failure(self, mock_main, capsys):
        mock_main.side_effect = SystemExit("Error: No definitions found for: Condition")
        result = __main__.cmd_codegen([])
        assert result == 1
        assert "No definitions found" in capsys.readouterr().err

    @patch("adaptor_tools.dts.main")
    def test_cmd_dts_success(self, mock_main):
        result = __main__.cmd_dts(["fhir-jembi"])
        assert result == 0
        mock_main.assert_called_once_with(["fhir-jembi"])

    @patch("adaptor_tools.dts.main")
    def test_cmd_dts_failure(self, mock_main):
        mock_main.side_effect = SystemExit(2)
        assert __main__.cmd_dts([]) == 2

    @patch("adaptor_tools.clean.main")
    def test_cmd_clean_success(self, mock_main):
        assert __main__.cmd_clean([]) == 0
        mock_main.assert_called_once_with([])

    @patch("adaptor_tools.clean.main")
    def test_cmd_clean_help(self, mock_main):
        mock_main.side_effect = SystemExit(0)
        assert __main__.cmd_clean(["--help"]) == 0


class TestMain:
    def test_main_no_args(self, capsys):
        assert __main__.main([]) == 0
        out = capsys.readouterr().out
        assert "Available commands:" in out
        assert "codegen" in out

    def test_main_help(self, capsys):
        assert __main__.main(["--help"]) == 0
        assert "Available commands:" in capsys.readouterr().out

    def test_main_unknown_command(self, capsys):
        assert __main__.main(["unknown"]) == 1
        assert "Unknown command: unknown" in capsys.readouterr().out

    @patch("adaptor_tools.__main__.cmd_dts")
    def test_main_dispatch(self, mock_cmd):
        mock_cmd.return_value = 0
        with patch.dict(__main__.COMMANDS, {"dts": (mock_cmd, "Emit TypeScript declarations")}):
            assert __main__.main(["dts", "fhir-jembi"]) == 0
        mock_cmd.assert_called_once_with(["fhir-jembi"])
