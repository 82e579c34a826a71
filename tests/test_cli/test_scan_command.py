"""Tests for the scan and scan-local CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from mcp_watch.cli.commands.scan import load_settings
from mcp_watch.cli.main import cli
from mcp_watch.errors import CloneError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    # Keep config discovery away from any config in the working directory
    monkeypatch.chdir(tmp_path)


class TestScanLocalCommand:
    """Tests for scan-local."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_help(self, runner):
        result = runner.invoke(cli, ['scan-local', '--help'])

        assert result.exit_code == 0
        assert 'Scan a local MCP server project' in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '2.0.0' in result.output

    def test_vulnerable_project_fails(self, runner, vulnerable_server_path):
        result = runner.invoke(cli, ['scan-local', str(vulnerable_server_path)])

        assert result.exit_code == 1
        assert 'HARDCODED_CREDENTIALS' in result.output
        assert 'CRITICAL' in result.output
        assert 'sk-proj-abcdefghijklmnopqrstuvwxyz1234567890ABCDEFGHIJ' not in result.output

    def test_safe_project_passes(self, runner, safe_server_path):
        result = runner.invoke(cli, ['scan-local', str(safe_server_path)])

        assert result.exit_code == 0
        assert 'No vulnerabilities detected!' in result.output

    def test_quiet_safe_project_is_silent(self, runner, safe_server_path):
        result = runner.invoke(cli, ['-q', 'scan-local', str(safe_server_path)])

        assert result.exit_code == 0
        assert result.output.strip() == ''

    def test_json_to_stdout(self, runner, vulnerable_server_path):
        result = runner.invoke(cli, ['scan-local', str(vulnerable_server_path), '-f', 'json'])

        data = json.loads(result.output)
        assert result.exit_code == 1
        assert data['target'] == str(vulnerable_server_path)
        assert data['total_findings'] == len(data['findings'])
        assert data['failures'] == []

    def test_json_findings_are_sorted(self, runner, vulnerable_server_path, tmp_path):
        output = tmp_path / 'report.json'
        runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path), '-f', 'json', '-o', str(output)
        ])

        findings = json.loads(output.read_text())['findings']
        order = ['critical', 'high', 'medium', 'low']
        ranks = [order.index(f['severity']) for f in findings]
        assert ranks == sorted(ranks)

    def test_severity_filter(self, runner, vulnerable_server_path, tmp_path):
        output = tmp_path / 'report.json'
        runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path),
            '--severity', 'critical', '-f', 'json', '-o', str(output),
        ])

        findings = json.loads(output.read_text())['findings']
        assert findings
        assert {f['severity'] for f in findings} == {'critical'}

    def test_category_filter(self, runner, vulnerable_server_path, tmp_path):
        output = tmp_path / 'report.json'
        runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path),
            '--category', 'credential-leak', '-f', 'json', '-o', str(output),
        ])

        findings = json.loads(output.read_text())['findings']
        assert [f['id'] for f in findings] == ['HARDCODED_CREDENTIALS']

    def test_unmatched_category_passes(self, runner, vulnerable_server_path):
        # Filtering out every critical/high finding clears the failure signal
        result = runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path), '--category', 'no-such-category'
        ])

        assert result.exit_code == 0

    def test_console_report_to_file(self, runner, vulnerable_server_path, tmp_path):
        output = tmp_path / 'report.txt'
        result = runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path), '-o', str(output)
        ])

        text = output.read_text(encoding='utf-8')
        assert result.exit_code == 1
        assert 'MCP Security Scan Results' in text
        assert '\x1b[' not in text

    def test_missing_path(self, runner, tmp_path):
        result = runner.invoke(cli, ['scan-local', str(tmp_path / 'nope')])

        assert result.exit_code != 0
        assert 'does not exist' in result.output
        assert 'Traceback' not in result.output

    def test_path_is_a_file(self, runner, tmp_path):
        target = tmp_path / 'server.ts'
        target.write_text('const x = 1;\n')

        result = runner.invoke(cli, ['scan-local', str(target)])

        assert result.exit_code != 0
        assert 'not a directory' in result.output

    def test_config_ignore(self, runner, vulnerable_server_path, tmp_path):
        config = tmp_path / 'watch.yaml'
        config.write_text(yaml.safe_dump({
            'ignore': [{'rule_id': 'HARDCODED_CREDENTIALS', 'reason': 'rotated'}],
        }))
        output = tmp_path / 'report.json'

        runner.invoke(cli, [
            'scan-local', str(vulnerable_server_path),
            '--config', str(config), '-f', 'json', '-o', str(output),
        ])

        ids = {f['id'] for f in json.loads(output.read_text())['findings']}
        assert 'HARDCODED_CREDENTIALS' not in ids
        assert 'COMMAND_INJECTION_RISK' in ids

    def test_invalid_config(self, runner, safe_server_path, tmp_path):
        config = tmp_path / 'watch.yaml'
        config.write_text("scan:\n  min_severity: urgent\n")

        result = runner.invoke(cli, ['scan-local', str(safe_server_path), '--config', str(config)])

        assert result.exit_code != 0
        assert 'min_severity' in result.output

    def test_custom_rules_dir(self, runner, safe_server_path, tmp_path):
        rules_dir = tmp_path / 'rules'
        rules_dir.mkdir()
        (rules_dir / 'house.yaml').write_text(yaml.safe_dump({
            'detector': 'house-rules',
            'extensions': ['.py'],
            'rules': [{
                'id': 'HOUSE_MULTIPLY',
                'severity': 'low',
                'category': 'house-style',
                'message': 'multiply is banned here',
                'match': ['def multiply'],
            }],
        }))
        output = tmp_path / 'report.json'

        result = runner.invoke(cli, [
            'scan-local', str(safe_server_path),
            '--rules-dir', str(rules_dir), '-f', 'json', '-o', str(output),
        ])

        findings = json.loads(output.read_text())['findings']
        assert result.exit_code == 0
        assert [(f['id'], f['detector'], f['line']) for f in findings] == [
            ('HOUSE_MULTIPLY', 'house-rules', 8)
        ]


class TestScanRemoteCommand:
    """Tests for scan against a remote repository."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_remote_scan(self, runner, tmp_path):
        async def fake_clone(url, target_dir, timeout=None):
            (Path(target_dir) / 'index.ts').write_text(
                "const endpoint = 'http://api.remote-metrics.io/collect';\n"
            )

        output = tmp_path / 'report.json'
        with patch('mcp_watch.scanners.mcp_scanner.shallow_clone', side_effect=fake_clone):
            result = runner.invoke(cli, [
                'scan', 'https://example.invalid/server.git', '-f', 'json', '-o', str(output)
            ])

        data = json.loads(output.read_text())
        assert result.exit_code == 1
        assert data['target'] == 'https://example.invalid/server.git'
        assert {f["file"] for f in data["findings"]} == {"index.ts"}

    def test_clone_failure(self, runner):
        async def failing_clone(url, target_dir, timeout=None):
            raise CloneError(url, 'fatal: repository not found')

        with patch('mcp_watch.scanners.mcp_scanner.shallow_clone', side_effect=failing_clone):
            result = runner.invoke(cli, ['scan', 'https://example.invalid/missing.git'])

        assert result.exit_code == 1
        assert 'Failed to clone repository' in result.output
        assert 'repository not found' in result.output


class TestLoadSettings:

    def test_flags_override_config(self, tmp_path):
        (tmp_path / '.mcp-watch.yaml').write_text(yaml.safe_dump({
            'scan': {'min_severity': 'low', 'category': 'toxic-flow', 'timeout': 30},
        }))

        settings = load_settings(
            target=tmp_path, config_path=None, severity='high', category=None,
            rules_dir=None, timeout=None, strict=True,
        )

        assert settings.min_severity == 'high'
        assert settings.category == 'toxic-flow'
        assert settings.timeout == 30.0
        assert settings.strict is True

    def test_zero_timeout_disables_limit(self, tmp_path):
        settings = load_settings(
            target=tmp_path, config_path=None, severity=None, category=None,
            rules_dir=None, timeout=0, strict=False,
        )

        assert settings.timeout is None
