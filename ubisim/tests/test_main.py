"""
Tests for the CLI entrypoint.

Verifies:
- Selected anchor tests run and set the exit code
- JSON output is machine-readable
- Model files are loaded from YAML and JSON; unreadable files exit 1
"""

import json

import yaml

from ubisim.main import load_model_config, main

MODEL = {
    "id": "cli-model",
    "name": "CLI Model",
    "parameters": [],
    "equations": {
        "ai_adoption_growth": "0.08 * (1 - adoption)",
        "surplus_generation": "ai_revenue * contribution_rate",
        "wellbeing_delta": "",
        "displacement_friction": "adoption * displacement_rate",
        "ubi_utility": "ubi_received / 1000",
    },
    "metadata": {"author": "cli", "version": "0.1"},
}


class TestAnchorRuns:
    """Test running anchor tests from the CLI."""

    def test_single_passing_test(self, capsys):
        """Verify a passing subset exits 0 and prints the result."""
        exit_code = main(["--test-id", "AT-6", "--no-yield"])
        out = capsys.readouterr().out
        assert exit_code == 0
        assert "✅ Money Conservation" in out
        assert "Passed 1/1" in out

    def test_json_output(self, capsys):
        """Verify --json prints the suite result as JSON."""
        exit_code = main(["--test-id", "AT-6", "--json", "--no-yield"])
        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["total"] == 1
        assert data["results"][0]["test_id"] == "AT-6"

    def test_unknown_ids_only(self, capsys):
        """Verify an empty selection exits 1."""
        assert main(["--test-id", "AT-404", "--no-yield"]) == 1


class TestModelFiles:
    """Test --model loading."""

    def test_yaml_and_json_load(self, tmp_path):
        """Verify YAML and JSON files load the same config."""
        yaml_path = tmp_path / "model.yaml"
        yaml_path.write_text(yaml.safe_dump(MODEL))
        json_path = tmp_path / "model.json"
        json_path.write_text(json.dumps(MODEL))

        assert load_model_config(yaml_path).id == "cli-model"
        assert load_model_config(json_path) == load_model_config(yaml_path)

    def test_tier1_failure_exit_code(self, tmp_path, capsys):
        """Verify a Tier 1 failure prints the failures and exits 1."""
        path = tmp_path / "model.yaml"
        path.write_text(yaml.safe_dump(MODEL))
        exit_code = main(["--model", str(path), "--no-yield"])
        out = capsys.readouterr().out
        assert exit_code == 1
        assert "T1-EQ-MISSING-wellbeing_delta" in out
        assert "Complexity: 8 (minimal)" in out
        assert "Tier 1 failed" in out

    def test_missing_file(self, tmp_path, capsys):
        """Verify a missing file prints an error and exits 1."""
        exit_code = main(["--model", str(tmp_path / "nope.yaml")])
        assert exit_code == 1
        assert "could not load model config" in capsys.readouterr().out

    def test_invalid_model(self, tmp_path, capsys):
        """Verify an incomplete config exits 1."""
        path = tmp_path / "model.yaml"
        path.write_text("id: only-an-id\n")
        assert main(["--model", str(path)]) == 1
