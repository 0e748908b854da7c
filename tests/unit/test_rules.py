from pathlib import Path

import pytest

from src.app_shell.config import OpsConfigError, validate_ops_rules
from src.rules.loader import load_rules


def test_project_rules_load(rules):
    assert rules.project.slug == "quantum-knowledge-base"
    assert rules.rate_limits.newsletter.limit == 5
    assert rules.rate_limits.newsletter.window_ms == 300000
    assert rules.references.max_results == 3
    assert rules.preview.cookie_name == "draft_mode"


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "rules.yaml")


def test_invalid_yaml(tmp_path: Path):
    path = tmp_path / "rules.yaml"
    path.write_text("project: [unclosed")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_rules(path)


def test_schema_violation(tmp_path: Path):
    path = tmp_path / "rules.yaml"
    path.write_text("project:\n  slug: x\n")
    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(path)


def test_validate_ops_creates_data_dir(rules, tmp_path: Path):
    data_dir = tmp_path / "nested" / "data"
    validate_ops_rules(rules, data_dir, env={})
    assert data_dir.is_dir()


def test_validate_ops_missing_env(rules, tmp_path: Path):
    strict = rules.model_copy(
        update={"ops": rules.ops.model_copy(update={"required_env": ["QKB_SECRET_KEY"]})}
    )
    with pytest.raises(OpsConfigError, match="QKB_SECRET_KEY"):
        validate_ops_rules(strict, tmp_path, env={})
    validate_ops_rules(strict, tmp_path, env={"QKB_SECRET_KEY": "s"})


def test_validate_ops_unknown_backend(rules, tmp_path: Path):
    bad = rules.model_copy(
        update={"rate_limits": rules.rate_limits.model_copy(update={"backend": "redis"})}
    )
    with pytest.raises(OpsConfigError, match="redis"):
        validate_ops_rules(bad, tmp_path, env={})
