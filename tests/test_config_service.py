"""
Tests for ConfigService: YAML rule loading, defaults and typed getters.
"""

import pytest

from runplan.core.exceptions import ConfigurationError
from runplan.services.plan_framework.config import ConfigService


class TestPackagedRules:
    """Test the rule files shipped with the package."""

    def test_progression_rates(self, config_service):
        """Progression rates come from plan_rules.yaml."""
        assert config_service.get_progression_rate("beginner") == pytest.approx(0.05)
        assert config_service.get_progression_rate("intermediate") == pytest.approx(0.08)
        assert config_service.get_progression_rate("advanced") == pytest.approx(0.10)

    def test_recovery_week_rules(self, config_service):
        """Recovery weeks come every 4th week at 70%."""
        rules = config_service.get_recovery_week_rules()
        assert rules["interval"] == 4
        assert rules["volume_factor"] == pytest.approx(0.7)

    def test_default_available_days(self, config_service):
        """Default schedule is four days a week."""
        assert config_service.get_default_available_days() == [0, 2, 4, 6]

    def test_substitution_lookup(self, config_service):
        """Substitution maps are keyed by reason then workout type."""
        assert config_service.get_substitution("fatigue", "vo2max") == "tempo"
        assert config_service.get_substitution("injury", "long_run") == "cross_training"
        assert config_service.get_substitution("unknown", "vo2max") is None

    def test_recovery_protocol_phases(self, config_service):
        """Moderate injury protocol has three phases."""
        phases = config_service.get_recovery_protocol("injury", "moderate")
        assert [p["name"] for p in phases] == ["Rest Phase", "Return to Running", "Base Rebuild"]

    def test_methodology_patterns(self, config_service):
        """Each methodology has at least one adaptation pattern."""
        for methodology in ("daniels", "lydiard", "pfitzinger", "hudson", "custom"):
            assert config_service.get_methodology_patterns(methodology)

    def test_missing_key_returns_default(self, config_service):
        """Unknown dotted keys return the default."""
        assert config_service.get("plan_rules.nope.deeper", "fallback") == "fallback"


class TestOverrides:
    """Test rule directories and in-memory overrides."""

    def test_set_overrides_value(self, config_service):
        """In-memory overrides are visible to getters."""
        config_service.set("plan_rules.progression_rates.beginner", 0.07)
        assert config_service.get_progression_rate("beginner") == pytest.approx(0.07)

    def test_progression_rate_capped(self, config_service):
        """Rates above the weekly cap are clamped."""
        config_service.set("plan_rules.progression_rates.advanced", 0.5)
        assert config_service.get_progression_rate("advanced") == pytest.approx(0.20)

    def test_custom_dir_merges_over_defaults(self, tmp_path):
        """A partial rule file only overrides what it names."""
        (tmp_path / "plan_rules.yaml").write_text("progression_rates:\n  beginner: 0.04\n")
        config = ConfigService(config_dir=tmp_path)
        assert config.get_progression_rate("beginner") == pytest.approx(0.04)
        assert config.get_progression_rate("advanced") == pytest.approx(0.10)
        assert config.get_default_available_days() == [0, 2, 4, 6]

    def test_empty_dir_uses_defaults(self, tmp_path):
        """Without rule files the constants apply."""
        config = ConfigService(config_dir=tmp_path)
        assert config.get_progression_rate("intermediate") == pytest.approx(0.08)
        assert config.get_methodology_patterns("daniels") == []

    def test_malformed_yaml_raises(self, tmp_path):
        """Unparseable YAML is a configuration error."""
        (tmp_path / "plan_rules.yaml").write_text("progression_rates: [unclosed\n")
        config = ConfigService(config_dir=tmp_path)
        with pytest.raises(ConfigurationError):
            config.get("plan_rules")

    def test_non_mapping_yaml_raises(self, tmp_path):
        """A rule file must hold a mapping."""
        (tmp_path / "adaptation_rules.yaml").write_text("- just\n- a list\n")
        config = ConfigService(config_dir=tmp_path)
        with pytest.raises(ConfigurationError):
            config.get("adaptation_rules")

    def test_reload_picks_up_changes(self, tmp_path):
        """Reload re-reads the files."""
        rules = tmp_path / "plan_rules.yaml"
        rules.write_text("max_weekly_progression: 0.15\n")
        config = ConfigService(config_dir=tmp_path)
        assert config.get("plan_rules.max_weekly_progression") == pytest.approx(0.15)

        rules.write_text("max_weekly_progression: 0.12\n")
        config.reload()
        assert config.get("plan_rules.max_weekly_progression") == pytest.approx(0.12)
