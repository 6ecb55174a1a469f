"""Module configuration tests: derived titles, descriptions, validation and storage shape."""

import pytest
from pydantic import ValidationError

from health_module import HealthModule
from module_config import ModuleConfiguration


class TestDisplayTitle:
    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"title": "Gym"}, "Gym"),
            ({"recuperation": 5.0}, "R&R"),
            ({"decay": 1.0}, "Health Poisoning"),
            ({"multiply_factor": "Microgravity", "multiplier": 0.2}, "Paragravity"),
            ({"multiply_factor": "Microgravity", "multiplier": 0.5}, "Exercise Equipment"),
            ({"multiply_factor": "Loneliness", "multiplier": 0.5}, "Meditation"),
            ({"multiply_factor": "Confinement", "multiplier": 0.5}, "Comforts"),
            ({"space": 2.0}, "Living Quarters"),
            ({"shielding": 1.0}, "RadShield"),
            ({"radioactivity": 50.0}, "Radiation"),
            ({}, "Health Module"),
        ],
    )
    def test_priority(self, fields, expected):
        assert ModuleConfiguration(**fields).display_title == expected

    def test_recuperation_wins_over_space(self):
        assert ModuleConfiguration(recuperation=1.0, space=5.0).display_title == "R&R"


class TestDescribe:
    def test_lines(self):
        cfg = ModuleConfiguration(
            recuperation=2.5,
            multiply_factor="Loneliness",
            multiplier=0.5,
            crew_cap=3,
            resource_consumption_per_crew=0.25,
        )
        lines = cfg.describe().split("\n")
        assert lines[0] == "Module type: R&R"
        assert "Recuperation: 2.5%/day" in lines
        assert "0.50x Loneliness for up to 3 crew" in lines
        assert "EC per crew member: 0.25/sec." in lines

    def test_empty_config(self):
        assert ModuleConfiguration().describe() == ""

    def test_unknown_resource_keeps_name(self):
        cfg = ModuleConfiguration(space=1.0, resource="Snacks", resource_consumption=0.1)
        assert "Snacks: 0.10/sec." in cfg.describe()

    def test_module_with_multiple_configurations(self):
        module = HealthModule(
            module_id="m1",
            part_id="cabin",
            configs=[ModuleConfiguration(recuperation=5.0), ModuleConfiguration(space=3.0)],
            complexity=0.5,
        )
        text = module.describe()
        assert text.startswith("Configuration #1\nModule type: R&R")
        assert "Configuration #2\nModule type: Living Quarters" in text
        assert text.endswith("Training complexity: 50%")


class TestValidation:
    @pytest.mark.parametrize(
        "fields",
        [
            {"recuperation": -1.0},
            {"recuperation": 101.0},
            {"decay": -0.5},
            {"multiplier": -1.0},
            {"crew_cap": -2},
            {"resource_consumption": -1.0},
        ],
    )
    def test_rejects_out_of_range(self, fields):
        with pytest.raises(ValidationError):
            ModuleConfiguration(**fields)

    def test_frozen(self):
        cfg = ModuleConfiguration(recuperation=5.0)
        with pytest.raises(ValidationError):
            cfg.recuperation = 10.0

    def test_module_needs_configuration(self):
        with pytest.raises(ValueError):
            HealthModule(module_id="m1", part_id="cabin", configs=[])


class TestStorage:
    def test_defaults_are_omitted(self):
        assert ModuleConfiguration().to_dict() == {}

    def test_non_defaults_survive(self):
        data = {
            "title": "Sick Bay",
            "recuperation": 4.0,
            "part_crew_only": True,
            "multiply_factor": "Sickness",
            "multiplier": 0.5,
            "crew_cap": 2,
            "resource": "Oxygen",
            "resource_consumption": 0.2,
        }
        cfg = ModuleConfiguration.from_dict(data)
        assert cfg.to_dict() == data
        assert ModuleConfiguration.from_dict(cfg.to_dict()) == cfg

    def test_unknown_keys_ignored(self):
        assert ModuleConfiguration.from_dict({"space": 1.0, "color": "red"}).space == 1.0


class TestModuleCommands:
    def test_always_active_cannot_be_switched_off(self):
        module = HealthModule(module_id="m1", part_id="cabin", configs=[ModuleConfiguration(space=1.0)], is_active=False)
        assert module.is_active is True
        assert module.toggle_active() is True

    def test_toggle_consuming_module(self):
        module = HealthModule(
            module_id="m1", part_id="cabin", configs=[ModuleConfiguration(recuperation=1.0, resource_consumption=1.0)]
        )
        assert module.toggle_active() is False
        assert module.toggle_active() is True

    def test_switch_configuration_cycles(self):
        module = HealthModule(
            module_id="m1",
            part_id="cabin",
            configs=[
                ModuleConfiguration(recuperation=1.0, resource_consumption=1.0),
                ModuleConfiguration(space=2.0),
            ],
            is_active=False,
        )
        assert module.switch_configuration().space == 2.0
        assert module.is_active is True
        assert module.switch_configuration().recuperation == 1.0
        assert module.title == "R&R"
