import pytest

from tsi_mapping.commands import DEFAULT_CATALOG, CommandCatalog


@pytest.mark.parametrize(
    "command_id, name",
    [
        (100, "Play/Pause"),
        (102, "Volume"),
        (206, "Cue"),
        (301, "EQ Low"),
        (302, "EQ Mid"),
        (303, "EQ High"),
        (320, "Filter"),
        (321, "FX Unit 1 On"),
        (322, "FX Unit 2 On"),
        (338, "FX Unit 3 On"),
        (339, "FX Unit 4 On"),
        (365, "FX Dry/Wet"),
        (733, "Sample Page Selector"),
        (3200, "Browser Select Up/Down"),
        (3221, "Browser Search"),
    ],
)
def test_known_commands(command_id, name):
    assert DEFAULT_CATALOG.name_for(command_id) == name
    assert DEFAULT_CATALOG.id_for(name) == command_id


@pytest.mark.parametrize(
    "command_id, name",
    [
        (601, "Slot 1 Cell 1 Trigger"),
        (619, "Slot 2 Cell 3 Trigger"),
        (728, "Slot 4 Cell 16 State"),
        (2548, "Modifier #1"),
        (2555, "Modifier #8"),
        (2404, "Duplicate Track Deck D"),
    ],
)
def test_computed_ranges(command_id, name):
    assert DEFAULT_CATALOG.name_for(command_id) == name


def test_unknown_ids_get_a_reversible_placeholder():
    assert DEFAULT_CATALOG.name_for(99999) == "Command #99999"
    assert DEFAULT_CATALOG.id_for("Command #99999") == 99999


def test_unknown_name_maps_to_zero():
    assert DEFAULT_CATALOG.id_for("Definitely Not A Command") == 0
    assert "Definitely Not A Command" not in DEFAULT_CATALOG
    assert "Volume" in DEFAULT_CATALOG


def test_shared_names_are_disambiguated():
    assert DEFAULT_CATALOG.name_for(201) == "Loop Out"
    assert DEFAULT_CATALOG.name_for(2393) == "Loop Out (#2393)"
    assert DEFAULT_CATALOG.id_for("Loop Out (#2393)") == 2393


def test_every_name_maps_back_to_its_id():
    for command_id in range(1, 4000):
        name = DEFAULT_CATALOG.name_for(command_id)
        assert DEFAULT_CATALOG.id_for(name) == command_id


def test_custom_catalog():
    catalog = CommandCatalog({1: "One", 2: "Two"})
    assert catalog.name_for(2) == "Two"
    assert catalog.id_for("One") == 1
    assert len(catalog) > 2  # computed ranges are always present
