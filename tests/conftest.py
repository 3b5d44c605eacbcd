"""Shared fixtures: a small catalog file and an isolated home directory."""

from pathlib import Path

import pytest

CATALOG_YAML = """\
block:
  id: block-1
  user_id: u1
  title: Spring hypertrophy
  cycle_type: MuscleGain
  sessions_per_microcycle: 2
  microcycle_length_days: 7
  rest_day_offsets: [1, 2, 4, 5, 6]
  planned_microcycle_count: 3
  calibrated_exercise_ids: [cal-squat, cal-bench, cal-row]

equipment:
  - id: barbell
    title: Olympic Barbell
    generate: {min: 20, increment: 2.5, max: 200}
  - id: cable
    title: Cable Stack
    weight_options: [5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55, 60]

exercises:
  - id: squat
    name: Back Squat
    equipment_type_id: barbell
    rep_range: Heavy
    preferred_progression_type: Load
    primary_muscle_groups: [quads]
    initial_fatigue_guess:
      joint_and_tissue_disruption: 3
      perceived_effort: 3
      unused_muscle_performance: 3
  - id: bench
    name: Bench Press
    equipment_type_id: barbell
    rep_range: Medium
    primary_muscle_groups: [chest]
  - id: row
    name: Cable Row
    equipment_type_id: cable
    rep_range: Light
    primary_muscle_groups: [back]

calibrations:
  - {id: cal-squat, exercise_id: squat, user_id: u1, reps: 5, weight: 100}
  - {id: cal-bench, exercise_id: bench, user_id: u1, reps: 8, weight: 70}
  - {id: cal-row, exercise_id: row, user_id: u1, reps: 12, weight: 50}
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch) -> Path:
    """Point HOME at an empty directory so no user planner.yaml leaks in."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def catalog_path(tmp_path) -> Path:
    """Write the sample catalog and return its path."""
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG_YAML)
    return path
