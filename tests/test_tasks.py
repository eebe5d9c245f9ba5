from pathlib import Path

import pytest
from hydra import compose, initialize_config_dir
from hydra.utils import instantiate

from shapegrammar.language.expansion import ExpandSettings
from tasks.seeds import SeedVariationsTask
from tasks.variables import VariableSweepTask

SPIRAL = "let turn 20\nlet shrink 0.8\nspiral\nrul spiral 0.9\nsquare v0.5 a0.7\nspiral r ?turn p ?shrink"


@pytest.fixture
def small_settings():
    return ExpandSettings(max_nodes=30)


class TestSeedVariations:
    def test_one_row_per_seed(self, tmp_path):
        task = SeedVariationsTask(program="circle", n_seeds=3, first_seed=5, data_dir=str(tmp_path))
        df = task.generate_programs()
        assert df["seed"].tolist() == [5, 6, 7]
        assert set(df["program_string"]) == {"circle"}

    def test_run_writes_images_metadata_and_summary(self, tmp_path, small_settings):
        task = SeedVariationsTask(program="circle xm0.5...0.5 v0.5", n_seeds=3, data_dir=str(tmp_path),
                                  settings=small_settings, canvas_dim=48, grid_columns=2)
        df = task.run()
        assert len(df) == 3
        assert df["n_nodes"].tolist() == [1, 1, 1]
        assert all(Path(path).parent == tmp_path / "seeds" / "images" for path in df["render_filepath"])
        assert task.metadata_path.exists()
        assert (task.summary_dir / "seeds.png").exists()
        svgs = [open(path).read() for path in df["svg_filepath"]]
        assert len(set(svgs)) == 3

    def test_existing_metadata_short_circuits(self, tmp_path, small_settings, capsys):
        kwargs = dict(program="square", n_seeds=2, data_dir=str(tmp_path), settings=small_settings, canvas_dim=32)
        SeedVariationsTask(**kwargs).run()
        capsys.readouterr()
        df = SeedVariationsTask(**kwargs).run()
        assert len(df) == 2
        assert "Skipping generation" in capsys.readouterr().out

    def test_invalid_program_renders_nothing(self, tmp_path, small_settings):
        task = SeedVariationsTask(program="nowhere", n_seeds=2, data_dir=str(tmp_path),
                                  settings=small_settings, canvas_dim=32)
        df = task.run()
        assert df.empty
        assert not (task.summary_dir / "seeds.png").exists()


class TestVariableSweep:
    def test_ranges_follow_property_types(self, tmp_path):
        task = VariableSweepTask(program=SPIRAL, n_steps=3, data_dir=str(tmp_path))
        assert task.sweep_ranges() == {"shrink": [0.0, 1.0, 2.0], "turn": [0.0, 180.0, 360.0]}

    def test_cartesian_product(self, tmp_path):
        task = VariableSweepTask(program=SPIRAL, n_steps=2, seed=4, data_dir=str(tmp_path))
        df = task.generate_programs()
        assert len(df) == 4
        assert set(df.columns) == {"program_string", "seed", "var_shrink", "var_turn"}
        assert set(df["seed"]) == {4}

    def test_selected_variables(self, tmp_path):
        task = VariableSweepTask(program=SPIRAL, n_steps=5, variables=["Turn"], data_dir=str(tmp_path))
        df = task.generate_programs()
        assert df["var_turn"].tolist() == [0.0, 90.0, 180.0, 270.0, 360.0]
        assert "var_shrink" not in df.columns

    def test_unknown_variable(self, tmp_path):
        task = VariableSweepTask(program=SPIRAL, variables=["nope"], data_dir=str(tmp_path))
        with pytest.raises(KeyError):
            task.generate_programs()

    def test_run_applies_overrides(self, tmp_path, small_settings):
        task = VariableSweepTask(program="let k 0.5\ncircle p ?k", n_steps=3, data_dir=str(tmp_path),
                                 settings=small_settings, canvas_dim=32)
        df = task.run()
        # k = 0 collapses the circle, which is culled
        assert df.sort_values("var_k")["n_nodes"].tolist() == [0, 1, 1]
        assert 'rx="2"' in open(df.loc[df["var_k"] == 2.0, "svg_filepath"].iloc[0]).read()


class TestConfig:
    @pytest.mark.parametrize("task_name, task_class", [
        ("seeds", SeedVariationsTask),
        ("variables", VariableSweepTask),
    ])
    def test_tasks_instantiate_from_config(self, tmp_path, task_name, task_class):
        config_dir = Path(__file__).resolve().parents[1] / "config"
        with initialize_config_dir(config_dir=str(config_dir), version_base=None):
            cfg = compose(config_name="run", overrides=[f"task={task_name}", f"data_dir={tmp_path}"])
        task = instantiate(cfg.task)
        assert isinstance(task, task_class)
        assert task.settings == ExpandSettings()
        assert task.images_dir == tmp_path / task_name / "images"
        assert len(task.generate_programs()) > 1
