import pandas as pd

from tasks.base_task import Task


class SeedVariationsTask(Task):
    """
    Renders one program under a run of consecutive seeds.

    Rule probabilities and random ranges (`a...b`) resolve differently for
    every seed, so the set shows the spread a stochastic program can produce.
    """

    def __init__(self, program: str, n_seeds: int = 16, first_seed: int = 0, task_name=None, **kwargs):
        """Initializes the SeedVariationsTask."""
        self.program = program
        self.n_seeds = n_seeds
        self.first_seed = first_seed
        super().__init__(task_name=task_name or "seeds", **kwargs)

    def generate_programs(self):
        records = [
            {"program_string": self.program, "seed": seed}
            for seed in range(self.first_seed, self.first_seed + self.n_seeds)
        ]
        return pd.DataFrame(records)
