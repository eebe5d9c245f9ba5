import itertools

import numpy as np
import pandas as pd

from shapegrammar.language.parser import parse_program
from shapegrammar.language.properties import PropertyType
from tasks.base_task import VARIABLE_PREFIX, Task


class VariableSweepTask(Task):
    """
    Sweeps the program's constants over the range of the properties they feed.

    Each swept constant takes `n_steps` evenly spaced values between the
    minimum and maximum of its PropertyType; the set is the cartesian product
    over all swept constants, rendered with one fixed seed. A constant whose
    usages disagree on the type is swept over the ANY range.
    """

    def __init__(self, program: str, n_steps: int = 3, variables=None, seed: int = 0, task_name=None, **kwargs):
        """Initializes the VariableSweepTask."""
        self.program = program
        self.n_steps = n_steps
        self.variables = list(variables) if variables is not None else None
        self.seed = seed
        super().__init__(task_name=task_name or "variables", **kwargs)

    def sweep_ranges(self) -> dict:
        """Maps each swept constant to its list of values."""
        types = parse_program(self.program).variables()
        names = self.variables if self.variables is not None else list(types)
        ranges = {}
        for name in names:
            key = name.lower()
            if key not in types:
                raise KeyError(f"Program does not use a constant named '{name}'")
            minimum, maximum, _ = (types[key] or PropertyType.ANY).deconstruct()
            ranges[key] = np.linspace(minimum, maximum, num=self.n_steps).round(6).tolist()
        return ranges

    def generate_programs(self):
        """Generates a DataFrame with one row per combination using itertools."""
        ranges = self.sweep_ranges()
        names = list(ranges)
        records = []
        for values in itertools.product(*ranges.values()):
            record = {"program_string": self.program, "seed": self.seed}
            record.update({f"{VARIABLE_PREFIX}{name}": value for name, value in zip(names, values)})
            records.append(record)
        return pd.DataFrame(records)
