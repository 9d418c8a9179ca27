from .sweep import SensitivityGrid, epsilon_grid, sensitivity_sweep
