from .comparative import ComparisonResult, compare_posteriors, paired_difference
