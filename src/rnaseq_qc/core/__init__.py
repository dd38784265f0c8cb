"""
Core QC computations: report parsing, sample joining, fractions, reference
ranges and flag classification.
"""
