"""Agora: a small governed voting process.

An administrator registers participants, participants propose and vote
in delimited phases, and the process concludes with a deterministic
first-maximum tally.
"""

__version__ = "0.1.0"
