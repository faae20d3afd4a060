"""carecal: timezone-correct availability and appointment scheduling for clinical practices."""

__version__ = "0.1.0"
