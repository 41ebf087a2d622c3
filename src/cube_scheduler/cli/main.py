"""
CLI entry point using Typer.

Provides commands for cube-method programming:
- schedule: Print the program scaffold
- auxiliary: Print the auxiliary rotation
- session: Prescribe one session just in time
- volume: Weekly volume per muscle against MEV/MRV
- estimate-1rm: One-rep-max estimate from a sub-maximal set
"""

from .app import app
from .commands import analysis, planning, sessions  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
