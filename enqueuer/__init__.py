"""
Redis Job Enqueuer

Turns "run job X with these arguments, now or later" into a JSON record placed
either on a named FIFO queue or in the time-ordered scheduled set.
"""

__version__ = "1.0.0"
