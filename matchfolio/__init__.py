"""Matchfolio: simulated player portfolios on live sports matches.

Holds user positions per (match, player) and keeps one score-polling
task alive for every match that still has open positions, until the
match completes or the last holder sells out.
"""

__version__ = "0.1.0"
