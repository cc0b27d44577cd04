"""
Leaderboard: merge stored scores with course completions and rank learners.
"""
