"""
Daily activity streaks.
"""
