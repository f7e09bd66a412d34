"""
Timekeeper: time tracking API with PIN-protected administrative actions.
"""
