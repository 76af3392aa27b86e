"""Search intent parsing.

The intent layer converts a free-text discovery query into a strict `SearchIntent` value, which is
then used by the planner to decide which providers to call.
"""
