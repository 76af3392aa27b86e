"""Provider planning.

The planner turns a `SearchIntent` into a cost-aware `ProviderPlan`: which providers to call and
with which radius, result cap and date window.
"""
