"""
Records caching package.

Holds the user caches consulted by the user service. Invalidation is
explicit and whole-mapping; entries do not expire.
"""
