"""
Change events emitted after successful user mutations.
"""
