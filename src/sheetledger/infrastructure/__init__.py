"""
Infrastructure package.

Adapters to the outside world: the xlsx codec, the GitHub client,
settings files and logging.
"""
