"""
Interface package - command line entry points.
"""
