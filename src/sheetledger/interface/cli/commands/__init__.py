"""
CLI command functions, registered on the app in cli.app.
"""
