"""
Configuration management for the Cloud Drive API.

Contains the Pydantic settings object shared by the HTTP app and the CLI.
"""
