"""
Repository format plugins for debrelease.

Each plugin resolves package releases from one repository format.
"""
