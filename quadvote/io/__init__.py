"""Input/output of event snapshots.

This subpackage is structured into modules by file format. The only format
so far is the JSON snapshot of a single event, its options and votes
(:mod:`quadvote.io.snapshot`).
"""
