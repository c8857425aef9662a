"""Routing — shared-class metadata compiled into an ordered route table.

Routes are synthesized from method metadata, sorted by precedence, and
compiled into an immutable lookup structure when the app freezes.
"""
