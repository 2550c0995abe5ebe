"""Routing — route records, groups, domain matching, and per-host dispatchers.

Routes are appended to a table during setup. Each requesting host gets a
dispatcher compiled from the routes that may serve it, rebuilt only when
the table changes.
"""
