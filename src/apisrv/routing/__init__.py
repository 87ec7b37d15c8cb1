"""Routing — path templates, matching and the handler registry.

Templates are compiled once at registration; the registry can be
mutated while requests are being served.
"""
