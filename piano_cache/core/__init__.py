"""
Core Module

Foundational components: configuration, logging, exceptions, and the
connection state machine.
"""
