"""Stateful managers: logging, identity, admin records and the content gateway."""
