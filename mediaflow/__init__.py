"""Workflow graph engine for composing and running media generation pipelines."""

__version__ = "0.1.0"
