"""Composable, cancellable concurrent pipelines built from channels and operators."""

__version__ = "0.1.0"