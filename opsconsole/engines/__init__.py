"""Engines layer - multi-step privileged mutations."""
