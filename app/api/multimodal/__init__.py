"""Multimodal input package for API adapters.

Architectural role:
- Converts file references and uploaded bytes into `UploadedFile` objects.
- Applies file access/size constraints before slot assignment.

Scope:
- Input loading only; no HTTP endpoint definitions.
"""
