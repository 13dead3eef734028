"""Image helper package.

Scope:
    Upload file model, base64 encoding for model requests, slot preview
    resources, and data URL helpers for rendering and exporting results.

Non-goals:
    - No image generation; the remote call lives in `app.llm`.
"""
