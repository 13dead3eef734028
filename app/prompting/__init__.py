"""Prompt field helpers: fixed example prompts and placeholder text."""
