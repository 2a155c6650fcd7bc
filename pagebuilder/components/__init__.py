"""Section implementations - Jinja2-backed components per (variant, mode).

Each hero variant has one implementation per mode (component, editor,
preview); legacy non-variant sections render from a static table.
"""
