"""Legacy section migration - baseline transform, variant adapters, recommendations."""
