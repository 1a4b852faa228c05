"""Cursor telemetry analysis and zoom detection."""
